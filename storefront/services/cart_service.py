from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    ConcurrentUpdateError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
)
from storefront.repos.cart_repo import CartRepo
from storefront.services.catalog import Catalog, CatalogItem
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class CartService:
    """
    Use cases of the cart domain.
    commands (add, update, remove, clear) change state and save the cart
    query (get) only reads

    Every save recomputes the total from *current* catalog prices, there is no
    price lock: the total reflects prices at the last write, not at add time.

    Saves are guarded by optimistic locking on carts.version. A save that
    loses the race raises ConcurrentUpdateError and nothing is written, the
    client is expected to retry.
    """

    def __init__(self, db: Session, catalog: Catalog):
        self.repo = CartRepo(db)
        self.catalog = catalog

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            # virtual empty cart, nothing is persisted
            return {"items": [], "total": Decimal("0.00")}

        return self._to_view(cart)

    #commands
    def add_item(self, user_id: int, item_id: int, quantity: int = 1) -> Dict[str, Any]:
        item = self._fetch_item(item_id)

        if quantity < 1:
            raise InvalidInputError("Quantity must be at least 1")

        # read only until the stock check passed, a failed add must not create a cart
        cart = self.repo.get_cart_by_user(user_id)
        line = self._find_line(cart, item_id) if cart else None

        requested = quantity + (line.quantity if line else 0)
        if item.stock < requested:
            if line:
                raise InsufficientStockError("Cannot add more than available stock")
            raise InsufficientStockError("Insufficient stock")

        if not cart:
            cart = self._load_or_create_cart(user_id)
            line = self._find_line(cart, item_id)
            requested = quantity + (line.quantity if line else 0)
            if item.stock < requested:
                # lost the creation race to a request that added this item
                raise InsufficientStockError("Cannot add more than available stock")
        version = cart.version

        if line:
            logger.info(
                f"Item {item_id} already in cart {cart.id}, quantity {line.quantity} -> {requested}"
            )
            line.quantity = requested
        else:
            logger.info(f"Adding item {item_id} x{quantity} to cart {cart.id}")
            cart.items.append(CartItemModel(item_id=item_id, quantity=quantity))

        self._save(cart, version)
        return self.get_cart(user_id)

    def update_quantity(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 0:
            raise InvalidInputError("Valid quantity is required")

        cart = self._get_existing_cart(user_id)
        version = cart.version
        line = self._find_line(cart, item_id)
        if not line:
            raise NotFoundError("Item not found in cart")

        item = self.catalog.find_by_id(item_id)
        if not item:
            raise NotFoundError("Item not found in catalog")

        if quantity == 0:
            logger.info(f"Quantity 0, removing item {item_id} from cart {cart.id}")
            cart.items.remove(line)
        else:
            if quantity > item.stock:
                raise InsufficientStockError("Insufficient stock")
            #overwrite, not merge
            line.quantity = quantity

        self._save(cart, version)
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        cart = self._get_existing_cart(user_id)
        version = cart.version
        line = self._find_line(cart, item_id)
        if not line:
            raise NotFoundError("Item not found in cart")

        logger.info(f"Removing item {item_id} from cart {cart.id}")
        cart.items.remove(line)

        self._save(cart, version)
        return self.get_cart(user_id)

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self._get_existing_cart(user_id)
        version = cart.version

        logger.info(f"Clearing cart {cart.id}")
        cart.items.clear()

        self._save(cart, version)
        return self.get_cart(user_id)

    # helpers

    def _fetch_item(self, item_id: int) -> CatalogItem:
        item = self.catalog.find_by_id(item_id)
        if not item:
            raise NotFoundError("Item not found")
        return item

    def _get_existing_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    def _load_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        try:
            created = self.repo.create_cart(
                CartModel(user_id=user_id, total=Decimal("0.00"), version=1)
            )
        except IntegrityError:
            # carts.user_id is unique, a parallel request created it first
            self.repo.rollback()
            cart = self.repo.get_cart_by_user(user_id)
            if not cart:
                raise
            return cart

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    @staticmethod
    def _find_line(cart: CartModel, item_id: int) -> CartItemModel | None:
        for line in cart.items:
            if line.item_id == item_id:
                return line
        return None

    def _recompute_total(self, cart: CartModel) -> Decimal:
        total = Decimal("0.00")
        for line in list(cart.items):
            item = self.catalog.find_by_id(line.item_id)
            if not item:
                # item was deleted from the catalog since it was added
                logger.warning(f"Dropping line for missing item {line.item_id} from cart {cart.id}")
                cart.items.remove(line)
                continue
            total += item.price * line.quantity
        return _money(total)

    def _save(self, cart: CartModel, version: int):
        total = self._recompute_total(cart)

        # Optimistic locking
        # e.g. UPDATE carts SET version = 3 WHERE id = 1 AND version = 2
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=version,
            new_data={
                "version": version + 1,
                "total": total,
                "updated_at": datetime.now(timezone.utc),
            },
        )

        if rowcount == 0:
            self.repo.rollback()
            logger.warning(f"Version conflict on cart {cart.id} (expected version {version})")
            raise ConcurrentUpdateError()

        self.repo.commit()
        logger.info(f"Cart {cart.id} saved, version {version + 1}, total {total}")

    def _to_view(self, cart: CartModel) -> Dict[str, Any]:
        lines = []
        for line in cart.items:
            item = self.catalog.find_by_id(line.item_id)
            if not item:
                continue
            lines.append(
                {
                    "item": {
                        "id": item.id,
                        "name": item.name,
                        "price": item.price,
                        "image_url": item.image_url,
                    },
                    "quantity": line.quantity,
                    "line_total": _money(item.price * line.quantity),
                }
            )

        return {
            "items": lines,
            "total": Decimal(cart.total),
            "version": cart.version,
            "updated_at": cart.updated_at,
        }
