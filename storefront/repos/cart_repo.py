# storefront/repos/cart_repo.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.query(CartModel).filter(CartModel.user_id == user_id).first()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def update_cart_version(self, cart_id: int, old_version: int, new_data: Dict[str, Any]) -> int:
        # UPDATE carts SET ... WHERE id = :id AND version = :old_version
        # 0 rows means somebody else saved the cart after we loaded it
        return (
            self.db.query(CartModel)
            .filter(CartModel.id == cart_id, CartModel.version == old_version)
            .update(new_data, synchronize_session=False)
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
