# storefront/services/catalog.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy.orm import Session

from storefront.repos.item_repo import ItemRepo


@dataclass(frozen=True)
class CatalogItem:
    id: int
    name: str
    price: Decimal
    stock: int
    image_url: str


class Catalog(Protocol):
    """What the cart needs from the catalog: current price and stock of one item."""

    def find_by_id(self, item_id: int) -> CatalogItem | None: ...


class SqlCatalog:
    """
    Catalog backed by the items table.
    Every call is a fresh read, nothing is cached between calls.
    """

    def __init__(self, db: Session):
        self.repo = ItemRepo(db)

    def find_by_id(self, item_id: int) -> CatalogItem | None:
        # always hits the database, also when this session already holds the row;
        # a row deleted by another session comes back as None
        item = self.repo.get_item(item_id, fresh=True)
        if not item:
            return None
        return CatalogItem(
            id=item.id,
            name=item.name,
            price=Decimal(item.price),
            stock=item.stock,
            image_url=item.image_url,
        )
