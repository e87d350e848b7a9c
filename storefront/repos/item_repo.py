# storefront/repos/item_repo.py
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.models.item import ItemModel


class ItemRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_item(self, item_id: int, fresh: bool = False) -> ItemModel | None:
        return self.db.get(ItemModel, item_id, populate_existing=fresh)

    def get_by_name(self, name: str) -> ItemModel | None:
        return self.db.query(ItemModel).filter(ItemModel.name == name).first()

    def find_items(
        self,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[ItemModel], int]:
        query = self.db.query(ItemModel)

        if category:
            query = query.filter(ItemModel.category == category)
        if min_price is not None:
            query = query.filter(ItemModel.price >= min_price)
        if max_price is not None:
            query = query.filter(ItemModel.price <= max_price)
        if search:
            # case-insensitive regex on the name, inline (?i) works on postgres and sqlite
            query = query.filter(ItemModel.name.regexp_match(f"(?i){search}"))

        total = query.count()
        items = (
            query.order_by(ItemModel.created_at.desc(), ItemModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def add_item(self, item: ItemModel) -> ItemModel:
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def save(self, item: ItemModel) -> ItemModel:
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item: ItemModel):
        self.db.delete(item)
        self.db.commit()

    def rollback(self):
        self.db.rollback()
