#storefront/data/models/item.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Numeric, CheckConstraint

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class ItemModel(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(1000), nullable=False)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    category = Column(String(20), nullable=False, index=True)
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)

    image_url = Column(String, nullable=False)
    # id of the object in the image storage, None for the placeholder image
    image_public_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
