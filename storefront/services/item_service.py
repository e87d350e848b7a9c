# storefront/services/item_service.py
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.item import ItemModel
from storefront.domain.errors import ConflictError, InvalidInputError, NotFoundError
from storefront.domain.schemas import ItemCreate, ItemUpdate
from storefront.repos.item_repo import ItemRepo
from storefront.services.image_storage import ALLOWED_CONTENT_TYPES, ImageStorage
from storefront.utils.logging import get_logger
from storefront.utils.settings import DEFAULT_IMAGE_URL

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


@dataclass
class ImageUpload:
    data: bytes
    filename: str
    content_type: str


class ItemService:
    """
    Admin CRUD for catalog items plus the public listing.

    Images go to the object storage; removing an old image is best effort
    (image_cleanup is called after the item change is committed and its
    failure is only logged).
    """

    def __init__(
        self,
        db: Session,
        image_storage: ImageStorage,
        image_cleanup: Callable[[str], Any],
    ):
        self.repo = ItemRepo(db)
        self.image_storage = image_storage
        self.image_cleanup = image_cleanup

    def list_items(
        self,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
            raise InvalidInputError(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise InvalidInputError("min_price cannot be greater than max_price")
        if search:
            try:
                re.compile(search)
            except re.error:
                raise InvalidInputError("Invalid search pattern")

        # "All" is what the shop front sends for no category filter
        if category == "All":
            category = None

        items, total = self.repo.find_items(
            category=category,
            min_price=min_price,
            max_price=max_price,
            search=search,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total_pages = math.ceil(total / limit)

        return {
            "items": items,
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "total_items": total,
                "items_per_page": limit,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    def get_item(self, item_id: int) -> ItemModel:
        item = self.repo.get_item(item_id)
        if not item:
            raise NotFoundError("Item not found")
        return item

    def create_item(self, data: ItemCreate, image: ImageUpload | None = None) -> ItemModel:
        if self.repo.get_by_name(data.name):
            raise ConflictError("An item with this name already exists")

        uploaded = self._upload(image) if image else None

        item = ItemModel(
            name=data.name,
            description=data.description,
            price=data.price,
            category=data.category.value,
            stock=data.stock,
            image_url=uploaded["url"] if uploaded else DEFAULT_IMAGE_URL,
            image_public_id=uploaded["public_id"] if uploaded else None,
        )
        try:
            created = self.repo.add_item(item)
        except IntegrityError as e:
            self.repo.rollback()
            if uploaded:
                self._cleanup(uploaded["public_id"])
            raise ConflictError("An item with this name already exists") from e

        logger.info(f"Created item {created.id} ({created.name})")
        return created

    def update_item(self, item_id: int, changes: ItemUpdate, image: ImageUpload | None = None) -> ItemModel:
        item = self.get_item(item_id)
        fields = changes.model_dump(exclude_unset=True, exclude_none=True)

        new_name = fields.get("name")
        if new_name and new_name != item.name and self.repo.get_by_name(new_name):
            raise ConflictError("An item with this name already exists")

        uploaded = self._upload(image) if image else None
        old_public_id = item.image_public_id

        for key, value in fields.items():
            if key == "category":
                value = value.value
            setattr(item, key, value)

        if uploaded:
            item.image_url = uploaded["url"]
            item.image_public_id = uploaded["public_id"]

        try:
            saved = self.repo.save(item)
        except IntegrityError as e:
            self.repo.rollback()
            if uploaded:
                self._cleanup(uploaded["public_id"])
            raise ConflictError("An item with this name already exists") from e

        if uploaded and old_public_id:
            self._cleanup(old_public_id)

        logger.info(f"Updated item {saved.id}: {sorted(fields)}")
        return saved

    def delete_item(self, item_id: int):
        item = self.get_item(item_id)
        public_id = item.image_public_id

        self.repo.delete_item(item)
        logger.info(f"Deleted item {item_id}")

        if public_id:
            self._cleanup(public_id)

    def _upload(self, image: ImageUpload) -> dict:
        if image.content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidInputError("Invalid file type, expected jpeg, png or webp")
        if not image.data:
            raise InvalidInputError("Uploaded image is empty")
        return self.image_storage.upload(image.data, image.filename, image.content_type)

    def _cleanup(self, public_id: str):
        try:
            self.image_cleanup(public_id)
        except Exception as e:
            logger.warning(f"Failed to schedule deletion of image {public_id}: {e}")
