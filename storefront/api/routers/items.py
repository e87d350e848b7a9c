# storefront/api/routers/items.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError

from storefront.api.deps import get_item_service, role_required
from storefront.data.models.user import UserModel
from storefront.domain.errors import InvalidInputError
from storefront.domain.schemas import (
    Category,
    ItemCreate,
    ItemListOut,
    ItemOut,
    ItemRead,
    ItemUpdate,
    MessageOut,
)
from storefront.services.item_service import ImageUpload, ItemService

router = APIRouter(prefix="/items", tags=["items"])

admin_required = role_required("admin")


def _read_upload(image: UploadFile | None) -> ImageUpload | None:
    if image is None or not image.filename:
        return None
    try:
        return ImageUpload(
            data=image.file.read(),
            filename=image.filename,
            content_type=image.content_type or "",
        )
    finally:
        image.file.close()


def _validated(schema, **fields):
    try:
        return schema(**fields)
    except ValidationError as e:
        raise InvalidInputError(str(e.errors()[0]["msg"])) from e


@router.get("", response_model=ItemListOut)
def list_items(
    category: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: ItemService = Depends(get_item_service),
):
    result = svc.list_items(
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search,
        page=page,
        limit=limit,
    )
    return ItemListOut(
        items=[ItemRead.model_validate(i) for i in result["items"]],
        pagination=result["pagination"],
    )


@router.get("/{item_id}", response_model=ItemOut)
def get_item(item_id: int, svc: ItemService = Depends(get_item_service)):
    return ItemOut(item=ItemRead.model_validate(svc.get_item(item_id)))


@router.post("", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
def create_item(
    name: str = Form(...),
    description: str = Form(...),
    price: Decimal = Form(...),
    category: Category = Form(...),
    stock: int = Form(...),
    image: Optional[UploadFile] = File(None),
    admin: UserModel = Depends(admin_required),
    svc: ItemService = Depends(get_item_service),
):
    data = _validated(
        ItemCreate, name=name, description=description, price=price, category=category, stock=stock
    )
    item = svc.create_item(data, _read_upload(image))
    return ItemOut(message="Item created successfully", item=ItemRead.model_validate(item))


@router.put("/{item_id}", response_model=ItemOut)
def update_item(
    item_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[Decimal] = Form(None),
    category: Optional[Category] = Form(None),
    stock: Optional[int] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: UserModel = Depends(admin_required),
    svc: ItemService = Depends(get_item_service),
):
    sent = {
        k: v
        for k, v in {
            "name": name,
            "description": description,
            "price": price,
            "category": category,
            "stock": stock,
        }.items()
        if v is not None
    }
    changes = _validated(ItemUpdate, **sent)
    item = svc.update_item(item_id, changes, _read_upload(image))
    return ItemOut(message="Item updated successfully", item=ItemRead.model_validate(item))


@router.delete("/{item_id}", response_model=MessageOut)
def delete_item(
    item_id: int,
    admin: UserModel = Depends(admin_required),
    svc: ItemService = Depends(get_item_service),
):
    svc.delete_item(item_id)
    return MessageOut(message="Item deleted successfully")
