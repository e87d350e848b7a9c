# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Category(str, Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME = "Home"
    SPORTS = "Sports"
    OTHER = "Other"


# ---------------------------------------------------------------- users


class UserCreate(BaseModel):
    """Registration payload."""

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class SessionOut(BaseModel):
    """Response for register / login, the token is also set as a cookie."""

    success: bool = True
    message: str
    user: UserRead
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class ProfileOut(BaseModel):
    success: bool = True
    user: UserRead


class MessageOut(BaseModel):
    success: bool = True
    message: str


# ---------------------------------------------------------------- items


class ItemRead(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    category: str
    image_url: str
    stock: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: Category
    stock: int = Field(..., ge=0)


class ItemUpdate(BaseModel):
    """Partial update, only the fields that were sent are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[Category] = None
    stock: Optional[int] = Field(None, ge=0)


class ItemOut(BaseModel):
    success: bool = True
    message: Optional[str] = None
    item: ItemRead


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next: bool
    has_prev: bool


class ItemListOut(BaseModel):
    success: bool = True
    items: List[ItemRead]
    pagination: Pagination


# ---------------------------------------------------------------- cart


class CartAddIn(BaseModel):
    item_id: int = Field(..., gt=0, description="Catalog item id")
    # range is checked by CartService so the error maps to InvalidInput
    quantity: int = Field(1, description="How many to add, at least 1")


class CartUpdateIn(BaseModel):
    quantity: int = Field(..., description="New quantity, 0 removes the line")


class CartLineItem(BaseModel):
    id: int
    name: str
    price: Decimal
    image_url: str


class CartLineOut(BaseModel):
    item: CartLineItem
    quantity: int
    line_total: Decimal


class CartRead(BaseModel):
    items: List[CartLineOut]
    total: Decimal
    version: Optional[int] = None
    updated_at: Optional[datetime] = None


class CartOut(BaseModel):
    success: bool = True
    message: Optional[str] = None
    cart: CartRead
