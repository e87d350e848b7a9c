#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart_service, get_current_user
from storefront.data.models.user import UserModel
from storefront.domain.schemas import CartAddIn, CartOut, CartUpdateIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    current_user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    return {"cart": svc.get_cart(current_user.id)}


@router.post("/add", response_model=CartOut)
def add_item(
    payload: CartAddIn,
    current_user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    cart = svc.add_item(current_user.id, payload.item_id, payload.quantity)
    return {"message": "Item added to cart", "cart": cart}


@router.put("/update/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: CartUpdateIn,
    current_user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    cart = svc.update_quantity(current_user.id, item_id, payload.quantity)
    return {"message": "Cart updated successfully", "cart": cart}


@router.delete("/remove/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    current_user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    cart = svc.remove_item(current_user.id, item_id)
    return {"message": "Item removed from cart", "cart": cart}


@router.delete("/clear", response_model=CartOut)
def clear_cart(
    current_user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    cart = svc.clear(current_user.id)
    return {"message": "Cart cleared successfully", "cart": cart}
