from fastapi import APIRouter, Depends, status
from typing import List

from marketplace.db.deps import get_cart_store, get_current_user
from marketplace.schemas.cart import CartItemCreate, CartItemOut, CartItemWithProduct, CartQuantityUpdate, CartSummary
from marketplace.schemas.user import UserOut
from marketplace.services.cart_store import CartStore

router = APIRouter()


@router.get("/cart", response_model=List[CartItemWithProduct])
def get_cart(user: UserOut = Depends(get_current_user), cart: CartStore = Depends(get_cart_store)):
    return cart.list_for_user(user.id)


@router.get("/cart/summary", response_model=CartSummary)
def get_cart_summary(user: UserOut = Depends(get_current_user), cart: CartStore = Depends(get_cart_store)):
    return cart.summarize(user.id)


@router.post("/cart", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    data: CartItemCreate,
    user: UserOut = Depends(get_current_user),
    cart: CartStore = Depends(get_cart_store),
):
    return cart.add_or_merge(user.id, data)


@router.put("/cart/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: str,
    data: CartQuantityUpdate,
    user: UserOut = Depends(get_current_user),
    cart: CartStore = Depends(get_cart_store),
):
    return cart.set_quantity(user.id, item_id, data.quantity)


@router.delete("/cart/{item_id}")
def remove_cart_item(
    item_id: str,
    user: UserOut = Depends(get_current_user),
    cart: CartStore = Depends(get_cart_store),
):
    return {"success": cart.remove(user.id, item_id)}
