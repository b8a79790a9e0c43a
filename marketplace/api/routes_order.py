from fastapi import APIRouter, Depends, status
from typing import List

from marketplace.db.deps import get_checkout_service, get_current_user, get_order_store
from marketplace.schemas.order import OrderHeader, OrderOut, OrderStatusUpdate, OrderWithItems
from marketplace.schemas.user import UserOut
from marketplace.services.checkout import CheckoutService
from marketplace.services.order_store import OrderStore

router = APIRouter()


@router.post("/orders", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def place_order(
    header: OrderHeader,
    user: UserOut = Depends(get_current_user),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    return checkout.checkout(user.id, header)


@router.get("/orders", response_model=List[OrderWithItems])
def list_my_orders(user: UserOut = Depends(get_current_user), orders: OrderStore = Depends(get_order_store)):
    return orders.get_orders_for_user(user.id)


@router.get("/orders/{order_id}", response_model=OrderWithItems)
def get_my_order(
    order_id: str,
    user: UserOut = Depends(get_current_user),
    orders: OrderStore = Depends(get_order_store),
):
    return orders.get_order(user.id, order_id)


@router.put("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    user: UserOut = Depends(get_current_user),
    orders: OrderStore = Depends(get_order_store),
):
    return orders.update_status(order_id, status_data.status)
