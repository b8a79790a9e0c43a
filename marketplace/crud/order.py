from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from marketplace.models.order import DeliveryStatus, Order, OrderItem, PaymentMethod
from marketplace.models.product import Product

OrderItemRow = Tuple[OrderItem, Optional[Product]]


# Checkout helpers only flush; the caller owns the transaction
def insert_order(
    db: Session,
    user_id: str,
    total_amount: Decimal,
    payment_method: PaymentMethod,
    shipping_address: str,
    delivery_date: datetime,
    created_at: datetime,
) -> Order:
    order = Order(
        user_id=user_id,
        total_amount=total_amount,
        payment_method=payment_method,
        delivery_status=DeliveryStatus.ordered,
        delivery_date=delivery_date,
        shipping_address=shipping_address,
        created_at=created_at,
        updated_at=created_at,
    )
    db.add(order)
    db.flush()  # flush so order.id is available
    return order


def insert_order_items(db: Session, order_id: str, lines: Iterable[Tuple[str, int, Decimal]]) -> List[OrderItem]:
    items = [
        OrderItem(order_id=order_id, product_id=product_id, quantity=quantity, price=price)
        for product_id, quantity, price in lines
    ]
    db.add_all(items)
    db.flush()
    return items


def get_orders_by_user(db: Session, user_id: str) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id)
        .all()
    )


def get_order(db: Session, order_id: str) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id).first()


def get_user_order(db: Session, user_id: str, order_id: str) -> Optional[Order]:
    return db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()


#  Order lines for many orders at once, joined to their product (any status)
def get_order_item_rows(db: Session, order_ids: Iterable[str]) -> List[OrderItemRow]:
    ids = list(order_ids)
    if not ids:
        return []
    return (
        db.query(OrderItem, Product)
        .outerjoin(Product, OrderItem.product_id == Product.id)
        .filter(OrderItem.order_id.in_(ids))
        .order_by(OrderItem.order_id, OrderItem.id)
        .all()
    )


def update_order_status(db: Session, order: Order, new_status: DeliveryStatus, updated_at: datetime) -> Order:
    order.delivery_status = new_status
    order.updated_at = updated_at
    db.commit()
    db.refresh(order)
    return order
