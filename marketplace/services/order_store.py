import random
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.core.clock import SystemClock
from marketplace.core.exceptions import InvalidStatusTransition, NotFoundError, StorageError, ValidationError
from marketplace.crud import order as crud_order
from marketplace.crud import product as crud_product
from marketplace.models.order import DeliveryStatus, Order
from marketplace.schemas.order import (
    OrderHeader,
    OrderItemOut,
    OrderItemWithProduct,
    OrderLineIn,
    OrderOut,
    OrderWithItems,
)
from marketplace.schemas.product import ProductSummary
from marketplace.services import pricing
from marketplace.services.base import BaseStore


class OrderStore(BaseStore):
    """
    Orders and their line items.

    ``checkout`` writes the order header and every line in one transaction.
    Line prices are copied from the catalog at that moment and never change
    afterwards. Delivery status only moves forward:
    ordered -> shipped -> out_for_delivery -> delivered.
    """

    def __init__(
        self,
        db: Session,
        clock=None,
        rng: random.Random = None,
        tax_rate: Decimal = Decimal("0.01"),
        delivery_min_days: int = 3,
        delivery_max_days: int = 7,
    ):
        super().__init__(db)
        if delivery_min_days < 0 or delivery_max_days < delivery_min_days:
            raise ValueError(f"Invalid delivery window: {delivery_min_days}-{delivery_max_days} days")
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.tax_rate = tax_rate
        self.delivery_min_days = delivery_min_days
        self.delivery_max_days = delivery_max_days

    def _check_lines(self, items: Sequence[OrderLineIn]) -> List[str]:
        if not items:
            raise ValidationError("An order needs at least one item", code="empty_order")
        for line in items:
            if line.quantity < 1:
                raise ValidationError(
                    f"Invalid quantity {line.quantity} for product {line.product_id}", code="invalid_quantity"
                )
        return list(dict.fromkeys(line.product_id for line in items))

    @BaseStore.log_performance
    def checkout(self, user_id: str, header: OrderHeader, items: Sequence[OrderLineIn]) -> OrderOut:
        product_ids = self._check_lines(items)

        try:
            products = crud_product.get_products_for_update(self.db, product_ids)
            unavailable = [pid for pid in product_ids if pid not in products or not products[pid].is_active]
            if unavailable:
                raise ValidationError(
                    f"Products no longer available: {', '.join(unavailable)}", code="product_unavailable"
                )

            # One order line per requested line; repeated products are not combined
            lines = [
                (line.product_id, line.quantity, pricing.to_money(products[line.product_id].price)) for line in items
            ]
            subtotal = pricing.subtotal((price, qty) for _, qty, price in lines)
            total_amount = pricing.total_with_tax(subtotal, self.tax_rate)

            created_at = self.clock.now()
            delivery_days = self.rng.randint(self.delivery_min_days, self.delivery_max_days)

            order = crud_order.insert_order(
                self.db,
                user_id=user_id,
                total_amount=total_amount,
                payment_method=header.payment_method,
                shipping_address=header.shipping_address,
                delivery_date=created_at + timedelta(days=delivery_days),
                created_at=created_at,
            )
            crud_order.insert_order_items(self.db, order.id, lines)
            self.db.commit()
        except ValidationError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Checkout for user {user_id} rolled back: {e}", exc_info=True)
            raise StorageError("Order could not be saved") from e

        self.logger.info(
            f"Order {order.id} placed by user {user_id}: {len(lines)} line(s), total {total_amount}, "
            f"delivery in {delivery_days} day(s)"
        )
        return OrderOut.model_validate(order)

    def _with_items(self, orders: List[Order]) -> List[OrderWithItems]:
        items_by_order = defaultdict(list)
        for item, product in crud_order.get_order_item_rows(self.db, [order.id for order in orders]):
            base = OrderItemOut.model_validate(item)
            items_by_order[item.order_id].append(
                OrderItemWithProduct(
                    **base.model_dump(),
                    product=ProductSummary.model_validate(product) if product is not None else None,
                )
            )
        return [
            OrderWithItems(**OrderOut.model_validate(order).model_dump(), order_items=items_by_order[order.id])
            for order in orders
        ]

    @BaseStore.log_performance
    def get_orders_for_user(self, user_id: str) -> List[OrderWithItems]:
        return self._with_items(crud_order.get_orders_by_user(self.db, user_id))

    @BaseStore.log_performance
    def get_order(self, user_id: str, order_id: str) -> OrderWithItems:
        order = crud_order.get_user_order(self.db, user_id, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return self._with_items([order])[0]

    @BaseStore.log_performance
    def update_status(self, order_id: str, new_status: DeliveryStatus) -> OrderOut:
        try:
            new_status = DeliveryStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown delivery status: {new_status}", code="invalid_status")

        order = crud_order.get_order(self.db, order_id)
        if order is None:
            raise NotFoundError("Order not found")

        current = DeliveryStatus(order.delivery_status)
        if new_status == current:
            return OrderOut.model_validate(order)
        if new_status.rank < current.rank:
            raise InvalidStatusTransition(f"Cannot move order from {current.value} back to {new_status.value}")

        order = crud_order.update_order_status(self.db, order, new_status, self.clock.now())
        self.logger.info(f"Order {order_id} moved {current.value} -> {new_status.value}")
        return OrderOut.model_validate(order)
