import logging

from marketplace.core.exceptions import ValidationError
from marketplace.schemas.order import OrderHeader, OrderLineIn, OrderOut
from marketplace.services.cart_store import CartStore
from marketplace.services.order_store import OrderStore

logger = logging.getLogger("checkout")


class CheckoutService:
    """Turns a user's cart into an order.

    The order is written in its own transaction. Clearing the cart happens
    afterwards and is best-effort: if it fails the order still stands and
    the leftover cart is only logged.
    """

    def __init__(self, cart_store: CartStore, order_store: OrderStore):
        self.cart_store = cart_store
        self.order_store = order_store

    def checkout(self, user_id: str, header: OrderHeader) -> OrderOut:
        cart_lines = self.cart_store.list_for_user(user_id)
        if not cart_lines:
            raise ValidationError("Cart is empty", code="cart_empty")

        items = [OrderLineIn(product_id=line.product_id, quantity=line.quantity) for line in cart_lines]
        order = self.order_store.checkout(user_id, header, items)

        try:
            self.cart_store.clear_for_user(user_id)
        except Exception:
            logger.exception(f"Order {order.id} placed but cart for user {user_id} was not cleared")
            self.cart_store.db.rollback()

        return order
