from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from marketplace.core.exceptions import NotFoundError, ValidationError
from marketplace.crud import cart as crud_cart
from marketplace.schemas.cart import CartItemCreate, CartItemOut, CartItemWithProduct, CartSummary
from marketplace.services import pricing
from marketplace.services.base import BaseStore
from marketplace.services.catalog_store import CatalogStore, compose_product_with_seller


class CartStore(BaseStore):
    """
    Per-user cart lines.

    There is at most one line per (user, product): adding a product that is
    already in the cart increases that line's quantity. Reads are priced at
    the live catalog price since nothing has been bought yet.
    """

    def __init__(self, db: Session, catalog: CatalogStore = None, tax_rate: Decimal = Decimal("0.01")):
        super().__init__(db)
        self.catalog = catalog or CatalogStore(db)
        self.tax_rate = tax_rate

    @BaseStore.log_performance
    def list_for_user(self, user_id: str) -> List[CartItemWithProduct]:
        result = []
        for item, product, seller in crud_cart.get_cart_rows(self.db, user_id):
            base = CartItemOut.model_validate(item)
            result.append(
                CartItemWithProduct(
                    **base.model_dump(),
                    product=compose_product_with_seller(product, seller),
                    line_total=pricing.to_money(product.price * item.quantity),
                )
            )
        return result

    @BaseStore.log_performance
    def add_or_merge(self, user_id: str, data: CartItemCreate) -> CartItemOut:
        # Raises NotFoundError for missing or deactivated products
        self.catalog.get_active(data.product_id)

        item = crud_cart.add_or_increment(self.db, user_id, data.product_id, data.quantity)
        self.logger.info(
            f"Cart for user {user_id}: +{data.quantity} of product {data.product_id}, line now {item.quantity}"
        )
        return CartItemOut.model_validate(item)

    @BaseStore.log_performance
    def set_quantity(self, user_id: str, item_id: str, quantity: int) -> CartItemOut:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1; remove the item instead", code="invalid_quantity")

        item = crud_cart.get_user_cart_item(self.db, user_id, item_id)
        if item is None:
            raise NotFoundError("Cart item not found")

        item = crud_cart.set_cart_item_quantity(self.db, item, quantity)
        return CartItemOut.model_validate(item)

    @BaseStore.log_performance
    def remove(self, user_id: str, item_id: str) -> bool:
        """Delete one line. Returns False when there was nothing to delete."""
        return crud_cart.delete_cart_item(self.db, user_id, item_id) > 0

    @BaseStore.log_performance
    def clear_for_user(self, user_id: str) -> int:
        deleted = crud_cart.clear_cart(self.db, user_id)
        self.logger.info(f"Cleared {deleted} cart line(s) for user {user_id}")
        return deleted

    @BaseStore.log_performance
    def summarize(self, user_id: str) -> CartSummary:
        lines = self.list_for_user(user_id)
        subtotal = pricing.subtotal((line.product.price, line.quantity) for line in lines)
        tax = pricing.tax_for(subtotal, self.tax_rate)
        return CartSummary(
            item_count=len(lines),
            total_quantity=sum(line.quantity for line in lines),
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
        )
