from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal

from marketplace.schemas.product import ProductWithSeller


class CartItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)

    model_config = ConfigDict(extra="forbid")


class CartQuantityUpdate(BaseModel):
    # Range is checked by the store so a quantity of 0 gets the same error everywhere
    quantity: int


class CartItemOut(BaseModel):
    id: str
    user_id: str
    product_id: str
    quantity: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# 👇 Cart line as shown to the shopper, priced at the live catalog price
class CartItemWithProduct(CartItemOut):
    product: ProductWithSeller
    line_total: Decimal


class CartSummary(BaseModel):
    item_count: int
    total_quantity: int
    subtotal: Decimal
    tax: Decimal
    total: Decimal
