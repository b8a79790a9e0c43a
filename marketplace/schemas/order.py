from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from marketplace.models.order import DeliveryStatus, PaymentMethod
from marketplace.schemas.product import ProductSummary


class OrderHeader(BaseModel):
    payment_method: PaymentMethod
    shipping_address: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class OrderLineIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class OrderItemOut(BaseModel):
    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


# 👇 Order line for display; price is the stored snapshot, not the live price
class OrderItemWithProduct(OrderItemOut):
    product: Optional[ProductSummary] = None


class OrderOut(BaseModel):
    id: str
    user_id: str
    total_amount: Decimal
    payment_method: PaymentMethod
    delivery_status: DeliveryStatus
    delivery_date: Optional[datetime] = None
    shipping_address: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderWithItems(OrderOut):
    order_items: List[OrderItemWithProduct]


class OrderStatusUpdate(BaseModel):
    status: DeliveryStatus
