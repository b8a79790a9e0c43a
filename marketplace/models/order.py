from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from marketplace.core.clock import utcnow
from marketplace.db.session import Base
from marketplace.models.user import new_id
import enum


class PaymentMethod(str, enum.Enum):
    card = "card"
    upi = "upi"
    cod = "cod"


class DeliveryStatus(str, enum.Enum):
    ordered = "ordered"
    shipped = "shipped"
    out_for_delivery = "out_for_delivery"
    delivered = "delivered"

    @property
    def rank(self) -> int:
        return DELIVERY_PROGRESSION.index(self)

    @property
    def is_terminal(self) -> bool:
        return self is DeliveryStatus.delivered


DELIVERY_PROGRESSION = [
    DeliveryStatus.ordered,
    DeliveryStatus.shipped,
    DeliveryStatus.out_for_delivery,
    DeliveryStatus.delivered,
]


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod, native_enum=False, length=16), nullable=False)
    delivery_status = Column(
        Enum(DeliveryStatus, native_enum=False, length=32),
        nullable=False,
        default=DeliveryStatus.ordered,
    )
    delivery_date = Column(DateTime, nullable=True)
    shipping_address = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Unit price at purchase time, independent of later catalog changes
    price = Column(Numeric(10, 2), nullable=False)
