import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, Numeric, String, Text

from marketplace.core.clock import utcnow
from marketplace.db.session import Base
from marketplace.models.user import new_id


class ProductCategory(str, enum.Enum):
    Electronics = "Electronics"
    Clothes = "Clothes"
    Books = "Books"
    Furniture = "Furniture"


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Enum(ProductCategory, native_enum=False, length=32), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String, nullable=True)
    seller_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Soft delete flag; rows are never removed because orders reference them
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_products_active_category", "is_active", "category"),
    )
