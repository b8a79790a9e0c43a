from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from marketplace.models.product import ProductCategory
from marketplace.schemas.user import SellerOut


# 👇 Base structure for a product (common fields)
class ProductBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: ProductCategory
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None


# 👇 This is what the seller sends to create a product
class ProductCreate(ProductBase):
    model_config = ConfigDict(extra="forbid")


# 👇 Partial update; only fields the caller sent are applied
class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[ProductCategory] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in ("title", "description", "category", "price", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


# 👇 Stored product as returned to its seller
class ProductOut(ProductBase):
    id: str
    seller_id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# 👇 Browsing view: product plus the seller's public profile
class ProductWithSeller(ProductOut):
    seller: Optional[SellerOut] = None


# 👇 Minimal product fields shown next to an order line
class ProductSummary(BaseModel):
    id: str
    title: str
    image_url: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
