from typing import List, Optional

from marketplace.core.exceptions import NotFoundError
from marketplace.crud import product as crud_product
from marketplace.models.product import Product, ProductCategory
from marketplace.models.user import User
from marketplace.schemas.product import ProductCreate, ProductOut, ProductUpdate, ProductWithSeller
from marketplace.schemas.user import SellerOut
from marketplace.services.base import BaseStore

NOT_FOUND_OR_NOT_OWNED = "Product not found or not authorized"


def compose_product_with_seller(product: Product, seller: Optional[User]) -> ProductWithSeller:
    """Build the browsing view from a flat (product, seller) row."""
    base = ProductOut.model_validate(product)
    return ProductWithSeller(
        **base.model_dump(),
        seller=SellerOut.model_validate(seller) if seller is not None else None,
    )


class CatalogStore(BaseStore):
    """
    Product catalog.

    Browsing reads only see active products. Rows are never deleted:
    soft_delete flips ``is_active`` so order history can still resolve
    the product. Writes are restricted to the owning seller, and a
    non-owner gets the same NotFoundError as a missing product.
    """

    @BaseStore.log_performance
    def list_active(self, category: Optional[ProductCategory] = None) -> List[ProductWithSeller]:
        rows = crud_product.list_active_products(self.db, category)
        return [compose_product_with_seller(product, seller) for product, seller in rows]

    @BaseStore.log_performance
    def get_active(self, product_id: str) -> ProductWithSeller:
        row = crud_product.get_active_product(self.db, product_id)
        if row is None:
            raise NotFoundError("Product not found")
        return compose_product_with_seller(*row)

    def get_any(self, product_id: str) -> ProductOut:
        """Read a product whatever its status, for order history joins."""
        product = crud_product.get_product_by_id(self.db, product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return ProductOut.model_validate(product)

    @BaseStore.log_performance
    def list_by_seller(self, seller_id: str) -> List[ProductWithSeller]:
        rows = crud_product.get_products_by_seller(self.db, seller_id)
        return [compose_product_with_seller(product, seller) for product, seller in rows]

    @BaseStore.log_performance
    def create(self, seller_id: str, data: ProductCreate) -> ProductOut:
        product = crud_product.create_product(self.db, seller_id, data.model_dump())
        self.logger.info(f"Seller {seller_id} created product {product.id}")
        return ProductOut.model_validate(product)

    @BaseStore.log_performance
    def update(self, seller_id: str, product_id: str, data: ProductUpdate) -> ProductOut:
        product = crud_product.get_owned_product(self.db, product_id, seller_id)
        if product is None:
            self.db.rollback()
            raise NotFoundError(NOT_FOUND_OR_NOT_OWNED)

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            unchanged = ProductOut.model_validate(product)
            self.db.rollback()
            return unchanged

        product = crud_product.update_product(self.db, product, changes)
        return ProductOut.model_validate(product)

    @BaseStore.log_performance
    def soft_delete(self, seller_id: str, product_id: str) -> bool:
        product = crud_product.get_owned_product(self.db, product_id, seller_id)
        if product is None:
            self.db.rollback()
            raise NotFoundError(NOT_FOUND_OR_NOT_OWNED)

        if product.is_active:
            crud_product.deactivate_product(self.db, product)
            self.logger.info(f"Seller {seller_id} deactivated product {product_id}")
        else:
            self.db.rollback()
        return True
