from fastapi import APIRouter, Depends, status
from typing import List, Optional

from marketplace.db.deps import get_catalog_store, get_current_user
from marketplace.models.product import ProductCategory
from marketplace.schemas.product import ProductCreate, ProductOut, ProductUpdate, ProductWithSeller
from marketplace.schemas.user import UserOut
from marketplace.services.catalog_store import CatalogStore

router = APIRouter()


@router.get("/products", response_model=List[ProductWithSeller])
def list_products(
    category: Optional[ProductCategory] = None,
    catalog: CatalogStore = Depends(get_catalog_store),
):
    return catalog.list_active(category)


@router.get("/products/{product_id}", response_model=ProductWithSeller)
def get_product(product_id: str, catalog: CatalogStore = Depends(get_catalog_store)):
    return catalog.get_active(product_id)


@router.get("/my-products", response_model=List[ProductWithSeller])
def list_my_products(
    user: UserOut = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog_store),
):
    return catalog.list_by_seller(user.id)


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    user: UserOut = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog_store),
):
    return catalog.create(user.id, data)


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    data: ProductUpdate,
    user: UserOut = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog_store),
):
    return catalog.update(user.id, product_id, data)


@router.delete("/products/{product_id}")
def delete_product(
    product_id: str,
    user: UserOut = Depends(get_current_user),
    catalog: CatalogStore = Depends(get_catalog_store),
):
    return {"success": catalog.soft_delete(user.id, product_id)}
