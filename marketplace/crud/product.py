from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from marketplace.models.product import Product, ProductCategory
from marketplace.models.user import User

ProductRow = Tuple[Product, Optional[User]]


def _with_seller(db: Session):
    return db.query(Product, User).outerjoin(User, Product.seller_id == User.id)


#  Active catalog, newest first, optionally narrowed to one category
def list_active_products(db: Session, category: Optional[ProductCategory] = None) -> List[ProductRow]:
    query = _with_seller(db).filter(Product.is_active.is_(True))
    if category is not None:
        query = query.filter(Product.category == category)
    return query.order_by(Product.created_at.desc(), Product.id).all()


#  One active product with its seller
def get_active_product(db: Session, product_id: str) -> Optional[ProductRow]:
    return (
        _with_seller(db)
        .filter(Product.id == product_id, Product.is_active.is_(True))
        .first()
    )


#  One product regardless of status (order history, price snapshots)
def get_product_by_id(db: Session, product_id: str) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


#  Every product a seller owns, active or not
def get_products_by_seller(db: Session, seller_id: str) -> List[ProductRow]:
    return (
        _with_seller(db)
        .filter(Product.seller_id == seller_id)
        .order_by(Product.created_at.desc(), Product.id)
        .all()
    )


#  Product scoped to its owner; None covers both missing and not owned
def get_owned_product(db: Session, product_id: str, seller_id: str) -> Optional[Product]:
    return (
        db.query(Product)
        .filter(Product.id == product_id, Product.seller_id == seller_id)
        .with_for_update()
        .first()
    )


#  Lock and load a set of products for checkout
def get_products_for_update(db: Session, product_ids: Iterable[str]) -> Dict[str, Product]:
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    rows = db.query(Product).filter(Product.id.in_(ids)).order_by(Product.id).with_for_update().all()
    return {product.id: product for product in rows}


def create_product(db: Session, seller_id: str, values: dict) -> Product:
    product = Product(seller_id=seller_id, is_active=True, **values)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product: Product, changes: dict) -> Product:
    for key, value in changes.items():
        setattr(product, key, value)
    db.commit()
    db.refresh(product)
    return product


#  Soft delete: flips the flag, never removes the row
def deactivate_product(db: Session, product: Product) -> Product:
    product.is_active = False
    db.commit()
    db.refresh(product)
    return product
