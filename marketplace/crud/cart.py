from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from marketplace.core.clock import utcnow
from marketplace.db.upsert import dialect_insert
from marketplace.models.cart import CartItem
from marketplace.models.product import Product
from marketplace.models.user import User

CartRow = Tuple[CartItem, Product, Optional[User]]


#  Cart lines joined to product and seller, newest first
def get_cart_rows(db: Session, user_id: str) -> List[CartRow]:
    return (
        db.query(CartItem, Product, User)
        .join(Product, CartItem.product_id == Product.id)
        .outerjoin(User, Product.seller_id == User.id)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.desc(), CartItem.id)
        .all()
    )


def get_user_cart_item(db: Session, user_id: str, item_id: str) -> Optional[CartItem]:
    return (
        db.query(CartItem)
        .filter(CartItem.id == item_id, CartItem.user_id == user_id)
        .first()
    )


#  Insert a line or add to the quantity of the existing (user, product) line
def add_or_increment(db: Session, user_id: str, product_id: str, quantity: int) -> CartItem:
    insert = dialect_insert(db)

    if insert is not None:
        stmt = insert(CartItem).values(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            created_at=utcnow(),
        )
        # Single statement, so concurrent adds cannot lose an increment
        stmt = stmt.on_conflict_do_update(
            index_elements=[CartItem.user_id, CartItem.product_id],
            set_={"quantity": CartItem.quantity + stmt.excluded.quantity},
        )
        db.execute(stmt)
        db.commit()
        return (
            db.query(CartItem)
            .populate_existing()
            .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
            .one()
        )

    # No upsert on this database: hold a row lock across read-modify-write
    item = (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .with_for_update()
        .first()
    )
    if item is None:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        db.add(item)
    else:
        item.quantity = item.quantity + quantity
    db.commit()
    db.refresh(item)
    return item


def set_cart_item_quantity(db: Session, item: CartItem, quantity: int) -> CartItem:
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item


def delete_cart_item(db: Session, user_id: str, item_id: str) -> int:
    deleted = (
        db.query(CartItem)
        .filter(CartItem.id == item_id, CartItem.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def clear_cart(db: Session, user_id: str) -> int:
    deleted = db.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
    db.commit()
    return deleted
