from typing import Optional

from sqlalchemy.orm import Session

from marketplace.core.clock import utcnow
from marketplace.db.upsert import dialect_insert
from marketplace.models.user import User


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


# ✅ Insert the user or overwrite the given fields when the id already exists
def upsert_user(db: Session, user_id: str, values: dict) -> User:
    now = utcnow()
    insert = dialect_insert(db)

    if insert is not None:
        stmt = insert(User).values(id=user_id, created_at=now, updated_at=now, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[User.id],
            set_={**{key: stmt.excluded[key] for key in values}, "updated_at": now},
        )
        db.execute(stmt)
        db.commit()
        return db.get(User, user_id, populate_existing=True)

    user = db.query(User).filter(User.id == user_id).with_for_update().first()
    if user is None:
        user = User(id=user_id, created_at=now, updated_at=now, **values)
        db.add(user)
    else:
        for key, value in values.items():
            setattr(user, key, value)
        user.updated_at = now
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, user: User, changes: dict) -> User:
    for key, value in changes.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user
