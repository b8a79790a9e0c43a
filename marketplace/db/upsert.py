from typing import Callable, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

# Dialects whose INSERT supports ON CONFLICT ... DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: Session) -> Optional[Callable]:
    """Return the dialect-specific ``insert`` construct for the session's
    database, or None when the database has no single-statement upsert."""
    return _UPSERT_INSERTS.get(db.get_bind().dialect.name)
