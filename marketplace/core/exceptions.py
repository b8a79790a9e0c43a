class MarketplaceError(Exception):
    """Base class for errors the stores raise on purpose."""

    code = "marketplace_error"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class ValidationError(MarketplaceError):
    """Malformed or out-of-range input, raised before any write."""

    code = "validation_error"


class InvalidStatusTransition(ValidationError):
    code = "invalid_status_transition"


class NotFoundError(MarketplaceError):
    """Entity is absent, or exists but is not owned by the caller.

    Owner-scoped operations raise this for both cases so callers cannot
    probe for other users' rows.
    """

    code = "not_found"


class StorageError(MarketplaceError):
    """The database rejected a write or a commit failed."""

    code = "storage_error"
