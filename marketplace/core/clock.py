from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC, the form every timestamp column stores.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SystemClock:
    def now(self) -> datetime:
        return utcnow()


class FixedClock:
    """Clock pinned to one instant; used by tests and data seeding."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
