from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def utc_now() -> datetime:
    """Current UTC time (timezone-aware).

    Note: Services take a ``clock`` argument defaulting to this so tests can
    simulate time without patching.
    """
    return datetime.now(timezone.utc)


def to_epoch(value: datetime) -> int:
    return int(as_utc(value).timestamp())


def from_epoch(value: int | float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by MySQL DATETIME) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
