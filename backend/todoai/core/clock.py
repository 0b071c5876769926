"""Time helpers; "now" is always passed in explicitly below the route layer."""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from todoai.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache
def local_zone(name: str | None = None) -> tzinfo:
    return ZoneInfo(name or settings.timezone)


def ensure_aware(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC. SQLite hands them back without tzinfo."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def from_client(value: datetime | None, zone: tzinfo | None = None) -> datetime | None:
    """Normalise a user-supplied timestamp to UTC; naive means wall-clock time in the app zone."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone or local_zone())
    return value.astimezone(timezone.utc)
