"""
Clock abstraction.

Every time read in the credential core goes through a ``Clock`` so that OTP
steps, token expiry and challenge deadlines can be driven deterministically
in tests.
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes and convert aware ones to UTC.

    Some backends (SQLite) drop tzinfo on round-trip even for
    ``DateTime(timezone=True)`` columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


system_clock = SystemClock()

__all__ = ["Clock", "SystemClock", "ensure_utc", "system_clock"]
