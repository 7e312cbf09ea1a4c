"""Warranty lifecycle status: the one rule every screen and endpoint shares.

A warranty is ``expired`` once its expiration instant lies before the
reference instant, ``expiring`` while the expiration falls inside the window
``[now, now + expiring_window_days]`` (both ends inclusive, compared on exact
timestamps), and ``active`` otherwise.

Nothing in this module reads the system clock. Callers pass ``now`` in, which
keeps the rule deterministic and lets request handlers, stats and the seeding
tool agree on a single instant.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any

STATUS_ACTIVE = "active"
STATUS_EXPIRING = "expiring"
STATUS_EXPIRED = "expired"

STATUS_CHOICES = (
    STATUS_ACTIVE,
    STATUS_EXPIRING,
    STATUS_EXPIRED,
)

DEFAULT_EXPIRING_WINDOW_DAYS = 30


class InvalidDateError(ValueError):
    """Raised when a value cannot be read as a date or timestamp."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Invalid date: {value!r}")


def parse_timestamp(value: Any) -> datetime:
    """Return ``value`` as a timezone-aware UTC ``datetime``.

    Accepts ``datetime`` objects, ``date`` objects (midnight UTC) and ISO-8601
    strings, with or without a trailing ``Z``. Naive values are read as UTC.
    Anything else raises :class:`InvalidDateError`.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            raise InvalidDateError(value)
        if cleaned.endswith(("Z", "z")):
            cleaned = cleaned[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(cleaned)
        except ValueError as exc:
            raise InvalidDateError(value) from exc
    else:
        raise InvalidDateError(value)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(value: Any) -> str:
    """Canonical storage form: ``YYYY-MM-DDTHH:MM:SS.ffffffZ`` in UTC.

    Microseconds are always written, so stored values keep the exact instant
    and sort lexically in time order.
    """

    return parse_timestamp(value).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def utc_timestamp() -> str:
    """The current instant in storage form."""

    return format_timestamp(datetime.now(tz=timezone.utc))


def _validate_window(expiring_window_days: Any) -> int:
    if isinstance(expiring_window_days, bool) or not isinstance(expiring_window_days, int):
        raise ValueError("expiring_window_days must be an integer")
    if expiring_window_days < 0:
        raise ValueError("expiring_window_days must not be negative")
    return expiring_window_days


def derive_warranty_status(
    expiration_date: Any,
    now: Any,
    expiring_window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS,
) -> str:
    """Classify a warranty as ``active``, ``expiring`` or ``expired``.

    Raises :class:`InvalidDateError` when either date is unreadable; an
    unknown expiration is never reported as a known status.
    """

    window = _validate_window(expiring_window_days)
    expires = parse_timestamp(expiration_date)
    reference = parse_timestamp(now)

    if expires < reference:
        return STATUS_EXPIRED
    if expires <= reference + timedelta(days=window):
        return STATUS_EXPIRING
    return STATUS_ACTIVE


def days_remaining(expiration_date: Any, now: Any) -> int:
    """Whole days until expiration (negative once expired), rounded down."""

    delta = parse_timestamp(expiration_date) - parse_timestamp(now)
    return delta // timedelta(days=1)


__all__ = [
    "DEFAULT_EXPIRING_WINDOW_DAYS",
    "InvalidDateError",
    "STATUS_ACTIVE",
    "STATUS_CHOICES",
    "STATUS_EXPIRED",
    "STATUS_EXPIRING",
    "days_remaining",
    "derive_warranty_status",
    "format_timestamp",
    "utc_timestamp",
    "parse_timestamp",
]
