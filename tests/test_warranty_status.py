import os
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from warrity.core.warranty_status import (
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_EXPIRING,
    InvalidDateError,
    days_remaining,
    derive_warranty_status,
    format_timestamp,
    parse_timestamp,
)

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "offset",
    [
        timedelta(seconds=1),
        timedelta(hours=23),
        timedelta(days=1),
        timedelta(days=365),
        timedelta(days=3650),
    ],
)
def test_dates_before_now_are_expired(offset):
    assert derive_warranty_status(NOW - offset, NOW) == STATUS_EXPIRED


@pytest.mark.parametrize(
    "offset",
    [
        timedelta(0),
        timedelta(seconds=1),
        timedelta(days=1),
        timedelta(days=15),
        timedelta(days=29, hours=23, minutes=59, seconds=59),
        timedelta(days=30),
    ],
)
def test_dates_inside_window_are_expiring(offset):
    assert derive_warranty_status(NOW + offset, NOW) == STATUS_EXPIRING


@pytest.mark.parametrize(
    "offset",
    [
        timedelta(days=30, seconds=1),
        timedelta(days=31),
        timedelta(days=365),
    ],
)
def test_dates_beyond_window_are_active(offset):
    assert derive_warranty_status(NOW + offset, NOW) == STATUS_ACTIVE


def test_lower_bound_is_inclusive():
    assert derive_warranty_status(NOW, NOW) == STATUS_EXPIRING


def test_upper_bound_is_inclusive():
    assert derive_warranty_status(NOW + timedelta(days=30), NOW) == STATUS_EXPIRING
    assert derive_warranty_status(NOW + timedelta(days=30, seconds=1), NOW) == STATUS_ACTIVE


@pytest.mark.parametrize(
    "expiration, expected",
    [
        ("2023-12-31", STATUS_EXPIRED),
        ("2024-01-15", STATUS_EXPIRING),
        ("2025-01-01", STATUS_ACTIVE),
    ],
)
def test_concrete_scenarios_on_new_year(expiration, expected):
    assert derive_warranty_status(expiration, "2024-01-01") == expected


def test_custom_window_moves_upper_bound():
    assert derive_warranty_status(NOW + timedelta(days=45), NOW, 60) == STATUS_EXPIRING
    assert derive_warranty_status(NOW + timedelta(days=8), NOW, 7) == STATUS_ACTIVE


def test_zero_window_only_matches_the_exact_instant():
    assert derive_warranty_status(NOW, NOW, 0) == STATUS_EXPIRING
    assert derive_warranty_status(NOW + timedelta(seconds=1), NOW, 0) == STATUS_ACTIVE


@pytest.mark.parametrize("window", [-1, 1.5, "30", True, None])
def test_rejects_bad_windows(window):
    with pytest.raises(ValueError):
        derive_warranty_status(NOW, NOW, window)


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2024-13-45", None, 12345, object()])
def test_invalid_expiration_raises_instead_of_classifying(value):
    with pytest.raises(InvalidDateError):
        derive_warranty_status(value, NOW)


def test_invalid_now_raises():
    with pytest.raises(InvalidDateError):
        derive_warranty_status(NOW, "yesterday")


def test_invalid_date_error_keeps_the_value():
    with pytest.raises(InvalidDateError) as excinfo:
        parse_timestamp("31/12/2024")
    assert excinfo.value.value == "31/12/2024"
    assert isinstance(excinfo.value, ValueError)


def test_parse_accepts_strings_dates_and_datetimes():
    assert parse_timestamp("2024-06-15T12:00:00Z") == NOW
    assert parse_timestamp("2024-06-15T14:00:00+02:00") == NOW
    assert parse_timestamp(date(2024, 6, 15)) == datetime(2024, 6, 15, tzinfo=timezone.utc)
    # Naive values are read as UTC
    assert parse_timestamp(datetime(2024, 6, 15, 12, 0, 0)) == NOW


def test_offsets_are_compared_on_the_same_instant():
    # 23:30 at UTC-1 is 00:30 UTC the next day, which is after midnight UTC.
    assert derive_warranty_status("2024-06-14T23:30:00-01:00", "2024-06-15T00:00:00Z") == STATUS_EXPIRING
    assert derive_warranty_status("2024-06-15T00:30:00+01:00", "2024-06-15T00:00:00Z") == STATUS_EXPIRED


def test_format_timestamp_is_canonical_utc():
    assert format_timestamp("2024-06-15T14:00:00.123456+02:00") == "2024-06-15T12:00:00.123456Z"
    assert format_timestamp(date(2024, 1, 1)) == "2024-01-01T00:00:00.000000Z"


def test_format_timestamp_keeps_the_exact_instant():
    just_past = NOW + timedelta(days=30, milliseconds=500)
    stored = format_timestamp(just_past)
    assert parse_timestamp(stored) == just_past
    assert derive_warranty_status(stored, NOW) == derive_warranty_status(just_past, NOW) == STATUS_ACTIVE
    # Fixed width, so text order is time order.
    assert format_timestamp(NOW) < stored < format_timestamp(NOW + timedelta(days=30, seconds=1))


def test_days_remaining_rounds_down():
    assert days_remaining(NOW + timedelta(days=10, hours=5), NOW) == 10
    assert days_remaining(NOW, NOW) == 0
    assert days_remaining(NOW - timedelta(hours=1), NOW) == -1
