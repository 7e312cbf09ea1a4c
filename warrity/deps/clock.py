from __future__ import annotations

from datetime import datetime, timezone


def get_now() -> datetime:
    """Reference instant for a request.

    Route handlers take ``now`` from this dependency instead of reading the
    clock themselves, so one request sees one instant and tests can pin it via
    ``app.dependency_overrides[get_now]``.
    """

    return datetime.now(tz=timezone.utc)
