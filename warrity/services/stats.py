from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.warranty_status import STATUS_CHOICES, InvalidDateError, parse_timestamp
from ..crud.users import count_users
from ..crud.warranties import evaluate_status, list_recent_warranties, scope_to_owner
from ..models.product import Product
from ..models.warranty import Warranty

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
UNKNOWN_STATUS = "unknown"
UNCATEGORISED = "Uncategorised"


def count_warranty_statuses(
    db: Session,
    now: datetime,
    *,
    owner_id: int | None = None,
    expiring_window_days: int | None = None,
) -> Dict[str, int]:
    """Count warranties per status, deriving each one against ``now``.

    Rows whose expiration date cannot be read are counted as ``unknown``.
    """

    counts = {"total": 0, UNKNOWN_STATUS: 0}
    counts.update({status: 0 for status in STATUS_CHOICES})
    for warranty in db.execute(scope_to_owner(select(Warranty), owner_id)).scalars().all():
        counts["total"] += 1
        status = evaluate_status(warranty, now, expiring_window_days)
        counts[status or UNKNOWN_STATUS] += 1
    return counts


def warranty_overview(
    db: Session,
    now: datetime,
    *,
    owner_id: int | None = None,
    expiring_window_days: int,
    recent_limit: int = 5,
) -> Dict[str, Any]:
    counts = count_warranty_statuses(db, now, owner_id=owner_id, expiring_window_days=expiring_window_days)

    by_category: Counter[str] = Counter()
    for warranty in db.execute(scope_to_owner(select(Warranty), owner_id)).scalars().all():
        by_category[warranty.product_category or UNCATEGORISED] += 1

    return {
        **counts,
        "expiring_window_days": expiring_window_days,
        "warranty_by_category": [
            {"category": category, "count": count} for category, count in sorted(by_category.items())
        ],
        "recent_warranties": list_recent_warranties(db, owner_id=owner_id, limit=recent_limit),
    }


def product_stats(db: Session) -> Dict[str, Any]:
    total = db.scalar(select(func.count()).select_from(Product).where(Product.is_active == 1)) or 0
    rows = db.execute(
        select(Product.category, func.count())
        .where(Product.is_active == 1)
        .group_by(Product.category)
        .order_by(Product.category)
    ).all()
    return {"total": total, "categories": [{"category": category, "count": count} for category, count in rows]}


def monthly_warranty_counts(db: Session, year: int) -> list[Dict[str, Any]]:
    """Warranties created per calendar month of ``year`` (UTC)."""

    buckets = [0] * 12
    for created_at in db.execute(select(Warranty.created_at)).scalars().all():
        try:
            created = parse_timestamp(created_at)
        except InvalidDateError:
            continue
        if created.year == year:
            buckets[created.month - 1] += 1
    return [{"month": label, "count": count} for label, count in zip(MONTH_LABELS, buckets)]


def dashboard_stats(db: Session, now: datetime, *, expiring_window_days: int) -> Dict[str, Any]:
    return {
        "user_stats": count_users(db),
        "warranty_stats": count_warranty_statuses(db, now, expiring_window_days=expiring_window_days),
        "product_stats": product_stats(db),
        "monthly_data": monthly_warranty_counts(db, now.year),
    }
