"""Small additive SQLite migrations applied after ``create_all``."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..core.warranty_status import (
    DEFAULT_EXPIRING_WINDOW_DAYS,
    InvalidDateError,
    derive_warranty_status,
    format_timestamp,
)

logger = logging.getLogger("warrity.migrate")

# Columns added after the first released schema. Only ever ADD here.
PRODUCT_COLUMNS: dict[str, str] = {
    "serial_number": "TEXT",
    "price": "REAL",
    "is_active": "INTEGER DEFAULT 1 NOT NULL",
}

WARRANTY_COLUMNS: dict[str, str] = {
    "notes": "TEXT",
    "status": "TEXT",
    "documents": "TEXT",
}


def _column_names(engine: Engine, table: str) -> set[str]:
    with engine.connect() as conn:
        rows = conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()
    return {row["name"] for row in rows}


def _add_missing_columns(engine: Engine, table: str, wanted: dict[str, str]) -> list[str]:
    existing = _column_names(engine, table)
    if not existing:
        return []
    added: list[str] = []
    for name, ddl in wanted.items():
        if name in existing:
            continue
        with engine.begin() as conn:
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}"))
        added.append(name)
    return added


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str]) -> None:
    cols_sql = ", ".join(cols)
    with engine.begin() as conn:
        conn.execute(text(f"CREATE INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def normalize_warranty_dates(engine: Engine) -> int:
    """Rewrite readable purchase/expiration dates in storage form. Returns rows changed.

    Older rows hold bare dates or whole-second timestamps, which do not sort
    correctly next to the microsecond form. Unreadable values are left as is.
    """

    with engine.connect() as conn:
        rows = conn.execute(text("SELECT id, purchase_date, expiration_date FROM warranties")).all()

    changed = 0
    with engine.begin() as conn:
        for row_id, purchase_date, expiration_date in rows:
            values = {}
            for column, value in (("purchase_date", purchase_date), ("expiration_date", expiration_date)):
                try:
                    canonical = format_timestamp(value)
                except InvalidDateError:
                    continue
                if canonical != value:
                    values[column] = canonical
            if not values:
                continue
            assignments = ", ".join(f"{column} = :{column}" for column in values)
            conn.execute(text(f"UPDATE warranties SET {assignments} WHERE id = :id"), {**values, "id": row_id})
            changed += 1
    return changed


def backfill_warranty_status(
    engine: Engine,
    now: datetime,
    expiring_window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS,
) -> int:
    """Fill ``status`` for rows that predate the column. Returns rows updated."""

    with engine.connect() as conn:
        rows = conn.execute(
            text("SELECT id, expiration_date FROM warranties WHERE status IS NULL")
        ).all()

    updated = 0
    with engine.begin() as conn:
        for row_id, expiration_date in rows:
            try:
                status = derive_warranty_status(expiration_date, now, expiring_window_days)
            except InvalidDateError:
                logger.warning(
                    "migrate.unreadable_expiration",
                    extra={"extra_data": {"warranty_id": row_id}},
                )
                continue
            conn.execute(
                text("UPDATE warranties SET status = :status WHERE id = :id"),
                {"status": status, "id": row_id},
            )
            updated += 1
    return updated


def run_migrations(
    engine: Engine,
    *,
    now: datetime | None = None,
    expiring_window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS,
) -> None:
    """Bring an existing SQLite database up to the schema the code expects."""

    if engine.dialect.name != "sqlite":
        return

    added = _add_missing_columns(engine, "products", PRODUCT_COLUMNS)
    added += _add_missing_columns(engine, "warranties", WARRANTY_COLUMNS)
    if added:
        logger.info("migrate.columns_added", extra={"extra_data": {"columns": added}})

    if not _column_names(engine, "warranties"):
        return

    _create_index_if_not_exists(engine, "warranties", "ix_warranties_status", ["status"])
    _create_index_if_not_exists(engine, "warranties", "ix_warranties_expiration_date", ["expiration_date"])

    normalized = normalize_warranty_dates(engine)
    if normalized:
        logger.info("migrate.dates_normalized", extra={"extra_data": {"rows": normalized}})

    reference = now or datetime.now(tz=timezone.utc)
    backfilled = backfill_warranty_status(engine, reference, expiring_window_days)
    if backfilled:
        logger.info("migrate.status_backfilled", extra={"extra_data": {"rows": backfilled}})
