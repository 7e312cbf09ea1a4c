import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from warrity.db.migrate import backfill_warranty_status, normalize_warranty_dates, run_migrations

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _legacy_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE products (id INTEGER PRIMARY KEY, name TEXT, description TEXT, "
                "manufacturer TEXT, model TEXT, category TEXT, created_at TEXT, updated_at TEXT)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE warranties (id INTEGER PRIMARY KEY, user_id INTEGER, product_id INTEGER, "
                "purchase_date TEXT, expiration_date TEXT, warranty_provider TEXT, warranty_number TEXT, "
                "coverage_details TEXT, created_at TEXT, updated_at TEXT)"
            )
        )
        for row_id, expiration in ((1, "2023-12-31"), (2, "2024-01-15"), (3, "2025-01-01"), (4, "bogus")):
            conn.execute(
                text(
                    "INSERT INTO warranties (id, product_id, purchase_date, expiration_date, "
                    "warranty_provider, warranty_number, coverage_details, created_at, updated_at) "
                    "VALUES (:id, 1, '2023-01-01', :exp, 'p', 'n', 'c', '2023-01-01', '2023-01-01')"
                ),
                {"id": row_id, "exp": expiration},
            )
    return engine


def _columns(engine, table):
    with engine.connect() as conn:
        return {row["name"] for row in conn.execute(text(f"PRAGMA table_info({table})")).mappings()}


def test_run_migrations_adds_columns_and_backfills_status():
    engine = _legacy_engine()
    run_migrations(engine, now=NOW, expiring_window_days=30)

    assert {"notes", "status", "documents"} <= _columns(engine, "warranties")
    assert {"serial_number", "price", "is_active"} <= _columns(engine, "products")

    with engine.connect() as conn:
        statuses = dict(conn.execute(text("SELECT id, status FROM warranties ORDER BY id")).all())
    assert statuses == {1: "expired", 2: "expiring", 3: "active", 4: None}


def test_run_migrations_is_idempotent():
    engine = _legacy_engine()
    run_migrations(engine, now=NOW)
    run_migrations(engine, now=NOW)
    assert "status" in _columns(engine, "warranties")


def test_backfill_skips_rows_that_already_have_a_status():
    engine = _legacy_engine()
    run_migrations(engine, now=NOW)
    assert backfill_warranty_status(engine, NOW) == 0


def test_run_migrations_rewrites_legacy_dates_in_storage_form():
    engine = _legacy_engine()
    run_migrations(engine, now=NOW)

    with engine.connect() as conn:
        rows = {
            row_id: (purchase, expiration)
            for row_id, purchase, expiration in conn.execute(
                text("SELECT id, purchase_date, expiration_date FROM warranties ORDER BY id")
            )
        }
    assert rows[2] == ("2023-01-01T00:00:00.000000Z", "2024-01-15T00:00:00.000000Z")
    # Unreadable values are kept for inspection.
    assert rows[4] == ("2023-01-01T00:00:00.000000Z", "bogus")
    assert normalize_warranty_dates(engine) == 0
