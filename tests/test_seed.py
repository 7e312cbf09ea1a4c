import os
import random
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from warrity.core.warranty_status import derive_warranty_status, parse_timestamp
from warrity.crud.catalog import list_category_records, list_company_service_info, service_info_for_product
from warrity.db.session import Base
from warrity.models.product import PRODUCT_CATEGORIES, Product
from warrity.models.warranty import Warranty
from warrity.seed import parse_args
from warrity.services.seed import seed_demo_data

# Ensure models are registered so metadata tables are created
from warrity.models import product as product_model  # noqa: F401
from warrity.models import user as user_model  # noqa: F401

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_seed_statuses_match_the_status_function(db_session):
    summary = seed_demo_data(db_session, NOW, count=25, rng=random.Random(42), expiring_window_days=30)
    assert summary["warranties"] == 25
    assert summary["products"] >= 1

    rows = db_session.execute(select(Warranty)).scalars().all()
    assert len(rows) == 25
    for row in rows:
        assert row.status == derive_warranty_status(row.expiration_date, NOW, 30)
        assert parse_timestamp(row.purchase_date) <= parse_timestamp(row.expiration_date)


def test_small_seed_covers_every_status(db_session):
    summary = seed_demo_data(db_session, NOW, count=3, rng=random.Random(1), expiring_window_days=30)
    assert summary["statuses"] == {"active": 1, "expiring": 1, "expired": 1}


def test_seed_is_reproducible(db_session):
    seed_demo_data(db_session, NOW, count=5, rng=random.Random(7))
    first = [(w.warranty_number, w.expiration_date) for w in db_session.execute(select(Warranty)).scalars()]

    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    other = sessionmaker(bind=engine)()
    try:
        seed_demo_data(other, NOW, count=5, rng=random.Random(7))
        second = [(w.warranty_number, w.expiration_date) for w in other.execute(select(Warranty)).scalars()]
    finally:
        other.close()
    assert first == second


def test_seed_rejects_negative_count(db_session):
    with pytest.raises(ValueError):
        seed_demo_data(db_session, NOW, count=-1)


def test_cli_arguments():
    args = parse_args(["--count", "5", "--seed", "3", "--now", "2024-01-01T00:00:00Z"])
    assert args.count == 5
    assert args.seed == 3
    assert args.now == "2024-01-01T00:00:00Z"
    assert parse_args([]).count == 20


def test_seed_adds_categories_and_company_service_info(db_session):
    summary = seed_demo_data(db_session, NOW, count=8, rng=random.Random(5))
    manufacturers = set(db_session.execute(select(Product.manufacturer)).scalars().all())
    assert summary["service_info"] == len(manufacturers)
    assert len(list_category_records(db_session)) == len(PRODUCT_CATEGORIES)

    product = db_session.execute(select(Product)).scalars().first()
    assert service_info_for_product(db_session, product).company == product.manufacturer

    seed_demo_data(db_session, NOW, count=8, rng=random.Random(6))
    for manufacturer in db_session.execute(select(Product.manufacturer).distinct()).scalars().all():
        assert len(list_company_service_info(db_session, manufacturer)) == 1
