import io
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from warrity.core.errors import NotFoundError
from warrity.core.warranty_status import InvalidDateError, derive_warranty_status, format_timestamp
from warrity.crud.products import create_product
from warrity.crud.users import create_user, delete_user
from warrity.crud.warranties import (
    SORT_NEWEST,
    add_warranty_document,
    create_warranty,
    delete_warranty,
    delete_warranty_document,
    evaluate_status,
    get_warranty,
    get_warranty_document,
    list_expiring_warranties,
    list_warranties,
    list_warranty_documents,
    sync_warranty_statuses,
    update_warranty,
)
from warrity.db.session import Base
from warrity.settings import settings

# Ensure models are registered so metadata tables are created
from warrity.models import product as product_model  # noqa: F401
from warrity.models import user as user_model  # noqa: F401
from warrity.models import warranty as warranty_model  # noqa: F401

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


@pytest.fixture()
def documents_root(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATA_DIR", tmp_path)
    return tmp_path / "documents"


@pytest.fixture()
def product(db_session):
    return create_product(
        db_session,
        {
            "name": "Dell Laptop",
            "description": "Work laptop",
            "manufacturer": "Dell",
            "category": "Electronics",
            "price": 1299,
        },
    )


def _payload(product_id, expiration, **overrides):
    payload = {
        "product_id": product_id,
        "purchase_date": "2023-01-01",
        "expiration_date": expiration,
        "warranty_provider": "Manufacturer Warranty",
        "warranty_number": "WTY-0001",
        "coverage_details": "Parts and labor",
    }
    payload.update(overrides)
    return payload


def test_create_derives_status_and_ignores_client_value(db_session, product):
    warranty = create_warranty(
        db_session,
        _payload(product.id, "2024-01-15", status="active"),
        NOW,
        expiring_window_days=30,
    )
    assert warranty.status == "expiring"
    assert warranty.expiration_date == "2024-01-15T00:00:00.000000Z"
    assert warranty.purchase_date == "2023-01-01T00:00:00.000000Z"
    assert warranty.product_name == "Dell Laptop"


def test_create_requires_existing_product(db_session):
    with pytest.raises(NotFoundError):
        create_warranty(db_session, _payload(999, "2025-01-01"), NOW)


def test_create_rejects_expiration_before_purchase(db_session, product):
    with pytest.raises(ValueError):
        create_warranty(db_session, _payload(product.id, "2022-12-31"), NOW)


def test_create_rejects_unreadable_dates(db_session, product):
    with pytest.raises(InvalidDateError):
        create_warranty(db_session, _payload(product.id, "soon"), NOW)


def test_create_requires_provider_text(db_session, product):
    with pytest.raises(ValueError):
        create_warranty(db_session, _payload(product.id, "2025-01-01", warranty_provider="  "), NOW)


def test_update_recomputes_status(db_session, product):
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW, expiring_window_days=30)
    assert warranty.status == "active"

    updated = update_warranty(
        db_session,
        warranty,
        {"expiration_date": "2023-12-01", "status": "active"},
        NOW,
        expiring_window_days=30,
    )
    assert updated.status == "expired"
    assert updated.expiration_date == "2023-12-01T00:00:00.000000Z"


def test_sub_second_expiration_just_past_the_window_stays_active(db_session, product):
    expiration = NOW + timedelta(days=30, milliseconds=500)
    warranty = create_warranty(db_session, _payload(product.id, expiration), NOW, expiring_window_days=30)
    assert derive_warranty_status(expiration, NOW, 30) == "active"
    assert warranty.status == "active"
    assert warranty.expiration_date == "2024-01-31T00:00:00.500000Z"

    updated = update_warranty(
        db_session,
        warranty,
        {"expiration_date": NOW + timedelta(days=30, microseconds=1)},
        NOW,
        expiring_window_days=30,
    )
    assert updated.status == "active"

    updated = update_warranty(
        db_session, warranty, {"expiration_date": NOW + timedelta(days=30)}, NOW, expiring_window_days=30
    )
    assert updated.status == "expiring"


def test_update_rejects_period_inversion(db_session, product):
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW)
    with pytest.raises(ValueError):
        update_warranty(db_session, warranty, {"purchase_date": "2026-01-01"}, NOW)


def test_list_resyncs_drifted_statuses_before_filtering(db_session, product):
    warranty = create_warranty(db_session, _payload(product.id, "2024-01-10"), NOW, expiring_window_days=30)
    assert warranty.status == "expiring"

    later = NOW + timedelta(days=20)
    expired = list_warranties(db_session, later, status="expired", expiring_window_days=30)
    assert [w.id for w in expired] == [warranty.id]
    assert list_warranties(db_session, later, status="expiring", expiring_window_days=30) == []
    assert get_warranty(db_session, warranty.id).status == "expired"


def test_sync_overwrites_tampered_status(db_session, product):
    warranty = create_warranty(db_session, _payload(product.id, "2023-06-01"), NOW)
    warranty.status = "active"
    db_session.commit()

    changed = sync_warranty_statuses(db_session, [warranty], NOW, 30)
    assert changed == 1
    assert warranty.status == "expired"
    assert sync_warranty_statuses(db_session, [warranty], NOW, 30) == 0


def test_list_is_scoped_to_owner_and_sorted(db_session, product):
    alice = create_user(db_session, {"name": "Alice", "email": "alice@example.com", "password": "secret1"})
    bob = create_user(db_session, {"name": "Bob", "email": "bob@example.com", "password": "secret1"})
    late = create_warranty(db_session, _payload(product.id, "2025-06-01"), NOW, owner_id=alice.id)
    soon = create_warranty(db_session, _payload(product.id, "2024-01-20"), NOW, owner_id=alice.id)
    create_warranty(db_session, _payload(product.id, "2024-02-01"), NOW, owner_id=bob.id)

    mine = list_warranties(db_session, NOW, owner_id=alice.id)
    assert [w.id for w in mine] == [soon.id, late.id]

    everyone = list_warranties(db_session, NOW, sort=SORT_NEWEST)
    assert len(everyone) == 3


def test_list_rejects_unknown_status(db_session):
    with pytest.raises(ValueError):
        list_warranties(db_session, NOW, status="pending")


def test_unreadable_stored_expiration_has_no_status(db_session, product):
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW)
    warranty.expiration_date = "not a date"
    db_session.commit()

    assert evaluate_status(warranty, NOW, 30) is None
    rows = list_warranties(db_session, NOW)
    assert rows[0].status is None
    assert list_warranties(db_session, NOW, status="active") == []


def test_expiring_uses_requested_window(db_session, product):
    in_ten = create_warranty(db_session, _payload(product.id, format_timestamp(NOW + timedelta(days=10))), NOW)
    in_fifty = create_warranty(db_session, _payload(product.id, format_timestamp(NOW + timedelta(days=50))), NOW)
    create_warranty(db_session, _payload(product.id, "2023-12-01"), NOW)

    assert [w.id for w in list_expiring_warranties(db_session, NOW, days=14)] == [in_ten.id]
    assert [w.id for w in list_expiring_warranties(db_session, NOW, days=60)] == [in_ten.id, in_fifty.id]


def test_documents_round_trip(db_session, product, documents_root):
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW)
    record = add_warranty_document(
        db_session, warranty, "../receipt.pdf", "application/pdf", io.BytesIO(b"%PDF-1.4 test")
    )
    assert record["filename"] == "receipt.pdf"
    assert record["size"] == len(b"%PDF-1.4 test")
    assert "storage_filename" not in record

    listed = list_warranty_documents(warranty)
    assert [d["id"] for d in listed] == [record["id"]]
    _, path = get_warranty_document(warranty, record["id"])
    assert path.parent == documents_root / str(warranty.id)
    assert path.read_bytes() == b"%PDF-1.4 test"

    assert delete_warranty_document(db_session, warranty, record["id"]) is True
    assert not path.exists()
    assert list_warranty_documents(warranty) == []
    assert delete_warranty_document(db_session, warranty, record["id"]) is False


def test_document_size_limit(db_session, product, documents_root):
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW)
    with pytest.raises(ValueError):
        add_warranty_document(
            db_session, warranty, "big.png", "image/png", io.BytesIO(b"x" * 11), max_bytes=10
        )
    assert list_warranty_documents(warranty) == []
    assert list((documents_root / str(warranty.id)).iterdir()) == []


class _CountingStream(io.BytesIO):
    def __init__(self, data):
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size=-1):
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


def test_oversized_upload_stops_reading_past_the_limit(db_session, product, documents_root):
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW)
    stream = _CountingStream(b"x" * (4 * 1024 * 1024))
    with pytest.raises(ValueError):
        add_warranty_document(db_session, warranty, "huge.pdf", "application/pdf", stream, max_bytes=1024)
    assert stream.bytes_read < 1024 * 1024
    assert list((documents_root / str(warranty.id)).iterdir()) == []


def test_delete_removes_documents(db_session, product, documents_root):
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW)
    add_warranty_document(db_session, warranty, "photo.jpg", "image/jpeg", io.BytesIO(b"jpeg"))
    folder = documents_root / str(warranty.id)
    assert folder.exists()

    warranty_id = warranty.id
    delete_warranty(db_session, warranty)
    assert get_warranty(db_session, warranty_id) is None
    assert not folder.exists()


def test_delete_user_removes_owned_warranties(db_session, product, documents_root):
    owner = create_user(db_session, {"name": "Owner", "email": "owner@example.com", "password": "secret1"})
    admin = create_user(
        db_session, {"name": "Admin", "email": "admin@example.com", "password": "secret1", "role": "admin"}
    )
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW, owner_id=owner.id)
    warranty_id = warranty.id

    with pytest.raises(ValueError):
        delete_user(db_session, admin, acting_user_id=admin.id)

    delete_user(db_session, owner, acting_user_id=admin.id)
    assert get_warranty(db_session, warranty_id) is None


def test_record_stamps_share_the_storage_form(db_session, product):
    owner = create_user(db_session, {"name": "Owner", "email": "stamp@example.com", "password": "secret1"})
    warranty = create_warranty(db_session, _payload(product.id, "2025-01-01"), NOW, owner_id=owner.id)
    for stamp in (product.created_at, owner.created_at, warranty.created_at, warranty.updated_at):
        assert stamp == format_timestamp(stamp)
        assert len(stamp) == len("2024-01-01T00:00:00.000000Z")
