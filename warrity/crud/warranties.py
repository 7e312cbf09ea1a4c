"""Warranty CRUD helpers.

Every write recomputes ``status`` from the expiration date, and every read
path re-syncs stored statuses against the caller's ``now`` before filtering.
The stored column is therefore a cache of ``derive_warranty_status`` and
never a second source of truth.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import IO, Iterable
from uuid import uuid4

from sqlalchemy import asc, desc, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..core.warranty_status import (
    STATUS_CHOICES,
    STATUS_EXPIRING,
    InvalidDateError,
    derive_warranty_status,
    format_timestamp,
    parse_timestamp,
    utc_timestamp,
)
from ..models.product import Product
from ..models.warranty import Warranty
from ..settings import settings

logger = logging.getLogger("warrity.warranties")

SORT_EXPIRING_SOON = "expiringSoon"
SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
WARRANTY_SORTS = (SORT_EXPIRING_SOON, SORT_NEWEST, SORT_OLDEST)

_REQUIRED_TEXT = ("warranty_provider", "warranty_number", "coverage_details")

_COPY_CHUNK_BYTES = 64 * 1024


def _window(expiring_window_days: int | None) -> int:
    return settings.EXPIRING_WINDOW_DAYS if expiring_window_days is None else expiring_window_days


def evaluate_status(warranty: Warranty, now: datetime, expiring_window_days: int | None = None) -> str | None:
    """Status for display; ``None`` when the stored expiration date is unreadable."""

    try:
        return derive_warranty_status(warranty.expiration_date, now, _window(expiring_window_days))
    except InvalidDateError:
        logger.warning(
            "warranty.unreadable_expiration",
            extra={"extra_data": {"warranty_id": warranty.id, "expiration_date": warranty.expiration_date}},
        )
        return None


def sync_warranty_statuses(
    db: Session,
    warranties: Iterable[Warranty],
    now: datetime,
    expiring_window_days: int | None = None,
) -> int:
    """Overwrite stored statuses that no longer match the dates. Returns rows changed."""

    changed = 0
    for warranty in warranties:
        fresh = evaluate_status(warranty, now, expiring_window_days)
        if fresh == warranty.status:
            continue
        logger.info(
            "warranty.status_resynced",
            extra={"extra_data": {"warranty_id": warranty.id, "from": warranty.status, "to": fresh}},
        )
        warranty.status = fresh
        changed += 1
    if changed:
        db.commit()
    return changed


def scope_to_owner(stmt, owner_id: int | None):
    if owner_id is not None:
        stmt = stmt.where(Warranty.user_id == owner_id)
    return stmt


def list_warranties(
    db: Session,
    now: datetime,
    *,
    owner_id: int | None = None,
    status: str | None = None,
    sort: str = SORT_EXPIRING_SOON,
    expiring_window_days: int | None = None,
    limit: int = 200,
    offset: int = 0,
) -> list[Warranty]:
    """List warranties, optionally for one owner and one status.

    ``owner_id=None`` means every owner (admin views).
    """

    if status is not None and status not in STATUS_CHOICES:
        raise ValueError(f"status must be one of {', '.join(STATUS_CHOICES)}")

    in_scope = db.execute(scope_to_owner(select(Warranty), owner_id)).scalars().all()
    sync_warranty_statuses(db, in_scope, now, expiring_window_days)

    stmt = scope_to_owner(select(Warranty), owner_id)
    if status is not None:
        stmt = stmt.where(Warranty.status == status)
    if sort == SORT_NEWEST:
        stmt = stmt.order_by(desc(Warranty.created_at), desc(Warranty.id))
    elif sort == SORT_OLDEST:
        stmt = stmt.order_by(asc(Warranty.created_at), asc(Warranty.id))
    else:
        stmt = stmt.order_by(asc(Warranty.expiration_date), asc(Warranty.id))
    return db.execute(stmt.limit(limit).offset(offset)).scalars().all()


def list_expiring_warranties(
    db: Session,
    now: datetime,
    *,
    days: int | None = None,
    owner_id: int | None = None,
) -> list[Warranty]:
    """Warranties that are ``expiring`` under a ``days`` window, soonest first."""

    window = _window(days)
    rows = db.execute(scope_to_owner(select(Warranty), owner_id)).scalars().all()
    matches = [row for row in rows if evaluate_status(row, now, window) == STATUS_EXPIRING]
    matches.sort(key=lambda row: (parse_timestamp(row.expiration_date), row.id))
    return matches


def list_recent_warranties(db: Session, *, owner_id: int | None = None, limit: int = 5) -> list[Warranty]:
    stmt = scope_to_owner(select(Warranty), owner_id).order_by(desc(Warranty.created_at), desc(Warranty.id))
    return db.execute(stmt.limit(limit)).scalars().all()


def get_warranty(db: Session, warranty_id: int) -> Warranty | None:
    return db.get(Warranty, warranty_id)


def _check_period(purchase_date: str, expiration_date: str) -> None:
    if parse_timestamp(expiration_date) < parse_timestamp(purchase_date):
        raise ValueError("expiration_date must not be before purchase_date")


def create_warranty(
    db: Session,
    payload: dict,
    now: datetime,
    *,
    owner_id: int | None = None,
    expiring_window_days: int | None = None,
) -> Warranty:
    """Persist a warranty. A ``status`` key in ``payload`` is ignored."""

    product_id = payload.get("product_id")
    product = db.get(Product, product_id) if product_id is not None else None
    if product is None:
        raise NotFoundError("Product not found")

    data: dict[str, object] = {}
    for key in _REQUIRED_TEXT:
        value = str(payload.get(key) or "").strip()
        if not value:
            raise ValueError(f"{key} is required")
        data[key] = value
    data["purchase_date"] = format_timestamp(payload.get("purchase_date"))
    data["expiration_date"] = format_timestamp(payload.get("expiration_date"))
    _check_period(data["purchase_date"], data["expiration_date"])
    data["notes"] = (str(payload.get("notes")).strip() or None) if payload.get("notes") is not None else None

    stamp = utc_timestamp()
    warranty = Warranty(
        **data,
        user_id=owner_id,
        product_id=product.id,
        status=derive_warranty_status(data["expiration_date"], now, _window(expiring_window_days)),
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(warranty)
    db.commit()
    db.refresh(warranty)
    logger.info(
        "warranty.created",
        extra={"extra_data": {"warranty_id": warranty.id, "product_id": product.id, "status": warranty.status}},
    )
    return warranty


def update_warranty(
    db: Session,
    warranty: Warranty,
    payload: dict,
    now: datetime,
    *,
    expiring_window_days: int | None = None,
) -> Warranty:
    """Partial update; status is recomputed whatever fields changed."""

    for key in _REQUIRED_TEXT:
        if key in payload and payload[key] is not None:
            value = str(payload[key]).strip()
            if not value:
                raise ValueError(f"{key} cannot be empty")
            setattr(warranty, key, value)

    purchase_date = warranty.purchase_date
    expiration_date = warranty.expiration_date
    if payload.get("purchase_date") is not None:
        purchase_date = format_timestamp(payload["purchase_date"])
    if payload.get("expiration_date") is not None:
        expiration_date = format_timestamp(payload["expiration_date"])
    _check_period(purchase_date, expiration_date)
    warranty.purchase_date = purchase_date
    warranty.expiration_date = expiration_date

    if "notes" in payload:
        notes = payload.get("notes")
        warranty.notes = (str(notes).strip() or None) if notes is not None else None

    warranty.status = derive_warranty_status(expiration_date, now, _window(expiring_window_days))
    warranty.updated_at = utc_timestamp()
    db.commit()
    db.refresh(warranty)
    return warranty


def delete_warranty(db: Session, warranty: Warranty) -> None:
    """Delete the row and any stored documents."""

    directory = _warranty_document_dir(warranty.id)
    warranty_id = warranty.id
    db.delete(warranty)
    db.commit()
    if directory.exists():
        shutil.rmtree(directory, ignore_errors=True)
    logger.info("warranty.deleted", extra={"extra_data": {"warranty_id": warranty_id}})


# ---------- Documents ----------


def _warranty_document_dir(warranty_id: int, *, ensure: bool = False) -> Path:
    path = settings.documents_dir / str(warranty_id)
    if ensure:
        path.mkdir(parents=True, exist_ok=True)
    return path


def _sanitized_document(record: dict[str, object]) -> dict[str, object]:
    clean = {k: v for k, v in record.items() if k != "storage_filename"}
    if clean.get("id") is not None:
        clean["id"] = str(clean["id"])
    return clean


def list_warranty_documents(warranty: Warranty) -> list[dict[str, object]]:
    return [_sanitized_document(record) for record in warranty._document_records()]


def add_warranty_document(
    db: Session,
    warranty: Warranty,
    filename: str,
    content_type: str | None,
    file_data: IO[bytes],
    *,
    max_bytes: int | None = None,
) -> dict[str, object]:
    """Store an uploaded file next to the warranty and record its metadata.

    Raises ``ValueError`` when the upload exceeds ``max_bytes``.
    """

    limit = settings.MAX_DOCUMENT_BYTES if max_bytes is None else max_bytes
    safe_name = Path(filename or "document").name or "document"
    ext = Path(safe_name).suffix
    document_id = uuid4().hex
    storage_name = f"{document_id}{ext}" if ext else document_id
    dest_path = _warranty_document_dir(warranty.id, ensure=True) / storage_name

    if hasattr(file_data, "seek"):
        file_data.seek(0)
    size = 0
    with dest_path.open("wb") as buffer:
        while chunk := file_data.read(_COPY_CHUNK_BYTES):
            size += len(chunk)
            if size > limit:
                break
            buffer.write(chunk)
    if size > limit:
        dest_path.unlink(missing_ok=True)
        logger.warning(
            "warranty.document_rejected",
            extra={"extra_data": {"warranty_id": warranty.id, "limit": limit}},
        )
        raise ValueError(f"Document exceeds the {limit} byte limit")

    record = {
        "id": document_id,
        "filename": safe_name,
        "content_type": content_type,
        "size": int(size),
        "uploaded_at": utc_timestamp(),
        "storage_filename": storage_name,
    }
    records = warranty._document_records()
    records.append(record)
    warranty._store_document_records(records)
    warranty.updated_at = record["uploaded_at"]
    db.commit()
    db.refresh(warranty)
    return _sanitized_document(record)


def get_warranty_document(warranty: Warranty, document_id: str) -> tuple[dict[str, object], Path] | None:
    record = warranty.get_document_record(document_id)
    if not record:
        return None
    storage_name = str(record.get("storage_filename") or document_id)
    return _sanitized_document(record), _warranty_document_dir(warranty.id) / storage_name


def delete_warranty_document(db: Session, warranty: Warranty, document_id: str) -> bool:
    resource = get_warranty_document(warranty, document_id)
    if resource is None:
        return False
    _, path = resource
    path.unlink(missing_ok=True)
    remaining = [r for r in warranty._document_records() if str(r.get("id")) != str(document_id)]
    warranty._store_document_records(remaining)
    warranty.updated_at = utc_timestamp()
    db.commit()
    db.refresh(warranty)
    return True
