"""Warranty endpoints.

Every handler takes ``now`` from :func:`~warrity.deps.clock.get_now`, so the
``status`` and ``days_remaining`` in one response are all computed against
the same instant.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, PermissionDeniedError
from ..core.warranty_status import STATUS_CHOICES, InvalidDateError, days_remaining
from ..crud.users import get_user
from ..crud.warranties import (
    SORT_EXPIRING_SOON,
    WARRANTY_SORTS,
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
from ..db.session import get_db
from ..deps.auth import AuthContext, require_principal
from ..deps.clock import get_now
from ..models.warranty import Warranty
from ..schemas.stats import WarrantyOverview
from ..schemas.warranty import WarrantyCreate, WarrantyDocument, WarrantyOut, WarrantyUpdate
from ..services.stats import warranty_overview
from ..settings import settings

router = APIRouter(prefix="/api/v1/warranties", tags=["warranties"])

STATUS_PATTERN = f"^({'|'.join(STATUS_CHOICES)})$"
SORT_PATTERN = f"^({'|'.join(WARRANTY_SORTS)})$"

ALLOWED_DOCUMENT_TYPES = {
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/gif",
    "image/webp",
}


def _document_to_schema(warranty_id: int, record: dict[str, object]) -> WarrantyDocument:
    payload = dict(record)
    payload["id"] = str(payload.get("id") or "")
    payload["url"] = f"/api/v1/warranties/{warranty_id}/documents/{payload['id']}"
    return WarrantyDocument.model_validate(payload)


def warranty_to_schema(warranty: Warranty, now: datetime, expiring_window_days: int | None = None) -> WarrantyOut:
    """Serialize a warranty with status and days remaining derived against ``now``."""

    window = settings.EXPIRING_WINDOW_DAYS if expiring_window_days is None else expiring_window_days
    status = evaluate_status(warranty, now, window)
    remaining = None
    if status is not None:
        try:
            remaining = days_remaining(warranty.expiration_date, now)
        except InvalidDateError:
            remaining = None
    payload = WarrantyOut.model_validate(warranty, from_attributes=True)
    return payload.model_copy(
        update={
            "status": status,
            "days_remaining": remaining,
            "documents": [_document_to_schema(warranty.id, r) for r in list_warranty_documents(warranty)],
        }
    )


def _owner_scope(auth: AuthContext) -> Optional[int]:
    return None if auth.is_admin else auth.user_id


def _load_accessible(db: Session, warranty_id: int, auth: AuthContext) -> Warranty:
    warranty = get_warranty(db, warranty_id)
    if not warranty:
        raise NotFoundError("Warranty not found")
    if not auth.can_access(warranty.user_id):
        raise PermissionDeniedError("You do not have access to this warranty")
    return warranty


@router.get("", response_model=list[WarrantyOut])
def api_list_warranties(
    status: Optional[str] = Query(default=None, pattern=STATUS_PATTERN),
    sort: str = Query(default=SORT_EXPIRING_SOON, pattern=SORT_PATTERN),
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext = Depends(require_principal),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    window = settings.EXPIRING_WINDOW_DAYS
    rows = list_warranties(
        db,
        now,
        owner_id=_owner_scope(auth),
        status=status,
        sort=sort,
        expiring_window_days=window,
        limit=limit,
        offset=offset,
    )
    return [warranty_to_schema(row, now, window) for row in rows]


@router.get("/expiring", response_model=list[WarrantyOut])
def api_list_expiring(
    days: Optional[int] = Query(default=None, ge=0),
    auth: AuthContext = Depends(require_principal),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    window = settings.EXPIRING_WINDOW_DAYS if days is None else days
    allowed = settings.reminder_windows
    if window not in allowed:
        raise HTTPException(
            status_code=422,
            detail=f"days must be one of {', '.join(str(d) for d in allowed)}",
        )
    rows = list_expiring_warranties(db, now, days=window, owner_id=_owner_scope(auth))
    return [warranty_to_schema(row, now, window) for row in rows]


@router.get("/stats/overview", response_model=WarrantyOverview)
def api_warranty_overview(
    auth: AuthContext = Depends(require_principal),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    window = settings.EXPIRING_WINDOW_DAYS
    overview = warranty_overview(db, now, owner_id=_owner_scope(auth), expiring_window_days=window)
    overview["recent_warranties"] = [warranty_to_schema(w, now, window) for w in overview["recent_warranties"]]
    return overview


@router.post("", response_model=WarrantyOut, status_code=201)
def api_create_warranty(
    payload: WarrantyCreate,
    auth: AuthContext = Depends(require_principal),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    owner_id = auth.user_id
    if auth.is_admin and payload.user_id is not None:
        if get_user(db, payload.user_id) is None:
            raise NotFoundError("User not found")
        owner_id = payload.user_id
    window = settings.EXPIRING_WINDOW_DAYS
    try:
        warranty = create_warranty(
            db,
            payload.model_dump(exclude={"user_id"}),
            now,
            owner_id=owner_id,
            expiring_window_days=window,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return warranty_to_schema(warranty, now, window)


@router.get("/{warranty_id}", response_model=WarrantyOut)
def api_get_warranty(
    warranty_id: int,
    auth: AuthContext = Depends(require_principal),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    warranty = _load_accessible(db, warranty_id, auth)
    sync_warranty_statuses(db, [warranty], now, settings.EXPIRING_WINDOW_DAYS)
    return warranty_to_schema(warranty, now)


@router.patch("/{warranty_id}", response_model=WarrantyOut)
def api_update_warranty(
    warranty_id: int,
    payload: WarrantyUpdate,
    auth: AuthContext = Depends(require_principal),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    warranty = _load_accessible(db, warranty_id, auth)
    window = settings.EXPIRING_WINDOW_DAYS
    try:
        updated = update_warranty(
            db, warranty, payload.model_dump(exclude_unset=True), now, expiring_window_days=window
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return warranty_to_schema(updated, now, window)


@router.delete("/{warranty_id}")
def api_delete_warranty(
    warranty_id: int,
    auth: AuthContext = Depends(require_principal),
    db: Session = Depends(get_db),
):
    warranty = _load_accessible(db, warranty_id, auth)
    delete_warranty(db, warranty)
    return {"status": "deleted"}


# ---------- Documents ----------


@router.get("/{warranty_id}/documents", response_model=list[WarrantyDocument])
def api_list_documents(
    warranty_id: int,
    auth: AuthContext = Depends(require_principal),
    db: Session = Depends(get_db),
):
    warranty = _load_accessible(db, warranty_id, auth)
    return [_document_to_schema(warranty.id, record) for record in list_warranty_documents(warranty)]


@router.post("/{warranty_id}/documents", response_model=WarrantyDocument, status_code=201)
async def api_add_document(
    warranty_id: int,
    file: UploadFile = File(...),
    auth: AuthContext = Depends(require_principal),
    db: Session = Depends(get_db),
):
    warranty = _load_accessible(db, warranty_id, auth)
    filename = (file.filename or "").strip()
    if not filename:
        await file.close()
        raise HTTPException(status_code=400, detail="A file upload is required")
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_DOCUMENT_TYPES:
        await file.close()
        raise HTTPException(
            status_code=415,
            detail="Only PDF and image documents (PNG, JPG, GIF, WEBP) are supported",
        )
    try:
        record = add_warranty_document(db, warranty, filename, content_type, file.file)
    except ValueError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    finally:
        await file.close()
    return _document_to_schema(warranty.id, record)


@router.get("/{warranty_id}/documents/{document_id}", response_class=FileResponse)
def api_get_document(
    warranty_id: int,
    document_id: str,
    auth: AuthContext = Depends(require_principal),
    db: Session = Depends(get_db),
):
    warranty = _load_accessible(db, warranty_id, auth)
    resource = get_warranty_document(warranty, document_id)
    if not resource:
        raise HTTPException(404, "Document not found")
    record, path = resource
    if not path.exists():
        raise HTTPException(404, "Document not found")
    media_type = record.get("content_type") or "application/octet-stream"
    filename = record.get("filename") or path.name
    return FileResponse(path, media_type=media_type, filename=filename)


@router.delete("/{warranty_id}/documents/{document_id}")
def api_delete_document(
    warranty_id: int,
    document_id: str,
    auth: AuthContext = Depends(require_principal),
    db: Session = Depends(get_db),
):
    warranty = _load_accessible(db, warranty_id, auth)
    if not delete_warranty_document(db, warranty, document_id):
        raise HTTPException(404, "Document not found")
    return {"status": "deleted"}
