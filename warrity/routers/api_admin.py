from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..crud.users import delete_user, get_user, list_users, update_user_role
from ..crud.warranties import SORT_NEWEST, list_recent_warranties, list_warranties
from ..db.session import get_db
from ..deps.auth import AuthContext, require_admin
from ..deps.clock import get_now
from ..schemas.auth import RoleUpdate, UserOut
from ..schemas.stats import ActivityFeed, DashboardStats
from ..schemas.warranty import WarrantyOut
from ..services.stats import dashboard_stats
from ..settings import settings
from .api_warranties import STATUS_PATTERN, warranty_to_schema

router = APIRouter(prefix="/api/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/users", response_model=list[UserOut])
def api_list_users(
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return list_users(db, limit=limit, offset=offset)


@router.patch("/users/{user_id}/role", response_model=UserOut)
def api_update_user_role(user_id: int, payload: RoleUpdate, db: Session = Depends(get_db)):
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(404, "Not found")
    try:
        return update_user_role(db, user, payload.role)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/users/{user_id}")
def api_delete_user(
    user_id: int,
    auth: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(404, "Not found")
    try:
        delete_user(db, user, acting_user_id=auth.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": "deleted"}


@router.get("/warranties", response_model=list[WarrantyOut])
def api_all_warranties(
    status: Optional[str] = Query(default=None, pattern=STATUS_PATTERN),
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    window = settings.EXPIRING_WINDOW_DAYS
    rows = list_warranties(
        db, now, status=status, sort=SORT_NEWEST, expiring_window_days=window, limit=limit, offset=offset
    )
    return [warranty_to_schema(row, now, window) for row in rows]


@router.get("/dashboard/stats", response_model=DashboardStats)
def api_dashboard_stats(now: datetime = Depends(get_now), db: Session = Depends(get_db)):
    return dashboard_stats(db, now, expiring_window_days=settings.EXPIRING_WINDOW_DAYS)


@router.get("/activity", response_model=ActivityFeed)
def api_recent_activity(
    limit: int = Query(default=10, ge=1, le=100),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    rows = list_recent_warranties(db, limit=limit)
    return {"recent_warranties": [warranty_to_schema(row, now) for row in rows]}
