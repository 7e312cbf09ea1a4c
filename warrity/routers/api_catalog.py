"""Read-only endpoints for categories and service information."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud.catalog import (
    get_category,
    get_service_info,
    list_category_records,
    list_company_service_info,
    list_service_info,
)
from ..db.session import get_db
from ..deps.auth import require_admin, require_principal
from ..schemas.catalog import CategoryOut, ServiceInfoOut

categories_router = APIRouter(
    prefix="/api/v1/categories", tags=["categories"], dependencies=[Depends(require_principal)]
)
service_info_router = APIRouter(
    prefix="/api/v1/service-info", tags=["service-info"], dependencies=[Depends(require_principal)]
)


@categories_router.get("", response_model=list[CategoryOut])
def api_list_categories(db: Session = Depends(get_db)):
    return list_category_records(db)


@categories_router.get("/{category_id}", response_model=CategoryOut)
def api_get_category(category_id: int, db: Session = Depends(get_db)):
    category = get_category(db, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


@service_info_router.get("", response_model=list[ServiceInfoOut], dependencies=[Depends(require_admin)])
def api_list_service_info(
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return list_service_info(db, limit=limit, offset=offset)


@service_info_router.get("/company/{company}", response_model=list[ServiceInfoOut])
def api_company_service_info(company: str, db: Session = Depends(get_db)):
    rows = list_company_service_info(db, company)
    if not rows:
        raise NotFoundError("Service information not found")
    return rows


@service_info_router.get("/{service_info_id}", response_model=ServiceInfoOut)
def api_get_service_info(service_info_id: int, db: Session = Depends(get_db)):
    info = get_service_info(db, service_info_id)
    if info is None:
        raise NotFoundError("Service information not found")
    return info

