from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..crud.catalog import service_info_for_product
from ..crud.products import (
    PRODUCT_SORTS,
    SORT_NAME_ASC,
    create_product,
    deactivate_product,
    get_product,
    list_categories,
    list_products,
    update_product,
)
from ..db.session import get_db
from ..deps.auth import AuthContext, require_admin, require_principal
from ..schemas.catalog import ServiceInfoOut
from ..schemas.product import CATEGORY_PATTERN, ProductCreate, ProductOut, ProductUpdate

router = APIRouter(prefix="/api/v1/products", tags=["products"], dependencies=[Depends(require_principal)])

SORT_PATTERN = f"^({'|'.join(PRODUCT_SORTS)})$"


@router.get("", response_model=list[ProductOut])
def api_list_products(
    category: Optional[str] = Query(default=None, pattern=CATEGORY_PATTERN),
    sort: str = Query(default=SORT_NAME_ASC, pattern=SORT_PATTERN),
    include_inactive: bool = Query(default=False),
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext = Depends(require_principal),
    db: Session = Depends(get_db),
):
    # Retired products are only listed for admins.
    return list_products(
        db,
        category=category,
        sort=sort,
        include_inactive=include_inactive and auth.is_admin,
        limit=limit,
        offset=offset,
    )


# Declared before /{product_id} so "categories" is not read as an id.
@router.get("/categories", response_model=list[str])
def api_list_categories(db: Session = Depends(get_db)):
    return list_categories(db)


@router.get("/{product_id}", response_model=ProductOut)
def api_get_product(product_id: int, db: Session = Depends(get_db)):
    product = get_product(db, product_id)
    if not product:
        raise HTTPException(404, "Not found")
    return product


@router.post("", response_model=ProductOut, status_code=201, dependencies=[Depends(require_admin)])
def api_create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    try:
        return create_product(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
def api_update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    product = get_product(db, product_id)
    if not product:
        raise HTTPException(404, "Not found")
    try:
        return update_product(db, product, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def api_delete_product(product_id: int, db: Session = Depends(get_db)):
    product = get_product(db, product_id)
    if not product:
        raise HTTPException(404, "Not found")
    deactivate_product(db, product)
    return {"status": "deleted"}


@router.get("/{product_id}/service-info", response_model=ServiceInfoOut)
def api_product_service_info(product_id: int, db: Session = Depends(get_db)):
    """Product-specific service terms, falling back to the manufacturer's."""
    product = get_product(db, product_id)
    if not product:
        raise HTTPException(404, "Not found")
    info = service_info_for_product(db, product)
    if info is None:
        raise HTTPException(404, "Service information not found")
    return info
