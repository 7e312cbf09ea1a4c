# warrity/crud/products.py
from __future__ import annotations

from sqlalchemy import asc, desc, select
from sqlalchemy.orm import Session

from ..core.warranty_status import utc_timestamp
from ..models.product import PRODUCT_CATEGORIES, Product

SORT_NAME_ASC = "nameAsc"
SORT_NAME_DESC = "nameDesc"
SORT_NEWEST = "newest"
PRODUCT_SORTS = (SORT_NAME_ASC, SORT_NAME_DESC, SORT_NEWEST)

_REQUIRED_TEXT = ("name", "description", "manufacturer")
_OPTIONAL_TEXT = ("model", "serial_number")


def _clean_category(value: object) -> str:
    category = str(value or "").strip()
    if category not in PRODUCT_CATEGORIES:
        raise ValueError("Invalid category")
    return category


def _clean_price(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        price = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("price must be a number") from exc
    if price < 0:
        raise ValueError("Price cannot be negative")
    return price


def list_products(
    db: Session,
    *,
    category: str | None = None,
    sort: str = SORT_NAME_ASC,
    include_inactive: bool = False,
    limit: int = 200,
    offset: int = 0,
) -> list[Product]:
    """
    Return products, active ones only unless ``include_inactive`` is set.
    """
    stmt = select(Product)
    if not include_inactive:
        stmt = stmt.where(Product.is_active == 1)
    if category:
        stmt = stmt.where(Product.category == category)
    if sort == SORT_NAME_DESC:
        stmt = stmt.order_by(desc(Product.name), desc(Product.id))
    elif sort == SORT_NEWEST:
        stmt = stmt.order_by(desc(Product.created_at), desc(Product.id))
    else:
        stmt = stmt.order_by(asc(Product.name), asc(Product.id))
    return db.execute(stmt.limit(limit).offset(offset)).scalars().all()


def list_categories(db: Session) -> list[str]:
    stmt = select(Product.category).where(Product.is_active == 1).distinct().order_by(Product.category)
    return [row for row in db.execute(stmt).scalars().all() if row]


def get_product(db: Session, product_id: int) -> Product | None:
    return db.get(Product, product_id)


def create_product(db: Session, payload: dict) -> Product:
    data: dict[str, object] = {}
    for key in _REQUIRED_TEXT:
        value = str(payload.get(key) or "").strip()
        if not value:
            raise ValueError(f"{key} is required")
        data[key] = value
    for key in _OPTIONAL_TEXT:
        value = str(payload.get(key) or "").strip()
        data[key] = value or None
    data["category"] = _clean_category(payload.get("category"))
    data["price"] = _clean_price(payload.get("price"))
    now = utc_timestamp()
    product = Product(**data, is_active=1, created_at=now, updated_at=now)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product: Product, payload: dict) -> Product:
    """
    Apply a partial update. Unknown keys are ignored.
    """
    for key in _REQUIRED_TEXT:
        if key in payload:
            value = str(payload.get(key) or "").strip()
            if not value:
                raise ValueError(f"{key} cannot be empty")
            setattr(product, key, value)
    for key in _OPTIONAL_TEXT:
        if key in payload:
            setattr(product, key, str(payload.get(key) or "").strip() or None)
    if "category" in payload:
        product.category = _clean_category(payload.get("category"))
    if "price" in payload:
        product.price = _clean_price(payload.get("price"))
    if "is_active" in payload and payload["is_active"] is not None:
        product.is_active = 1 if payload["is_active"] else 0
    product.updated_at = utc_timestamp()
    db.commit()
    db.refresh(product)
    return product


def deactivate_product(db: Session, product: Product) -> Product:
    """
    Soft delete: warranties keep pointing at the row.
    """
    return update_product(db, product, {"is_active": False})
