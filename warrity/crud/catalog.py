"""Read helpers for categories and service information.

Both are configuration data. The only writers are the start-up default
category seeding and the demo seeding tool.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.warranty_status import utc_timestamp
from ..models.category import DEFAULT_CATEGORIES, Category
from ..models.product import Product
from ..models.service_info import SERVICE_TYPES, ServiceInfo

logger = logging.getLogger("warrity.catalog")

_SERVICE_REQUIRED_TEXT = ("name", "description", "terms", "company")
_SERVICE_OPTIONAL_TEXT = (
    "contact_email",
    "contact_phone",
    "contact_website",
    "contact_address",
    "warranty_duration",
    "warranty_coverage",
    "warranty_exclusions",
)


# ---------- Categories ----------


def ensure_default_categories(db: Session) -> int:
    """Insert any missing default category. Returns rows added."""

    existing = set(db.execute(select(Category.name)).scalars().all())
    stamp = utc_timestamp()
    added = 0
    for name, (description, months, requirements) in DEFAULT_CATEGORIES.items():
        if name in existing:
            continue
        category = Category(
            name=name,
            description=description,
            default_warranty_period_months=months,
            is_active=1,
            created_at=stamp,
            updated_at=stamp,
        )
        category.service_requirements = list(requirements)
        db.add(category)
        added += 1
    if added:
        db.commit()
        logger.info("catalog.categories_seeded", extra={"extra_data": {"added": added}})
    return added


def list_category_records(db: Session) -> list[Category]:
    stmt = select(Category).where(Category.is_active == 1).order_by(Category.name)
    return db.execute(stmt).scalars().all()


def get_category(db: Session, category_id: int) -> Category | None:
    return db.get(Category, category_id)


# ---------- Service info ----------


def get_service_info(db: Session, service_info_id: int) -> ServiceInfo | None:
    return db.get(ServiceInfo, service_info_id)


def list_service_info(db: Session, limit: int = 200, offset: int = 0) -> list[ServiceInfo]:
    stmt = select(ServiceInfo).order_by(ServiceInfo.created_at.desc(), ServiceInfo.id.desc())
    return db.execute(stmt.limit(limit).offset(offset)).scalars().all()


def list_company_service_info(db: Session, company: str) -> list[ServiceInfo]:
    """Active company-wide entries (those not tied to one product)."""

    stmt = (
        select(ServiceInfo)
        .where(
            ServiceInfo.company == company,
            ServiceInfo.product_id.is_(None),
            ServiceInfo.is_active == 1,
        )
        .order_by(ServiceInfo.id)
    )
    return db.execute(stmt).scalars().all()


def service_info_for_product(db: Session, product: Product) -> ServiceInfo | None:
    """Product-specific terms first, then the manufacturer's company-wide terms."""

    stmt = (
        select(ServiceInfo)
        .where(ServiceInfo.product_id == product.id, ServiceInfo.is_active == 1)
        .order_by(ServiceInfo.id)
    )
    specific = db.execute(stmt).scalars().first()
    if specific is not None:
        return specific
    company_wide = list_company_service_info(db, product.manufacturer)
    return company_wide[0] if company_wide else None


def create_service_info(db: Session, payload: dict) -> ServiceInfo:
    data: dict[str, object] = {}
    for key in _SERVICE_REQUIRED_TEXT:
        value = str(payload.get(key) or "").strip()
        if not value:
            raise ValueError(f"{key} is required")
        data[key] = value
    for key in _SERVICE_OPTIONAL_TEXT:
        data[key] = str(payload.get(key) or "").strip() or None

    service_type = str(payload.get("service_type") or "").strip()
    if service_type not in SERVICE_TYPES:
        raise ValueError(f"service_type must be one of {', '.join(SERVICE_TYPES)}")
    data["service_type"] = service_type

    product_id = payload.get("product_id")
    if product_id is not None and db.get(Product, product_id) is None:
        raise ValueError("Product not found")

    stamp = utc_timestamp()
    info = ServiceInfo(**data, product_id=product_id, is_active=1, created_at=stamp, updated_at=stamp)
    db.add(info)
    db.commit()
    db.refresh(info)
    return info
