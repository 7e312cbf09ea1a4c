"""Demo data generation.

Builds a realistic spread of products and warranties around a fixed ``now``
so local databases and screenshots show every status badge. Statuses are
never chosen here; each warranty goes through ``create_warranty`` which
derives it from the expiration date.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..crud.catalog import create_service_info, ensure_default_categories, list_company_service_info
from ..crud.products import create_product
from ..crud.warranties import create_warranty
from ..models.product import Product

logger = logging.getLogger("warrity.seed")

MANUFACTURERS = (
    "Apple", "Samsung", "LG", "Sony", "Dell", "HP", "Lenovo",
    "Bosch", "Whirlpool", "Dyson", "KitchenAid", "GE", "Maytag",
)

PRODUCT_TYPES = {
    "Laptop": "Electronics",
    "Smartphone": "Electronics",
    "TV": "Electronics",
    "Refrigerator": "Appliances",
    "Washing Machine": "Appliances",
    "Dishwasher": "Appliances",
    "Vacuum Cleaner": "Appliances",
    "Microwave": "Appliances",
    "Blender": "Appliances",
    "Coffee Maker": "Appliances",
}

WARRANTY_PROVIDERS = (
    "Manufacturer Warranty", "Extended Warranty", "Store Protection Plan",
    "Premium Care", "AppleCare+", "GeekSquad Protection", "Asurion",
)

# Expiration offsets (days from now) used for the first records so that small
# seeds still cover active, expiring and expired.
ANCHOR_OFFSETS = (275, 15, -30, 670, 30, 180)

_WARRANTY_NUMBER_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def _product_for(db: Session, manufacturer: str, product_type: str, rng: random.Random) -> Product:
    name = f"{manufacturer} {product_type}"
    existing = db.execute(select(Product).where(Product.name == name)).scalars().first()
    if existing:
        return existing
    return create_product(
        db,
        {
            "name": name,
            "description": f"{product_type} made by {manufacturer}",
            "manufacturer": manufacturer,
            "category": PRODUCT_TYPES[product_type],
            "model": f"{product_type[:3].upper()}-{rng.randint(100, 999)}",
            "price": round(rng.uniform(49, 2499), 2),
        },
    )


def _company_service_info(db: Session, manufacturer: str) -> bool:
    if list_company_service_info(db, manufacturer):
        return False
    slug = manufacturer.lower().replace(" ", "")
    create_service_info(
        db,
        {
            "name": f"{manufacturer} Customer Care",
            "description": f"Warranty claims and repairs for {manufacturer} products",
            "service_type": "Warranty",
            "terms": "Claims require the original receipt and the product serial number.",
            "company": manufacturer,
            "contact_email": f"support@{slug}.example",
            "contact_website": f"https://{slug}.example/support",
            "warranty_duration": "12 months",
            "warranty_coverage": "Manufacturing defects in parts and labor",
            "warranty_exclusions": "Accidental damage and normal wear",
        },
    )
    return True


def _expiration_offset(index: int, rng: random.Random) -> int:
    if index < len(ANCHOR_OFFSETS):
        return ANCHOR_OFFSETS[index]
    return rng.randint(-365, 900)


def seed_demo_data(
    db: Session,
    now: datetime,
    count: int = 20,
    rng: random.Random | None = None,
    *,
    owner_id: int | None = None,
    expiring_window_days: int | None = None,
) -> Dict[str, Any]:
    """Create ``count`` demo warranties (plus the products they need).

    Returns a summary with the number of products, warranties and service
    info entries created and a per-status tally. Default categories are
    inserted when missing.
    """

    if count < 0:
        raise ValueError("count must be non-negative")
    rng = rng or random.Random()
    ensure_default_categories(db)
    service_info = 0
    products_before = len(db.execute(select(Product.id)).scalars().all())

    statuses: Counter[str] = Counter()
    for index in range(count):
        manufacturer = rng.choice(MANUFACTURERS)
        product_type = rng.choice(sorted(PRODUCT_TYPES))
        product = _product_for(db, manufacturer, product_type, rng)
        service_info += _company_service_info(db, manufacturer)

        expiration = now + timedelta(days=_expiration_offset(index, rng))
        purchase = now - timedelta(days=rng.randint(1, 700))
        if purchase > expiration:
            purchase = expiration - timedelta(days=365)

        number = "".join(rng.choice(_WARRANTY_NUMBER_ALPHABET) for _ in range(8))
        warranty = create_warranty(
            db,
            {
                "product_id": product.id,
                "purchase_date": purchase,
                "expiration_date": expiration,
                "warranty_provider": rng.choice(WARRANTY_PROVIDERS),
                "warranty_number": f"WTY-{number}",
                "coverage_details": (
                    f"Covers parts and labor for the {manufacturer} {product_type}, "
                    "including repairs and replacements for manufacturing defects."
                ),
                "notes": f"Demo warranty for {manufacturer} {product_type}." if rng.random() > 0.5 else None,
            },
            now,
            owner_id=owner_id,
            expiring_window_days=expiring_window_days,
        )
        statuses[warranty.status] += 1

    products_after = len(db.execute(select(Product.id)).scalars().all())
    summary = {
        "products": products_after - products_before,
        "warranties": count,
        "service_info": service_info,
        "statuses": dict(statuses),
    }
    logger.info("seed.completed", extra={"extra_data": summary})
    return summary
