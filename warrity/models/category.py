"""Product categories and their default service terms.

Categories are static configuration: they are seeded once and read by the
API. ``products.category`` stores the category name.
"""

from __future__ import annotations

import json

from sqlalchemy import Column, Integer, Text

from ..db.session import Base

# name -> (description, default warranty period in months, service requirements)
DEFAULT_CATEGORIES: dict[str, tuple[str, int, tuple[str, ...]]] = {
    "Electronics": ("Computers, phones, TVs and other consumer electronics", 12, ("Proof of purchase",)),
    "Appliances": (
        "Kitchen and household appliances",
        24,
        ("Proof of purchase", "Installed by a certified technician"),
    ),
    "Furniture": ("Indoor and outdoor furniture", 12, ()),
    "Automotive": ("Vehicles, parts and accessories", 36, ("Scheduled maintenance records",)),
    "Clothing": ("Apparel, footwear and accessories", 6, ()),
    "Other": ("Anything that does not fit another category", 12, ()),
}


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=False)
    default_warranty_period_months = Column(Integer, nullable=False)
    service_requirements_blob = Column("service_requirements", Text, nullable=True)
    service_notes = Column(Text, nullable=True)
    is_active = Column(Integer, nullable=False, default=1)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    @property
    def service_requirements(self) -> list[str]:
        if not self.service_requirements_blob:
            return []
        try:
            decoded = json.loads(self.service_requirements_blob)
        except (TypeError, json.JSONDecodeError):
            return []
        return [str(item) for item in decoded] if isinstance(decoded, list) else []

    @service_requirements.setter
    def service_requirements(self, values: list[str]) -> None:
        self.service_requirements_blob = json.dumps(list(values)) if values else None


__all__ = ["Category", "DEFAULT_CATEGORIES"]
