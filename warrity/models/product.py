from __future__ import annotations

from sqlalchemy import Column, Float, Integer, Text

from ..db.session import Base

PRODUCT_CATEGORIES = (
    "Electronics",
    "Appliances",
    "Furniture",
    "Automotive",
    "Clothing",
    "Other",
)


class Product(Base):
    """A product model that warranties can be registered against."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, index=True)
    description = Column(Text, nullable=False)
    manufacturer = Column(Text, nullable=False, index=True)
    model = Column(Text, nullable=True)
    serial_number = Column(Text, nullable=True)
    category = Column(Text, nullable=False, index=True)
    price = Column(Float, nullable=True)
    is_active = Column(Integer, nullable=False, default=1, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)


__all__ = ["PRODUCT_CATEGORIES", "Product"]
