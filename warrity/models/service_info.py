from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base

SERVICE_TYPES = ("Warranty", "Maintenance", "Repair", "Support", "Other")


class ServiceInfo(Base):
    """Service and warranty terms published by a company.

    A row with ``product_id`` set applies to that product only; a row without
    one applies to every product the company manufactures.
    """

    __tablename__ = "service_info"
    __table_args__ = (Index("ix_service_info_product_company", "product_id", "company"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    service_type = Column(Text, nullable=False)
    terms = Column(Text, nullable=False)
    company = Column(Text, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    contact_email = Column(Text, nullable=True)
    contact_phone = Column(Text, nullable=True)
    contact_website = Column(Text, nullable=True)
    contact_address = Column(Text, nullable=True)
    warranty_duration = Column(Text, nullable=True)
    warranty_coverage = Column(Text, nullable=True)
    warranty_exclusions = Column(Text, nullable=True)
    is_active = Column(Integer, nullable=False, default=1, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    product = relationship("Product", lazy="joined")

    @property
    def product_name(self) -> str | None:
        return self.product.name if self.product else None


__all__ = ["SERVICE_TYPES", "ServiceInfo"]
