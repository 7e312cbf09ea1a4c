"""Beginner-friendly overview for this module.

WHAT: The ``warranties`` table and the helpers that read/write its document list.
WHEN: Loaded at start-up so ``Base.metadata`` knows about the table.
WHY: A warranty ties an owner and a product to a coverage period.
HOW: ``status`` is stored only so list queries can filter in SQL; the CRUD
layer overwrites it from the expiration date on every write and re-syncs it
on every read, so it never carries a client supplied value.
"""

from __future__ import annotations

import json

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Warranty(Base):
    __tablename__ = "warranties"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    purchase_date = Column(Text, nullable=False)
    expiration_date = Column(Text, nullable=False, index=True)
    warranty_provider = Column(Text, nullable=False)
    warranty_number = Column(Text, nullable=False)
    coverage_details = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(Text, nullable=True, index=True)
    documents_blob = Column("documents", Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    product = relationship("Product", lazy="joined")
    owner = relationship("User", back_populates="warranties", lazy="joined")

    @property
    def product_name(self) -> str | None:
        return self.product.name if self.product else None

    @property
    def product_category(self) -> str | None:
        return self.product.category if self.product else None

    def _document_records(self) -> list[dict[str, object]]:
        raw = self.documents_blob
        if not raw:
            return []
        try:
            decoded = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return []
        if not isinstance(decoded, list):
            return []
        return [dict(item) for item in decoded if isinstance(item, dict)]

    def _store_document_records(self, records: list[dict[str, object]]) -> None:
        self.documents_blob = json.dumps(records) if records else None

    def get_document_record(self, document_id: str) -> dict[str, object] | None:
        for record in self._document_records():
            if str(record.get("id")) == str(document_id):
                return record
        return None


__all__ = ["Warranty"]
