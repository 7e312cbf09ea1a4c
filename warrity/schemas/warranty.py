"""Pydantic schemas for warranty payloads.

Input models carry no ``status``; it is computed from the expiration date.
Unknown fields in a request body are dropped.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.warranty_status import format_timestamp, parse_timestamp


def _canonical_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return format_timestamp(value)


class WarrantyBase(BaseModel):
    product_id: int
    purchase_date: str
    expiration_date: str
    warranty_provider: str = Field(..., min_length=1)
    warranty_number: str = Field(..., min_length=1)
    coverage_details: str = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("purchase_date", "expiration_date")
    @classmethod
    def _check_dates(cls, value: str) -> str:
        return format_timestamp(value)

    @model_validator(mode="after")
    def _check_period(self) -> "WarrantyBase":
        if parse_timestamp(self.expiration_date) < parse_timestamp(self.purchase_date):
            raise ValueError("expiration_date must not be before purchase_date")
        return self


class WarrantyCreate(WarrantyBase):
    # Honoured for admins only; everybody else registers warranties for themselves.
    user_id: Optional[int] = None


class WarrantyUpdate(BaseModel):
    purchase_date: Optional[str] = None
    expiration_date: Optional[str] = None
    warranty_provider: Optional[str] = Field(default=None, min_length=1)
    warranty_number: Optional[str] = Field(default=None, min_length=1)
    coverage_details: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None

    @field_validator("purchase_date", "expiration_date")
    @classmethod
    def _check_dates(cls, value: Optional[str]) -> Optional[str]:
        return _canonical_date(value)


class WarrantyDocument(BaseModel):
    id: str
    filename: str
    content_type: Optional[str] = None
    size: Optional[int] = None
    uploaded_at: str
    url: Optional[str] = None

    model_config = {"extra": "ignore"}


class WarrantyOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    product_id: int
    product_name: Optional[str] = None
    product_category: Optional[str] = None
    purchase_date: str
    expiration_date: str
    warranty_provider: str
    warranty_number: str
    coverage_details: str
    notes: Optional[str] = None
    # ``None`` when the stored expiration date cannot be read.
    status: Optional[str] = None
    days_remaining: Optional[int] = None
    documents: list[WarrantyDocument] = Field(default_factory=list)
    created_at: str
    updated_at: str
