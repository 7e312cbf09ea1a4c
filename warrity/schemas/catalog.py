from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CategoryOut(BaseModel):
    id: int
    name: str
    description: str
    default_warranty_period_months: int
    service_requirements: list[str] = Field(default_factory=list)
    service_notes: Optional[str] = None

    model_config = {"from_attributes": True}


class ServiceInfoOut(BaseModel):
    id: int
    name: str
    description: str
    service_type: str
    terms: str
    company: str
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_website: Optional[str] = None
    contact_address: Optional[str] = None
    warranty_duration: Optional[str] = None
    warranty_coverage: Optional[str] = None
    warranty_exclusions: Optional[str] = None
    is_active: bool
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
