from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models.product import PRODUCT_CATEGORIES

CATEGORY_PATTERN = f"^({'|'.join(PRODUCT_CATEGORIES)})$"


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    manufacturer: str = Field(..., min_length=1)
    category: str = Field(..., pattern=CATEGORY_PATTERN)
    model: Optional[str] = None
    serial_number: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    manufacturer: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, pattern=CATEGORY_PATTERN)
    model: Optional[str] = None
    serial_number: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    name: str
    description: str
    manufacturer: str
    category: str
    model: Optional[str] = None
    serial_number: Optional[str] = None
    price: Optional[float] = None
    is_active: bool
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
