from __future__ import annotations

from pydantic import BaseModel, Field

from .warranty import WarrantyOut


class CategoryCount(BaseModel):
    category: str
    count: int


class WarrantyStatusCounts(BaseModel):
    total: int = 0
    active: int = 0
    expiring: int = 0
    expired: int = 0
    unknown: int = 0


class WarrantyOverview(WarrantyStatusCounts):
    expiring_window_days: int
    warranty_by_category: list[CategoryCount] = Field(default_factory=list)
    recent_warranties: list[WarrantyOut] = Field(default_factory=list)


class UserStats(BaseModel):
    total: int
    admin: int
    regular: int


class ProductStats(BaseModel):
    total: int
    categories: list[CategoryCount] = Field(default_factory=list)


class MonthlyCount(BaseModel):
    month: str
    count: int


class DashboardStats(BaseModel):
    user_stats: UserStats
    warranty_stats: WarrantyStatusCounts
    product_stats: ProductStats
    monthly_data: list[MonthlyCount] = Field(default_factory=list)


class ActivityFeed(BaseModel):
    recent_warranties: list[WarrantyOut] = Field(default_factory=list)
