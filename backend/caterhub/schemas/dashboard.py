"""
CaterHub Backend — Dashboard Schemas
======================================

What:  The shape of GET /caterer/dashboard.
Why camelCase on the wire:
    The caterer dashboard front end reads `packageItems`,
    `averagePackagePrice` and `totalRevenuePotential`. Fields stay
    snake_case in Python and are serialized by alias.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class _AliasedModel(BaseModel):
    model_config = {"populate_by_name": True, "from_attributes": True}


class DishCounts(_AliasedModel):
    total: int
    active: int
    inactive: int


class PackageCounts(_AliasedModel):
    total: int
    active: int
    available: int
    inactive: int


class PackageItemCounts(_AliasedModel):
    total: int
    draft: int = Field(description="Items without a package")
    linked: int = Field(description="Items linked to a package")


class FinancialSummary(_AliasedModel):
    average_package_price: float = Field(alias="averagePackagePrice")
    total_revenue_potential: float = Field(
        alias="totalRevenuePotential", description="Sum of all package prices"
    )
    currency: str


class RecentDish(_AliasedModel):
    id: uuid.UUID
    name: str
    image_url: Optional[str] = None
    price: float
    currency: str
    is_active: bool
    created_at: datetime


class RecentPackage(_AliasedModel):
    id: uuid.UUID
    name: str
    cover_image_url: Optional[str] = None
    total_price: float
    currency: str
    people_count: int
    is_available: bool
    created_at: datetime


class RecentActivity(_AliasedModel):
    dishes: List[RecentDish]
    packages: List[RecentPackage]


class DashboardStats(_AliasedModel):
    dishes: DishCounts
    packages: PackageCounts
    package_items: PackageItemCounts = Field(alias="packageItems")
    financial: FinancialSummary
    recent: RecentActivity
