"""
CaterHub Backend — Package and PackageItem Schemas
====================================================

What:  Payloads and responses for /caterer/packages and
       /caterer/packages/items, plus the link-batch body.
How:   Same conventions as the dish schemas: optional fields, lax
       coercion of multipart strings, string ids resolved by the services.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from caterhub.models.package import CustomisationType
from caterhub.schemas.common import IdList, LookupRef, blank_to_none, split_id_list


# ── Package Items ─────────────────────────────────────────────────────────

class PackageItemPayload(BaseModel):
    dish_id: Optional[str] = None
    package_id: Optional[str] = None
    people_count: Optional[int] = Field(default=None, ge=1)
    quantity: Optional[int] = Field(default=None, ge=1)
    price_at_time: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_optional: Optional[bool] = None
    is_addon: Optional[bool] = None

    model_config = {"extra": "ignore"}

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return blank_to_none(v)


class PackageItemDish(BaseModel):
    id: uuid.UUID
    name: str
    image_url: Optional[str] = None
    price: float
    currency: str
    category: Optional[LookupRef] = None
    sub_category: Optional[LookupRef] = None
    cuisine_type: Optional[LookupRef] = None

    model_config = {"from_attributes": True}


class PackageItemResponse(BaseModel):
    id: uuid.UUID
    caterer_id: uuid.UUID
    package_id: Optional[uuid.UUID] = None
    dish_id: uuid.UUID
    dish: Optional[PackageItemDish] = None
    people_count: int
    quantity: int
    price_at_time: Optional[float] = None
    is_optional: bool
    is_addon: bool
    is_draft: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LinkItemsRequest(BaseModel):
    """Body of POST /caterer/packages/{id}/items/link."""

    item_ids: Any = None

    model_config = {"extra": "ignore"}


# ── Packages ──────────────────────────────────────────────────────────────

class PackagePayload(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    people_count: Optional[int] = Field(default=None, ge=1)
    package_type_id: Optional[str] = None
    cover_image_url: Optional[str] = Field(default=None, max_length=500)
    total_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    rating: Optional[Decimal] = Field(default=None, ge=0, le=5, max_digits=2, decimal_places=1)
    is_active: Optional[bool] = None
    is_available: Optional[bool] = None
    customisation_type: Optional[CustomisationType] = None
    package_item_ids: IdList = None

    model_config = {"extra": "ignore"}

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return blank_to_none(v)

    @field_validator("package_item_ids", mode="before")
    @classmethod
    def _split_ids(cls, v):
        return split_id_list(v)

    @field_validator("customisation_type", mode="before")
    @classmethod
    def _upper(cls, v):
        return v.upper() if isinstance(v, str) else v


class CategorySelectionResponse(BaseModel):
    id: uuid.UUID
    category_id: uuid.UUID
    category: Optional[LookupRef] = None
    num_dishes_to_select: Optional[int] = None

    model_config = {"from_attributes": True}


class PackageResponse(BaseModel):
    id: uuid.UUID
    caterer_id: uuid.UUID
    name: str
    people_count: int
    package_type_id: uuid.UUID
    package_type: Optional[LookupRef] = None
    cover_image_url: Optional[str] = None
    total_price: float
    currency: str
    rating: Optional[float] = None
    is_active: bool
    is_available: bool
    customisation_type: str
    items: List[PackageItemResponse] = Field(default_factory=list)
    category_selections: List[CategorySelectionResponse] = Field(default_factory=list)
    occasions: List[LookupRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
