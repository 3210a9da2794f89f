"""
CaterHub Backend — Dish Schemas
=================================

What:  Request payload and response shape for /caterer/dishes.
How:   DishPayload serves both create and update. It is parsed from JSON
       or from multipart form fields; pydantic's lax mode turns form
       strings into ints, decimals and booleans ("true"/"1" → True).
       Which fields were sent is read from `model_fields_set`, which is
       what makes updates partial.
Why ids are strings:
    A malformed id and an unknown id are the same client mistake. Keeping
    them as strings lets DishService answer both with InvalidReference.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from caterhub.schemas.common import IdList, LookupRef, blank_to_none, split_id_list


class DishPayload(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    cuisine_type_id: Optional[str] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    quantity_in_gm: Optional[int] = Field(default=None, ge=0)
    pieces: Optional[int] = Field(default=None, ge=1)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    is_active: Optional[bool] = None
    free_form_ids: IdList = None

    model_config = {"extra": "ignore"}

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        return blank_to_none(v)

    @field_validator("free_form_ids", mode="before")
    @classmethod
    def _split_ids(cls, v):
        return split_id_list(v)


class DishResponse(BaseModel):
    id: uuid.UUID
    caterer_id: uuid.UUID
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    cuisine_type_id: uuid.UUID
    category_id: uuid.UUID
    sub_category_id: uuid.UUID
    cuisine_type: Optional[LookupRef] = None
    category: Optional[LookupRef] = None
    sub_category: Optional[LookupRef] = None
    free_forms: List[LookupRef] = Field(default_factory=list)
    quantity_in_gm: Optional[int] = None
    pieces: int
    price: float
    currency: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
