"""Lookup-table responses for /caterer/metadata."""

import uuid
from typing import List, Optional

from pydantic import BaseModel, Field


class LookupResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class SubCategoryResponse(LookupResponse):
    category_id: uuid.UUID


class CategoryResponse(LookupResponse):
    sub_categories: List[SubCategoryResponse] = Field(default_factory=list)
