"""
CaterHub Backend — Metadata Lookup Service
============================================

What:  Read-only listings of the lookup tables, sorted by name.
Why:   The caterer UI needs the valid ids for cuisine, category,
       subcategory, free form, package type and occasion pickers.
       Lookup rows are global reference data; nothing here is tenant-scoped.
"""

from typing import List, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.models.lookup import (
    Category,
    CuisineType,
    FreeForm,
    Occasion,
    PackageType,
    SubCategory,
)
from caterhub.repositories.ownership import as_uuid
from caterhub.schemas.metadata import CategoryResponse, LookupResponse, SubCategoryResponse


class MetadataService:

    async def _list_by_name(self, db: AsyncSession, model: Type) -> list:
        result = await db.execute(select(model).order_by(model.name.asc()))
        return list(result.scalars().all())

    async def cuisine_types(self, db: AsyncSession) -> List[LookupResponse]:
        return [LookupResponse.model_validate(r) for r in await self._list_by_name(db, CuisineType)]

    async def categories(self, db: AsyncSession) -> List[CategoryResponse]:
        return [CategoryResponse.model_validate(r) for r in await self._list_by_name(db, Category)]

    async def sub_categories(
        self, db: AsyncSession, category_id: Optional[str] = None
    ) -> List[SubCategoryResponse]:
        query = select(SubCategory).order_by(SubCategory.name.asc())
        if category_id is not None:
            pk = as_uuid(category_id)
            if pk is None:
                return []
            query = query.where(SubCategory.category_id == pk)
        result = await db.execute(query)
        return [SubCategoryResponse.model_validate(r) for r in result.scalars().all()]

    async def free_forms(self, db: AsyncSession) -> List[LookupResponse]:
        return [LookupResponse.model_validate(r) for r in await self._list_by_name(db, FreeForm)]

    async def package_types(self, db: AsyncSession) -> List[LookupResponse]:
        return [LookupResponse.model_validate(r) for r in await self._list_by_name(db, PackageType)]

    async def occasions(self, db: AsyncSession) -> List[LookupResponse]:
        return [LookupResponse.model_validate(r) for r in await self._list_by_name(db, Occasion)]


metadata_service = MetadataService()
