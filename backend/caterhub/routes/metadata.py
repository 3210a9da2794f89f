"""
CaterHub Backend — Metadata Routes
====================================

What:  Read-only lookup listings used by the caterer's forms.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.database import get_db_session
from caterhub.dependencies import require_caterer
from caterhub.schemas.common import Envelope
from caterhub.schemas.metadata import CategoryResponse, LookupResponse, SubCategoryResponse
from caterhub.services.metadata_service import metadata_service

# Every endpoint needs a caterer, none needs the identity itself
router = APIRouter(
    prefix="/caterer/metadata",
    tags=["Metadata"],
    dependencies=[Depends(require_caterer)],
)


@router.get("/cuisine-types", response_model=Envelope[List[LookupResponse]])
async def cuisine_types(db: AsyncSession = Depends(get_db_session, scope="function")):
    return Envelope(data=await metadata_service.cuisine_types(db))


@router.get("/categories", response_model=Envelope[List[CategoryResponse]])
async def categories(db: AsyncSession = Depends(get_db_session, scope="function")):
    return Envelope(data=await metadata_service.categories(db))


@router.get("/subcategories", response_model=Envelope[List[SubCategoryResponse]])
async def sub_categories(
    category_id: Optional[str] = Query(default=None, description="Only this category's subcategories"),
    db: AsyncSession = Depends(get_db_session, scope="function"),
):
    return Envelope(data=await metadata_service.sub_categories(db, category_id))


@router.get("/freeforms", response_model=Envelope[List[LookupResponse]])
async def free_forms(db: AsyncSession = Depends(get_db_session, scope="function")):
    return Envelope(data=await metadata_service.free_forms(db))


@router.get("/package-types", response_model=Envelope[List[LookupResponse]])
async def package_types(db: AsyncSession = Depends(get_db_session, scope="function")):
    return Envelope(data=await metadata_service.package_types(db))


@router.get("/occasions", response_model=Envelope[List[LookupResponse]])
async def occasions(db: AsyncSession = Depends(get_db_session, scope="function")):
    return Envelope(data=await metadata_service.occasions(db))
