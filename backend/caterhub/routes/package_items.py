"""
CaterHub Backend — Package Item Routes
========================================

What:  CRUD for package items. An item without a package is a draft.
Note:  Mounted before the package router so `/caterer/packages/items`
       is not captured by `/caterer/packages/{package_id}`.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.database import get_db_session
from caterhub.dependencies import require_caterer
from caterhub.routes.payload import read_payload
from caterhub.schemas.common import Envelope, ErrorResponse
from caterhub.schemas.package import PackageItemPayload, PackageItemResponse
from caterhub.security import Identity
from caterhub.services.package_item_service import package_item_service

router = APIRouter(prefix="/caterer/packages/items", tags=["Package Items"])

NOT_FOUND = {404: {"description": "Not found or not owned", "model": ErrorResponse}}


@router.get("", response_model=Envelope[List[PackageItemResponse]])
async def list_items(
    draft: bool = Query(default=False, description="Only items not linked to a package"),
    package_id: Optional[str] = Query(default=None),
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[List[PackageItemResponse]]:
    result = await package_item_service.list_items(
        db, identity.user_id, draft_only=draft, package_id=package_id
    )
    return Envelope(data=result)


@router.get("/{item_id}", response_model=Envelope[PackageItemResponse], responses=NOT_FOUND)
async def get_item(
    item_id: str,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[PackageItemResponse]:
    return Envelope(data=await package_item_service.get_item(db, item_id, identity.user_id))


@router.post(
    "",
    status_code=201,
    response_model=Envelope[PackageItemResponse],
    responses={400: {"description": "Missing fields or unowned dish/package", "model": ErrorResponse}},
)
async def create_item(
    request: Request,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[PackageItemResponse]:
    payload, _ = await read_payload(request, PackageItemPayload)
    result = await package_item_service.create_item(db, identity.user_id, payload)
    return Envelope(data=result, message="Package item created successfully")


@router.put("/{item_id}", response_model=Envelope[PackageItemResponse], responses=NOT_FOUND)
async def update_item(
    item_id: str,
    request: Request,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[PackageItemResponse]:
    payload, _ = await read_payload(request, PackageItemPayload)
    result = await package_item_service.update_item(db, item_id, identity.user_id, payload)
    return Envelope(data=result, message="Package item updated successfully")


@router.delete("/{item_id}", response_model=Envelope[None], responses=NOT_FOUND)
async def delete_item(
    item_id: str,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[None]:
    await package_item_service.delete_item(db, item_id, identity.user_id)
    return Envelope(message="Package item deleted successfully")
