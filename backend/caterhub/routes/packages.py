"""
CaterHub Backend — Package Routes
===================================

What:  CRUD for the caterer's packages and the batch link of draft items.
How:   Create and update accept JSON or multipart/form-data with an
       optional `image` that becomes the cover image.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.database import get_db_session
from caterhub.dependencies import get_image_storage, require_caterer
from caterhub.routes.payload import read_payload, stored_image
from caterhub.schemas.common import Envelope, ErrorResponse
from caterhub.schemas.package import (
    LinkItemsRequest,
    PackageItemResponse,
    PackagePayload,
    PackageResponse,
)
from caterhub.security import Identity
from caterhub.services.image_storage import ImageStorage
from caterhub.services.package_item_service import package_item_service
from caterhub.services.package_service import package_service

router = APIRouter(prefix="/caterer/packages", tags=["Packages"])

IMAGE_FOLDER = "packages"

NOT_FOUND = {404: {"description": "Not found or not owned", "model": ErrorResponse}}


@router.get("", response_model=Envelope[List[PackageResponse]])
async def list_packages(
    package_type_id: Optional[str] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    is_available: Optional[bool] = Query(default=None),
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[List[PackageResponse]]:
    result = await package_service.list_packages(
        db,
        identity.user_id,
        package_type_id=package_type_id,
        is_active=is_active,
        is_available=is_available,
    )
    return Envelope(data=result)


@router.get("/{package_id}", response_model=Envelope[PackageResponse], responses=NOT_FOUND)
async def get_package(
    package_id: str,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[PackageResponse]:
    return Envelope(data=await package_service.get_package(db, package_id, identity.user_id))


@router.post(
    "",
    status_code=201,
    response_model=Envelope[PackageResponse],
    responses={400: {"description": "Invalid fields, references, items or image", "model": ErrorResponse}},
)
async def create_package(
    request: Request,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    storage: ImageStorage = Depends(get_image_storage),
) -> Envelope[PackageResponse]:
    payload, image = await read_payload(request, PackagePayload)
    async with stored_image(storage, image, IMAGE_FOLDER, db) as stored:
        result = await package_service.create_package(
            db, identity.user_id, payload, cover_image_url=stored.url if stored else None
        )
    return Envelope(data=result, message="Package created successfully")


@router.put("/{package_id}", response_model=Envelope[PackageResponse], responses=NOT_FOUND)
async def update_package(
    package_id: str,
    request: Request,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    storage: ImageStorage = Depends(get_image_storage),
) -> Envelope[PackageResponse]:
    payload, image = await read_payload(request, PackagePayload)
    async with stored_image(storage, image, IMAGE_FOLDER, db) as stored:
        result = await package_service.update_package(
            db,
            package_id,
            identity.user_id,
            payload,
            cover_image_url=stored.url if stored else None,
        )
    return Envelope(data=result, message="Package updated successfully")


@router.delete("/{package_id}", response_model=Envelope[None], responses=NOT_FOUND)
async def delete_package(
    package_id: str,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[None]:
    await package_service.delete_package(db, package_id, identity.user_id)
    return Envelope(message="Package deleted successfully")


@router.post(
    "/{package_id}/items/link",
    response_model=Envelope[List[PackageItemResponse]],
    responses={
        **NOT_FOUND,
        400: {"description": "item_ids missing, or some items not owned", "model": ErrorResponse},
    },
    summary="Link a batch of owned package items to a package",
)
async def link_items(
    package_id: str,
    request: Request,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[List[PackageItemResponse]]:
    body, _ = await read_payload(request, LinkItemsRequest)
    result = await package_item_service.link_batch(
        db, package_id, body.item_ids, identity.user_id
    )
    return Envelope(data=result, message="Package items linked successfully")
