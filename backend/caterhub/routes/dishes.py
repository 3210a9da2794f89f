"""
CaterHub Backend — Dish Routes
================================

What:  CRUD for the authenticated caterer's dishes.
How:   Create and update accept JSON or multipart/form-data. A multipart
       `image` is validated and stored before the service call and removed
       again if the service rejects the write.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.database import get_db_session
from caterhub.dependencies import get_image_storage, require_caterer
from caterhub.routes.payload import read_payload, stored_image
from caterhub.schemas.common import Envelope, ErrorResponse
from caterhub.schemas.dish import DishPayload, DishResponse
from caterhub.security import Identity
from caterhub.services.dish_service import dish_service
from caterhub.services.image_storage import ImageStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/caterer/dishes", tags=["Dishes"])

IMAGE_FOLDER = "dishes"

COMMON_ERRORS = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Caller is not a caterer", "model": ErrorResponse},
}


@router.get("", response_model=Envelope[List[DishResponse]], responses=COMMON_ERRORS)
async def list_dishes(
    cuisine_type_id: Optional[str] = Query(default=None),
    category_id: Optional[str] = Query(default=None),
    sub_category_id: Optional[str] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[List[DishResponse]]:
    result = await dish_service.list_dishes(
        db,
        identity.user_id,
        cuisine_type_id=cuisine_type_id,
        category_id=category_id,
        sub_category_id=sub_category_id,
        is_active=is_active,
    )
    return Envelope(data=result)


@router.get(
    "/{dish_id}",
    response_model=Envelope[DishResponse],
    responses={**COMMON_ERRORS, 404: {"description": "Not found or not owned", "model": ErrorResponse}},
)
async def get_dish(
    dish_id: str,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[DishResponse]:
    return Envelope(data=await dish_service.get_dish(db, dish_id, identity.user_id))


@router.post(
    "",
    status_code=201,
    response_model=Envelope[DishResponse],
    responses={**COMMON_ERRORS, 400: {"description": "Invalid fields, references or image", "model": ErrorResponse}},
    summary="Create a dish (JSON or multipart with optional `image`)",
)
async def create_dish(
    request: Request,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    storage: ImageStorage = Depends(get_image_storage),
) -> Envelope[DishResponse]:
    payload, image = await read_payload(request, DishPayload)
    async with stored_image(storage, image, IMAGE_FOLDER, db) as stored:
        result = await dish_service.create_dish(
            db, identity.user_id, payload, image_url=stored.url if stored else None
        )
    return Envelope(data=result, message="Dish created successfully")


@router.put(
    "/{dish_id}",
    response_model=Envelope[DishResponse],
    responses={
        **COMMON_ERRORS,
        400: {"description": "Invalid fields, references or image", "model": ErrorResponse},
        404: {"description": "Not found or not owned", "model": ErrorResponse},
    },
    summary="Partially update a dish",
)
async def update_dish(
    dish_id: str,
    request: Request,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
    storage: ImageStorage = Depends(get_image_storage),
) -> Envelope[DishResponse]:
    payload, image = await read_payload(request, DishPayload)
    async with stored_image(storage, image, IMAGE_FOLDER, db) as stored:
        result = await dish_service.update_dish(
            db, dish_id, identity.user_id, payload, image_url=stored.url if stored else None
        )
    return Envelope(data=result, message="Dish updated successfully")


@router.delete(
    "/{dish_id}",
    response_model=Envelope[None],
    responses={
        **COMMON_ERRORS,
        400: {"description": "Dish is used by package items", "model": ErrorResponse},
        404: {"description": "Not found or not owned", "model": ErrorResponse},
    },
)
async def delete_dish(
    dish_id: str,
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[None]:
    await dish_service.delete_dish(db, dish_id, identity.user_id)
    return Envelope(message="Dish deleted successfully")
