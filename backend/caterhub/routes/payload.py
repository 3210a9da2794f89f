"""
CaterHub Backend — Request Payload Parsing
============================================

What:  Reads a write request body as JSON or multipart form data and
       validates it into a payload schema.
Why:   Dish and package forms upload an image together with their fields,
       so the same endpoint must accept `application/json` and
       `multipart/form-data`. Form values arrive as strings; the payload
       schemas coerce them ("12.50" → Decimal, "true"/"1" → True).
How:   Returns the validated payload plus the `image` UploadFile, if any.
       Pydantic errors are converted into our ValidationError (400).
"""

import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple, Type, TypeVar

from fastapi import Request, UploadFile
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile as StarletteUploadFile

from caterhub.exceptions import ValidationError
from caterhub.services.image_storage import ImageStorage, StoredImage

PayloadT = TypeVar("PayloadT", bound=BaseModel)

IMAGE_FIELD = "image"


def _describe(exc: PydanticValidationError) -> Tuple[str, dict]:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"Invalid value for {field}: {first.get('msg', 'invalid')}", {"field": field}


def validate_payload(model: Type[PayloadT], data: dict) -> PayloadT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        message, context = _describe(e)
        raise ValidationError(message=message, context=context)


async def read_payload(
    request: Request, model: Type[PayloadT]
) -> Tuple[PayloadT, Optional[UploadFile]]:
    """
    Parse the body of `request` into `model`.

    Returns:
        (payload, image) where image is the multipart `image` file or None
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        data = {}
        image = None
        for key, value in form.multi_items():
            if isinstance(value, StarletteUploadFile):
                if key == IMAGE_FIELD and value.filename:
                    image = value
                continue
            if key in data:
                # Repeated keys (free_form_ids=a&free_form_ids=b) become a list
                previous = data[key]
                data[key] = (previous if isinstance(previous, list) else [previous]) + [value]
            else:
                data[key] = value
        return validate_payload(model, data), image

    body = await request.body()
    if not body:
        return validate_payload(model, {}), None
    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationError(message="Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError(message="Request body must be a JSON object")
    return validate_payload(model, data), None


@asynccontextmanager
async def stored_image(
    storage: ImageStorage, image: Optional[UploadFile], folder: str, db: AsyncSession
) -> AsyncIterator[Optional[StoredImage]]:
    """
    Store an optional upload for the duration of a write.

    The write is committed before the block exits. If the body of the
    `async with` or that commit raises, the stored file is removed again so
    a rejected dish or package leaves no orphaned image behind.
    """
    stored = await storage.save_upload(image, folder) if image is not None else None
    try:
        yield stored
        await db.commit()
    except Exception:
        if stored is not None:
            await storage.cleanup_file(stored.absolute_path)
        raise
