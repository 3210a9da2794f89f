"""
CaterHub Backend — Stored Image Route
=======================================

What:  Serves uploaded dish and package images at their public URL.
Why:   image_url values are `/files/<folder>/YYYY/MM/DD/<uuid>.<ext>`;
       this is the route those URLs point at.
Security:
    ImageStorage.resolve() refuses paths outside the storage root, so
    `/files/../../etc/passwd` is a plain 404.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from caterhub.dependencies import get_image_storage
from caterhub.exceptions import NotFoundOrForbiddenError
from caterhub.services.image_storage import ImageStorage

router = APIRouter(tags=["Files"])

# Filenames are random UUIDs, so a stored file never changes
CACHE_CONTROL = "public, max-age=31536000, immutable"


@router.get("/files/{file_path:path}", include_in_schema=False)
async def get_file(
    file_path: str,
    storage: ImageStorage = Depends(get_image_storage),
) -> FileResponse:
    path = storage.resolve(file_path)
    if path is None:
        raise NotFoundOrForbiddenError(resource="File", message="File not found")
    return FileResponse(path, headers={"Cache-Control": CACHE_CONTROL})
