"""
Site Content API — Local Object Serving
========================================

What:  GET /files/{bucket}/{key} — serves images stored by LocalStorage.
Why:   With STORAGE_BACKEND=local the public URLs written into rows point back
       at this API. With the Supabase backend images are served by Supabase
       and this route always answers 404.

Security:
    LocalStorage.resolve() rejects any bucket/key that would escape
    STORAGE_ROOT (e.g. ../../etc/passwd).
"""

import mimetypes

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.dependencies import get_object_store
from app.exceptions import NotFoundError, ObjectStorageError, ValidationError
from app.services.local_storage import LocalStorage
from app.services.object_store import ObjectStore

router = APIRouter(tags=["Files"])


@router.get(
    "/files/{bucket}/{key:path}",
    summary="Serve a locally stored image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_file(
    bucket: str,
    key: str,
    store: ObjectStore = Depends(get_object_store),
) -> FileResponse:
    if not isinstance(store, LocalStorage):
        raise NotFoundError(resource="file", resource_id=f"{bucket}/{key}")

    try:
        path = store.resolve(bucket, key)
    except ObjectStorageError:
        raise ValidationError(message="Invalid file path")

    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=f"{bucket}/{key}")

    media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path=str(path),
        media_type=media_type or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=86400"},
    )
