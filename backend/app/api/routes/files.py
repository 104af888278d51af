import mimetypes
from fastapi import APIRouter
from fastapi.responses import FileResponse
from app.core.config import settings
from app.core.errors import AppError, not_found
from app.core.storage import is_oss_enabled, local_object_path

router = APIRouter(prefix="/storage", tags=["files"])


@router.get("/{bucket}/{path:path}")
def stored_file(bucket: str, path: str):
    """Public access to objects of the local storage backend."""
    if is_oss_enabled() or bucket != settings.STORAGE_BUCKET:
        raise AppError(code="RESOURCE_NOT_FOUND", message="Only available for local storage", status_code=404)
    try:
        target = local_object_path(path)
    except ValueError:
        raise not_found()
    if not target.is_file():
        raise not_found()

    mime, _ = mimetypes.guess_type(target.name)
    return FileResponse(
        str(target),
        media_type=mime or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=3600"},
    )
