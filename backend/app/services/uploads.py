import logging
import secrets
import time
from dataclasses import dataclass
from fastapi import UploadFile
from app.core import storage
from app.core.config import settings
from app.core.errors import file_too_large, file_type_not_allowed, upload_failed

logger = logging.getLogger(__name__)

ICON_DIRECTORY = "icons"
ICON_ALLOWED_MIME_TYPES = ("image/png", "image/jpeg", "image/webp")

DOCUMENT_MIME_TYPES = {
    "pdf": {"application/pdf"},
    "doc": {"application/msword"},
    "docx": {
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
    },
}


@dataclass
class StoredFile:
    file_url: str
    file_name: str
    size: int


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def _display_name(name: str) -> str:
    cleaned = name.replace("\\", "_").replace("/", "_")
    return cleaned.strip() or "file"


def allowed_exts() -> set[str]:
    return {x.strip().lower() for x in settings.ALLOWED_FILE_EXT.split(",") if x.strip()}


def generate_file_path(filename: str, directory: str | None = None) -> str:
    ext = _extension(filename)
    unique = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"
    name = f"{unique}.{ext}" if ext else unique
    return f"{directory}/{name}" if directory else name


def _store(file: UploadFile, path: str, max_bytes: int, too_large_message: str) -> tuple[str, int]:
    try:
        size = storage.upload(path, file.file, file.content_type, max_bytes)
    except ValueError as e:
        if str(e) == "FILE_TOO_LARGE":
            raise file_too_large(too_large_message)
        raise upload_failed(str(e))
    except Exception as e:
        logger.exception("Upload of %s failed", path)
        raise upload_failed(str(e))
    return storage.get_public_url(path), size


def _check_size(file: UploadFile, max_bytes: int, message: str) -> None:
    # starlette records the spooled size; streamed storage re-checks it
    if file.size is not None and file.size > max_bytes:
        raise file_too_large(message)


def _document_limit() -> tuple[int, str]:
    return settings.MAX_UPLOAD_MB * 1024 * 1024, f"File exceeds the maximum size of {settings.MAX_UPLOAD_MB} MB"


def _icon_limit() -> tuple[int, str]:
    limit_mb = settings.ICON_MAX_BYTES // (1024 * 1024)
    return settings.ICON_MAX_BYTES, f"Icon file exceeds the maximum size of {limit_mb} MB."


def validate_file(file: UploadFile) -> str:
    """Checks a translation document before anything is stored; returns its display name."""
    filename = _display_name(file.filename or "file")
    ext = _extension(filename)
    if ext not in allowed_exts():
        raise file_type_not_allowed(f"Only {', '.join(sorted(allowed_exts()))} files can be uploaded")
    expected = DOCUMENT_MIME_TYPES.get(ext)
    if file.content_type and expected and file.content_type not in expected | {"application/octet-stream"}:
        raise file_type_not_allowed("File type does not match its extension")
    _check_size(file, *_document_limit())
    return filename


def validate_icon(file: UploadFile) -> None:
    if file.content_type not in ICON_ALLOWED_MIME_TYPES:
        raise file_type_not_allowed("Invalid icon file type. Allowed types are PNG, JPG, and WEBP.")
    _check_size(file, *_icon_limit())


def upload_file(file: UploadFile) -> StoredFile:
    """Stores a translation document and returns its public URL and display name."""
    filename = validate_file(file)
    path = generate_file_path(filename)
    url, size = _store(file, path, *_document_limit())
    logger.info("Uploaded %s as %s (%d bytes)", filename, path, size)
    return StoredFile(file_url=url, file_name=filename, size=size)


def upload_icon(file: UploadFile) -> str:
    validate_icon(file)
    path = generate_file_path(file.filename or "icon", ICON_DIRECTORY)
    url, _ = _store(file, path, *_icon_limit())
    return url


def delete_file(file_url: str) -> None:
    """Best-effort removal of a stored object; failures are logged, never raised."""
    if not storage.owns_url(file_url):
        logger.info("Skipping deletion of external file %s", file_url)
        return
    path = storage.extract_path_from_public_url(file_url)
    if not path:
        logger.warning("Could not determine file path for deletion: %s", file_url)
        return
    try:
        storage.remove(path)
    except Exception as e:
        logger.warning("Failed to delete file %s from storage: %s", path, e)
