import logging
import os
from pathlib import Path
from urllib.parse import urlparse
import oss2
from app.core.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def is_oss_enabled() -> bool:
    return bool(
        settings.STORAGE_BACKEND.lower() == "oss"
        and settings.OSS_ENDPOINT
        and settings.OSS_BUCKET
        and settings.OSS_ACCESS_KEY
        and settings.OSS_SECRET
    )


_oss_bucket = None


def _get_oss_bucket():
    global _oss_bucket
    if _oss_bucket is None:
        auth = oss2.Auth(settings.OSS_ACCESS_KEY, settings.OSS_SECRET)
        _oss_bucket = oss2.Bucket(auth, settings.OSS_ENDPOINT, settings.OSS_BUCKET)
    return _oss_bucket


def _object_key(path: str) -> str:
    return f"{settings.STORAGE_BUCKET}/{path.lstrip('/')}"


def local_object_path(path: str) -> Path:
    """Absolute location of an object of the local backend; rejects paths escaping the bucket."""
    root = (Path(settings.UPLOAD_DIR) / settings.STORAGE_BUCKET).resolve()
    target = (root / path.lstrip("/")).resolve()
    if target != root and root not in target.parents:
        raise ValueError("INVALID_PATH")
    return target


def save_file_local(file_obj, storage_path: str, max_bytes: int) -> int:
    size = 0
    os.makedirs(os.path.dirname(storage_path), exist_ok=True)
    with open(storage_path, "xb") as f:
        while True:
            chunk = file_obj.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                f.close()
                os.remove(storage_path)
                raise ValueError("FILE_TOO_LARGE")
            f.write(chunk)
    return size


def save_file_oss(file_obj, key: str, max_bytes: int, content_type: str | None = None) -> int:
    data = file_obj.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValueError("FILE_TOO_LARGE")
    headers = {"Cache-Control": "max-age=3600", "x-oss-forbid-overwrite": "true"}
    if content_type:
        headers["Content-Type"] = content_type
    _get_oss_bucket().put_object(key, data, headers=headers)
    return len(data)


def build_oss_url(key: str) -> str:
    if settings.OSS_BASE_URL:
        return f"{settings.OSS_BASE_URL.rstrip('/')}/{key}"
    bucket = _get_oss_bucket()
    return f"https://{bucket.bucket_name}.{bucket.endpoint.replace('http://', '').replace('https://', '')}/{key}"


def upload(path: str, file_obj, content_type: str | None, max_bytes: int) -> int:
    """Stores ``file_obj`` under ``path`` in the bucket; never overwrites. Returns the stored size."""
    if is_oss_enabled():
        return save_file_oss(file_obj, _object_key(path), max_bytes, content_type)
    return save_file_local(file_obj, str(local_object_path(path)), max_bytes)


def get_public_url(path: str) -> str:
    if is_oss_enabled():
        return build_oss_url(_object_key(path))
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/storage/{settings.STORAGE_BUCKET}/{path.lstrip('/')}"


def remove(path: str) -> None:
    if is_oss_enabled():
        _get_oss_bucket().delete_object(_object_key(path))
        return
    local_object_path(path).unlink()


def owns_url(file_url: str) -> bool:
    """True when ``file_url`` points into this app's bucket rather than an external host."""
    return bool(file_url) and file_url.startswith(get_public_url(""))


def extract_path_from_public_url(file_url: str) -> str | None:
    """Recovers the in-bucket object path from a public URL produced by ``get_public_url``."""
    try:
        parsed = urlparse(file_url)
    except ValueError as e:
        logger.warning("Failed to parse file URL %s: %s", file_url, e)
        return None
    segments = [s for s in parsed.path.split("/") if s]
    if settings.STORAGE_BUCKET not in segments:
        return None
    idx = segments.index(settings.STORAGE_BUCKET)
    rest = segments[idx + 1:]
    return "/".join(rest) if rest else None
