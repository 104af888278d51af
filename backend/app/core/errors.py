from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    code: str
    message: str
    status_code: int = 400
    details: dict[str, Any] | None = None


def validation_error(message: str = "Validation failed", details: dict[str, Any] | None = None) -> AppError:
    return AppError(code="VALIDATION_ERROR", message=message or "Validation failed", status_code=400, details=details or {})


def auth_required() -> AppError:
    return AppError(code="AUTH_REQUIRED", message="Login required", status_code=401)


def auth_invalid_credentials() -> AppError:
    return AppError(code="AUTH_INVALID_CREDENTIALS", message="Invalid credentials", status_code=401)


def not_found() -> AppError:
    return AppError(code="RESOURCE_NOT_FOUND", message="Resource not found", status_code=404)


def file_type_not_allowed(message: str = "File type not allowed") -> AppError:
    return AppError(code="FILE_TYPE_NOT_ALLOWED", message=message, status_code=415)


def file_too_large(message: str = "File too large") -> AppError:
    return AppError(code="FILE_TOO_LARGE", message=message, status_code=413)


def upload_failed(message: str) -> AppError:
    return AppError(code="UPLOAD_FAILED", message=f"Upload failed: {message}", status_code=502)
