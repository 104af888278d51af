from urllib.parse import urlencode
from app.core.config import settings


def landing_url(resource_id: int) -> str:
    return f"{settings.SITE_URL.rstrip('/')}/?{urlencode({'manual': resource_id})}"


def generate_qr_code(url: str) -> str:
    """Image URL on the QR rendering API encoding ``url``. Nothing is rendered locally."""
    params = {
        "size": settings.QR_SIZE,
        "data": url,
        "format": settings.QR_FORMAT,
        "bgcolor": settings.QR_BGCOLOR,
        "color": settings.QR_COLOR,
    }
    return f"{settings.QR_API_URL}?{urlencode(params)}"


def qr_code_for(resource_id: int, primary_file_url: str | None) -> str | None:
    if settings.QR_TARGET == "file":
        return generate_qr_code(primary_file_url) if primary_file_url else None
    return generate_qr_code(landing_url(resource_id))
