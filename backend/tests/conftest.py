"""Shared fixtures: SQLite store, temporary local storage, an admin account and a logged-in client.

Settings are read at import time, so the environment is prepared before any
``app`` module is imported.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="library-tests-"))

os.environ.update(
    {
        "DATABASE_URL": f"sqlite:///{_TMP / 'library.db'}",
        "JWT_SECRET": "test-secret-with-enough-length-for-hs256",
        "UPLOAD_DIR": str(_TMP / "uploads"),
        "PUBLIC_BASE_URL": "http://testserver",
        "SITE_URL": "https://library.example.com",
        "STORAGE_BACKEND": "local",
        "LOG_DIR": "",
        "LOG_LEVEL": "INFO",
        "QR_TARGET": "landing",
    }
)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.models.base import Base  # noqa: E402
from app.models.user import AdminUser  # noqa: E402

ADMIN_EMAIL = "admin@sinapi.com"
ADMIN_PASSWORD = "Correct#Horse1"

PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture(autouse=True)
def _fresh_store():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    shutil.rmtree(settings.UPLOAD_DIR, ignore_errors=True)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def _admin_hash() -> str:
    return hash_password(ADMIN_PASSWORD)


@pytest.fixture
def admin(db, _admin_hash) -> AdminUser:
    user = AdminUser(email=ADMIN_EMAIL, password_hash=_admin_hash, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers(client, admin) -> dict[str, str]:
    res = client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['data']['access_token']}"}


def pdf(name: str = "sample.pdf") -> tuple[str, bytes, str]:
    return (name, PDF_BYTES, "application/pdf")


def stored_files() -> list[Path]:
    """Every object currently held by the local storage backend."""
    return [p for p in Path(settings.UPLOAD_DIR).rglob("*") if p.is_file()]


@pytest.fixture
def create_resource(client, auth_headers):
    """Posts the admin add-resource form; ``translations`` is a list of (language, filename)."""

    def _create(
        title: str = "Guide",
        description: str = "d",
        category: str = "X",
        type_: str = "manual",
        translations: list[tuple[str, str]] | None = None,
        icon: tuple[str, bytes, str] | None = None,
    ):
        translations = translations if translations is not None else [("EN", "sample.pdf")]
        data = {
            "title": title,
            "description": description,
            "category": category,
            "type": type_,
            "languages": [lang for lang, _ in translations],
        }
        files = [("files", pdf(name)) for _, name in translations]
        if icon:
            files.append(("icon", icon))
        return client.post("/api/v1/resources", data=data, files=files or None, headers=auth_headers)

    return _create
