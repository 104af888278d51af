import logging
from datetime import datetime, timezone
from pathlib import Path
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import FileResponse, RedirectResponse
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core import storage
from app.core.config import settings
from app.core.response import ok, created, no_content
from app.core.errors import AppError, validation_error, not_found
from app.core.qr import landing_url, qr_code_for
from app.api.deps import get_current_user
from app.models.resource import Resource, RESOURCE_TYPES
from app.models.user import AdminUser
from app.services import catalog
from app.services.uploads import delete_file, upload_file, upload_icon, validate_file, validate_icon

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/resources", tags=["resources"])

REQUIRED_FIELDS = ("title", "description", "category")


def _audit(action: str, admin: AdminUser, rid: int, request: Request, extra: dict | None = None):
    ip = request.client.host if request.client else "unknown"
    logger.info(
        "AUDIT admin=%s action=%s resource=%s ip=%s extra=%s",
        admin.email,
        action,
        rid,
        ip,
        extra or {},
    )


def _get_or_404(db: Session, rid: int) -> Resource:
    r = db.query(Resource).filter(Resource.id == rid).first()
    if not r:
        raise not_found()
    return r


def _load_all(db: Session) -> list[Resource]:
    return db.query(Resource).order_by(Resource.created_at.desc(), Resource.id.desc()).all()


def _has_file(f: UploadFile | str | None) -> bool:
    # an empty browser file input arrives as a plain "" form value
    return isinstance(f, UploadFile) and bool(f.filename)


def _complete_translations(languages: list[str], files: list[UploadFile | str]) -> list[tuple[str, UploadFile]]:
    """Pairs languages with files by position, keeping only rows that have both."""
    pairs = []
    for i, language in enumerate(languages):
        f = files[i] if i < len(files) else None
        if language.strip() and _has_file(f):
            pairs.append((language.strip(), f))
    return pairs


def _store_uploads(pairs: list[tuple[str, UploadFile]], icon: UploadFile | None) -> tuple[list[dict], str | None]:
    """Validates every document and the icon, then stores them; a failed store removes what was already stored."""
    for _, f in pairs:
        validate_file(f)
    if icon is not None:
        validate_icon(icon)

    uploaded, stored_urls = [], []
    try:
        for language, f in pairs:
            stored = upload_file(f)
            stored_urls.append(stored.file_url)
            uploaded.append({"language": language, "file_url": stored.file_url, "file_name": stored.file_name})
        icon_url = upload_icon(icon) if icon is not None else None
    except AppError:
        for url in stored_urls:
            delete_file(url)
        raise
    return uploaded, icon_url


def _check_type(value: str) -> str:
    if value not in RESOURCE_TYPES:
        raise validation_error("Invalid resource type", {"type": value, "allowed": list(RESOURCE_TYPES)})
    return value


def _local_file(file_url: str) -> Path | None:
    if storage.is_oss_enabled():
        return None
    prefix = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/storage/{settings.STORAGE_BUCKET}/"
    if not file_url.startswith(prefix):
        return None
    try:
        path = storage.local_object_path(file_url[len(prefix):])
    except ValueError:
        return None
    return path if path.is_file() else None


@router.get("")
def list_resources(
    request: Request,
    db: Session = Depends(get_db),
    q: str | None = None,
    category: str = catalog.ALL,
    resource_type: str = Query(catalog.ALL, alias="type"),
):
    rows = _load_all(db)
    items = catalog.filter_resources(rows, q, category, resource_type)
    return ok(
        request,
        {
            "total": len(items),
            "counts": catalog.count_by_type(items),
            "categories": catalog.categories(rows),
            "items": catalog.serialize_many(items),
        },
    )


@router.get("/categories")
def list_categories(request: Request, db: Session = Depends(get_db)):
    return ok(request, catalog.categories(_load_all(db)))


@router.get("/{rid}")
def get_resource(rid: int, request: Request, db: Session = Depends(get_db)):
    return ok(request, catalog.serialize(_get_or_404(db, rid)))


@router.get("/{rid}/landing")
def landing(rid: int, request: Request, db: Session = Depends(get_db), language: str | None = None):
    r = _get_or_404(db, rid)
    selected = catalog.select_language(r, language)
    file_url, file_name = catalog.resolve_file(r, selected)
    return ok(
        request,
        {
            "resource": catalog.serialize(r),
            "languages": catalog.languages(r),
            "selected_language": selected,
            "file_url": file_url,
            "file_name": file_name,
            "landing_url": landing_url(r.id),
        },
    )


@router.get("/{rid}/download")
def download(rid: int, db: Session = Depends(get_db), language: str | None = None):
    r = _get_or_404(db, rid)
    file_url, file_name = catalog.resolve_file(r, catalog.select_language(r, language))
    path = _local_file(file_url)
    if path is not None:
        return FileResponse(str(path), filename=file_name)
    return RedirectResponse(file_url, status_code=307)


@router.post("")
def create_resource(
    request: Request,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
    title: str = Form(""),
    description: str = Form(""),
    category: str = Form(""),
    resource_type: str = Form("manual", alias="type"),
    languages: list[str] = Form(default=[]),
    files: list[UploadFile | str] = File(default=[]),
    icon: UploadFile | str | None = File(default=None),
):
    fields = {"title": title.strip(), "description": description.strip(), "category": category.strip()}
    missing = [k for k in REQUIRED_FIELDS if not fields[k]]
    if missing:
        raise validation_error("Title, description and category are required", {"missing": missing})
    _check_type(resource_type)

    pairs = _complete_translations(languages, files)
    if not pairs:
        raise validation_error("Please add at least one translation.")

    translations, icon_url = _store_uploads(pairs, icon if _has_file(icon) else None)

    main = translations[0]
    r = Resource(
        **fields,
        type=resource_type,
        file_url=main["file_url"],
        file_name=main["file_name"],
        icon_url=icon_url,
        translations=translations,
    )
    db.add(r)
    db.flush()
    r.qr_code = qr_code_for(r.id, r.file_url)
    db.commit()
    db.refresh(r)
    _audit("create", user, r.id, request, {"languages": [t["language"] for t in translations]})
    return created(request, catalog.serialize(r))


@router.patch("/{rid}")
def update_resource(
    rid: int,
    request: Request,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
    title: str | None = Form(None),
    description: str | None = Form(None),
    category: str | None = Form(None),
    resource_type: str | None = Form(None, alias="type"),
    languages: list[str] = Form(default=[]),
    files: list[UploadFile | str] = File(default=[]),
    icon: UploadFile | str | None = File(default=None),
):
    r = _get_or_404(db, rid)

    updates = {}
    for name, value in (("title", title), ("description", description), ("category", category)):
        if value is None:
            continue
        if not value.strip():
            raise validation_error(f"{name.capitalize()} cannot be empty", {"field": name})
        updates[name] = value.strip()
    if resource_type is not None:
        updates["type"] = _check_type(resource_type)

    # existing translations stay untouched unless complete replacements were supplied
    pairs = _complete_translations(languages, files)
    translations, icon_url = _store_uploads(pairs, icon if _has_file(icon) else None)
    if icon_url:
        updates["icon_url"] = icon_url
    if pairs:
        main = translations[0]
        updates.update(
            translations=translations,
            file_url=main["file_url"],
            file_name=main["file_name"],
            qr_code=qr_code_for(r.id, main["file_url"]),
        )

    for k, v in updates.items():
        setattr(r, k, v)
    r.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(r)
    _audit("update", user, r.id, request, {"fields": sorted(updates)})
    return ok(request, catalog.serialize(r))


@router.delete("/{rid}")
def delete_resource(
    rid: int,
    request: Request,
    db: Session = Depends(get_db),
    user: AdminUser = Depends(get_current_user),
):
    r = _get_or_404(db, rid)
    urls = catalog.stored_urls(r)
    db.delete(r)
    db.commit()
    _audit("delete", user, rid, request, {"files": len(urls)})
    for url in urls:
        delete_file(url)
    return no_content()
