"""In-memory views over the loaded resource list.

Everything here is pure: it takes resources (ORM rows or anything exposing the
same attributes) and never touches the database.
"""
from collections.abc import Iterable, Sequence
from typing import Any

ALL = "all"


def matches(resource, query: str | None = None, category: str | None = None, type_: str | None = None) -> bool:
    q = (query or "").lower()
    matches_search = q in (resource.title or "").lower() or q in (resource.description or "").lower()
    matches_category = not category or category == ALL or resource.category == category
    matches_type = not type_ or type_ == ALL or resource.type == type_
    return matches_search and matches_category and matches_type


def filter_resources(resources: Iterable, query: str | None = None, category: str | None = None, type_: str | None = None) -> list:
    """Conjunction of the active filters; store order is kept."""
    return [r for r in resources if matches(r, query, category, type_)]


def categories(resources: Iterable) -> list[str]:
    seen = dict.fromkeys(r.category for r in resources)
    seen.pop(ALL, None)
    return [ALL, *seen]


def count_by_type(resources: Iterable) -> dict[str, int]:
    counts = {"manual": 0, "brochure": 0}
    for r in resources:
        counts[r.type] = counts.get(r.type, 0) + 1
    return counts


def languages(resource) -> list[str]:
    return [t.get("language") for t in (resource.translations or []) if t.get("language")]


def default_language(resource) -> str:
    langs = languages(resource)
    return langs[0] if langs else ""


def select_language(resource, requested: str | None) -> str:
    if requested and requested in languages(resource):
        return requested
    return default_language(resource)


def resolve_file(resource, language: str | None = None) -> tuple[str, str]:
    """(file_url, file_name) for ``language``; falls back to the resource's own file."""
    translation = None
    if language:
        translation = next((t for t in resource.translations or [] if t.get("language") == language), None)
    file_url = (translation or {}).get("file_url") or resource.file_url
    file_name = (translation or {}).get("file_name") or resource.file_name
    return file_url, file_name


def stored_urls(resource) -> list[str]:
    """Every stored object URL a resource references, primary file first, without duplicates."""
    urls = [resource.file_url]
    urls.extend(t.get("file_url") for t in resource.translations or [])
    urls.append(resource.icon_url)
    return [u for u in dict.fromkeys(urls) if u]


def serialize(resource) -> dict[str, Any]:
    return {
        "id": resource.id,
        "title": resource.title,
        "description": resource.description,
        "category": resource.category,
        "type": resource.type,
        "file_url": resource.file_url,
        "file_name": resource.file_name,
        "icon_url": resource.icon_url,
        "qr_code": resource.qr_code,
        "translations": [
            {"language": t.get("language"), "file_url": t.get("file_url"), "file_name": t.get("file_name")}
            for t in resource.translations or []
        ],
        "created_at": resource.created_at.isoformat() if resource.created_at else None,
        "updated_at": resource.updated_at.isoformat() if resource.updated_at else None,
    }


def serialize_many(resources: Sequence) -> list[dict[str, Any]]:
    return [serialize(r) for r in resources]
