"""Decoding of block-layouts responses into a catalog."""

import json
from dataclasses import dataclass, field
from typing import Any

from logging_setup import get_logger


@dataclass(frozen=True)
class CatalogCategory:
    slug: str
    title: str
    description: str | None = None
    emoji: str | None = None


@dataclass(frozen=True)
class CatalogLayout:
    slug: str
    title: str
    preview: str = ""
    content: str = ""
    category_slugs: tuple[str, ...] = ()


@dataclass
class Catalog:
    """One full snapshot of the remote layouts, in server order."""

    categories: list[CatalogCategory] = field(default_factory=list)
    layouts: list[CatalogLayout] = field(default_factory=list)

    @property
    def category_slugs(self) -> list[str]:
        return [category.slug for category in self.categories]

    @property
    def layout_slugs(self) -> list[str]:
        return [layout.slug for layout in self.layouts]


class _SchemaError(ValueError):
    pass


def _require_slug(entry: dict, kind: str) -> str:
    slug = entry.get("slug")
    if not isinstance(slug, str) or not slug:
        raise _SchemaError(f"{kind} is missing a slug: {entry!r}")
    return slug


def _string(entry: dict, key: str, default: str = "") -> str:
    value = entry.get(key, default)
    if not isinstance(value, str):
        raise _SchemaError(f"{key!r} must be a string, got {type(value).__name__}")
    return value


def _optional_string(entry: dict, key: str) -> str | None:
    value = entry.get(key)
    if value is not None and not isinstance(value, str):
        raise _SchemaError(f"{key!r} must be a string or null, got {type(value).__name__}")
    return value


def _list(container: dict, key: str, required: bool = True) -> list:
    if key not in container:
        if required:
            raise _SchemaError(f"missing {key!r}")
        return []
    value = container[key]
    if not isinstance(value, list):
        raise _SchemaError(f"{key!r} must be a list, got {type(value).__name__}")
    return value


def _decode_category(entry: Any) -> CatalogCategory:
    if not isinstance(entry, dict):
        raise _SchemaError(f"category must be an object: {entry!r}")
    return CatalogCategory(
        slug=_require_slug(entry, "category"),
        title=_string(entry, "title"),
        description=_optional_string(entry, "description"),
        emoji=_optional_string(entry, "emoji"),
    )


def _decode_category_ref(ref: Any) -> str:
    # Layouts reference categories either by bare slug or by embedded category object
    if isinstance(ref, str) and ref:
        return ref
    if isinstance(ref, dict):
        return _require_slug(ref, "layout category")
    raise _SchemaError(f"invalid category reference: {ref!r}")


def _decode_layout(entry: Any) -> CatalogLayout:
    if not isinstance(entry, dict):
        raise _SchemaError(f"layout must be an object: {entry!r}")
    return CatalogLayout(
        slug=_require_slug(entry, "layout"),
        title=_string(entry, "title"),
        preview=_string(entry, "preview"),
        content=_string(entry, "content"),
        category_slugs=tuple(
            _decode_category_ref(ref) for ref in _list(entry, "categories", required=False)
        ),
    )


def decode_catalog(raw: Any) -> Catalog | None:
    """Decode a raw response body into a ``Catalog``.

    The body is first re-serialized to canonical JSON, then decoded against
    the expected shape:

    {
        "categories": [{"slug": ..., "title": ..., "description": ..., "emoji": ...}, ...],
        "layouts": [
            {"slug": ..., "title": ..., "preview": ..., "content": ...,
             "categories": ["slug", {"slug": ...}, ...]},
            ...
        ]
    }

    Returns None if either step fails; a partially decoded catalog is never
    returned. Unknown fields are ignored.
    """
    logger = get_logger()

    try:
        data = json.dumps(raw, sort_keys=True, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as e:
        logger.debug("Layouts response is not serializable: %s", e)
        return None

    try:
        payload = json.loads(data)
        if not isinstance(payload, dict):
            raise _SchemaError(f"expected an object, got {type(payload).__name__}")
        categories = [_decode_category(entry) for entry in _list(payload, "categories")]
        layouts = [_decode_layout(entry) for entry in _list(payload, "layouts")]
    except (ValueError, RecursionError) as e:
        logger.debug("Layouts response failed to decode: %s", e)
        return None

    return Catalog(categories=categories, layouts=layouts)
