"""Slug token building utilities."""
from typing import Any, Optional

from slugify import slugify as _slugify

from docslug.models.slug_options import SLUGS_FIELD, SlugOptions


def slugify(text: str) -> str:
    """
    Convert text to a URL-safe token.

    Args:
        text: Input text to slugify

    Returns:
        Lowercase ASCII token using "-" as word separator

    Examples:
        >>> slugify("Learn Rust")
        'learn-rust'
        >>> slugify("Café au lait")
        'cafe-au-lait'
    """
    return _slugify(text or "", separator="-", lowercase=True)


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(_field_text(v) for v in value)
    return str(value)


def source_text(doc: dict, options: SlugOptions) -> str:
    """Join source field values, or call the custom builder."""
    if options.builder is not None:
        return _field_text(options.builder(doc))
    return " ".join(_field_text(doc.get(field)) for field in options.fields)


def user_defined_slug(doc: dict, new_record: bool = False, slugs_changed: bool = False) -> Optional[str]:
    """Slug set by the caller on a new record, or changed on a persisted one."""
    slugs = doc.get(SLUGS_FIELD) or []
    if slugs and (new_record or slugs_changed):
        return slugs[-1]
    return None


def build_token(
    doc: dict,
    options: SlugOptions,
    new_record: bool = False,
    slugs_changed: bool = False,
) -> str:
    """
    Build the raw candidate token for a document.

    A user-defined slug takes precedence over the source fields unless it
    normalizes to nothing.

    Args:
        doc: Document being slugged
        options: Slug options of the document's type
        new_record: Whether the document has not been persisted yet
        slugs_changed: Whether the caller changed the slug history

    Returns:
        Normalized token, possibly empty
    """
    custom = user_defined_slug(doc, new_record, slugs_changed)
    if custom is not None:
        token = slugify(custom)
        if token:
            return token
    return slugify(source_text(doc, options))
