"""Slug history store."""
from typing import Optional

from docslug.models.slug_options import SLUGS_FIELD


def record(doc: dict, slug: str, history: bool = False) -> list[str]:
    """
    Record a newly assigned slug on a document.

    With history enabled the slug is appended (any earlier occurrence is
    dropped first), so the last entry is the current slug and older ones
    keep resolving. Without history the list is replaced.

    Args:
        doc: Document to update in place
        slug: Final unique slug
        history: Whether to retain earlier slugs

    Returns:
        The document's new slug list
    """
    slugs = [s for s in (doc.get(SLUGS_FIELD) or []) if s != slug]
    if history:
        slugs.append(slug)
    else:
        slugs = [slug]
    doc[SLUGS_FIELD] = slugs
    return slugs


def current(doc: dict) -> Optional[str]:
    """Return the current slug, or None if no slug is assigned."""
    slugs = doc.get(SLUGS_FIELD) or []
    return slugs[-1] if slugs else None


def clear(doc: dict) -> None:
    """Forget every slug of a document."""
    doc[SLUGS_FIELD] = []
