"""Exceptions raised by the slug engine."""
from typing import Any, Optional


class SlugError(Exception):
    """Base exception for slug generation and lookup."""


class DocumentNotFound(SlugError):
    """Raised when one or more lookup arguments match no document."""

    def __init__(self, type_name: str, args: list[Any], missing: list[Any]):
        self.type_name = type_name
        self.args_given = list(args)
        self.missing = list(missing)
        super().__init__(
            f"Document(s) not found for class {type_name} with id(s) or slug(s) "
            f"{self.args_given}; missing: {self.missing}"
        )


class AmbiguousLookup(SlugError):
    """Raised when lookup arguments mix identifiers and slugs."""

    def __init__(self, args: list[Any]):
        self.args_given = list(args)
        super().__init__(
            f"Cannot tell whether {self.args_given} are identifiers or slugs; "
            "pass force_by_slug or force_by_id"
        )


class UniquenessViolation(SlugError):
    """Raised when a concurrent writer claimed the same slug first.

    Not retried internally; the caller should recompute the slug and retry.
    """

    def __init__(self, slug: Optional[str], cause: Optional[Exception] = None):
        self.slug = slug
        self.cause = cause
        super().__init__(f"Slug {slug!r} is already taken in this scope")


class ReclamationError(SlugError):
    """Raised when a sibling could not be saved while reclaiming a slug."""

    def __init__(self, sibling_id: Any, cause: Optional[Exception] = None):
        self.sibling_id = sibling_id
        self.cause = cause
        super().__init__(f"Failed to release stale slugs held by document {sibling_id}")
