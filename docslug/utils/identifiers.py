"""Primary identifier classification."""
import re
import uuid
from typing import Any, Iterable, Optional, Pattern

from bson import ObjectId

from docslug.models.slug_options import IdKind

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
INTEGER_PATTERN = re.compile(r"^\d+$")
UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class IdentifierClassifier:
    """
    Decide whether values look like primary identifiers of a given kind.

    String formats are explicit per kind; ``id_pattern`` replaces the
    default string format for deployments with custom identifiers.
    """

    def __init__(self, id_kind: IdKind = IdKind.OBJECT_ID, id_pattern: Optional[Pattern] = None):
        self.id_kind = id_kind
        self.id_pattern = id_pattern

    def looks_like_id(self, value: Any) -> bool:
        """Return True if value is, or syntactically resembles, an identifier."""
        if isinstance(value, str):
            return self._string_looks_like_id(value)
        if self.id_kind == IdKind.OBJECT_ID:
            return isinstance(value, ObjectId)
        if self.id_kind == IdKind.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        if self.id_kind == IdKind.UUID:
            return isinstance(value, uuid.UUID)
        return False

    def _string_looks_like_id(self, value: str) -> bool:
        if self.id_pattern is not None:
            return self.id_pattern.match(value) is not None
        if self.id_kind == IdKind.OBJECT_ID:
            return OBJECT_ID_PATTERN.match(value) is not None
        if self.id_kind == IdKind.INTEGER:
            return INTEGER_PATTERN.match(value) is not None
        if self.id_kind == IdKind.UUID:
            return UUID_PATTERN.match(value) is not None
        # Any string is a valid string identifier
        return True

    def all_look_like_ids(self, values: Iterable[Any]) -> bool:
        values = list(values)
        return bool(values) and all(self.looks_like_id(v) for v in values)

    def slug_can_be_ambiguous(self) -> bool:
        """
        Whether appending a suffix can separate a slug from identifiers.

        Plain string identifiers without an explicit pattern accept every
        string, so no slug could ever be told apart from them.
        """
        return not (self.id_kind == IdKind.STRING and self.id_pattern is None)

    def to_id(self, value: Any) -> Any:
        """Convert an identifier-looking value into its stored form."""
        if not isinstance(value, str):
            return value
        if self.id_kind == IdKind.OBJECT_ID and OBJECT_ID_PATTERN.match(value):
            return ObjectId(value)
        if self.id_kind == IdKind.INTEGER and INTEGER_PATTERN.match(value):
            return int(value)
        if self.id_kind == IdKind.UUID and UUID_PATTERN.match(value):
            return uuid.UUID(value)
        return value
