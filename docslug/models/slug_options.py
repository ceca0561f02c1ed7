"""Slug configuration model definitions."""
import re
from enum import Enum
from typing import Annotated, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field

# Array field holding the slug history; the last entry is the current slug.
SLUGS_FIELD = "_slugs"

# Discriminator field for documents of subtypes sharing one collection.
TYPE_FIELD = "_type"


class IdKind(str, Enum):
    """Primary identifier formats."""

    OBJECT_ID = "object_id"
    INTEGER = "integer"
    UUID = "uuid"
    STRING = "string"


class NoScope(BaseModel):
    """Uniqueness across every document of the root type."""

    kind: Literal["none"] = "none"


class AssociationScope(BaseModel):
    """Uniqueness among documents sharing the same parent reference."""

    kind: Literal["association"] = "association"
    name: str
    foreign_key: str
    inverse_of: Optional[str] = None


class FieldScope(BaseModel):
    """Uniqueness among documents sharing the same raw field value."""

    kind: Literal["field"] = "field"
    name: str


class EmbeddedScope(BaseModel):
    """Uniqueness among embedded siblings held by the same parent."""

    kind: Literal["embedded"] = "embedded"
    parent_collection: str
    relation: str


SlugScope = Annotated[
    Union[NoScope, AssociationScope, FieldScope, EmbeddedScope],
    Field(discriminator="kind"),
]


class Association(BaseModel):
    """Reference to a parent document stored in ``foreign_key``."""

    name: str
    foreign_key: str
    related: str
    inverse_of: Optional[str] = None


class EmbeddedIn(BaseModel):
    """Embedding relation: documents live in ``parent_collection.<relation>``."""

    parent_collection: str
    relation: str


class SlugOptions(BaseModel):
    """Per-type slug options."""

    fields: list[str] = Field(default_factory=list)
    builder: Optional[Callable[[dict], str]] = None
    scope: Optional[str] = None
    history: bool = False
    permanent: bool = False
    reserve: Optional[set[Union[str, re.Pattern]]] = None

    model_config = {"arbitrary_types_allowed": True}
