"""Slugged document type registration."""
from typing import Optional, Pattern, Union

from loguru import logger

from docslug.config import settings
from docslug.models.slug_options import (
    TYPE_FIELD,
    Association,
    AssociationScope,
    EmbeddedIn,
    EmbeddedScope,
    FieldScope,
    IdKind,
    NoScope,
    SlugOptions,
    SlugScope,
)
from docslug.utils.identifiers import IdentifierClassifier


class DocumentType:
    """
    A document type with slug support.

    Built once when the type is registered and passed into every slug
    operation on that type. Subtypes name their ``parent`` and share its
    collection; the uniqueness domain is the topmost ancestor.
    """

    def __init__(
        self,
        name: str,
        collection: Optional[str] = None,
        options: Optional[SlugOptions] = None,
        *,
        id_kind: IdKind = IdKind.OBJECT_ID,
        id_pattern: Optional[Pattern] = None,
        parent: Optional["DocumentType"] = None,
        associations: Optional[list[Association]] = None,
        embedded_in: Optional[EmbeddedIn] = None,
        paranoid: bool = True,
    ):
        if collection is None and parent is None and embedded_in is None:
            raise ValueError(f"Document type {name} needs a collection")

        self.name = name
        self.parent = parent
        self.children: list[DocumentType] = []
        self.collection = collection if collection is not None else (parent.collection if parent else None)
        self.options = options if options is not None else (parent.options if parent else SlugOptions())
        self.id_kind = id_kind if parent is None else parent.id_kind
        self.id_pattern = id_pattern if parent is None else parent.id_pattern
        self.associations = {a.name: a for a in (associations or [])}
        if parent is not None:
            self.associations = {**parent.associations, **self.associations}
            parent.children.append(self)
        self.embedded_in = embedded_in if embedded_in is not None else (parent.embedded_in if parent else None)
        self.paranoid = paranoid
        self.classifier = IdentifierClassifier(self.id_kind, self.id_pattern)
        self.scope: SlugScope = self._resolve_scope()

    def _resolve_scope(self) -> SlugScope:
        scope_name = self.options.scope
        if scope_name:
            association = self.associations.get(scope_name)
            if association is not None:
                return AssociationScope(
                    name=association.name,
                    foreign_key=association.foreign_key,
                    inverse_of=association.inverse_of,
                )
            # Not an association: scope by the raw field value
            logger.debug("Slug scope {} of {} resolved as a field", scope_name, self.name)
            return FieldScope(name=scope_name)
        if self.embedded_in is not None:
            return EmbeddedScope(
                parent_collection=self.embedded_in.parent_collection,
                relation=self.embedded_in.relation,
            )
        return NoScope()

    @property
    def root(self) -> "DocumentType":
        """Topmost ancestor of this type."""
        current = self
        while current.parent is not None:
            current = current.parent
        return current

    @property
    def is_embedded(self) -> bool:
        return self.embedded_in is not None

    @property
    def has_scope(self) -> bool:
        """Whether a scope was configured explicitly."""
        return bool(self.options.scope)

    @property
    def scope_key(self) -> Optional[str]:
        """Field leading the unique index, if any."""
        if isinstance(self.scope, AssociationScope):
            return self.scope.foreign_key
        if isinstance(self.scope, FieldScope):
            return self.scope.name
        return None

    @property
    def reserved_words(self) -> set[Union[str, Pattern]]:
        if self.options.reserve is None:
            return settings.reserved_words
        return set(self.options.reserve)

    def type_names(self) -> list[str]:
        """Names of this type and all of its descendants."""
        names = [self.name]
        for child in self.children:
            names.extend(child.type_names())
        return names

    def type_filter(self) -> dict:
        """Query filter restricting lookups to this type and its subtypes."""
        if self.parent is None:
            return {}
        return {TYPE_FIELD: {"$in": self.type_names()}}

    def __repr__(self) -> str:
        return f"DocumentType({self.name!r}, collection={self.collection!r})"
