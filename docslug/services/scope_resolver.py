"""Scope resolution - which documents a slug must be unique among."""
from dataclasses import dataclass, field
from typing import Any, Optional, Pattern, Protocol

from loguru import logger

from docslug.models.document_type import DocumentType
from docslug.models.slug_options import (
    SLUGS_FIELD,
    AssociationScope,
    FieldScope,
)


class SiblingSet(Protocol):
    """Documents sharing a uniqueness scope."""

    async def find_matching(
        self,
        pattern: Pattern,
        exclude_id: Any = None,
        extra_filter: Optional[dict] = None,
    ) -> list[dict]:
        ...

    async def save_slugs(self, sibling: dict, slugs: list[str], session=None) -> None:
        ...


class CollectionSiblings:
    """Siblings stored as top-level documents of a collection."""

    def __init__(self, collection, base_filter: Optional[dict] = None):
        self.collection = collection
        self.base_filter = dict(base_filter or {})

    async def find_matching(
        self,
        pattern: Pattern,
        exclude_id: Any = None,
        extra_filter: Optional[dict] = None,
    ) -> list[dict]:
        """Find documents holding any slug matching pattern."""
        query = {**self.base_filter, SLUGS_FIELD: pattern}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if extra_filter:
            query.update(extra_filter)

        cursor = self.collection.find(query, {SLUGS_FIELD: 1})
        return await cursor.to_list(length=None)

    async def save_slugs(self, sibling: dict, slugs: list[str], session=None) -> None:
        """Persist a sibling's slug list, unsetting it when empty."""
        if slugs:
            update = {"$set": {SLUGS_FIELD: slugs}}
        else:
            update = {"$unset": {SLUGS_FIELD: ""}}
        await self.collection.update_one({"_id": sibling["_id"]}, update, session=session)
        sibling[SLUGS_FIELD] = slugs


class EmbeddedSiblings:
    """Siblings embedded in the same parent document under one relation."""

    def __init__(self, parent_collection, parent: dict, relation: str):
        self.parent_collection = parent_collection
        self.parent = parent
        self.relation = relation

    @property
    def members(self) -> list[dict]:
        return self.parent.get(self.relation) or []

    async def find_matching(
        self,
        pattern: Pattern,
        exclude_id: Any = None,
        extra_filter: Optional[dict] = None,
    ) -> list[dict]:
        """Filter the parent's embedded documents in memory."""
        matches = []
        for member in self.members:
            if exclude_id is not None and member.get("_id") == exclude_id:
                continue
            if any(member.get(k) != v for k, v in (extra_filter or {}).items()):
                continue
            if any(pattern.fullmatch(s) for s in member.get(SLUGS_FIELD) or []):
                matches.append(member)
        return matches

    async def save_slugs(self, sibling: dict, slugs: list[str], session=None) -> None:
        """Persist a sibling's slug list through a positional update."""
        await self.parent_collection.update_one(
            {"_id": self.parent["_id"], f"{self.relation}._id": sibling["_id"]},
            {"$set": {f"{self.relation}.$.{SLUGS_FIELD}": slugs}},
            session=session,
        )
        sibling[SLUGS_FIELD] = slugs


@dataclass
class ResolvedScope:
    """Query filter plus the sibling set to search."""

    siblings: SiblingSet
    filter: dict = field(default_factory=dict)


def _scope_filter(scope, doc: dict) -> dict:
    """Field filter narrowing embedded siblings to the configured scope."""
    if isinstance(scope, AssociationScope):
        parent_key = doc.get(scope.foreign_key)
        return {} if parent_key is None else {scope.foreign_key: parent_key}
    if isinstance(scope, FieldScope):
        return {scope.name: doc.get(scope.name)}
    return {}


def resolve_scope(db, doc_type: DocumentType, doc: dict, parent: Optional[dict] = None) -> ResolvedScope:
    """
    Determine where slug uniqueness is checked for a document.

    Embedded types always search the other members of their parent's
    relation; a configured scope narrows those members further.

    Args:
        db: Motor database
        doc_type: Registered type of the document
        doc: Document being slugged
        parent: Embedding parent document (embedded types only)

    Returns:
        ResolvedScope for the uniqueness query
    """
    scope = doc_type.scope

    if doc_type.is_embedded:
        if parent is None:
            raise ValueError(f"Embedded document of {doc_type.name} needs its parent")
        embedded = doc_type.embedded_in
        return ResolvedScope(
            siblings=EmbeddedSiblings(db[embedded.parent_collection], parent, embedded.relation),
            filter=_scope_filter(scope, doc),
        )

    root_collection = db[doc_type.root.collection]

    if isinstance(scope, AssociationScope):
        parent_key = doc.get(scope.foreign_key)
        if parent_key is None:
            # No parent yet: fall back to the whole root collection
            logger.debug("{} has no {}; using unscoped siblings", doc_type.name, scope.name)
            return ResolvedScope(siblings=CollectionSiblings(root_collection))
        return ResolvedScope(
            siblings=CollectionSiblings(root_collection, {scope.foreign_key: parent_key}),
        )

    if isinstance(scope, FieldScope):
        return ResolvedScope(
            siblings=CollectionSiblings(root_collection),
            filter={scope.name: doc.get(scope.name)},
        )

    return ResolvedScope(siblings=CollectionSiblings(root_collection))
