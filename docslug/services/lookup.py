"""Lookup router - find documents by primary identifier or by slug."""
from enum import Enum
from typing import Any

from loguru import logger

from docslug.errors import AmbiguousLookup, DocumentNotFound
from docslug.models.document_type import DocumentType
from docslug.models.slug_options import SLUGS_FIELD


class LookupMode(str, Enum):
    """How lookup arguments are interpreted."""

    BY_ID = "id"
    BY_SLUG = "slug"


class SlugLookup:
    """Find documents of one type by identifier or by any of their slugs."""

    def __init__(self, db, doc_type: DocumentType):
        """Initialize lookup with database connection."""
        if doc_type.is_embedded:
            raise ValueError(f"Embedded type {doc_type.name} is looked up through its parent")
        self.doc_type = doc_type
        self.collection = db[doc_type.root.collection]

    def classify(self, args: list[Any]) -> LookupMode:
        """
        Decide how to interpret the whole argument list.

        Args:
            args: Caller-supplied identifiers or slugs

        Returns:
            BY_ID if every argument looks like an identifier, BY_SLUG if
            every argument is a string that does not

        Raises:
            AmbiguousLookup: If the arguments mix both kinds
        """
        if not args:
            raise ValueError("At least one identifier or slug is required")

        classifier = self.doc_type.classifier
        if classifier.all_look_like_ids(args):
            return LookupMode.BY_ID
        if all(isinstance(a, str) for a in args) and not any(classifier.looks_like_id(a) for a in args):
            return LookupMode.BY_SLUG
        raise AmbiguousLookup(args)

    def _base_query(self, with_deleted: bool) -> dict:
        query = dict(self.doc_type.type_filter())
        if self.doc_type.paranoid and not with_deleted:
            query["deleted"] = {"$ne": True}
        return query

    async def find(
        self,
        *args: Any,
        force_by_slug: bool = False,
        force_by_id: bool = False,
        with_deleted: bool = False,
    ) -> list[dict]:
        """
        Find documents by identifiers or slugs.

        Args:
            args: Identifiers or slugs
            force_by_slug: Treat every argument as a slug
            force_by_id: Treat every argument as an identifier
            with_deleted: Include soft-deleted documents

        Returns:
            Matching documents, each at most once

        Raises:
            DocumentNotFound: If any argument matches no document
            AmbiguousLookup: If the arguments cannot be classified
        """
        if force_by_slug and force_by_id:
            raise ValueError("force_by_slug and force_by_id are mutually exclusive")

        if force_by_slug:
            mode = LookupMode.BY_SLUG
        elif force_by_id:
            mode = LookupMode.BY_ID
        else:
            mode = self.classify(list(args))

        if mode == LookupMode.BY_SLUG:
            return await self.find_by_slug(*args, with_deleted=with_deleted)
        return await self.find_by_id(*args, with_deleted=with_deleted)

    async def find_one(self, arg: Any, **kwargs) -> dict:
        """Find a single document by identifier or slug."""
        docs = await self.find(arg, **kwargs)
        return docs[0]

    async def find_by_id(self, *ids: Any, with_deleted: bool = False) -> list[dict]:
        """Find documents by primary identifier."""
        classifier = self.doc_type.classifier
        converted = [classifier.to_id(i) for i in ids]

        query = self._base_query(with_deleted)
        query["_id"] = {"$in": converted}
        docs = _unique_docs(await self.collection.find(query).to_list(length=None))

        found = {doc["_id"] for doc in docs}
        missing = [arg for arg, key in zip(ids, converted) if key not in found]
        if missing:
            raise DocumentNotFound(self.doc_type.name, list(ids), missing)
        return docs

    async def find_by_slug(self, *slugs: str, with_deleted: bool = False) -> list[dict]:
        """
        Find documents by slug.

        A document matches if any of its current or past slugs is one of
        the supplied values.
        """
        if not slugs or any(s is None for s in slugs):
            raise ValueError("Slugs must be non-empty and not None")

        query = self._base_query(with_deleted)
        query[SLUGS_FIELD] = {"$in": list(slugs)}
        docs = _unique_docs(await self.collection.find(query).to_list(length=None))

        held = {s for doc in docs for s in doc.get(SLUGS_FIELD) or []}
        missing = [s for s in slugs if s not in held]
        if missing:
            raise DocumentNotFound(self.doc_type.name, list(slugs), missing)

        logger.debug("Resolved slugs {} to {} document(s)", list(slugs), len(docs))
        return docs


def _unique_docs(docs: list[dict]) -> list[dict]:
    seen = set()
    unique = []
    for doc in docs:
        if doc["_id"] in seen:
            continue
        seen.add(doc["_id"])
        unique.append(doc)
    return unique
