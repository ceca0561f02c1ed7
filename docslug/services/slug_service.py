"""Slug service - slug lifecycle for create, update, soft delete and restore."""
from datetime import datetime, timezone
from typing import Iterable, Optional

from bson import ObjectId
from loguru import logger
from pymongo.errors import DuplicateKeyError

from docslug.config import settings
from docslug.errors import UniquenessViolation
from docslug.models.document_type import DocumentType
from docslug.models.slug_options import SLUGS_FIELD, TYPE_FIELD, IdKind
from docslug.services import history
from docslug.services.scope_resolver import resolve_scope
from docslug.services.uniqueness import find_unique_slug
from docslug.utils.slug import build_token, user_defined_slug


def _is_slug_violation(error: DuplicateKeyError) -> bool:
    key_pattern = (error.details or {}).get("keyPattern") or {}
    return not key_pattern or SLUGS_FIELD in key_pattern


class SlugService:
    """Service for handling slugged document operations."""

    def __init__(self, db, doc_type: DocumentType):
        """Initialize service with database connection."""
        self.db = db
        self.doc_type = doc_type
        self.options = doc_type.options
        if doc_type.is_embedded:
            self.collection = db[doc_type.embedded_in.parent_collection]
        else:
            self.collection = db[doc_type.root.collection]

    def _client(self):
        return self.db.client if settings.use_transactions else None

    def slug_should_be_rebuilt(
        self,
        doc: dict,
        changed_fields: Iterable[str] = (),
        new_record: bool = False,
    ) -> bool:
        """
        Whether the slug needs to be rebuilt before saving.

        Args:
            doc: Document about to be saved
            changed_fields: Names of fields changed since load
            new_record: Whether the document is being created

        Returns:
            True for new records, changed slugs or changed source fields
        """
        changed = set(changed_fields)
        if new_record or SLUGS_FIELD in changed:
            return True
        return any(field in changed for field in self.options.fields)

    async def build_slug(
        self,
        doc: dict,
        parent: Optional[dict] = None,
        new_record: bool = False,
        slugs_changed: bool = False,
    ) -> Optional[str]:
        """
        Compute a unique slug and record it in the document's history.

        Args:
            doc: Document to slug, updated in place
            parent: Embedding parent (embedded types only)
            new_record: Whether the document has not been persisted yet
            slugs_changed: Whether the caller changed the slug history

        Returns:
            The new current slug, or None when the source text is blank
        """
        token = build_token(doc, self.options, new_record=new_record, slugs_changed=slugs_changed)

        # A user-defined value is never stored raw
        if user_defined_slug(doc, new_record, slugs_changed) is not None:
            doc[SLUGS_FIELD] = doc[SLUGS_FIELD][:-1]

        if not token:
            logger.debug("Blank slug source for {} {}; no slug assigned", self.doc_type.name, doc.get("_id"))
            return None

        scope = resolve_scope(self.db, self.doc_type, doc, parent)
        slug = await find_unique_slug(token, doc, self.doc_type, scope, client=self._client())

        history.record(doc, slug, self.options.history)
        return slug

    async def _persist(
        self,
        doc: dict,
        fields: dict,
        parent: Optional[dict] = None,
        unset: Iterable[str] = (),
    ) -> None:
        """Write fields of an existing document, mapping slug index clashes."""
        unset = list(unset)
        if self.doc_type.is_embedded:
            relation = self.doc_type.embedded_in.relation
            query = {"_id": parent["_id"], f"{relation}._id": doc["_id"]}
            update = {"$set": {f"{relation}.$.{k}": v for k, v in fields.items()}}
            if unset:
                update["$unset"] = {f"{relation}.$.{k}": "" for k in unset}
        else:
            query = {"_id": doc["_id"]}
            update = {"$set": fields}
            if unset:
                update["$unset"] = {k: "" for k in unset}

        try:
            await self.collection.update_one(query, update)
        except DuplicateKeyError as e:
            if not _is_slug_violation(e):
                raise
            raise UniquenessViolation(history.current(doc), e) from e

    def _slug_fields(self, doc: dict) -> tuple[dict, list[str]]:
        slugs = doc.get(SLUGS_FIELD) or []
        if slugs or self.doc_type.is_embedded:
            return {SLUGS_FIELD: slugs}, []
        # Unset rather than store [] so the unique index skips the document
        return {}, [SLUGS_FIELD]

    async def create(self, doc: dict, parent: Optional[dict] = None) -> dict:
        """
        Create a new document with a unique slug.

        Args:
            doc: Document fields
            parent: Embedding parent (embedded types only)

        Returns:
            Created document

        Raises:
            UniquenessViolation: If a concurrent writer took the slug
        """
        doc = dict(doc)
        if "_id" not in doc and self.doc_type.id_kind == IdKind.OBJECT_ID:
            doc["_id"] = ObjectId()
        if self.doc_type.parent is not None:
            doc.setdefault(TYPE_FIELD, self.doc_type.name)

        await self.build_slug(doc, parent=parent, new_record=True)
        if not doc.get(SLUGS_FIELD):
            doc.pop(SLUGS_FIELD, None)

        now = datetime.now(timezone.utc)
        if self.doc_type.paranoid:
            doc.setdefault("deleted", False)
        doc.setdefault("created_at", now)
        doc["updated_at"] = now

        try:
            if self.doc_type.is_embedded:
                relation = self.doc_type.embedded_in.relation
                await self.collection.update_one({"_id": parent["_id"]}, {"$push": {relation: doc}})
                parent.setdefault(relation, []).append(doc)
            else:
                result = await self.collection.insert_one(doc)
                doc["_id"] = result.inserted_id
        except DuplicateKeyError as e:
            if not _is_slug_violation(e):
                raise
            raise UniquenessViolation(history.current(doc), e) from e

        logger.debug("Created {} {} with slug {}", self.doc_type.name, doc["_id"], history.current(doc))
        return doc

    async def update(self, doc: dict, changes: dict, parent: Optional[dict] = None) -> dict:
        """
        Apply changes to a document, regenerating its slug when needed.

        Permanent slugs are never regenerated on update.

        Args:
            doc: Persisted document, updated in place
            changes: Field values to set
            parent: Embedding parent (embedded types only)

        Returns:
            Updated document

        Raises:
            UniquenessViolation: If a concurrent writer took the slug
        """
        changed = {k for k, v in changes.items() if doc.get(k) != v}
        doc.update(changes)

        if not self.options.permanent and self.slug_should_be_rebuilt(doc, changed):
            await self.build_slug(doc, parent=parent, slugs_changed=SLUGS_FIELD in changed)

        fields = {k: v for k, v in changes.items() if k != SLUGS_FIELD}
        slug_fields, unset = self._slug_fields(doc)
        fields.update(slug_fields)
        fields["updated_at"] = datetime.now(timezone.utc)
        doc["updated_at"] = fields["updated_at"]

        await self._persist(doc, fields, parent=parent, unset=unset)
        return doc

    async def soft_delete(self, doc: dict, parent: Optional[dict] = None) -> dict:
        """
        Soft delete a document and release its slugs.

        The record survives, hidden from default lookups, and its slugs are
        immediately claimable by other documents.
        """
        if not self.doc_type.paranoid:
            raise ValueError(f"{self.doc_type.name} does not support soft delete")

        now = datetime.now(timezone.utc)
        doc["deleted"] = True
        doc["deleted_at"] = now
        doc["updated_at"] = now
        history.clear(doc)

        slug_fields, unset = self._slug_fields(doc)
        await self._persist(
            doc,
            {"deleted": True, "deleted_at": now, "updated_at": now, **slug_fields},
            parent=parent,
            unset=unset,
        )
        logger.info("Soft deleted {} {}", self.doc_type.name, doc["_id"])
        return doc

    async def restore(self, doc: dict, parent: Optional[dict] = None) -> dict:
        """
        Restore a soft-deleted document with a freshly resolved slug.

        The slug may differ from the one held before deletion if another
        document has claimed it meanwhile.

        Raises:
            UniquenessViolation: If a concurrent writer took the slug
        """
        now = datetime.now(timezone.utc)
        doc["deleted"] = False
        doc.pop("deleted_at", None)
        doc["updated_at"] = now

        await self.build_slug(doc, parent=parent)

        slug_fields, unset = self._slug_fields(doc)
        await self._persist(
            doc,
            {"deleted": False, "updated_at": now, **slug_fields},
            parent=parent,
            unset=["deleted_at", *unset],
        )
        logger.info("Restored {} {} with slug {}", self.doc_type.name, doc["_id"], history.current(doc))
        return doc

    async def to_param(self, doc: dict, parent: Optional[dict] = None) -> Optional[str]:
        """
        Return the current slug, building and saving one if missing.

        Soft-deleted documents have no slug.
        """
        if doc.get("deleted"):
            return None

        if history.current(doc) is None:
            if await self.build_slug(doc, parent=parent) is None:
                return None
            slug_fields, _ = self._slug_fields(doc)
            await self._persist(doc, slug_fields, parent=parent)
        return history.current(doc)

    async def ensure_indexes(self) -> Optional[str]:
        """
        Declare the unique slug index.

        Documents without slugs (e.g. soft-deleted ones) are left out of the
        index so any number of them can coexist.

        Returns:
            Index name, or None for embedded types
        """
        if self.doc_type.is_embedded:
            return None

        keys = [(SLUGS_FIELD, 1)]
        if self.doc_type.scope_key:
            keys.insert(0, (self.doc_type.scope_key, 1))

        name = await self.collection.create_index(
            keys,
            unique=True,
            partialFilterExpression={SLUGS_FIELD: {"$exists": True}},
        )
        logger.info("Ensured slug index {} on {}", name, self.doc_type.root.collection)
        return name
