"""Tests for the lookup router."""
import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId


def make_lookup(docs=None, doc_type=None):
    """Build a SlugLookup over a mock collection whose find returns docs."""
    from docslug.models.document_type import DocumentType
    from docslug.models.slug_options import SlugOptions
    from docslug.services.lookup import SlugLookup

    mock_db = MagicMock()
    mock_collection = MagicMock()
    mock_db.__getitem__.return_value = mock_collection

    mock_cursor = MagicMock()
    mock_cursor.to_list = AsyncMock(return_value=docs or [])
    mock_collection.find.return_value = mock_cursor

    if doc_type is None:
        doc_type = DocumentType("Book", "books", SlugOptions(fields=["title"], history=True))
    return SlugLookup(mock_db, doc_type), mock_collection


class TestClassify:
    """Tests for argument classification."""

    def test_identifiers(self):
        """Test id-looking arguments resolve by identifier."""
        from docslug.services.lookup import LookupMode

        lookup, _ = make_lookup()

        assert lookup.classify([str(ObjectId())]) == LookupMode.BY_ID
        assert lookup.classify([ObjectId(), str(ObjectId())]) == LookupMode.BY_ID

    def test_slugs(self):
        """Test other strings resolve by slug."""
        from docslug.services.lookup import LookupMode

        lookup, _ = make_lookup()

        assert lookup.classify(["a-book"]) == LookupMode.BY_SLUG
        assert lookup.classify(["a-book", "another-book"]) == LookupMode.BY_SLUG

    def test_mixed_is_ambiguous(self):
        """Test mixing identifiers and slugs requires an override."""
        from docslug.errors import AmbiguousLookup

        lookup, _ = make_lookup()

        with pytest.raises(AmbiguousLookup):
            lookup.classify([ObjectId(), "a-book"])
        with pytest.raises(AmbiguousLookup):
            lookup.classify([str(ObjectId()), "a-book"])

    def test_integer_ids(self):
        """Test integer identifier types."""
        from docslug.errors import AmbiguousLookup
        from docslug.models.document_type import DocumentType
        from docslug.models.slug_options import IdKind, SlugOptions
        from docslug.services.lookup import LookupMode

        doc_type = DocumentType("Issue", "issues", SlugOptions(fields=["title"]), id_kind=IdKind.INTEGER)
        lookup, _ = make_lookup(doc_type=doc_type)

        assert lookup.classify([1, "2"]) == LookupMode.BY_ID
        assert lookup.classify(["bug-report"]) == LookupMode.BY_SLUG
        with pytest.raises(AmbiguousLookup):
            lookup.classify([1, "bug-report"])

    def test_empty_arguments(self):
        """Test at least one argument is required."""
        lookup, _ = make_lookup()

        with pytest.raises(ValueError):
            lookup.classify([])

    def test_embedded_types_rejected(self):
        """Test embedded types have no top-level lookup."""
        from docslug.models.document_type import DocumentType
        from docslug.models.slug_options import EmbeddedIn, SlugOptions
        from docslug.services.lookup import SlugLookup

        doc_type = DocumentType(
            "Subject",
            options=SlugOptions(fields=["name"]),
            embedded_in=EmbeddedIn(parent_collection="books", relation="subjects"),
        )

        with pytest.raises(ValueError):
            SlugLookup(MagicMock(), doc_type)


@pytest.mark.asyncio
class TestFind:
    """Tests for find operations."""

    async def test_find_by_slug_query(self):
        """Test slug lookups search the slug history of live documents."""
        doc = {"_id": ObjectId(), "_slugs": ["old-title", "a-book"]}
        lookup, mock_collection = make_lookup([doc])

        docs = await lookup.find("old-title")

        assert docs == [doc]
        query = mock_collection.find.call_args[0][0]
        assert query == {"_slugs": {"$in": ["old-title"]}, "deleted": {"$ne": True}}

    async def test_find_by_slug_deduplicates(self):
        """Test a document matching several slugs is returned once."""
        doc_id = ObjectId()
        doc = {"_id": doc_id, "_slugs": ["old-title", "a-book"]}
        lookup, _ = make_lookup([doc, dict(doc)])

        docs = await lookup.find("old-title", "a-book")

        assert len(docs) == 1
        assert docs[0]["_id"] == doc_id

    async def test_find_by_slug_missing(self):
        """Test unmatched slugs raise DocumentNotFound naming them."""
        from docslug.errors import DocumentNotFound

        lookup, _ = make_lookup([{"_id": ObjectId(), "_slugs": ["a-book"]}])

        with pytest.raises(DocumentNotFound) as exc_info:
            await lookup.find("a-book", "missing-book")

        assert exc_info.value.missing == ["missing-book"]
        assert "missing-book" in str(exc_info.value)

    async def test_find_by_id(self):
        """Test identifier lookups convert hex strings."""
        doc_id = ObjectId()
        lookup, mock_collection = make_lookup([{"_id": doc_id, "_slugs": ["a-book"]}])

        docs = await lookup.find(str(doc_id))

        assert docs[0]["_id"] == doc_id
        query = mock_collection.find.call_args[0][0]
        assert query["_id"] == {"$in": [doc_id]}

    async def test_find_by_id_missing(self):
        """Test unmatched identifiers raise DocumentNotFound."""
        from docslug.errors import DocumentNotFound

        missing = ObjectId()
        lookup, _ = make_lookup([])

        with pytest.raises(DocumentNotFound) as exc_info:
            await lookup.find(missing)

        assert exc_info.value.missing == [missing]

    async def test_force_by_slug(self):
        """Test forcing slug interpretation of id-looking strings."""
        token = "507f1f77bcf86cd799439011-1"
        hex_id = "507f1f77bcf86cd799439011"
        lookup, mock_collection = make_lookup([{"_id": ObjectId(), "_slugs": [hex_id, token]}])

        await lookup.find(hex_id, force_by_slug=True)

        query = mock_collection.find.call_args[0][0]
        assert query["_slugs"] == {"$in": [hex_id]}

    async def test_force_by_id(self):
        """Test forcing identifier interpretation of mixed arguments."""
        from docslug.errors import DocumentNotFound

        lookup, mock_collection = make_lookup([])

        with pytest.raises(DocumentNotFound):
            await lookup.find(ObjectId(), "a-book", force_by_id=True)

        assert "_id" in mock_collection.find.call_args[0][0]

    async def test_force_flags_exclusive(self):
        """Test both overrides at once are rejected."""
        lookup, _ = make_lookup()

        with pytest.raises(ValueError):
            await lookup.find("a", force_by_slug=True, force_by_id=True)

    async def test_with_deleted(self):
        """Test soft-deleted documents can be included."""
        lookup, mock_collection = make_lookup([{"_id": ObjectId(), "_slugs": ["a-book"]}])

        await lookup.find("a-book", with_deleted=True)

        assert "deleted" not in mock_collection.find.call_args[0][0]

    async def test_subtype_filter(self):
        """Test subtype lookups are restricted to the subtype."""
        from docslug.models.document_type import DocumentType
        from docslug.models.slug_options import SlugOptions

        animal = DocumentType("Animal", "animals", SlugOptions(fields=["name"]))
        dog = DocumentType("Dog", parent=animal)
        lookup, mock_collection = make_lookup([{"_id": ObjectId(), "_slugs": ["rex"]}], doc_type=dog)

        await lookup.find("rex")

        query = mock_collection.find.call_args[0][0]
        assert query["_type"] == {"$in": ["Dog"]}

    async def test_find_one(self):
        """Test single-document convenience."""
        doc = {"_id": ObjectId(), "_slugs": ["a-book"]}
        lookup, _ = make_lookup([doc])

        assert await lookup.find_one("a-book") == doc
