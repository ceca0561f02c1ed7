"""Tests for the slug history store."""


class TestRecord:
    """Tests for recording slugs."""

    def test_without_history_replaces(self):
        """Test slugs are replaced when history is disabled."""
        from docslug.services.history import record

        doc = {"_slugs": ["old"]}

        assert record(doc, "new") == ["new"]
        assert doc["_slugs"] == ["new"]

    def test_with_history_appends(self):
        """Test slugs accumulate when history is enabled."""
        from docslug.services.history import record

        doc = {"_slugs": ["home"]}
        record(doc, "welcome", history=True)

        assert doc["_slugs"] == ["home", "welcome"]

    def test_with_history_moves_existing_to_end(self):
        """Test re-recording an old slug makes it current without duplicates."""
        from docslug.services.history import record

        doc = {"_slugs": ["home", "welcome"]}
        record(doc, "home", history=True)

        assert doc["_slugs"] == ["welcome", "home"]

    def test_record_on_empty_document(self):
        """Test recording on a document without slugs."""
        from docslug.services.history import record

        doc = {}
        record(doc, "first", history=True)

        assert doc["_slugs"] == ["first"]


class TestCurrentAndClear:
    """Tests for current slug and clearing."""

    def test_current_is_last(self):
        """Test the current slug is the last entry."""
        from docslug.services.history import current

        assert current({"_slugs": ["a", "b"]}) == "b"
        assert current({"_slugs": []}) is None
        assert current({}) is None

    def test_clear(self):
        """Test clearing forgets every slug."""
        from docslug.services.history import clear, current

        doc = {"_slugs": ["a", "b"]}
        clear(doc)

        assert doc["_slugs"] == []
        assert current(doc) is None
