"""Tests for the database connection manager and logging setup."""
import pytest
from unittest.mock import MagicMock, patch


class TestDatabase:
    """Tests for Database."""

    def test_get_collection_requires_connection(self):
        """Test collections are unavailable before connecting."""
        from docslug.database import Database

        with pytest.raises(RuntimeError):
            Database().get_collection("articles")

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self):
        """Test connecting selects the database and disconnecting closes it."""
        from docslug.database import Database

        mock_client = MagicMock()
        with patch("docslug.database.AsyncIOMotorClient", return_value=mock_client) as client_cls:
            database = Database()
            await database.connect("mongodb://example:27017", "slugs")

        client_cls.assert_called_once_with("mongodb://example:27017")
        mock_client.__getitem__.assert_called_once_with("slugs")
        assert database.get_collection("articles") is not None

        await database.disconnect()

        mock_client.close.assert_called_once()
        assert database.db is None


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging(self):
        """Test setup replaces the default handler."""
        from docslug.logging import setup_logging

        with patch("docslug.logging.logger") as mock_logger:
            setup_logging("DEBUG", serialize=True)

        mock_logger.remove.assert_called_once()
        kwargs = mock_logger.add.call_args.kwargs
        assert kwargs["level"] == "DEBUG"
        assert kwargs["serialize"] is True
