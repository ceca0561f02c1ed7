"""Pytest configuration and fixtures."""
import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from docslug.config import settings


@pytest_asyncio.fixture
async def mongo_db():
    """
    Provide a clean test database.

    This fixture:
    - Connects to the configured MongoDB server (skips if unreachable)
    - Yields a throwaway database
    - Drops the test database after each test
    """
    test_client = AsyncIOMotorClient(settings.mongodb_url, serverSelectionTimeoutMS=1000)
    try:
        await test_client.admin.command("ping")
    except PyMongoError:
        test_client.close()
        pytest.skip("MongoDB is not reachable")

    test_db_name = f"{settings.mongodb_db_name}_test"
    await test_client.drop_database(test_db_name)
    test_db = test_client[test_db_name]

    yield test_db

    # Cleanup: drop test database
    await test_client.drop_database(test_db_name)
    test_client.close()
