"""MongoDB database connection using Motor (async driver)."""
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from docslug.config import settings


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self, url: str | None = None, db_name: str | None = None) -> None:
        """Connect to MongoDB."""
        self.client = AsyncIOMotorClient(url or settings.mongodb_url)
        self.db = self.client[db_name or settings.mongodb_db_name]
        logger.info("Connected to MongoDB: {}", self.db.name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client is not None:
            self.client.close()
            logger.info("Disconnected from MongoDB")
        self.client = None
        self.db = None

    def get_collection(self, name: str):
        """Get a MongoDB collection."""
        if self.db is None:
            raise RuntimeError("Database not connected")
        return self.db[name]
