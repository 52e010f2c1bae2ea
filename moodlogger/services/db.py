# async mongodb client for the remote entry store
# uses motor for non-blocking operations; stays disconnected when no uri is configured

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from moodlogger.config import settings

logger = logging.getLogger(__name__)


class Database:
    """async mongodb connection manager"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    @property
    def is_configured(self) -> bool:
        """true when a remote store is connected and usable"""
        return self.db is not None

    async def connect(self):
        """establish connection to mongodb, or stay local-only when no uri is set"""
        if self.client is not None:
            return

        if not settings.MONGODB_URI:
            logger.info("MONGODB_URI not set, remote entry store disabled (local-only persistence)")
            return

        logger.info(f"Connecting to MongoDB database: {settings.MONGODB_DATABASE}")
        self.client = AsyncIOMotorClient(settings.MONGODB_URI)
        self.db = self.client[settings.MONGODB_DATABASE]

        # verify connection; an unreachable store leaves the app running local-only
        try:
            await self.client.admin.command("ping")
            await self.daily_entries.create_index([("scope", 1), ("date", 1)], unique=True)
        except Exception as e:
            logger.error(f"MongoDB unavailable, falling back to local-only persistence: {e}")
            self.client.close()
            self.client = None
            self.db = None
            return
        logger.info("MongoDB connection established")

    async def close(self):
        """close mongodb connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    # collection accessors

    @property
    def daily_entries(self):
        return self.db[settings.ENTRIES_COLLECTION]


# singleton instance
db = Database()


async def get_db() -> Database:
    """dependency injection for database access"""
    return db
