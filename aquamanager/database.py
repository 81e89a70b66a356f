"""
AQUAMANAGER Core API - Database Module

MongoDB connection management using Motor (async driver), plus the indexes
the maintenance and reminder collections rely on.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from aquamanager.config import settings
from aquamanager.maintenance.repository import TaskRepository
from aquamanager.notifications.log_repository import MongoNotificationLogRepository

logger = logging.getLogger(__name__)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create indexes for aquarium listings, reminder scans and the reminder log."""
    tasks = db[TaskRepository.COLLECTION_NAME]
    await tasks.create_index([("owner_id", ASCENDING), ("aquarium_id", ASCENDING), ("created_at", ASCENDING)])
    await tasks.create_index([("owner_id", ASCENDING), ("completed_date", ASCENDING)])

    # One delivery per task, category and local day
    log = db[MongoNotificationLogRepository.COLLECTION_NAME]
    await log.create_index(
        [("task_id", ASCENDING), ("category", ASCENDING), ("local_day", ASCENDING)],
        unique=True,
    )


class Database:
    """MongoDB connection holder shared by the app and the reminder scheduler."""

    def __init__(self, uri: Optional[str] = None, name: Optional[str] = None):
        self.uri = uri or settings.MONGODB_URI
        self.name = name or settings.MONGODB_DATABASE
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        # tz_aware so stored due dates come back as aware datetimes
        self.client = AsyncIOMotorClient(self.uri, tz_aware=True)
        self.db = self.client[self.name]
        await ensure_indexes(self.db)
        logger.info(f"Connected to MongoDB database {self.name!r}")

    async def disconnect(self) -> None:
        if self.client:
            self.client.close()
            self.client = None
            self.db = None

    def get_database(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.db


database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get the database instance."""
    return database.get_database()
