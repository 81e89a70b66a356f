"""
AQUAMANAGER Core API - Notification Preferences Repository

Preferences provider with MongoDB and in-memory implementations.
Users without stored preferences get the documented defaults.
"""

from abc import ABC, abstractmethod
from typing import Dict

from motor.motor_asyncio import AsyncIOMotorDatabase

from aquamanager.notifications.models import NotificationPreferences


class PreferencesRepositoryInterface(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> NotificationPreferences:
        """Return stored preferences, or defaults when none were saved."""
        pass

    @abstractmethod
    async def upsert(self, preferences: NotificationPreferences) -> NotificationPreferences:
        pass


class MongoPreferencesRepository(PreferencesRepositoryInterface):
    COLLECTION_NAME = "maintenance_notification_preferences"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[self.COLLECTION_NAME]

    async def get(self, user_id: str) -> NotificationPreferences:
        doc = await self.collection.find_one({"_id": user_id})
        if doc is None:
            return NotificationPreferences.defaults(user_id)
        return NotificationPreferences.from_dict(doc)

    async def upsert(self, preferences: NotificationPreferences) -> NotificationPreferences:
        doc = preferences.to_dict()
        await self.collection.update_one(
            {"_id": preferences.user_id},
            {"$set": {k: v for k, v in doc.items() if k != "_id"}},
            upsert=True,
        )
        return preferences


class InMemoryPreferencesRepository(PreferencesRepositoryInterface):
    def __init__(self):
        self._prefs: Dict[str, NotificationPreferences] = {}

    def clear(self) -> None:
        self._prefs.clear()

    async def get(self, user_id: str) -> NotificationPreferences:
        prefs = self._prefs.get(user_id)
        if prefs is None:
            return NotificationPreferences.defaults(user_id)
        return prefs

    async def upsert(self, preferences: NotificationPreferences) -> NotificationPreferences:
        self._prefs[preferences.user_id] = preferences
        return preferences
