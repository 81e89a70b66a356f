"""
AQUAMANAGER Core API - Notification Log Repository

Records delivered reminders so repeated polling runs on the same local day
do not send the same reminder twice.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Set, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from aquamanager.notifications.enums import NotificationCategory


class NotificationLogRepositoryInterface(ABC):
    """Abstract interface for reminder idempotency."""

    @abstractmethod
    async def has_sent(self, task_id: str, category: NotificationCategory, local_day: date) -> bool:
        """Check if this reminder was already sent on this local day."""
        pass

    @abstractmethod
    async def mark_sent(
        self,
        user_id: str,
        task_id: str,
        category: NotificationCategory,
        local_day: date,
    ) -> None:
        """Mark this reminder as sent on this local day."""
        pass


class MongoNotificationLogRepository(NotificationLogRepositoryInterface):
    """MongoDB implementation for reminder idempotency."""

    COLLECTION_NAME = "maintenance_notification_log"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[self.COLLECTION_NAME]

    async def has_sent(self, task_id: str, category: NotificationCategory, local_day: date) -> bool:
        doc = await self.collection.find_one({
            "task_id": task_id,
            "category": category.value,
            "local_day": local_day.isoformat(),
        })
        return doc is not None

    async def mark_sent(
        self,
        user_id: str,
        task_id: str,
        category: NotificationCategory,
        local_day: date,
    ) -> None:
        await self.collection.update_one(
            {
                "task_id": task_id,
                "category": category.value,
                "local_day": local_day.isoformat(),
            },
            {
                "$set": {
                    "user_id": user_id,
                    "task_id": task_id,
                    "category": category.value,
                    "local_day": local_day.isoformat(),
                    "sent_at": datetime.now(timezone.utc),
                }
            },
            upsert=True,
        )


class InMemoryNotificationLogRepository(NotificationLogRepositoryInterface):
    def __init__(self):
        self._sent: Set[Tuple[str, str, str]] = set()

    def clear(self) -> None:
        self._sent.clear()

    async def has_sent(self, task_id: str, category: NotificationCategory, local_day: date) -> bool:
        return (task_id, category.value, local_day.isoformat()) in self._sent

    async def mark_sent(
        self,
        user_id: str,
        task_id: str,
        category: NotificationCategory,
        local_day: date,
    ) -> None:
        self._sent.add((task_id, category.value, local_day.isoformat()))
