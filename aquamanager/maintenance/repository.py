"""
AQUAMANAGER Core API - Maintenance Task Repository

Repository pattern for maintenance task records.
Includes MongoDB implementation for runtime and in-memory implementation for tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from aquamanager.maintenance.models import MaintenanceTask

# Matches a missing field, null, and the empty string left by older clients
OPEN_TASK_FILTER = {"completed_date": {"$in": [None, ""]}}


class TaskRepositoryInterface(ABC):
    """
    Abstract interface for the maintenance task store.

    Enables swapping implementations (MongoDB for runtime, in-memory for tests).
    Reads and writes are scoped by owner_id; listings are scoped by aquarium.
    """

    @abstractmethod
    async def create(self, task: MaintenanceTask) -> MaintenanceTask:
        pass

    @abstractmethod
    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[MaintenanceTask]:
        pass

    @abstractmethod
    async def list_by_aquarium(self, aquarium_id: str, owner_id: str) -> List[MaintenanceTask]:
        """List every task of an aquarium, completed history included."""
        pass

    @abstractmethod
    async def list_open_by_owner(self, owner_id: str) -> List[MaintenanceTask]:
        """List tasks without a completed_date across all of the owner's aquariums."""
        pass

    @abstractmethod
    async def list_owner_ids_with_open_tasks(self) -> List[str]:
        pass

    @abstractmethod
    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[MaintenanceTask]:
        pass

    @abstractmethod
    async def delete(self, task_id: str, owner_id: str) -> bool:
        pass


class TaskRepository(TaskRepositoryInterface):
    """MongoDB implementation of the maintenance task store."""

    COLLECTION_NAME = "maintenance"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]

    async def create(self, task: MaintenanceTask) -> MaintenanceTask:
        await self.collection.insert_one(task.to_dict())
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[MaintenanceTask]:
        doc = await self.collection.find_one({"_id": task_id, "owner_id": owner_id})
        if doc is None:
            return None
        return MaintenanceTask.from_dict(doc)

    async def list_by_aquarium(self, aquarium_id: str, owner_id: str) -> List[MaintenanceTask]:
        cursor = self.collection.find(
            {"aquarium_id": aquarium_id, "owner_id": owner_id}
        ).sort("created_at", 1)
        tasks: List[MaintenanceTask] = []
        async for doc in cursor:
            tasks.append(MaintenanceTask.from_dict(doc))
        return tasks

    async def list_open_by_owner(self, owner_id: str) -> List[MaintenanceTask]:
        cursor = self.collection.find({"owner_id": owner_id, **OPEN_TASK_FILTER})
        tasks: List[MaintenanceTask] = []
        async for doc in cursor:
            tasks.append(MaintenanceTask.from_dict(doc))
        return tasks

    async def list_owner_ids_with_open_tasks(self) -> List[str]:
        owner_ids = await self.collection.distinct("owner_id", OPEN_TASK_FILTER)
        return sorted(owner_ids)

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[MaintenanceTask]:
        updates = {
            key: value.value if isinstance(value, Enum) else value
            for key, value in updates.items()
        }
        updates["updated_at"] = datetime.now(timezone.utc)

        result = await self.collection.find_one_and_update(
            {"_id": task_id, "owner_id": owner_id},
            {"$set": updates},
            return_document=True,
        )
        if result is None:
            return None
        return MaintenanceTask.from_dict(result)

    async def delete(self, task_id: str, owner_id: str) -> bool:
        result = await self.collection.delete_one({"_id": task_id, "owner_id": owner_id})
        return result.deleted_count > 0


class InMemoryTaskRepository(TaskRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.
    """

    def __init__(self):
        self._tasks: dict[str, MaintenanceTask] = {}

    def clear(self) -> None:
        self._tasks.clear()

    async def create(self, task: MaintenanceTask) -> MaintenanceTask:
        self._tasks[task.id] = task
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[MaintenanceTask]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None
        return task

    async def list_by_aquarium(self, aquarium_id: str, owner_id: str) -> List[MaintenanceTask]:
        results = [
            task
            for task in self._tasks.values()
            if task.aquarium_id == aquarium_id and task.owner_id == owner_id
        ]
        results.sort(key=lambda t: t.created_at)
        return results

    async def list_open_by_owner(self, owner_id: str) -> List[MaintenanceTask]:
        return [
            task
            for task in self._tasks.values()
            if task.owner_id == owner_id and not task.is_completed
        ]

    async def list_owner_ids_with_open_tasks(self) -> List[str]:
        return sorted({t.owner_id for t in self._tasks.values() if not t.is_completed})

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[MaintenanceTask]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None

        for key, value in updates.items():
            if hasattr(task, key):
                setattr(task, key, value)

        task.updated_at = datetime.now(timezone.utc)
        return task

    async def delete(self, task_id: str, owner_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return False
        del self._tasks[task_id]
        return True
