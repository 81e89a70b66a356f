"""
AQUAMANAGER Core API - Task Repository Tests

Open-task queries treat a null, missing, or empty completed_date alike.
"""

from unittest.mock import AsyncMock, MagicMock

from aquamanager.maintenance.models import MaintenanceTask
from aquamanager.maintenance.repository import (
    OPEN_TASK_FILTER,
    InMemoryTaskRepository,
    TaskRepository,
)


class _Cursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._docs:
            raise StopAsyncIteration
        return self._docs.pop(0)


def _mongo_repository(collection):
    db = MagicMock()
    db.__getitem__.return_value = collection
    return TaskRepository(db)


class TestMongoOpenTaskQueries:
    async def test_owner_ids_include_empty_completed_date(self):
        collection = MagicMock()
        collection.distinct = AsyncMock(return_value=["user-b", "user-a"])
        repo = _mongo_repository(collection)

        assert await repo.list_owner_ids_with_open_tasks() == ["user-a", "user-b"]
        field, query = collection.distinct.call_args.args
        assert field == "owner_id"
        assert query == {"completed_date": {"$in": [None, ""]}}

    async def test_list_open_by_owner_query(self):
        doc = MaintenanceTask.create(aquarium_id="tank-1", owner_id="user-a", task="Feed").to_dict()
        doc["completed_date"] = ""
        collection = MagicMock()
        collection.find.return_value = _Cursor([doc])
        repo = _mongo_repository(collection)

        tasks = await repo.list_open_by_owner("user-a")

        assert [t.id for t in tasks] == [doc["_id"]]
        assert not tasks[0].is_completed
        query = collection.find.call_args.args[0]
        assert query == {"owner_id": "user-a", **OPEN_TASK_FILTER}


class TestInMemoryOpenTaskQueries:
    async def test_empty_completed_date_counts_as_open(self):
        repo = InMemoryTaskRepository()
        task = MaintenanceTask.create(aquarium_id="tank-1", owner_id="user-a", task="Feed")
        task.completed_date = ""
        await repo.create(task)

        assert await repo.list_owner_ids_with_open_tasks() == ["user-a"]
        assert [t.id for t in await repo.list_open_by_owner("user-a")] == [task.id]
