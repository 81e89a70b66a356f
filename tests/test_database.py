"""
AQUAMANAGER Core API - Database Setup Tests
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from aquamanager.database import Database, ensure_indexes


class TestEnsureIndexes:
    async def test_reminder_log_index_is_unique(self):
        collections = {}

        def get_collection(name):
            collections.setdefault(name, MagicMock(create_index=AsyncMock()))
            return collections[name]

        db = MagicMock()
        db.__getitem__.side_effect = get_collection

        await ensure_indexes(db)

        assert collections["maintenance"].create_index.await_count == 2
        log_call = collections["maintenance_notification_log"].create_index.call_args
        assert log_call.kwargs["unique"] is True
        assert [field for field, _ in log_call.args[0]] == ["task_id", "category", "local_day"]


class TestDatabase:
    def test_get_database_before_connect(self):
        with pytest.raises(RuntimeError):
            Database(uri="mongodb://localhost:27017", name="test").get_database()
