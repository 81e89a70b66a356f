"""
AQUAMANAGER Core API - Maintenance Models

Internal maintenance task record for database operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
import uuid

from aquamanager.maintenance.enums import TaskCategory
from aquamanager.maintenance.exceptions import DataContractError
from aquamanager.timeutils import RawInstant


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class MaintenanceTask:
    """
    Maintenance task record as stored.

    Date fields hold whatever the store returned; the classification engine
    normalizes them and reports malformed values instead of failing.
    """

    id: str
    aquarium_id: str
    owner_id: str
    task: str
    category: TaskCategory = TaskCategory.GENERAL
    equipment_id: Optional[str] = None
    due_date: RawInstant = None
    completed_date: RawInstant = None
    frequency: Optional[str] = None
    notes: Optional[str] = None
    skipped_at: Optional[datetime] = None
    skip_reason: Optional[str] = None
    completion_details: Optional[dict[str, Any]] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_completed(self) -> bool:
        return self.completed_date is not None and self.completed_date != ""

    @classmethod
    def create(
        cls,
        aquarium_id: str,
        owner_id: str,
        task: str,
        category: TaskCategory = TaskCategory.GENERAL,
        equipment_id: Optional[str] = None,
        due_date: Optional[datetime] = None,
        frequency: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "MaintenanceTask":
        """Create a new task with generated ID."""
        now = _utcnow()
        return cls(
            id=str(uuid.uuid4()),
            aquarium_id=aquarium_id,
            owner_id=owner_id,
            task=task,
            category=category,
            equipment_id=equipment_id,
            due_date=due_date,
            frequency=frequency,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> dict:
        """Convert task to dictionary for MongoDB storage."""
        return {
            "_id": self.id,
            "aquarium_id": self.aquarium_id,
            "owner_id": self.owner_id,
            "task": self.task,
            "category": self.category.value,
            "equipment_id": self.equipment_id,
            "due_date": self.due_date,
            "completed_date": self.completed_date,
            "frequency": self.frequency,
            "notes": self.notes,
            "skipped_at": self.skipped_at,
            "skip_reason": self.skip_reason,
            "completion_details": self.completion_details,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MaintenanceTask":
        """Create task from MongoDB document."""
        try:
            category = data.get("category")
            return cls(
                id=data["_id"],
                aquarium_id=data["aquarium_id"],
                owner_id=data["owner_id"],
                task=data["task"],
                category=TaskCategory(category) if category else TaskCategory.GENERAL,
                equipment_id=data.get("equipment_id"),
                due_date=data.get("due_date"),
                completed_date=data.get("completed_date"),
                frequency=data.get("frequency"),
                notes=data.get("notes"),
                skipped_at=data.get("skipped_at"),
                skip_reason=data.get("skip_reason"),
                completion_details=data.get("completion_details"),
                created_at=data.get("created_at") or _utcnow(),
                updated_at=data.get("updated_at") or _utcnow(),
            )
        except (KeyError, ValueError) as exc:
            raise DataContractError(
                f"Malformed maintenance record {data.get('_id')!r}: {exc}"
            ) from exc
