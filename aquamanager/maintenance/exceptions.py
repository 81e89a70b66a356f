"""
AQUAMANAGER Core API - Maintenance Exceptions
"""


class MaintenanceError(Exception):
    """Base class for maintenance domain errors."""


class InvalidReschedule(MaintenanceError):
    """Requested new due date is not after the skip instant."""

    def __init__(self, message: str = "New due date must be after the skip time"):
        super().__init__(message)
        self.message = message


class DataContractError(MaintenanceError):
    """A stored record does not satisfy the shape the engines expect."""


class InvalidTimezone(MaintenanceError):
    """Timezone name is not a known IANA zone."""


class TaskNotFound(MaintenanceError):
    """Task does not exist or belongs to another user."""


class TaskAlreadyCompleted(MaintenanceError):
    """Completed tasks are terminal and cannot be completed or skipped again."""


class InvalidCompletionDetails(MaintenanceError):
    """Completion details do not match the task category."""
