"""Errors raised by the recurrence engine and its repositories."""
from typing import Any, Dict, Optional


class RecurrenceError(Exception):
    """Base exception for recurrence errors"""
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidPatternError(RecurrenceError):
    """Raised when a recurrence pattern is not one of the supported values."""

    def __init__(self, pattern: Any):
        self.pattern = pattern
        super().__init__(
            code="INVALID_PATTERN",
            message=f"Invalid recurrence pattern: {pattern}",
            details={"pattern": pattern},
        )


class RecurrenceValidationError(RecurrenceError):
    def __init__(self, errors: list):
        super().__init__(
            code="VALIDATION_ERROR",
            message="; ".join(errors),
            details={"errors": errors},
        )


class TaskNotFoundError(RecurrenceError):
    def __init__(self, task_id: int):
        super().__init__(code="NOT_FOUND", message="Task not found", details={"task_id": task_id})


class MasterNotFoundError(RecurrenceError):
    def __init__(self, task_id: int, master_id: Optional[int]):
        super().__init__(
            code="NOT_FOUND",
            message="Master task not found",
            details={"task_id": task_id, "master_id": master_id},
        )


class StoreError(RecurrenceError):
    """Raised when the database reports an error on a read."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="STORE_ERROR", message=message, details=details)


class StoreWriteError(StoreError):
    """Raised when an insert, update or delete fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = "STORE_WRITE_ERROR"
