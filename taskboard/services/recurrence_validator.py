"""Recurrence Validator."""
from typing import Any, Dict

from taskboard.services.recurrence_dates import RECURRENCE_PATTERNS, WEEKDAY_PATTERNS, to_date


class RecurrenceValidator:
    """Validate recurrence settings for tasks."""

    @staticmethod
    def _result() -> Dict[str, Any]:
        return {
            "valid": True,
            "errors": [],
            "warnings": []
        }

    @staticmethod
    def validate_recurrence_pattern(pattern: str) -> Dict[str, Any]:
        """
        Validate a recurrence pattern.

        Args:
            pattern: daily, weekly, biweekly, monthly, quarterly or yearly

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator._result()

        if pattern not in RECURRENCE_PATTERNS:
            result["valid"] = False
            result["errors"].append(f"Recurrence pattern must be one of: {', '.join(RECURRENCE_PATTERNS)}")

        return result

    @staticmethod
    def validate_recurrence_settings(task_data: Dict[str, Any], weekday: Any = None) -> Dict[str, Any]:
        """
        Validate the recurrence settings of a task.

        Args:
            task_data: Task data dictionary
            weekday: Optional weekday preference (0 = Sunday)

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator._result()
        pattern = task_data.get("recurrence_pattern")

        validation = RecurrenceValidator.validate_recurrence_pattern(pattern)
        if not validation["valid"]:
            result["valid"] = False
            result["errors"].extend(validation["errors"])
            return result

        interval = task_data.get("recurrence_interval")
        if interval is not None and (isinstance(interval, bool) or not isinstance(interval, int) or interval < 1):
            result["valid"] = False
            result["errors"].append("Recurrence interval must be a positive integer")

        count = task_data.get("recurrence_count")
        if count is not None and (isinstance(count, bool) or not isinstance(count, int) or count < 1):
            result["valid"] = False
            result["errors"].append("Recurrence count must be a positive integer")

        if weekday is not None:
            if isinstance(weekday, bool) or not isinstance(weekday, int) or not 0 <= weekday <= 6:
                result["valid"] = False
                result["errors"].append("Weekday must be an integer between 0 (Sunday) and 6 (Saturday)")
            elif pattern not in WEEKDAY_PATTERNS:
                result["warnings"].append(f"Weekday preference is ignored for {pattern} recurrence")

        try:
            end_date = to_date(task_data.get("recurrence_end_date"))
            due_date = to_date(task_data.get("due_date"))
        except (TypeError, ValueError):
            result["valid"] = False
            result["errors"].append("Dates must use ISO format (YYYY-MM-DD)")
            return result

        if end_date and due_date and end_date < due_date:
            result["valid"] = False
            result["errors"].append("Recurrence end date cannot be before the due date")

        if end_date and count is not None:
            result["warnings"].append("Both an end date and a count are set; the series stops at whichever comes first")

        return result

    @staticmethod
    def validate_priority(priority: Any) -> Dict[str, Any]:
        """
        Validate priority value.

        Args:
            priority: Integer from 1 to 10, or None

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator._result()

        if priority is None:
            return result

        if isinstance(priority, bool) or not isinstance(priority, int) or not 1 <= priority <= 10:
            result["valid"] = False
            result["errors"].append(f"Priority must be an integer from 1 to 10, got: {priority}")

        return result
