"""
Recurrence date arithmetic.

Computes the next occurrence date of a recurring task and decides whether a
series keeps producing instances. All values are naive calendar dates.
Weekdays follow the 0 = Sunday ... 6 = Saturday convention used by the UI.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from taskboard.services.errors import InvalidPatternError

RECURRENCE_PATTERNS = ["daily", "weekly", "biweekly", "monthly", "quarterly", "yearly"]
WEEKDAY_PATTERNS = ("weekly", "biweekly")
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def to_date(value) -> Optional[date]:
    """Coerce an ISO string, datetime or date into a date."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return _as_date(value)


def sunday_based_weekday(value: date) -> int:
    """Day of week with Sunday = 0."""
    return (value.weekday() + 1) % 7


def next_occurrence_of_weekday_allowing_today(from_date: date, weekday: int) -> date:
    """
    Find the first date on or after from_date falling on weekday.

    Only used to align the first due date of a new series, where landing on
    the same day is acceptable.
    """
    from_date = _as_date(from_date)
    days_to_add = (weekday - sunday_based_weekday(from_date)) % 7
    return from_date + timedelta(days=days_to_add)


def next_occurrence_of_weekday_strictly_after(from_date: date, weekday: int, weeks: int = 1) -> date:
    """
    Find the upcoming weekday after from_date, then advance it by full weeks.

    Args:
        from_date: Date of the current occurrence
        weekday: Target day of week (0 = Sunday)
        weeks: Additional full weeks, at least 1

    Returns:
        A date falling on weekday, at least one week after from_date
    """
    if weeks < 1:
        raise ValueError("weeks must be at least 1")

    from_date = _as_date(from_date)
    # Target earlier in the week wraps into the following week
    days_to_add = (weekday - sunday_based_weekday(from_date)) % 7
    return from_date + timedelta(days=days_to_add + weeks * 7)


def add_months(value: date, months: int) -> date:
    """
    Add calendar months without clamping the day.

    A day that does not exist in the target month rolls over into the next
    one, so Jan 31 + 1 month is Mar 3 (or Mar 2 in a leap year).
    """
    value = _as_date(value)
    total = value.month - 1 + months
    year = value.year + total // 12
    month = total % 12 + 1
    return date(year, month, 1) + timedelta(days=value.day - 1)


def calculate_next_occurrence(
    current_date: date,
    pattern: str,
    interval: int = 1,
    weekday: Optional[int] = None
) -> date:
    """
    Calculate the next occurrence date based on a recurrence pattern.

    Args:
        current_date: The current/last occurrence date
        pattern: One of daily, weekly, biweekly, monthly, quarterly, yearly
        interval: Multiplier (2 = every other period)
        weekday: Target weekday (0-6, Sunday-Saturday), weekly/biweekly only

    Returns:
        A new date; current_date is left untouched

    Raises:
        InvalidPatternError: If pattern is not supported
    """
    if pattern not in RECURRENCE_PATTERNS:
        raise InvalidPatternError(pattern)
    if interval is None or interval < 1:
        raise ValueError(f"interval must be a positive integer, got {interval}")

    current_date = _as_date(current_date)

    if pattern == "daily":
        return current_date + timedelta(days=interval)
    elif pattern == "weekly":
        if weekday is not None:
            return next_occurrence_of_weekday_strictly_after(current_date, weekday, interval)
        return current_date + timedelta(days=7 * interval)
    elif pattern == "biweekly":
        if weekday is not None:
            return next_occurrence_of_weekday_strictly_after(current_date, weekday, 2 * interval)
        return current_date + timedelta(days=14 * interval)
    elif pattern == "monthly":
        return add_months(current_date, interval)
    elif pattern == "quarterly":
        return add_months(current_date, 3 * interval)
    else:  # yearly
        return add_months(current_date, 12 * interval)


def should_continue_recurrence(
    next_date: date,
    end_date: Optional[date],
    max_count: Optional[int],
    current_count: int
) -> bool:
    """
    Check if a series should produce another occurrence.

    The end date is inclusive. Either constraint failing halts the series;
    with neither set the series runs indefinitely.
    """
    if end_date is not None and _as_date(next_date) > _as_date(end_date):
        return False

    if max_count is not None and current_count >= max_count:
        return False

    return True
