from datetime import date

from taskboard.services.recurrence_validator import RecurrenceValidator


def test_valid_settings():
    result = RecurrenceValidator.validate_recurrence_settings({
        "recurrence_pattern": "weekly",
        "recurrence_interval": 2,
        "due_date": date(2025, 10, 15),
        "recurrence_end_date": "2025-12-31",
    }, weekday=3)
    assert result == {"valid": True, "errors": [], "warnings": []}


def test_unknown_pattern():
    result = RecurrenceValidator.validate_recurrence_pattern("fortnightly")
    assert result["valid"] is False


def test_interval_and_count_must_be_positive():
    result = RecurrenceValidator.validate_recurrence_settings({
        "recurrence_pattern": "daily",
        "recurrence_interval": 0,
        "recurrence_count": -1,
    })
    assert result["valid"] is False
    assert len(result["errors"]) == 2


def test_weekday_range():
    result = RecurrenceValidator.validate_recurrence_settings({"recurrence_pattern": "weekly"}, weekday=7)
    assert result["valid"] is False


def test_weekday_on_daily_pattern_is_a_warning():
    result = RecurrenceValidator.validate_recurrence_settings({"recurrence_pattern": "daily"}, weekday=2)
    assert result["valid"] is True
    assert result["warnings"]


def test_end_date_before_due_date():
    result = RecurrenceValidator.validate_recurrence_settings({
        "recurrence_pattern": "daily",
        "due_date": "2025-10-15",
        "recurrence_end_date": "2025-10-14",
    })
    assert result["valid"] is False


def test_malformed_date():
    result = RecurrenceValidator.validate_recurrence_settings({
        "recurrence_pattern": "daily",
        "recurrence_end_date": "next tuesday",
    })
    assert result["valid"] is False


def test_end_date_and_count_together_warn():
    result = RecurrenceValidator.validate_recurrence_settings({
        "recurrence_pattern": "daily",
        "recurrence_count": 3,
        "recurrence_end_date": "2025-12-31",
    })
    assert result["valid"] is True
    assert len(result["warnings"]) == 1


def test_priority_bounds():
    assert RecurrenceValidator.validate_priority(None)["valid"] is True
    assert RecurrenceValidator.validate_priority(10)["valid"] is True
    assert RecurrenceValidator.validate_priority(11)["valid"] is False
    assert RecurrenceValidator.validate_priority("high")["valid"] is False
