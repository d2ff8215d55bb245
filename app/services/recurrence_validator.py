"""Recurrence Validator."""
from datetime import date
from typing import Dict, Any, Optional, Sequence

from app.models.recurring_message import RecurrencePattern

MAX_MESSAGE_LENGTH = 4000


class RecurrenceValidator:
    """Validate recurring message rules."""

    @staticmethod
    def _result() -> Dict[str, Any]:
        return {
            "valid": True,
            "errors": [],
            "warnings": []
        }

    @staticmethod
    def validate_recurrence_pattern(
        pattern: Optional[str],
        interval: Optional[int],
        days_of_week: Optional[Sequence[int]] = None
    ) -> Dict[str, Any]:
        """
        Validate recurrence pattern, interval and weekday filter.

        Args:
            pattern: Recurrence pattern (daily, weekly, monthly)
            interval: Every-N multiplier, must be at least 1
            days_of_week: Optional weekday indices, 0=Sunday..6=Saturday

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator._result()
        allowed = [p.value for p in RecurrencePattern]

        if pattern not in allowed:
            result["valid"] = False
            result["errors"].append(f"Recurrence pattern must be one of: {', '.join(allowed)}")

        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            result["valid"] = False
            result["errors"].append(f"Recurrence interval must be a positive integer, got: {interval}")

        if days_of_week is not None and not isinstance(days_of_week, (list, tuple)):
            result["valid"] = False
            result["errors"].append(f"Days of week must be a list, got: {days_of_week!r}")
        elif days_of_week:
            days = list(days_of_week)
            invalid = [d for d in days if isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6]
            if invalid:
                result["valid"] = False
                result["errors"].append(f"Days of week must be between 0 (Sunday) and 6 (Saturday), got: {invalid}")
            elif len(set(days)) != len(days):
                result["warnings"].append("Days of week contain duplicates")

            if pattern != RecurrencePattern.WEEKLY.value:
                result["warnings"].append("Days of week are ignored unless the pattern is weekly")

        return result

    @staticmethod
    def validate_date_window(start_date: Optional[date], end_date: Optional[date]) -> Dict[str, Any]:
        """
        Validate the eligibility window of a rule.

        Args:
            start_date: First eligible calendar date
            end_date: Optional last eligible calendar date

        Returns:
            Dict with validation result
        """
        result = RecurrenceValidator._result()

        if start_date is None:
            result["valid"] = False
            result["errors"].append("Start date is required")
            return result

        if end_date is not None and end_date < start_date:
            result["valid"] = False
            result["errors"].append(f"End date {end_date} is before start date {start_date}")

        return result

    @staticmethod
    def validate_message_content(content: Optional[str]) -> Dict[str, Any]:
        """Validate the literal text emitted on each firing."""
        result = RecurrenceValidator._result()

        if not content or not content.strip():
            result["valid"] = False
            result["errors"].append("Message content must not be empty")
            return result

        if len(content) > MAX_MESSAGE_LENGTH:
            result["valid"] = False
            result["errors"].append(f"Message content exceeds maximum length of {MAX_MESSAGE_LENGTH} characters")

        return result

    @staticmethod
    def validate_rule(rule) -> Dict[str, Any]:
        """
        Validate a stored recurring message before it is evaluated.

        Args:
            rule: RecurringMessage (or any object with the same attributes)

        Returns:
            Dict with the merged validation result of all checks
        """
        result = RecurrenceValidator._result()

        if not getattr(rule, "room_id", None):
            result["valid"] = False
            result["errors"].append("Target room is required")

        checks = [
            RecurrenceValidator.validate_recurrence_pattern(
                rule.recurrence_pattern, rule.recurrence_interval, rule.days_of_week
            ),
            RecurrenceValidator.validate_date_window(rule.start_date, rule.end_date),
            RecurrenceValidator.validate_message_content(rule.message_content),
        ]
        for check in checks:
            if not check["valid"]:
                result["valid"] = False
            result["errors"].extend(check["errors"])
            result["warnings"].extend(check["warnings"])

        return result
