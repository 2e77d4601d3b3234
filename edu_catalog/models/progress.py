"""Progress percentage rules."""

from datetime import datetime, timezone
from typing import Optional

from edu_catalog.errors import ValidationError

COMPLETE = 100


def validate_percentage(percentage) -> int:
    """Check a progress percentage is an integer in 0..100 inclusive.

    Raises:
        ValidationError: for non-integers and out-of-range values
    """
    if isinstance(percentage, bool) or not isinstance(percentage, int):
        raise ValidationError(
            f"progress percentage must be an integer, got {percentage!r}",
            code="invalid_progress",
        )
    if not 0 <= percentage <= COMPLETE:
        raise ValidationError(
            f"progress percentage must be between 0 and 100, got {percentage}",
            code="invalid_progress",
        )
    return percentage


def completion_timestamp(percentage: int, now: Optional[datetime] = None) -> Optional[str]:
    """Completion time for a percentage: now when complete, otherwise None."""
    if percentage != COMPLETE:
        return None
    return (now or datetime.now(timezone.utc)).isoformat()
