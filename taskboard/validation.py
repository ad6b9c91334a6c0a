"""
Taskboard API: Business Rule Validation
========================================

What:  Pure validation functions for the rules the schema layer cannot express.
How:   Each check returns a ValidationResult instead of raising; the calling
       service turns a failed result into ValidationError at the boundary of
       the operation. Nothing here touches the database.

Note status / date table:

    status                 start_date   end_date
    ─────────────────────  ──────────   ────────
    To-do                  absent       absent
    In-Progress, Testing   present      absent
    Done                   present      present
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from taskboard.exceptions import ValidationError

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100


class NoteStatus(str, Enum):
    """Workflow status of a note, declared in board order."""

    TODO = "To-do"
    IN_PROGRESS = "In-Progress"
    TESTING = "Testing"
    DONE = "Done"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    message: str = ""
    field: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


VALID = ValidationResult(ok=True)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC (SQLite hands them back without tzinfo)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def check_note_status(
    status: NoteStatus | str,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> ValidationResult:
    """
    Check that a note's dates agree with its status.

    Dates are evaluated as the note will look after the operation, i.e. the
    caller merges the patch onto the stored note first.
    """
    try:
        status = NoteStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in NoteStatus)
        return ValidationResult(False, f"Invalid status '{status}'. Allowed: {allowed}", "status")

    has_start = start_date is not None
    has_end = end_date is not None

    if status is NoteStatus.TODO and (has_start or has_end):
        return ValidationResult(
            False, "Status 'To-do' requires no start date and no end date", "status"
        )
    if status in (NoteStatus.IN_PROGRESS, NoteStatus.TESTING) and (not has_start or has_end):
        return ValidationResult(
            False,
            f"Status '{status.value}' requires a start date and no end date",
            "status",
        )
    if status is NoteStatus.DONE and not (has_start and has_end):
        return ValidationResult(
            False, "Status 'Done' requires both a start date and an end date", "status"
        )
    return VALID


def check_date_range(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    allow_equal: bool = False,
) -> ValidationResult:
    """Start must come before end when both are present."""
    if start_date is None or end_date is None:
        return VALID
    start, end = ensure_utc(start_date), ensure_utc(end_date)
    if start < end or (allow_equal and start == end):
        return VALID
    return ValidationResult(False, "Invalid dates: start date must be before end date", "endDate")


def check_password_length(password: str, field: str = "password") -> ValidationResult:
    if PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        return VALID
    return ValidationResult(
        False,
        f"Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters",
        field,
    )


def ensure_valid(result: ValidationResult) -> None:
    """Boundary adapter: turn a failed check into the 400 the API reports."""
    if not result.ok:
        raise ValidationError(result.message, field=result.field)
