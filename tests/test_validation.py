"""
Taskboard API: Validation Function Tests
=========================================

What:  The status/date table, date ranges and password length checks.
How:   Pure functions; no fixtures needed.
"""

from datetime import datetime, timedelta, timezone

import pytest

from taskboard.exceptions import ValidationError
from taskboard.validation import (
    NoteStatus,
    check_date_range,
    check_note_status,
    check_password_length,
    ensure_utc,
    ensure_valid,
)

START = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
END = START + timedelta(days=2)


class TestNoteStatusTable:

    @pytest.mark.parametrize(
        "status, start, end, ok",
        [
            (NoteStatus.TODO, None, None, True),
            (NoteStatus.TODO, START, None, False),
            (NoteStatus.TODO, None, END, False),
            (NoteStatus.IN_PROGRESS, START, None, True),
            (NoteStatus.IN_PROGRESS, None, None, False),
            (NoteStatus.IN_PROGRESS, START, END, False),
            (NoteStatus.TESTING, START, None, True),
            (NoteStatus.TESTING, START, END, False),
            (NoteStatus.DONE, START, END, True),
            (NoteStatus.DONE, START, None, False),
            (NoteStatus.DONE, None, END, False),
        ],
    )
    def test_status_requires_matching_dates(self, status, start, end, ok):
        assert check_note_status(status, start, end).ok is ok

    def test_accepts_display_value_strings(self):
        assert check_note_status("In-Progress", START, None)

    def test_unknown_status_is_rejected_on_status_field(self):
        result = check_note_status("Blocked", None, None)
        assert not result
        assert result.field == "status"
        assert "Blocked" in result.message

    def test_statuses_are_ordered(self):
        assert [s.value for s in NoteStatus] == ["To-do", "In-Progress", "Testing", "Done"]


class TestDateRange:

    def test_missing_dates_pass(self):
        assert check_date_range(None, END)
        assert check_date_range(START, None)

    def test_start_before_end(self):
        assert check_date_range(START, END)
        result = check_date_range(END, START)
        assert not result
        assert result.field == "endDate"

    def test_equal_dates_only_when_allowed(self):
        assert not check_date_range(START, START)
        assert check_date_range(START, START, allow_equal=True)

    def test_naive_datetimes_compare_as_utc(self):
        naive_end = END.replace(tzinfo=None)
        assert check_date_range(START, naive_end)
        assert ensure_utc(naive_end).tzinfo is timezone.utc


class TestPasswordLength:

    @pytest.mark.parametrize("length, ok", [(5, False), (6, True), (100, True), (101, False)])
    def test_bounds(self, length, ok):
        assert check_password_length("x" * length).ok is ok

    def test_field_name_is_reported(self):
        assert check_password_length("abc", field="newPassword").field == "newPassword"


def test_ensure_valid_raises_with_field():
    with pytest.raises(ValidationError) as exc_info:
        ensure_valid(check_date_range(END, START))
    assert exc_info.value.field == "endDate"
    assert exc_info.value.context == {"field": "endDate"}
