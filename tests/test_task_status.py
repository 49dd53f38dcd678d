"""Tests for app.utils.task_status (derived task status)."""

from datetime import datetime

from app.utils.task_status import TaskStatus, derive_task_status

START = datetime(2026, 3, 10, 9, 0)
END = datetime(2026, 3, 20, 18, 0)


class TestDeriveTaskStatus:
    def test_before_start_is_open(self):
        now = datetime(2026, 3, 9, 23, 59)
        assert derive_task_status(START, END, None, False, now=now) == TaskStatus.OPEN

    def test_start_day_is_on_going(self):
        # earlier in the day than the start timestamp, same calendar date
        now = datetime(2026, 3, 10, 1, 0)
        assert derive_task_status(START, END, None, False, now=now) == TaskStatus.ON_GOING

    def test_deadline_day_is_still_on_going(self):
        now = datetime(2026, 3, 20, 23, 30)
        assert derive_task_status(START, END, END, False, now=now) == TaskStatus.ON_GOING

    def test_past_deadline_incomplete_is_pending(self):
        now = datetime(2026, 3, 21, 0, 1)
        assert derive_task_status(START, END, END, False, now=now) == TaskStatus.PENDING

    def test_completed_wins_over_dates(self):
        past = datetime(2030, 1, 1)
        early = datetime(2026, 1, 1)
        assert derive_task_status(START, END, END, True, now=past) == TaskStatus.COMPLETED
        assert derive_task_status(START, END, END, True, now=early) == TaskStatus.COMPLETED

    def test_deadline_falls_back_to_end_date(self):
        now = datetime(2026, 3, 15)
        assert derive_task_status(START, END, None, False, now=now) == TaskStatus.ON_GOING
        later = datetime(2026, 3, 25)
        assert derive_task_status(START, END, None, False, now=later) == TaskStatus.PENDING

    def test_deadline_before_end_date_is_used(self):
        deadline = datetime(2026, 3, 15)
        now = datetime(2026, 3, 17)
        assert derive_task_status(START, END, deadline, False, now=now) == TaskStatus.PENDING

    def test_missing_dates_are_pending(self):
        now = datetime(2026, 3, 15)
        assert derive_task_status(None, END, END, False, now=now) == TaskStatus.PENDING
        assert derive_task_status(START, None, None, False, now=now) == TaskStatus.PENDING

    def test_unparseable_dates_are_pending(self):
        now = datetime(2026, 3, 15)
        assert derive_task_status("not a date", END, END, False, now=now) == TaskStatus.PENDING

    def test_iso_strings_are_accepted(self):
        now = datetime(2026, 3, 15)
        status = derive_task_status("2026-03-10T00:00:00Z", "2026-03-20", None, False, now=now)
        assert status == TaskStatus.ON_GOING
