"""Tests for app.services.user_task_service (assignment and progress)."""

from datetime import datetime, timedelta

import pytest

from app.models.user_task import UserTask, UserTaskStatus
from app.schemas.task_schemas import TaskCreate
from app.services import user_task_service
from app.services.task_service import create_task
from app.services.user_task_service import (
    AlreadyAssignedError,
    assign_task,
    bulk_assign_task,
    get_user_task_stats,
    remove_user_task,
    update_user_task_status,
)
from app.utils.task_status import TaskStatus


@pytest.fixture
def task(db, coach_user):
    start = datetime(2026, 6, 1)
    return create_task(
        db,
        TaskCreate(title="Walk 10k steps", start_date=start, end_date=start + timedelta(days=6)),
        coach_user,
    )


class TestBulkAssign:
    def test_assigns_every_user(self, db, task, user, other_user):
        result = bulk_assign_task(db, task.id, [user.id, other_user.id])
        assert sorted(result.succeeded) == sorted([user.id, other_user.id])
        assert result.already_assigned == []
        assert result.failed == []
        assert len(result.assigned) == 2
        assert all(item.status == UserTaskStatus.INCOMPLETE for item in result.assigned)

    def test_repeating_the_call_creates_nothing(self, db, task, user, other_user):
        bulk_assign_task(db, task.id, [user.id, other_user.id])
        again = bulk_assign_task(db, task.id, [user.id, other_user.id])

        assert again.succeeded == []
        assert sorted(again.already_assigned) == sorted([user.id, other_user.id])
        assert db.query(UserTask).filter(UserTask.task_id == task.id).count() == 2

    def test_duplicate_ids_in_one_request(self, db, task, user):
        result = bulk_assign_task(db, task.id, [user.id, user.id, user.id])
        assert result.succeeded == [user.id]
        assert db.query(UserTask).count() == 1

    def test_unknown_user_fails_alone(self, db, task, user):
        result = bulk_assign_task(db, task.id, [user.id, 9999])
        assert result.succeeded == [user.id]
        assert [f.user_id for f in result.failed] == [9999]
        assert result.failed[0].error == "User not found"

    def test_unknown_task(self, db, user):
        with pytest.raises(LookupError):
            bulk_assign_task(db, 4242, [user.id])

    def test_message_summarises_outcome(self, db, task, user, other_user):
        bulk_assign_task(db, task.id, [user.id])
        result = bulk_assign_task(db, task.id, [user.id, other_user.id, 9999])
        assert result.message == "Assigned task to 1 user(s), 1 already assigned, 1 failed"

    def test_pair_inserted_after_the_existence_check(self, db, task, user, other_user, monkeypatch):
        assign_task(db, user.id, task.id)
        # the pair appears between the lookup and the insert
        monkeypatch.setattr(user_task_service, "_find_assignment", lambda *args: None)

        result = bulk_assign_task(db, task.id, [user.id, other_user.id])

        assert result.already_assigned == [user.id]
        assert result.succeeded == [other_user.id]
        assert result.failed == []
        db.expire_all()
        assert db.query(UserTask).filter(UserTask.task_id == task.id).count() == 2


class TestSingleAssign:
    def test_existing_pair_is_a_conflict(self, db, task, user):
        assign_task(db, user.id, task.id)
        with pytest.raises(AlreadyAssignedError):
            assign_task(db, user.id, task.id)

    def test_unknown_user(self, db, task):
        with pytest.raises(LookupError):
            assign_task(db, 9999, task.id)


class TestStatusUpdate:
    def test_completing_stamps_dates_and_remarks(self, db, task, user):
        user_task = assign_task(db, user.id, task.id)
        done = datetime(2026, 6, 3, 10, 0)
        updated = update_user_task_status(db, user_task, UserTaskStatus.COMPLETED, "Felt great", done)

        assert updated.status == UserTaskStatus.COMPLETED
        assert updated.completed_at is not None
        assert updated.done_date == done
        assert updated.remarks == "Felt great"

    def test_done_date_defaults_to_now(self, db, task, user):
        user_task = assign_task(db, user.id, task.id)
        updated = update_user_task_status(db, user_task, UserTaskStatus.COMPLETED)
        assert updated.done_date is not None

    def test_reopening_clears_completion(self, db, task, user):
        user_task = assign_task(db, user.id, task.id)
        update_user_task_status(db, user_task, UserTaskStatus.COMPLETED, "done")
        reopened = update_user_task_status(db, user_task, UserTaskStatus.INCOMPLETE, "ignored")

        assert reopened.completed_at is None
        assert reopened.done_date is None
        assert reopened.remarks is None


class TestStats:
    def test_counts_by_derived_status(self, db, task, user):
        user_task = assign_task(db, user.id, task.id)
        now = datetime(2026, 6, 20)

        stats = get_user_task_stats(db, user.id, now=now)
        assert stats.total == 1
        assert stats.pending == 1
        assert stats.completion_rate == 0.0

        update_user_task_status(db, user_task, UserTaskStatus.COMPLETED)
        stats = get_user_task_stats(db, user.id, now=now)
        assert stats.completed == 1
        assert stats.pending == 0
        assert stats.completion_rate == 100.0

    def test_no_assignments(self, db, user):
        stats = get_user_task_stats(db, user.id)
        assert stats.total == 0
        assert stats.completion_rate == 0.0


def test_remove_user_task(db, task, user):
    user_task = assign_task(db, user.id, task.id)
    remove_user_task(db, user_task)
    assert db.query(UserTask).count() == 0


def test_assignment_status_follows_task_dates(db, task, user):
    result = bulk_assign_task(db, task.id, [user.id])
    item = result.assigned[0]
    assert item.task_status == item.task.status
    assert item.task_status in set(TaskStatus)
