"""Tests for /api/tasks and the task service."""

from datetime import datetime

import pytest

from app.models.task_document import TaskDocument
from app.models.user import UserRole
from app.models.user_task import UserTask, UserTaskStatus
from app.schemas.auth_schemas import UserCreate
from app.schemas.task_schemas import TaskCreate, TaskUpdate
from app.services.auth_service import create_user
from app.services.task_service import create_task, update_task
from app.services.user_task_service import assign_task, update_user_task_status
from app.utils.task_status import TaskStatus, status_for_task

PAST = {"start_date": "2001-01-01T00:00:00", "end_date": "2001-01-10T00:00:00"}
FUTURE = {"start_date": "2099-01-01T00:00:00", "end_date": "2099-01-10T00:00:00"}
CURRENT = {"start_date": "2001-01-01T00:00:00", "end_date": "2099-01-10T00:00:00"}


@pytest.fixture
def second_coach_user(db):
    return create_user(
        db,
        UserCreate(name="Coach Two", email="coach2@example.com", password="secret123", role=UserRole.COACH),
    )


def create(client, headers, title="Log meals", dates=CURRENT, **extra):
    return client.post("/api/tasks/", json={"title": title, **dates, **extra}, headers=headers)


class TestCreate:
    def test_coach_owns_task_by_default(self, client, coach_headers, coach, coach_user):
        resp = create(client, coach_headers)
        assert resp.status_code == 201
        body = resp.json()
        assert body["coach_id"] == coach.id
        assert body["assigned_by"] == coach_user.id
        assert body["status"] == "ON_GOING"
        # deadline falls back to end_date
        assert body["deadline"].startswith("2099-01-10")

    def test_status_follows_dates(self, client, coach_headers):
        assert create(client, coach_headers, dates=FUTURE).json()["status"] == "OPEN"
        assert create(client, coach_headers, dates=PAST).json()["status"] == "PENDING"

    def test_start_after_end_is_422(self, client, coach_headers):
        resp = create(client, coach_headers, dates={"start_date": "2026-05-02T00:00:00", "end_date": "2026-05-01T00:00:00"})
        assert resp.status_code == 422

    def test_unknown_coach(self, client, admin_headers):
        assert create(client, admin_headers, coach_id=999).status_code == 404

    def test_users_cannot_create(self, client, user_headers):
        assert create(client, user_headers).status_code == 403


class TestUpdate:
    def test_update_fields(self, client, coach_headers):
        task_id = create(client, coach_headers).json()["id"]
        resp = client.put(
            f"/api/tasks/{task_id}",
            json={"title": "Log every meal", "allow_document_upload": True, "report_type": "SUGAR_REPORT"},
            headers=coach_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["title"] == "Log every meal"
        assert body["allow_document_upload"] is True
        assert body["report_type"] == "SUGAR_REPORT"

    def test_empty_update(self, client, coach_headers):
        task_id = create(client, coach_headers).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json={}, headers=coach_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "No fields to update"

    def test_dates_checked_against_stored_row(self, client, coach_headers):
        task_id = create(client, coach_headers, dates=PAST).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json={"start_date": "2002-01-01T00:00:00"}, headers=coach_headers)
        assert resp.status_code == 400

    def test_other_coach_is_forbidden(self, client, coach_headers, auth_headers, second_coach_user):
        task_id = create(client, coach_headers).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json={"title": "Mine now"}, headers=auth_headers(second_coach_user))
        assert resp.status_code == 403

    def test_admin_can_update_any_task(self, client, coach_headers, admin_headers):
        task_id = create(client, coach_headers).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json={"title": "Reviewed"}, headers=admin_headers)
        assert resp.status_code == 200

    def test_missing_task(self, client, admin_headers):
        assert client.put("/api/tasks/404", json={"title": "x"}, headers=admin_headers).status_code == 404


class TestCompletion:
    def test_complete_overrides_dates_and_reopen_restores(self, client, coach_headers):
        task_id = create(client, coach_headers, dates=PAST).json()["id"]

        done = client.patch(f"/api/tasks/{task_id}/status", json={"completed": True}, headers=coach_headers)
        assert done.status_code == 200
        assert done.json()["status"] == "COMPLETED"
        assert done.json()["completed_at"] is not None

        reopened = client.patch(f"/api/tasks/{task_id}/status", json={"completed": False}, headers=coach_headers)
        assert reopened.json()["status"] == "PENDING"
        assert reopened.json()["completed_at"] is None

    def test_users_cannot_complete_tasks(self, client, coach_headers, user_headers):
        task_id = create(client, coach_headers).json()["id"]
        resp = client.patch(f"/api/tasks/{task_id}/status", json={"completed": True}, headers=user_headers)
        assert resp.status_code == 403


class TestReporting:
    def test_stats(self, client, db, coach_headers, user_headers, coach, user, other_user):
        open_id = create(client, coach_headers, dates=FUTURE).json()["id"]
        create(client, coach_headers, dates=PAST)
        done_id = create(client, coach_headers, dates=CURRENT).json()["id"]
        client.patch(f"/api/tasks/{done_id}/status", json={"completed": True}, headers=coach_headers)

        first = assign_task(db, user.id, open_id)
        assign_task(db, other_user.id, open_id)
        update_user_task_status(db, first, UserTaskStatus.COMPLETED)

        resp = client.get(f"/api/tasks/stats/{coach.id}", headers=user_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 3
        assert body["by_status"] == {"OPEN": 1, "ON_GOING": 0, "PENDING": 1, "COMPLETED": 1}
        assert body["assignments_total"] == 2
        assert body["assignments_completed"] == 1
        assert body["completion_rate"] == 50.0

    def test_stats_without_assignments(self, client, coach_headers, coach):
        create(client, coach_headers)
        body = client.get(f"/api/tasks/stats/{coach.id}", headers=coach_headers).json()
        assert body["completion_rate"] == 0.0

    def test_by_date_groups_on_deadline(self, client, coach_headers, coach):
        create(client, coach_headers, title="A", dates=FUTURE)
        create(client, coach_headers, title="B", dates=FUTURE, deadline="2099-01-05T00:00:00")
        create(client, coach_headers, title="C", dates=FUTURE)

        grouped = client.get(f"/api/tasks/by-date/{coach.id}", headers=coach_headers).json()
        assert list(grouped) == ["2099-01-05", "2099-01-10"]
        assert [t["title"] for t in grouped["2099-01-05"]] == ["B"]
        assert sorted(t["title"] for t in grouped["2099-01-10"]) == ["A", "C"]

    def test_unknown_coach(self, client, user_headers):
        assert client.get("/api/tasks/stats/999", headers=user_headers).status_code == 404
        assert client.get("/api/tasks/by-date/999", headers=user_headers).status_code == 404

    def test_list_filters_by_coach(self, client, coach_headers, admin_headers, coach):
        create(client, coach_headers, title="Coach task")
        create(client, admin_headers, title="Unowned task")

        everything = client.get("/api/tasks/", headers=admin_headers).json()
        assert len(everything) == 2
        scoped = client.get("/api/tasks/", params={"coach_id": coach.id}, headers=admin_headers).json()
        assert [t["title"] for t in scoped] == ["Coach task"]


class TestDetailAndDelete:
    def test_detail_includes_documents(self, client, coach_headers, user_headers):
        task_id = create(client, coach_headers, allow_document_upload=True).json()["id"]
        client.post(
            "/api/documents/upload",
            files={"document": ("scan.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
            data={"task_id": str(task_id)},
            headers=coach_headers,
        )

        detail = client.get(f"/api/tasks/{task_id}", headers=user_headers).json()
        assert [d["file_name"] for d in detail["documents"]] == ["scan.png"]
        assert detail["report_data"] is None

    def test_delete_cascades(self, client, db, coach_headers, user, upload_dir):
        task_id = create(client, coach_headers).json()["id"]
        assign_task(db, user.id, task_id)
        client.post(
            "/api/documents/upload",
            files={"document": ("scan.pdf", b"%PDF-1.4 fake", "application/pdf")},
            data={"task_id": str(task_id)},
            headers=coach_headers,
        )

        resp = client.delete(f"/api/tasks/{task_id}", headers=coach_headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Task deleted successfully"

        db.expire_all()
        assert db.query(UserTask).count() == 0
        assert db.query(TaskDocument).count() == 0
        assert list((upload_dir / f"task_{task_id}").iterdir()) == []
        assert client.get(f"/api/tasks/{task_id}", headers=coach_headers).status_code == 404


class TestDeadline:
    def test_defaulted_deadline_follows_end_date(self, db, coach_user):
        task = create_task(
            db,
            TaskCreate(title="Walk", start_date=datetime(2026, 6, 1), end_date=datetime(2026, 6, 7)),
            coach_user,
        )
        task = update_task(db, task, TaskUpdate(end_date=datetime(2026, 6, 30)))

        assert task.deadline == datetime(2026, 6, 30)
        assert status_for_task(task, now=datetime(2026, 6, 15)) == TaskStatus.ON_GOING

    def test_explicit_deadline_is_kept(self, db, coach_user):
        task = create_task(
            db,
            TaskCreate(
                title="Walk",
                start_date=datetime(2026, 6, 1),
                end_date=datetime(2026, 6, 7),
                deadline=datetime(2026, 6, 5),
            ),
            coach_user,
        )
        task = update_task(db, task, TaskUpdate(end_date=datetime(2026, 6, 30)))
        assert task.deadline == datetime(2026, 6, 5)

    def test_deadline_before_start_on_create(self, client, coach_headers):
        resp = create(client, coach_headers, dates=FUTURE, deadline="2098-12-31T00:00:00")
        assert resp.status_code == 422

    def test_deadline_before_start_on_update(self, client, coach_headers):
        task_id = create(client, coach_headers, dates=FUTURE).json()["id"]
        resp = client.put(f"/api/tasks/{task_id}", json={"deadline": "2098-12-31T00:00:00"}, headers=coach_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "deadline must be on or after start_date"

    def test_offsets_are_compared_in_utc(self, client, coach_headers):
        # 01:00 at +03:00 is 22:00 UTC on the previous day
        resp = create(
            client,
            coach_headers,
            dates={"start_date": "2026-05-02T01:00:00+03:00", "end_date": "2026-05-01T23:00:00+00:00"},
        )
        assert resp.status_code == 201
        assert resp.json()["start_date"].startswith("2026-05-01T22:00")

        moved = client.put(
            f"/api/tasks/{resp.json()['id']}",
            json={"start_date": "2026-05-02T02:00:00+05:00"},
            headers=coach_headers,
        )
        assert moved.status_code == 200
