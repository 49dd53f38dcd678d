"""Tests for /api/documents: uploads, access control and report data."""

import os

import pytest

from app.models.task_document import ReportData, TaskDocument
from app.schemas.task_schemas import TaskCreate
from app.services.coach_service import set_user_coach
from app.services.task_service import create_task
from app.services.user_task_service import assign_task

PDF = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


@pytest.fixture
def task(db, coach_user):
    return create_task(
        db,
        TaskCreate(
            title="Upload sugar report",
            start_date="2026-08-01T00:00:00",
            end_date="2026-08-10T00:00:00",
            allow_document_upload=True,
            report_type="SUGAR_REPORT",
        ),
        coach_user,
    )


@pytest.fixture
def user_task(db, task, user, coach):
    set_user_coach(db, user.id, coach.id)
    return assign_task(db, user.id, task.id)


def upload(client, headers, filename="report.pdf", content=PDF, content_type="application/pdf", **form):
    data = {key: str(value) for key, value in form.items()}
    return client.post(
        "/api/documents/upload",
        files={"document": (filename, content, content_type)},
        data=data,
        headers=headers,
    )


class TestUpload:
    def test_task_level_upload(self, client, admin_headers, task, upload_dir):
        resp = upload(client, admin_headers, task_id=task.id)
        assert resp.status_code == 201
        body = resp.json()
        assert body["task_id"] == task.id
        assert body["user_task_id"] is None
        assert body["file_size"] == len(PDF)
        assert len(os.listdir(upload_dir / f"task_{task.id}")) == 1

    def test_upload_against_assignment(self, client, coach_headers, task, user, user_task):
        resp = upload(client, coach_headers, user_task_id=user_task.id)
        assert resp.status_code == 201
        body = resp.json()
        assert body["task_id"] == task.id
        assert body["user_id"] == user.id

    def test_mime_mismatch(self, client, admin_headers, task):
        resp = upload(client, admin_headers, filename="report.pdf", content_type="image/png", task_id=task.id)
        assert resp.status_code == 400
        assert "does not match" in resp.json()["error"]

    def test_disallowed_extension(self, client, admin_headers, task):
        resp = upload(client, admin_headers, filename="notes.txt", content=b"hi", content_type="text/plain", task_id=task.id)
        assert resp.status_code == 400

    def test_too_large(self, client, admin_headers, task, monkeypatch):
        from app.core.config import settings
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)
        resp = upload(client, admin_headers, task_id=task.id)
        assert resp.status_code == 400
        assert "too large" in resp.json()["error"]

    def test_requires_a_target(self, client, admin_headers):
        resp = upload(client, admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Task ID or User Task ID is required"

    def test_unknown_task(self, client, admin_headers):
        assert upload(client, admin_headers, task_id=999).status_code == 404

    def test_users_cannot_upload(self, client, user_headers, task):
        assert upload(client, user_headers, task_id=task.id).status_code == 403

    def test_coach_cannot_upload_for_unmapped_user(self, client, db, coach_headers, task, other_user):
        other_assignment = assign_task(db, other_user.id, task.id)
        resp = upload(client, coach_headers, user_task_id=other_assignment.id)
        assert resp.status_code == 403


class TestAccess:
    def test_owner_can_download(self, client, coach_headers, user_headers, user_task):
        doc_id = upload(client, coach_headers, user_task_id=user_task.id).json()["id"]
        resp = client.get(f"/api/documents/{doc_id}/file", headers=user_headers)
        assert resp.status_code == 200
        assert resp.content == PDF
        assert resp.headers["content-type"] == "application/pdf"

    def test_other_user_is_forbidden(self, client, db, coach_headers, auth_headers, other_user, user_task):
        doc_id = upload(client, coach_headers, user_task_id=user_task.id).json()["id"]
        resp = client.get(f"/api/documents/{doc_id}/file", headers=auth_headers(other_user))
        assert resp.status_code == 403

        listing = client.get(f"/api/documents/user-task/{user_task.id}", headers=auth_headers(other_user))
        assert listing.status_code == 403

    def test_user_sees_task_level_and_own_documents(self, client, db, admin_headers, coach_headers,
                                                    user_headers, task, other_user, user_task):
        upload(client, admin_headers, task_id=task.id)
        upload(client, coach_headers, user_task_id=user_task.id)
        other_assignment = assign_task(db, other_user.id, task.id)
        upload(client, admin_headers, user_task_id=other_assignment.id)

        docs = client.get(f"/api/documents/task/{task.id}", headers=user_headers).json()
        assert len(docs) == 2
        assert client.get(f"/api/documents/task/{task.id}", headers=admin_headers).json().__len__() == 3

    def test_delete_removes_file_and_report_data(self, client, db, admin_headers, task, upload_dir):
        doc = upload(client, admin_headers, task_id=task.id).json()
        client.post(
            f"/api/documents/task/{task.id}/report-data",
            json={"document_id": doc["id"], "blood_sugar_fasting": "5.4"},
            headers=admin_headers,
        )

        resp = client.delete(f"/api/documents/{doc['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert os.listdir(upload_dir / f"task_{task.id}") == []
        assert db.query(TaskDocument).count() == 0
        assert db.query(ReportData).count() == 0


class TestReportData:
    def test_task_level_upsert(self, client, admin_headers, task):
        first = client.post(
            f"/api/documents/task/{task.id}/report-data",
            json={"patient_name": "Asha", "hba1c_value": "6.1"},
            headers=admin_headers,
        )
        assert first.status_code == 200
        second = client.post(
            f"/api/documents/task/{task.id}/report-data",
            json={"patient_name": "Asha", "hba1c_value": "5.9"},
            headers=admin_headers,
        )
        assert second.json()["id"] == first.json()["id"]

        read = client.get(f"/api/documents/task/{task.id}/report-data", headers=admin_headers).json()
        assert read["hba1c_value"] == "5.9"
        assert read["user_task_id"] is None

    def test_assignment_level(self, client, coach_headers, user_headers, task, user, user_task):
        resp = client.post(
            f"/api/documents/task/{task.id}/report-data",
            json={"user_task_id": user_task.id, "blood_sugar_pp": "7.8"},
            headers=coach_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["user_id"] == user.id

        read = client.get(f"/api/documents/user-task/{user_task.id}/report-data", headers=user_headers)
        assert read.json()["blood_sugar_pp"] == "7.8"

    def test_assignment_of_another_task(self, client, db, admin_headers, coach_user, user_task):
        other_task = create_task(
            db,
            TaskCreate(title="Other", start_date="2026-08-01T00:00:00", end_date="2026-08-02T00:00:00"),
            coach_user,
        )
        resp = client.post(
            f"/api/documents/task/{other_task.id}/report-data",
            json={"user_task_id": user_task.id},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_no_report_yet(self, client, admin_headers, task):
        resp = client.get(f"/api/documents/task/{task.id}/report-data", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() is None
