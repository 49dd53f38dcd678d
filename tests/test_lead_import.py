"""Tests for Excel lead import (service and /api/upload/leads)."""

from io import BytesIO

import pytest
from openpyxl import Workbook

from app.models.coach import UserCoachMapping
from app.models.lead import Lead
from app.services.auth_service import get_user_by_email
from app.services.lead_import_service import MissingColumnsError, import_leads, normalize_header

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def make_workbook(header, *rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


class TestNormalizeHeader:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Name", "name"),
            ("Full Name", "name"),
            ("Phone Number", "phone_number"),
            ("Mobile", "phone_number"),
            ("E-mail", "email"),
            ("Mail ID", "email"),
            ("Notes", None),
            (None, None),
        ],
    )
    def test_header_aliases(self, title, expected):
        assert normalize_header(title) == expected


class TestImportService:
    def test_creates_leads_and_users(self, db):
        content = make_workbook(
            ("Name", "Mobile", "Email"),
            ("Asha", "01711000001", "Asha@Example.com"),
            ("Bilal", 8801711000002, "bilal@example.com"),
        )
        result = import_leads(db, content)

        assert result.total_rows == 2
        assert result.created == 2
        assert result.users_created == 2
        assert result.errors == []
        assert get_user_by_email(db, "asha@example.com") is not None
        # numeric cells keep their digits, not a float rendering
        assert db.query(Lead).filter(Lead.email == "bilal@example.com").one().phone_number == "8801711000002"

    def test_upserts_by_email(self, db):
        import_leads(db, make_workbook(("name", "phone", "email"), ("Asha", "111", "asha@example.com")))
        result = import_leads(db, make_workbook(("name", "phone", "email"), ("Asha K", "222", "ASHA@example.com")))

        assert result.created == 0
        assert result.updated == 1
        assert result.users_created == 0
        lead = db.query(Lead).one()
        assert (lead.name, lead.phone_number) == ("Asha K", "222")

    def test_blank_and_invalid_rows_are_skipped(self, db):
        content = make_workbook(
            ("name", "phone", "email"),
            ("Asha", "111", "asha@example.com"),
            ("No Phone", None, "nophone@example.com"),
            (None, None, None),
            ("Broken", "333", "not-an-email"),
        )
        result = import_leads(db, content)

        assert result.total_rows == 3
        assert result.created == 1
        assert result.skipped == 2
        assert [e.row for e in result.errors] == [5]

    def test_maps_to_coach(self, db, coach):
        content = make_workbook(("name", "phone", "email"), ("Asha", "111", "asha@example.com"))
        import_leads(db, content, coach_id=coach.id)

        lead = db.query(Lead).one()
        assert lead.assigned_coach_id == coach.id
        assert db.query(UserCoachMapping).one().coach_id == coach.id

    def test_staff_email_is_not_mapped(self, db, coach, admin):
        content = make_workbook(("name", "phone", "email"), ("Admin", "111", "admin@example.com"))
        result = import_leads(db, content, coach_id=coach.id)

        assert result.created == 1
        assert result.users_created == 0
        assert db.query(UserCoachMapping).count() == 0

    def test_missing_columns(self, db):
        with pytest.raises(MissingColumnsError) as exc_info:
            import_leads(db, make_workbook(("Name", "City"), ("Asha", "Dhaka")))
        assert exc_info.value.missing == ["phone_number", "email"]
        assert exc_info.value.found == ["Name", "City"]

    def test_not_a_workbook(self, db):
        with pytest.raises(ValueError):
            import_leads(db, b"definitely not a zip file")


class TestUploadEndpoint:
    def test_upload(self, client, admin_headers, coach):
        content = make_workbook(("name", "phone", "email"), ("Asha", "111", "asha@example.com"))
        resp = client.post(
            "/api/upload/leads",
            files={"file": ("leads.xlsx", content, XLSX)},
            data={"coach_id": str(coach.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["created"] == 1
        assert body["message"] == "Successfully imported 1 leads and created 1 user accounts"

    def test_missing_columns_lists_found(self, client, admin_headers):
        content = make_workbook(("Name", "City"), ("Asha", "Dhaka"))
        resp = client.post(
            "/api/upload/leads",
            files={"file": ("leads.xlsx", content, XLSX)},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["foundColumns"] == ["Name", "City"]

    def test_wrong_file_type(self, client, admin_headers):
        resp = client.post(
            "/api/upload/leads",
            files={"file": ("leads.csv", b"name,phone,email\n", "text/csv")},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_unknown_coach(self, client, admin_headers):
        content = make_workbook(("name", "phone", "email"), ("Asha", "111", "asha@example.com"))
        resp = client.post(
            "/api/upload/leads",
            files={"file": ("leads.xlsx", content, XLSX)},
            data={"coach_id": "999"},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_admin_only(self, client, coach_headers):
        content = make_workbook(("name", "phone", "email"), ("Asha", "111", "asha@example.com"))
        resp = client.post(
            "/api/upload/leads",
            files={"file": ("leads.xlsx", content, XLSX)},
            headers=coach_headers,
        )
        assert resp.status_code == 403
