"""Tests for /api/otp."""

from app.models.otp import OTPVerification


class TestGenerateEndpoint:
    def test_returns_code_outside_production(self, client, user):
        resp = client.post("/api/otp/generate", json={"email": "user@example.com"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["email"] == "user@example.com"
        assert len(body["otp"]) == 6
        assert body["expires_at"]
        assert body["resend_available_at"]

    def test_unknown_email(self, client, user):
        resp = client.post("/api/otp/generate", json={"email": "ghost@example.com"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Email not found. Please contact admin."

    def test_cooldown_is_429_with_retry_after(self, client, user):
        client.post("/api/otp/generate", json={"email": "user@example.com"})
        resp = client.post("/api/otp/generate", json={"email": "user@example.com"})
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) > 0
        assert resp.json()["retry_after"] > 0

    def test_invalid_email_is_422(self, client):
        resp = client.post("/api/otp/generate", json={"email": "not-an-email"})
        assert resp.status_code == 422
        assert resp.json()["errors"]


class TestVerifyEndpoint:
    def _generate(self, client):
        return client.post("/api/otp/generate", json={"email": "user@example.com"}).json()["otp"]

    def test_valid_code_returns_token(self, client, user):
        code = self._generate(client)
        resp = client.post("/api/otp/verify", json={"email": "user@example.com", "otp": code})
        assert resp.status_code == 200
        body = resp.json()
        assert body["token"]
        assert body["user"]["id"] == user.id

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200

    def test_used_code_is_rejected(self, client, user):
        code = self._generate(client)
        client.post("/api/otp/verify", json={"email": "user@example.com", "otp": code})
        resp = client.post("/api/otp/verify", json={"email": "user@example.com", "otp": code})
        assert resp.status_code == 400

    def test_wrong_code_reports_remaining_attempts(self, client, user):
        code = self._generate(client)
        wrong = "000000" if code != "000000" else "111111"
        resp = client.post("/api/otp/verify", json={"email": "user@example.com", "otp": wrong})
        assert resp.status_code == 400
        assert "2 attempt(s) remaining" in resp.json()["error"]

    def test_attempt_ceiling_is_429(self, client, db, user):
        code = self._generate(client)
        wrong = "000000" if code != "000000" else "111111"
        statuses = [
            client.post("/api/otp/verify", json={"email": "user@example.com", "otp": wrong}).status_code
            for _ in range(3)
        ]
        assert statuses == [400, 400, 429]

        resp = client.post("/api/otp/verify", json={"email": "user@example.com", "otp": code})
        assert resp.status_code == 429

        record = db.query(OTPVerification).one()
        assert record.is_used is True
