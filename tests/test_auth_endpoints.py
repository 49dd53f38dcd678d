"""Tests for /api/auth and role enforcement."""


class TestSignupAndLogin:
    def test_signup_returns_token_and_user(self, client):
        resp = client.post(
            "/api/auth/signup",
            json={"name": "New Person", "email": "New@Example.com", "password": "secret123"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["token"]
        assert body["user"]["email"] == "new@example.com"
        assert body["user"]["role"] == "USER"
        assert "hashed_password" not in body["user"]

    def test_signup_duplicate_email(self, client, user):
        resp = client.post(
            "/api/auth/signup",
            json={"name": "Dup", "email": "USER@example.com", "password": "secret123"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "Email already registered"

    def test_coach_signup_creates_coach_profile(self, client):
        client.post(
            "/api/auth/signup",
            json={"name": "Coach Two", "email": "coach2@example.com", "password": "secret123", "role": "COACH"},
        )
        coaches = client.get("/api/coaches/").json()
        assert [c["email"] for c in coaches] == ["coach2@example.com"]

    def test_admin_cannot_self_register(self, client):
        resp = client.post(
            "/api/auth/signup",
            json={"name": "Boss", "email": "boss@example.com", "password": "secret123", "role": "ADMIN"},
        )
        assert resp.status_code == 403

    def test_login(self, client, user):
        resp = client.post("/api/auth/login", json={"email": "user@example.com", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.json()["user"]["id"] == user.id

    def test_login_wrong_password(self, client, user):
        resp = client.post("/api/auth/login", json={"email": "user@example.com", "password": "nope123"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid credentials"
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_forgot_password_does_not_reveal_accounts(self, client, user):
        known = client.post("/api/auth/forgot-password", json={"email": "user@example.com"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()


class TestAuthentication:
    def test_me(self, client, user, user_headers):
        resp = client.get("/api/auth/me", headers=user_headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == user.email

    def test_missing_token(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"] == "No token provided"

    def test_garbage_token(self, client):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_token_of_deleted_user(self, client, db, user, auth_headers):
        headers = auth_headers(user)
        db.delete(user)
        db.commit()
        assert client.get("/api/auth/me", headers=headers).status_code == 401


class TestRoleEnforcement:
    def test_forbidden_body_lists_roles(self, client, user_headers):
        resp = client.get("/api/users/analytics", headers=user_headers)
        assert resp.status_code == 403
        body = resp.json()
        assert body["error"] == "Insufficient permissions"
        assert body["requiredRoles"] == ["ADMIN"]
        assert body["userRole"] == "USER"

    def test_coach_sees_only_mapped_users(self, client, admin_headers, coach_headers, coach, user, other_user):
        resp = client.post(
            "/api/users/assign-coach",
            json={"user_id": user.id, "coach_id": coach.id},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        listed = client.get("/api/users/", headers=coach_headers).json()
        assert [u["id"] for u in listed] == [user.id]

        assert client.get(f"/api/users/{other_user.id}", headers=coach_headers).status_code == 403
        assert client.get(f"/api/users/{user.id}", headers=coach_headers).status_code == 200


def test_health_and_index(client):
    assert client.get("/health").json()["status"] == "OK"
    index = client.get("/api").json()
    assert index["endpoints"]["otp"] == "/api/otp"
