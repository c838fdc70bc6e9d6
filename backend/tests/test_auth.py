"""Tests for tokens, registration/login, and per-user scoping when auth is enabled."""

from datetime import datetime, timezone

from problembox.core.config import settings
from problembox.core.token_factory import create_token, decode_token


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("user-1", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "user-1"
        assert payload.exp > datetime.now(timezone.utc)

    def test_wrong_secret_returns_none(self):
        token = create_token("user-1", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("user-1", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None


class TestAuthDisabledMode:
    """When AUTH_ENABLED=false (default), requests act as the local user."""

    def test_requests_without_token_succeed(self, client):
        resp = client.post("/api/folders", json={"title": "No Auth"})
        assert resp.status_code == 200

    def test_local_profile_is_created(self, client):
        profile = client.get("/api/bootstrap").json()["profile"]
        assert profile["id"] == settings.default_user_id
        assert profile["name"] == "Local User"


def _register(client, email="ada@example.com", password="secret-pass", name="Ada"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


class TestRegisterAndLogin:

    def test_register_returns_token_and_profile(self, client):
        resp = _register(client, email="  Ada@Example.com ")
        assert resp.status_code == 201
        body = resp.json()
        assert body["profile"]["email"] == "ada@example.com"
        assert decode_token(body["token"], settings.jwt_secret_key).sub == body["profile"]["id"]

    def test_duplicate_email_rejected(self, client):
        _register(client)
        resp = _register(client)
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "email"

    def test_short_password_rejected(self, client):
        assert _register(client, password="123").status_code == 422

    def test_login(self, client):
        _register(client)
        resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret-pass"})
        assert resp.status_code == 200
        assert resp.json()["profile"]["name"] == "Ada"

    def test_wrong_password_rejected(self, client):
        _register(client)
        resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "nope-nope"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"


class TestAuthEnabled:

    def test_missing_token_rejected(self, client, auth_enabled):
        resp = client.get("/api/bootstrap")
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_invalid_token_rejected(self, client, auth_enabled):
        resp = client.get("/api/bootstrap", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    def test_token_for_unknown_user_rejected(self, client, auth_enabled, auth_headers):
        # The local user has no profile row while auth is on.
        resp = client.get("/api/bootstrap", headers=auth_headers)
        assert resp.status_code == 401

    def test_users_only_see_their_own_rows(self, client, auth_enabled):
        ada = {"Authorization": f"Bearer {_register(client).json()['token']}"}
        bob = {"Authorization": f"Bearer {_register(client, email='bob@example.com', name='Bob').json()['token']}"}

        folder = client.post("/api/folders", json={"title": "Private"}, headers=ada).json()["node"]

        bob_titles = [n["title"] for n in client.get("/api/bootstrap", headers=bob).json()["tree"]]
        assert "Private" not in bob_titles

        resp = client.post(
            "/api/nodes/move-node", json={"nodeId": folder["id"], "targetFolderId": None}, headers=bob
        )
        assert resp.status_code == 404
        resp = client.delete(f"/api/nodes/{folder['id']}", headers=bob)
        assert resp.json()["affectedIds"] == []

    def test_change_password(self, client, auth_enabled):
        headers = {"Authorization": f"Bearer {_register(client).json()['token']}"}
        resp = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "secret-pass", "newPassword": "better-pass"},
            headers=headers,
        )
        assert resp.status_code == 200
        login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "better-pass"})
        assert login.status_code == 200
