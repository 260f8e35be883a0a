"""
tests/integration/test_tokens.py — Integration tests for the token endpoints.

Endpoints covered:
  POST /api/tokens                 → 200 AuthResult + refreshToken cookie / 401
  POST /api/tokens/refresh-token   → 200 rotated pair / 400
  POST /api/tokens/revoke-token    → 200 / 400 / 404
  GET  /api/tokens/<user_id>       → 200 / 401 / 403 / 404

Auth error cases (middleware):
  TOKEN_MISSING  401 — no Authorization header
  TOKEN_INVALID  401 — malformed or tampered token
  TOKEN_EXPIRED  401 — exp in the past
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from .conftest import auth_headers, get_token, make_admin, register

COOKIE = "refreshToken"


def _user_id(app, token: str) -> int:
    payload = jwt.decode(
        token,
        app.config["JWT_KEY"],
        algorithms=["HS256"],
        audience=app.config["JWT_AUDIENCE"],
        issuer=app.config["JWT_ISSUER"],
    )
    return int(payload["uid"])


# ═══════════════════════════════════════════════════════════════════════════
# POST /api/tokens
# ═══════════════════════════════════════════════════════════════════════════

class TestGetToken:

    def test_success_returns_auth_result(self, client):
        register(client, "alice")
        resp = client.post("/api/tokens", json={
            "email": "alice@test.com", "password": "Password1",
        })
        assert resp.status_code == 200

        body = resp.get_json()
        assert body["isAuthenticated"] is True
        assert body["username"] == "alice"
        assert body["email"] == "alice@test.com"
        assert body["roles"] == ["User"]
        assert body["token"]
        assert body["expiresOn"]
        assert body["refreshToken"]
        assert body["refreshTokenExpiration"]
        assert "password" not in body

    def test_sets_http_only_strict_cookie(self, client):
        register(client, "alice")
        body = get_token(client, "alice@test.com")

        cookie = client.get_cookie(COOKIE)
        assert cookie is not None
        assert cookie.value == body["refreshToken"]
        assert cookie.http_only
        assert cookie.same_site == "Strict"

    def test_access_token_claims(self, app, client):
        register(client, "alice")
        body = get_token(client, "alice@test.com")

        payload = jwt.decode(
            body["token"],
            app.config["JWT_KEY"],
            algorithms=["HS256"],
            audience="MovieApiUser",
            issuer="MovieApi",
        )
        assert payload["sub"] == "alice"
        assert payload["email"] == "alice@test.com"
        assert payload["roles"] == ["User"]
        assert payload["jti"]
        assert int(payload["uid"]) > 0

    def test_second_login_reuses_active_refresh_token(self, client):
        register(client, "alice")
        first = get_token(client, "alice@test.com")
        second = get_token(client, "alice@test.com")
        assert first["refreshToken"] == second["refreshToken"]

    def test_email_is_matched_case_insensitively(self, client):
        register(client, "alice")
        body = get_token(client, "ALICE@test.com")
        assert body["username"] == "alice"

    def test_unknown_email_returns_401(self, client):
        resp = client.post("/api/tokens", json={
            "email": "ghost@test.com", "password": "Password1",
        })
        assert resp.status_code == 401

        body = resp.get_json()
        assert body["isAuthenticated"] is False
        assert body["message"] == "No Accounts Registered with ghost@test.com."
        assert client.get_cookie(COOKIE) is None

    def test_wrong_password_returns_401(self, client):
        register(client, "alice")
        resp = client.post("/api/tokens", json={
            "email": "alice@test.com", "password": "WrongPass9",
        })
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Incorrect Credentials for user alice@test.com."

    def test_missing_fields_return_400(self, client):
        resp = client.post("/api/tokens", json={})
        assert resp.status_code == 400
        assert set(resp.get_json()["errors"]) == {"email", "password"}


# ═══════════════════════════════════════════════════════════════════════════
# POST /api/tokens/refresh-token
# ═══════════════════════════════════════════════════════════════════════════

class TestRefreshToken:

    def test_rotation_issues_a_new_pair(self, client):
        register(client, "alice")
        first = get_token(client, "alice@test.com")

        resp = client.post("/api/tokens/refresh-token")
        assert resp.status_code == 200

        body = resp.get_json()
        assert body["isAuthenticated"] is True
        assert body["refreshToken"] != first["refreshToken"]
        assert body["token"]
        assert client.get_cookie(COOKIE).value == body["refreshToken"]

    def test_rotated_token_cannot_be_used_again(self, client):
        register(client, "alice")
        old = get_token(client, "alice@test.com")["refreshToken"]

        assert client.post("/api/tokens/refresh-token").status_code == 200

        client.set_cookie(COOKIE, old)
        resp = client.post("/api/tokens/refresh-token")
        assert resp.status_code == 400

        body = resp.get_json()
        assert body["isAuthenticated"] is False
        assert body["message"] == "Token Not Active."

    def test_new_token_keeps_working_after_rotation(self, client):
        register(client, "alice")
        get_token(client, "alice@test.com")

        assert client.post("/api/tokens/refresh-token").status_code == 200
        assert client.post("/api/tokens/refresh-token").status_code == 200

    def test_unknown_token_returns_400(self, client):
        client.set_cookie(COOKIE, "bm90LWEtcmVhbC10b2tlbg==")
        resp = client.post("/api/tokens/refresh-token")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Token did not match any users."

    def test_missing_cookie_returns_400(self, client):
        resp = client.post("/api/tokens/refresh-token")
        assert resp.status_code == 400
        assert resp.get_json()["isAuthenticated"] is False

    def test_login_after_rotation_returns_the_successor(self, client):
        register(client, "alice")
        get_token(client, "alice@test.com")
        rotated = client.post("/api/tokens/refresh-token").get_json()["refreshToken"]

        assert get_token(client, "alice@test.com")["refreshToken"] == rotated


# ═══════════════════════════════════════════════════════════════════════════
# POST /api/tokens/revoke-token
# ═══════════════════════════════════════════════════════════════════════════

class TestRevokeToken:

    def test_revoke_by_body(self, client):
        register(client, "alice")
        token = get_token(client, "alice@test.com")["refreshToken"]

        resp = client.post("/api/tokens/revoke-token", json={"token": token})
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Token revoked"

    def test_revoke_falls_back_to_cookie(self, client):
        register(client, "alice")
        get_token(client, "alice@test.com")

        resp = client.post("/api/tokens/revoke-token", json={})
        assert resp.status_code == 200

    def test_revoked_token_cannot_refresh(self, client):
        register(client, "alice")
        get_token(client, "alice@test.com")
        client.post("/api/tokens/revoke-token")

        resp = client.post("/api/tokens/refresh-token")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Token Not Active."

    def test_revoking_twice_returns_404(self, client):
        register(client, "alice")
        token = get_token(client, "alice@test.com")["refreshToken"]

        client.post("/api/tokens/revoke-token", json={"token": token})
        resp = client.post("/api/tokens/revoke-token", json={"token": token})
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "Token not found."

    def test_unknown_token_returns_404(self, client):
        resp = client.post("/api/tokens/revoke-token", json={"token": "nope"})
        assert resp.status_code == 404

    def test_no_token_at_all_returns_400(self, client):
        resp = client.post("/api/tokens/revoke-token", json={})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Token is required."

    def test_login_after_revoke_mints_a_new_token(self, client):
        register(client, "alice")
        old = get_token(client, "alice@test.com")["refreshToken"]
        client.post("/api/tokens/revoke-token", json={"token": old})

        assert get_token(client, "alice@test.com")["refreshToken"] != old


# ═══════════════════════════════════════════════════════════════════════════
# GET /api/tokens/<user_id>
# ═══════════════════════════════════════════════════════════════════════════

class TestListRefreshTokens:

    def test_user_lists_own_tokens_including_revoked(self, app, client):
        register(client, "alice")
        auth = get_token(client, "alice@test.com")
        client.post("/api/tokens/refresh-token")
        user_id = _user_id(app, auth["token"])

        resp = client.get(f"/api/tokens/{user_id}", headers=auth_headers(auth["token"]))
        assert resp.status_code == 200

        tokens = resp.get_json()
        assert len(tokens) == 2
        assert tokens[0]["token"] == auth["refreshToken"]
        assert tokens[0]["revoked"] is not None
        assert tokens[0]["isActive"] is False
        assert tokens[1]["revoked"] is None
        assert tokens[1]["isActive"] is True
        assert tokens[1]["isExpired"] is False

    def test_other_user_gets_403(self, app, client):
        register(client, "alice")
        register(client, "bob")
        alice = get_token(client, "alice@test.com")
        bob = get_token(client, "bob@test.com")

        resp = client.get(
            f"/api/tokens/{_user_id(app, bob['token'])}",
            headers=auth_headers(alice["token"]),
        )
        assert resp.status_code == 403
        assert resp.get_json()["code"] == "FORBIDDEN"

    def test_administrator_may_list_any_user(self, app, client):
        register(client, "admin")
        register(client, "bob")
        make_admin(app, "admin@test.com")
        admin = get_token(client, "admin@test.com")
        bob = get_token(client, "bob@test.com")

        resp = client.get(
            f"/api/tokens/{_user_id(app, bob['token'])}",
            headers=auth_headers(admin["token"]),
        )
        assert resp.status_code == 200
        assert resp.get_json()[0]["token"] == bob["refreshToken"]

    def test_administrator_gets_404_for_unknown_user(self, app, client):
        register(client, "admin")
        make_admin(app, "admin@test.com")
        admin = get_token(client, "admin@test.com")

        resp = client.get("/api/tokens/999999", headers=auth_headers(admin["token"]))
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "USER_NOT_FOUND"

    def test_missing_header_returns_401(self, client):
        resp = client.get("/api/tokens/1")
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "TOKEN_MISSING"

    def test_malformed_header_returns_401(self, client):
        resp = client.get("/api/tokens/1", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "TOKEN_INVALID"

    def test_tampered_token_returns_401(self, client):
        register(client, "alice")
        token = get_token(client, "alice@test.com")["token"]

        resp = client.get("/api/tokens/1", headers=auth_headers(token + "x"))
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "TOKEN_INVALID"

    def test_wrong_audience_returns_401(self, app, client):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "alice", "uid": "1", "roles": [],
                "iss": app.config["JWT_ISSUER"], "aud": "someone-else",
                "iat": now, "exp": now + timedelta(minutes=5),
            },
            app.config["JWT_KEY"],
            algorithm="HS256",
        )
        resp = client.get("/api/tokens/1", headers=auth_headers(token))
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "TOKEN_INVALID"

    def test_expired_token_returns_401(self, app, client):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "alice", "uid": "1", "roles": [],
                "iss": app.config["JWT_ISSUER"], "aud": app.config["JWT_AUDIENCE"],
                "iat": past, "exp": past + timedelta(minutes=5),
            },
            app.config["JWT_KEY"],
            algorithm="HS256",
        )
        resp = client.get("/api/tokens/1", headers=auth_headers(token))
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "TOKEN_EXPIRED"
