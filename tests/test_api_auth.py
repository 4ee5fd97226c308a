from datetime import datetime, timedelta

from conftest import ADMIN_EMAIL, OWNER_EMAIL, OWNER_PASSWORD, bearer, login


def test_login_returns_envelope_with_tokens(client):
    response = login(client, OWNER_EMAIL, OWNER_PASSWORD)
    assert response.status_code == 200

    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    data = body["data"]
    assert set(data) >= {"user", "token", "refresh_token", "expires_at"}
    assert data["user"]["email"] == OWNER_EMAIL
    assert data["user"]["role"] == "owner"
    assert data["user"]["full_name"] == "Olivia Owner"
    expires_at = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))
    assert expires_at > datetime.now(expires_at.tzinfo) + timedelta(minutes=50)


def test_login_failures_are_indistinguishable(client):
    wrong_password = login(client, OWNER_EMAIL, "wrong-password")
    unknown_email = login(client, "ghost@rental.example.com", OWNER_PASSWORD)

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["success"] is False


def test_login_with_missing_fields_is_unauthorized(client):
    response = client.post("/api/v1/auth/login", json={"email": OWNER_EMAIL})
    assert response.status_code == 401
    assert response.json()["message"] == "Authentication failed"


def test_me_requires_bearer_token(client):
    missing = client.get("/api/v1/auth/me")
    assert missing.status_code == 401
    assert missing.json() == {"success": False, "message": "Authentication required"}

    wrong_scheme = client.get("/api/v1/auth/me", headers={"Authorization": "Basic abc"})
    assert wrong_scheme.status_code == 401

    garbage = client.get("/api/v1/auth/me", headers=bearer("garbage"))
    assert garbage.status_code == 401
    assert garbage.json()["message"] == "Invalid or expired token"
    assert garbage.headers["www-authenticate"] == "Bearer"


def test_login_me_logout_scenario(client):
    token = login(client, OWNER_EMAIL, OWNER_PASSWORD).json()["data"]["token"]

    me = client.get("/api/v1/auth/me", headers=bearer(token))
    assert me.status_code == 200
    assert me.json()["data"]["email"] == OWNER_EMAIL
    assert me.json()["data"]["phone"] == "555-0101"

    logout = client.delete("/api/v1/auth/logout", headers=bearer(token))
    assert logout.status_code == 200
    assert logout.json() == {"success": True, "message": "Logout successful"}

    assert client.get("/api/v1/auth/me", headers=bearer(token)).status_code == 401
    assert client.get("/api/v1/users/1", headers=bearer(token)).status_code == 401
    # Token revogado não consegue nem repetir o logout
    assert client.delete("/api/v1/auth/logout", headers=bearer(token)).status_code == 401


def test_logout_keeps_other_sessions_access_tokens_valid(client):
    first = login(client, OWNER_EMAIL, OWNER_PASSWORD).json()["data"]["token"]
    second = login(client, OWNER_EMAIL, OWNER_PASSWORD).json()["data"]["token"]

    assert client.delete("/api/v1/auth/logout", headers=bearer(first)).status_code == 200

    assert client.get("/api/v1/auth/me", headers=bearer(first)).status_code == 401
    assert client.get("/api/v1/auth/me", headers=bearer(second)).status_code == 200


def test_refresh_rotates_and_rejects_replay(client):
    old_refresh = login(client, OWNER_EMAIL, OWNER_PASSWORD).json()["data"]["refresh_token"]

    rotated = client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert rotated.status_code == 200
    new_data = rotated.json()["data"]
    assert new_data["refresh_token"] != old_refresh
    assert client.get("/api/v1/auth/me", headers=bearer(new_data["token"])).status_code == 200

    replay = client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert replay.status_code == 401


def test_refresh_token_dies_on_logout(client):
    data = login(client, OWNER_EMAIL, OWNER_PASSWORD).json()["data"]
    client.delete("/api/v1/auth/logout", headers=bearer(data["token"]))

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]})
    assert response.status_code == 401


def test_self_registration(client):
    response = client.post("/api/v1/auth/register", json={
        "email": "new.tenant@rental.example.com",
        "password": "Password123",
        "first_name": "Nina",
        "role": "admin",  # ignorado: auto-cadastro sempre cria owner
    })
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "owner"

    assert login(client, "new.tenant@rental.example.com", "Password123").status_code == 200


def test_self_registration_validation(client):
    response = client.post("/api/v1/auth/register", json={
        "email": "not-an-email", "password": "short", "first_name": "",
    })
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert len(body["errors"]) == 3

    duplicate = client.post("/api/v1/auth/register", json={
        "email": ADMIN_EMAIL, "password": "Password123", "first_name": "Dup",
    })
    assert duplicate.status_code == 422
    assert duplicate.json()["errors"] == ["Email has already been taken"]


def test_self_registration_can_be_disabled(client, monkeypatch):
    from rental_auth.core.config import settings

    monkeypatch.setattr(settings, "ALLOW_SELF_REGISTRATION", False)
    response = client.post("/api/v1/auth/register", json={
        "email": "blocked@rental.example.com", "password": "Password123", "first_name": "B",
    })
    assert response.status_code == 403


def test_sweep_endpoint_requires_api_key(client):
    assert client.post("/api/v1/mgmt/revocations/sweep").status_code == 401
    assert client.post(
        "/api/v1/mgmt/revocations/sweep", headers={"X-API-Key": "wrong"}
    ).status_code == 401

    response = client.post("/api/v1/mgmt/revocations/sweep", headers={"X-API-Key": "test-internal-key"})
    assert response.status_code == 200
    assert response.json()["data"] == {"deleted": 0}


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["data"] == {"database": "ok"}


def test_unknown_route_and_method_use_envelope(client):
    missing = client.get("/api/v1/nope")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "message": "Not Found"}

    wrong_method = client.put("/api/v1/auth/login", json={})
    assert wrong_method.status_code == 405
    assert wrong_method.json() == {"success": False, "message": "Method Not Allowed"}


def test_login_rate_limit_uses_envelope(client, monkeypatch):
    from rental_auth.core.rate_limit import limiter

    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        statuses = [login(client, OWNER_EMAIL, "wrong-password").status_code for _ in range(11)]
        limited = login(client, OWNER_EMAIL, OWNER_PASSWORD)
    finally:
        limiter.reset()

    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429
    assert limited.status_code == 429
    body = limited.json()
    assert body["success"] is False
    assert body["message"] == "Too many requests"


def test_every_error_kind_has_an_http_status():
    from rental_auth.api.responses import ERROR_STATUS
    from rental_auth.core.exceptions import ErrorKind, TOKEN_FAILURES

    assert set(ERROR_STATUS) == set(ErrorKind)
    assert {ERROR_STATUS[kind] for kind in TOKEN_FAILURES} == {401}


def test_registration_rejects_reserved_email_domains(client):
    response = client.post("/api/v1/auth/register", json={
        "email": "someone@rental.test", "password": "Password123", "first_name": "Res",
    })
    assert response.status_code == 422
    assert response.json()["errors"][0].startswith("email")
