from __future__ import annotations

from fastapi.testclient import TestClient

from mangareader.config import Settings
from mangareader.main import create_app
from mangareader.models.user_model import User
from mangareader.utils.token_utils import create_access_token, decode_access_token

from conftest import SECRET, auth, register


def test_token_round_trip_carries_identity():
    settings = Settings(secret_key=SECRET)
    user = User(id=7, username="reader7", email="r7@example.com", role="admin")
    identity = decode_access_token(create_access_token(user, settings), settings)
    assert identity.user_id == 7
    assert identity.email == "r7@example.com"
    assert identity.is_admin


def test_missing_header_is_unauthorized(client):
    res = client.get("/api/getme")
    assert res.status_code == 401
    assert res.json() == {"message": "Unauthorized"}


def test_malformed_header_is_unauthorized(client):
    res = client.get("/api/getme", headers={"Authorization": "Token abc"})
    assert res.status_code == 401


def test_bad_signature_is_invalid(client, settings):
    other = Settings(secret_key="another-secret-key-with-32-plus-characters")
    forged = create_access_token(User(id=1, username="x", email="x@example.com", role="admin"), other)
    res = client.get("/api/getme", headers=auth(forged))
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid token"


def test_expired_token_is_invalid(client):
    expired_settings = Settings(secret_key=SECRET, access_token_expire_minutes=-5)
    token = create_access_token(User(id=1, username="x", email="x@example.com", role="user"), expired_settings)
    res = client.get("/api/getme", headers=auth(token))
    assert res.status_code == 401


def test_legacy_auth_token_header(client, user_token):
    res = client.get("/api/getme", headers={"auth-token": user_token})
    assert res.status_code == 200
    assert res.json()["user"]["username"] == "reader1"


def test_missing_secret_is_server_error(tmp_path):
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'nosecret.db'}",
        secret_key=None,
        image_path=str(tmp_path / "images"),
        rate_limit_enabled=False,
    )
    with TestClient(create_app(settings)) as c:
        res = c.get("/api/getme", headers=auth("whatever"))
    assert res.status_code == 500
    assert res.json()["message"] == "Token is not configured"


def test_user_token_cannot_reach_admin_routes(client, user_token):
    res = client.get("/api/manga/id/1", headers=auth(user_token))
    assert res.status_code == 403
    assert res.json()["message"] == "You don't have permission to access"


def test_unknown_endpoint(client):
    res = client.get("/api/nope/nothing/here")
    assert res.status_code == 404
    assert res.json() == {"message": "Endpoint not found"}
