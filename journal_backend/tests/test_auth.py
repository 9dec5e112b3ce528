from __future__ import annotations

import datetime

from sqlalchemy.exc import SQLAlchemyError

from conftest import bearer, signup
from src.api import core
from src.db.models import Profile, User, UserSettings


def test_signup_returns_token_and_public_user(client, db_session):
    resp = client.post(
        "/api/auth/signup",
        json={"email": "a@x.com", "password": "pw123456", "full_name": "Ada"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["token"]
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "a@x.com"
    assert body["user"]["display_name"] == "Ada"
    assert "password" not in body["user"]
    assert "password_hash" not in body["user"]

    user = db_session.query(User).one()
    assert user.password_hash != "pw123456"
    assert core.verify_password("pw123456", user.password_hash)
    assert db_session.query(Profile).filter_by(user_id=user.id).one().full_name == "Ada"
    assert db_session.query(UserSettings).filter_by(user_id=user.id).count() == 1


def test_second_signup_with_same_email_fails(client, db_session):
    signup(client, "a@x.com")
    resp = client.post("/api/auth/signup", json={"email": "a@x.com", "password": "another-pw"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "duplicate_email"
    assert db_session.query(User).count() == 1


def test_signup_requires_email_and_password(client):
    missing_password = client.post("/api/auth/signup", json={"email": "a@x.com"})
    missing_email = client.post("/api/auth/signup", json={"password": "pw123456"})
    for resp in (missing_password, missing_email):
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_input"


def test_signup_rolls_back_when_settings_insert_fails(client, db_session, monkeypatch):
    def broken_settings(**kwargs):
        raise SQLAlchemyError("settings table unavailable")

    monkeypatch.setattr(core, "UserSettings", broken_settings)
    resp = client.post("/api/auth/signup", json={"email": "a@x.com", "password": "pw123456"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create user", "code": "internal"}
    assert db_session.query(User).count() == 0
    assert db_session.query(Profile).count() == 0


def test_signin_returns_fresh_token(client):
    signup(client, "a@x.com")
    resp = client.post("/api/auth/signin", json={"email": "a@x.com", "password": "pw123456"})
    assert resp.status_code == 200
    token = resp.json()["token"]
    me = client.get("/api/auth/me", headers=bearer(token))
    assert me.status_code == 200
    assert me.json() == {"user": {"id": resp.json()["user"]["id"], "email": "a@x.com", "display_name": None}}


def test_wrong_password_is_indistinguishable_from_unknown_email(client):
    signup(client, "a@x.com")
    wrong_password = client.post("/api/auth/signin", json={"email": "a@x.com", "password": "nope-nope"})
    unknown_email = client.post("/api/auth/signin", json={"email": "ghost@x.com", "password": "pw123456"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials", "code": "invalid_credentials"}


def test_email_match_is_case_sensitive(client):
    signup(client, "Person@x.com")
    resp = client.post("/api/auth/signin", json={"email": "person@x.com", "password": "pw123456"})
    assert resp.status_code == 401


def test_email_domain_is_normalized_but_local_part_is_kept(client):
    _, user = signup(client, "Ann@X.COM")
    assert user["email"] == "Ann@x.com"
    assert client.post("/api/auth/signin", json={"email": "Ann@X.COM", "password": "pw123456"}).status_code == 200
    assert client.post("/api/auth/signin", json={"email": "ann@x.com", "password": "pw123456"}).status_code == 401


def test_me_requires_bearer_header(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["code"] == "auth_required"
    assert resp.headers["www-authenticate"] == "Bearer"


def test_me_rejects_garbage_token(client):
    resp = client.get("/api/auth/me", headers=bearer("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_token"


def test_me_rejects_expired_token(client, user_a):
    expired = core.create_access_token(user_a["id"], expires_delta=datetime.timedelta(minutes=-1))
    resp = client.get("/api/auth/me", headers=bearer(expired))
    assert resp.status_code == 401
    assert resp.json()["code"] == "token_expired"


def test_token_for_deleted_user_fails_at_user_lookup(client, user_a, db_session):
    db_session.query(User).filter_by(id=user_a["id"]).delete()
    db_session.commit()

    resp = client.get("/api/auth/me", headers=user_a["headers"])
    assert resp.status_code == 401
    assert resp.json()["code"] == "user_not_found"


def test_protected_routes_reject_missing_token(client):
    for method, path in [
        ("get", "/api/journal"),
        ("post", "/api/journal"),
        ("get", "/api/journal/unlocked"),
        ("get", "/api/journal/stats/mood"),
        ("get", "/api/journal/stats/weekly"),
        ("get", "/api/settings"),
        ("put", "/api/settings"),
        ("get", "/api/weekly-letters"),
        ("post", "/api/ai/analyze-entry"),
        ("post", "/api/ai/generate-weekly-letter"),
    ]:
        resp = getattr(client, method)(path)
        assert resp.status_code == 401, path
        assert resp.json()["code"] == "auth_required", path
