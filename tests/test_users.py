import bcrypt

from auth.dependencies import LOGIN_REQUIRED
from core.config import DEFAULT_SESSION_TTL_MS
from sessions.signer import COOKIE_NAME

from conftest import login, register


def test_create_user_stores_a_bcrypt_hash(client, fake_db):
    resp = register(client, "alice", password="correct-horse")
    assert resp.json() == {"statusCode": 201}

    row = fake_db.user_named("alice")
    assert row["password"] != "correct-horse"
    assert bcrypt.checkpw(b"correct-horse", row["password"].encode("utf-8"))
    assert row["email"] == "alice@example.com"
    assert row["jwt"] is None
    assert row["id"].isdigit()


def test_duplicate_username_is_refused_with_its_name(client):
    register(client, "alice", email="alice@example.com")
    resp = client.put(
        "/api/users",
        json={"username": "alice", "password": "correct-horse", "email": "other@example.com"},
    )
    assert resp.status_code == 406
    assert resp.json() == {"statusCode": 406, "message": 'User with username "alice" already exists'}


def test_duplicate_email_is_refused_case_insensitively(client):
    register(client, "alice", email="alice@example.com")
    resp = client.put(
        "/api/users",
        json={"username": "bob", "password": "correct-horse", "email": "Alice@Example.com"},
    )
    assert resp.status_code == 406
    assert resp.json()["message"] == 'User with email "alice@example.com" already exists'


def test_create_user_validates_body(client):
    resp = client.put("/api/users", json={"username": "alice", "password": "short", "email": "a@b.c"})
    assert resp.status_code == 406
    assert resp.json()["statusCode"] == 406
    assert "password" in resp.json()["message"]


def test_public_profile_and_unknown_user(client):
    register(client, "alice")
    resp = client.get("/api/users/alice")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["username"] == "alice"
    assert data["github"] == "none"
    assert data["projects"] == [] and data["organisations"] == []
    assert "password" not in data and "jwt" not in data

    missing = client.get("/api/users/nobody")
    assert missing.status_code == 404
    assert missing.json()["message"] == 'User with username "nobody" was not found'


def test_me_reports_the_current_session(client, alice, fake_db):
    resp = client.get("/api/users/@me")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["username"] == "alice"

    session_row = fake_db.sessions[data["session"]["id"]]
    assert session_row["user_id"] == alice["id"]
    assert data["session"]["expiresAt"] == session_row["started_at"] + DEFAULT_SESSION_TTL_MS


def test_me_requires_login(client):
    resp = client.get("/api/users/@me")
    assert resp.status_code == 401
    assert resp.json()["message"] == LOGIN_REQUIRED


def test_patch_rejects_non_boolean_flags(client, alice):
    resp = client.patch("/api/users/@me", json={"data": {"contributor": "yes"}})
    assert resp.status_code == 406
    assert resp.json()["message"] == '"contributor" must be a boolean (received string)'
    assert alice["contributor"] is False


def test_patch_rejects_taken_username(client, fake_db):
    register(client, "bob")
    register(client, "alice")
    login(client, "alice")

    resp = client.patch("/api/users/@me", json={"data": {"username": "bob"}})
    assert resp.status_code == 406
    assert resp.json()["message"] == 'Username "bob" is already taken!'
    assert fake_db.user_named("alice") is not None


def test_patch_rejects_taken_email(client):
    register(client, "bob", email="bob@example.com")
    register(client, "alice")
    login(client, "alice")

    resp = client.patch("/api/users/@me", json={"data": {"email": "BOB@example.com"}})
    assert resp.status_code == 406
    assert resp.json()["message"] == 'Email "bob@example.com" is already taken!'


def test_patch_rejects_unknown_fields(client, alice):
    resp = client.patch("/api/users/@me", json={"data": {"admin": True}})
    assert resp.status_code == 406
    assert resp.json()["message"] == '"admin" cannot be updated'


def test_patch_updates_fields_and_retires_cached_token(client, alice, fake_db):
    client.get("/api/users/@me/jwt")
    assert alice["jwt"] is not None

    resp = client.patch(
        "/api/users/@me",
        json={"data": {"contributor": True, "translator": True, "username": "alicia", "description": "hi"}},
    )
    assert resp.status_code == 200
    assert resp.json() == {"statusCode": 200, "data": {"updated": True}}

    row = fake_db.user_named("alicia")
    assert row["contributor"] is True and row["translator"] is True
    assert row["description"] == "hi"
    assert row["jwt"] is None
    # Session is bound to the id, so it survives the rename.
    assert client.get("/api/users/@me").json()["data"]["username"] == "alicia"


def test_password_change_allows_login_with_new_password(client, alice):
    resp = client.patch("/api/users/@me", json={"data": {"password": "new-password-123"}})
    assert resp.status_code == 200

    client.post("/api/logout")
    bad = client.post("/api/login", json={"username": "alice", "password": "correct-horse"})
    assert bad.status_code == 401
    login(client, "alice", "new-password-123")


def test_delete_self_removes_account_and_session(client, alice, fake_db):
    resp = client.delete("/api/users/@me")
    assert resp.status_code == 204
    assert fake_db.user_named("alice") is None
    assert all(row["user_id"] != alice["id"] for row in fake_db.sessions.values())
    assert "max-age=0" in resp.headers["set-cookie"].lower()
    assert resp.headers["set-cookie"].startswith(f"{COOKIE_NAME}=")

    again = client.get("/api/users/@me")
    assert again.status_code == 401


def test_patch_rejects_short_password(client, alice):
    resp = client.patch("/api/users/@me", json={"data": {"password": "short"}})
    assert resp.status_code == 406
    assert resp.json()["message"] == '"password" must be at least 8 characters long'


def test_password_beyond_bcrypt_limit_is_refused(client, fake_db):
    resp = client.put(
        "/api/users",
        json={"username": "alice", "password": "x" * 100, "email": "alice@example.com"},
    )
    assert resp.status_code == 406
    assert resp.json()["message"] == '"password" must be at most 72 bytes long'
    assert fake_db.user_named("alice") is None
