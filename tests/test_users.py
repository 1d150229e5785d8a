from sqlalchemy import func, select

from haanein.models.links import Link
from haanein.models.places import Place


def test_register_returns_token_without_password(client):
    r = client.post(
        "/api/users",
        json={"name": "Dana Levi", "email": "Dana@Example.com", "password": "secret123"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "success"
    assert body["token"]
    user = body["data"]["user"]
    assert user["email"] == "dana@example.com"
    assert user["role"] == "normal"
    assert "password" not in user
    assert "passwordHash" not in user


def test_register_duplicate_email_case_insensitive(client):
    r1 = client.post("/api/users", json={"name": "Dup", "email": "dup@example.com", "password": "secret123"})
    r2 = client.post("/api/users", json={"name": "Dup", "email": "DUP@example.com", "password": "secret123"})

    codes = sorted([r1.status_code, r2.status_code])
    assert codes == [201, 400]
    assert r2.json()["status"] == "error"
    assert "already exists" in r2.json()["message"]


def test_register_rejects_name_with_digits(client):
    r = client.post("/api/users", json={"name": "R2D2", "email": "r2@example.com", "password": "secret123"})
    assert r.status_code == 400
    assert "numbers" in r.json()["message"]


def test_register_rejects_short_password(client):
    r = client.post("/api/users", json={"name": "Shorty", "email": "s@example.com", "password": "123"})
    assert r.status_code == 400


def test_login_success(client, register):
    register("u2@example.com")
    r = client.post("/api/users/login", json={"email": "u2@example.com", "password": "secret123"})
    assert r.status_code == 200, r.text
    assert r.json()["token"]
    assert r.json()["data"]["user"]["email"] == "u2@example.com"


def test_login_failure_message_is_uniform(client, register):
    register("known@example.com")
    wrong_password = client.post("/api/users/login", json={"email": "known@example.com", "password": "nope-nope"})
    unknown_email = client.post("/api/users/login", json={"email": "ghost@example.com", "password": "nope-nope"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json()["message"] == unknown_email.json()["message"]


def test_login_unknown_email_still_runs_bcrypt(client, monkeypatch):
    from haanein.core import security

    calls = []
    real_dummy_verify = security.pwd_context.dummy_verify

    def _dummy_verify(*args, **kwargs):
        calls.append(1)
        return real_dummy_verify(*args, **kwargs)

    monkeypatch.setattr(security.pwd_context, "dummy_verify", _dummy_verify)
    r = client.post("/api/users/login", json={"email": "nobody@example.com", "password": "whatever1"})
    assert r.status_code == 401
    assert calls == [1]


def test_login_requires_both_fields(client):
    r = client.post("/api/users/login", json={"email": "a@example.com"})
    assert r.status_code == 400
    assert r.json()["message"] == "Email and password are required to log in."


def test_me_requires_bearer_token(client):
    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/users/me", headers={"Authorization": "Token abc"}).status_code == 401
    assert client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 403


def test_me_returns_current_user(client, register):
    _, user, headers = register("me@example.com", name="Me Myself")
    r = client.get("/api/users/me", headers=headers)
    assert r.status_code == 200, r.text
    me = r.json()["data"]["user"]
    assert me["id"] == user["id"]
    assert me["links"] == []


def test_list_and_get_users(client, register):
    _, alice, headers = register("alice@example.com", name="Alice")
    register("bob@example.com", name="Bob")

    r = client.get("/api/users", headers=headers)
    assert r.status_code == 200
    assert r.json()["results"] == 2

    r = client.get(f"/api/users/{alice['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["user"]["name"] == "Alice"

    assert client.get("/api/users/missing", headers=headers).status_code == 404


def test_update_rejects_password(client, register):
    _, user, headers = register("pw@example.com")
    r = client.patch(f"/api/users/{user['id']}", json={"password": "newsecret"}, headers=headers)
    assert r.status_code == 400
    assert "Password updates are not allowed" in r.json()["message"]


def test_update_only_applies_name_and_email(client, register):
    _, user, headers = register("upd@example.com", name="Old Name")
    r = client.patch(
        f"/api/users/{user['id']}",
        json={"name": "New Name", "email": "NEW@example.com", "role": "admin"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    updated = r.json()["data"]["user"]
    assert updated["name"] == "New Name"
    assert updated["email"] == "new@example.com"
    assert updated["role"] == "normal"


def test_update_email_collision(client, register):
    register("taken@example.com")
    _, user, headers = register("mine@example.com")
    r = client.patch(f"/api/users/{user['id']}", json={"email": "taken@example.com"}, headers=headers)
    assert r.status_code == 400


def test_update_other_user_forbidden_unless_admin(client, register):
    _, victim, _ = register("victim@example.com", name="Victim")
    _, _, other = register("other@example.com")
    _, _, admin = register("admin@example.com", role="admin")

    r = client.patch(f"/api/users/{victim['id']}", json={"name": "Hacked"}, headers=other)
    assert r.status_code == 403

    r = client.patch(f"/api/users/{victim['id']}", json={"name": "Renamed"}, headers=admin)
    assert r.status_code == 200
    assert r.json()["data"]["user"]["name"] == "Renamed"


def test_change_password(client, register):
    _, _, headers = register("cp@example.com")
    r = client.patch(
        "/api/users/me/password",
        json={"currentPassword": "wrong-one", "newPassword": "brandnew1"},
        headers=headers,
    )
    assert r.status_code == 401

    r = client.patch(
        "/api/users/me/password",
        json={"currentPassword": "secret123", "newPassword": "brandnew1"},
        headers=headers,
    )
    assert r.status_code == 200, r.text

    r = client.post("/api/users/login", json={"email": "cp@example.com", "password": "brandnew1"})
    assert r.status_code == 200


def test_delete_user(client, db, register, create_place):
    _, user, headers = register("gone@example.com")
    _, _, other = register("stay@example.com")
    place = create_place(headers, name="Orphaned Cafe")

    assert client.delete(f"/api/users/{user['id']}", headers=other).status_code == 403

    r = client.delete(f"/api/users/{user['id']}", headers=headers)
    assert r.status_code == 204
    assert r.content == b""

    assert client.get(f"/api/users/{user['id']}", headers=other).status_code == 404
    assert db.scalar(select(func.count()).select_from(Link).where(Link.user_id == user["id"])) == 0

    r = client.get(f"/api/places/{place['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["place"]["createdBy"] is None
    assert db.scalar(select(Place.created_by).where(Place.id == place["id"])) is None


def test_token_of_deleted_user_is_rejected(client, register):
    _, user, headers = register("bye@example.com")
    assert client.delete(f"/api/users/{user['id']}", headers=headers).status_code == 204
    assert client.get("/api/users/me", headers=headers).status_code == 401


def test_token_carries_identity_and_role(client, register):
    from haanein.core.security import decode_access_token

    token, user, _ = register("claims@example.com", role="admin")
    claims = decode_access_token(token)
    assert claims["id"] == user["id"]
    assert claims["email"] == "claims@example.com"
    assert claims["role"] == "admin"
    assert "exp" in claims
