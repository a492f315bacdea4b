"""User management endpoints and role guards."""

import pytest

from campaign_panel.entities.user import UserRole

PASSWORD = "CorrectHorse-42"


@pytest.fixture
def login(client):
    def _login(email):
        resp = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['access_token']}"}

    return _login


@pytest.fixture
def admin(make_user, login):
    user = make_user("admin@example.com", role=UserRole.ADMIN, name="Admin")
    return user, login("admin@example.com")


@pytest.fixture
def manager(make_user, login):
    user = make_user("manager@example.com", role=UserRole.MANAGER, name="Manager")
    return user, login("manager@example.com")


def test_me_requires_auth(client):
    resp = client.get("/api/users/me")

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Access token required", "kind": "unauthorized"}


def test_me_rejects_garbage_token(client):
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer nope"})

    assert resp.status_code == 401


def test_me_returns_profile(client, make_user, login):
    make_user(name="Vera")

    resp = client.get("/api/users/me", headers=login("viewer@example.com"))

    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Vera"


def test_viewer_cannot_list_users(client, make_user, login):
    make_user()

    resp = client.get("/api/users", headers=login("viewer@example.com"))

    assert resp.status_code == 403
    assert resp.get_json() == {"error": "Insufficient permissions", "kind": "forbidden"}


def test_list_users_keyset_pagination(client, make_user, admin, manager):
    for i in range(3):
        make_user(f"viewer{i}@example.com")
    _, headers = manager

    first = client.get("/api/users?limit=2", headers=headers).get_json()
    assert first["limit"] == 2
    assert first["has_next"] is True
    assert len(first["items"]) == 2

    second = client.get(f"/api/users?limit=2&cursor={first['next_cursor']}", headers=headers).get_json()
    assert second["has_next"] is False
    assert second["next_cursor"] is None

    emails = [u["email"] for u in first["items"] + second["items"]]
    assert "admin@example.com" not in emails
    assert len(emails) == 4


def test_list_users_rejects_bad_cursor(client, manager):
    _, headers = manager

    resp = client.get("/api/users?cursor=abc", headers=headers)

    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "bad_request"


def test_search_users(client, make_user, manager):
    make_user("carla@example.com", name="Carla Souza")
    make_user("bruno@example.com", name="Bruno")
    _, headers = manager

    resp = client.get("/api/users/search?q=SOUZA", headers=headers)

    assert [u["email"] for u in resp.get_json()] == ["carla@example.com"]


def test_stats_is_admin_only(client, make_user, admin, manager):
    make_user(is_active=False)

    assert client.get("/api/users/stats", headers=manager[1]).status_code == 403

    stats = client.get("/api/users/stats", headers=admin[1]).get_json()
    assert {r["role"]: r["count"] for r in stats["by_role"]} == {"admin": 1, "manager": 1, "viewer": 1}
    assert stats["active"] == 2
    assert stats["inactive"] == 1


def test_manager_creates_viewer_but_not_admin(client, manager):
    _, headers = manager
    payload = {"name": "New", "email": "new@example.com", "password": "Welcome-123"}

    created = client.post("/api/users", json=payload, headers=headers)
    assert created.status_code == 201
    assert created.get_json()["role"] == "viewer"

    duplicate = client.post("/api/users", json=payload, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.get_json()["kind"] == "conflict"

    escalate = client.post(
        "/api/users",
        json={**payload, "email": "boss@example.com", "role": "admin"},
        headers=headers,
    )
    assert escalate.status_code == 403

    login = client.post("/api/auth/login", json={"email": "new@example.com", "password": "Welcome-123"})
    assert login.status_code == 200


def test_get_unknown_user(client, admin):
    resp = client.get("/api/users/999", headers=admin[1])

    assert resp.status_code == 404
    assert resp.get_json()["kind"] == "not_found"


def test_deactivation_invalidates_sessions(client, make_user, admin, login):
    viewer = make_user()
    viewer_headers = login("viewer@example.com")

    resp = client.patch(f"/api/users/{viewer.id}", json={"is_active": False}, headers=admin[1])

    assert resp.status_code == 200
    assert resp.get_json()["is_active"] is False

    me = client.get("/api/users/me", headers=viewer_headers)
    assert me.status_code == 401
    assert me.get_json()["kind"] == "account_deactivated"


def test_role_change_invalidates_old_tokens(client, make_user, admin, login):
    viewer = make_user()
    viewer_headers = login("viewer@example.com")

    resp = client.patch(f"/api/users/{viewer.id}", json={"role": "manager"}, headers=admin[1])

    assert resp.status_code == 200
    assert resp.get_json()["role"] == "manager"
    assert client.get("/api/users/me", headers=viewer_headers).status_code == 401


def test_update_rules(client, make_user, admin, manager):
    viewer = make_user()
    admin_user, admin_headers = admin
    manager_user, manager_headers = manager

    assert client.patch(f"/api/users/{admin_user.id}", json={"is_active": False}, headers=admin_headers).status_code == 403
    assert client.patch(f"/api/users/{admin_user.id}", json={"role": "viewer"}, headers=admin_headers).status_code == 403
    assert client.patch(f"/api/users/{viewer.id}", json={"role": "manager"}, headers=manager_headers).status_code == 403
    assert client.patch(f"/api/users/{admin_user.id}", json={"is_active": False}, headers=manager_headers).status_code == 403
    assert client.patch(f"/api/users/{viewer.id}", json={"is_active": False}, headers=manager_headers).status_code == 200

    extra = client.patch(f"/api/users/{viewer.id}", json={"password": "x"}, headers=admin_headers)
    assert extra.status_code == 400
    assert extra.get_json()["kind"] == "validation_error"


def test_audit_logs_record_updates(client, make_user, admin):
    viewer = make_user()
    client.patch(f"/api/users/{viewer.id}", json={"is_active": False}, headers=admin[1])

    logs = client.get(f"/api/users/{viewer.id}/audit-logs", headers=admin[1]).get_json()

    actions = [log["action"] for log in logs]
    assert "update" in actions
    assert "invalidate_sessions" in actions
    update = next(log for log in logs if log["action"] == "update")
    assert update["meta"]["previous"] == {"role": "viewer", "is_active": True}
    assert update["meta"]["changes"] == {"is_active": False}


def test_change_password(client, make_user, login, mail_sender):
    make_user()
    headers = login("viewer@example.com")

    wrong = client.post(
        "/api/users/change-password",
        json={"current_password": "nope-nope", "new_password": "BatteryStaple-99"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = client.post(
        "/api/users/change-password",
        json={"current_password": PASSWORD, "new_password": "BatteryStaple-99"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert [m.subject for m in mail_sender.sent] == ["Your password has been changed"]

    relogin = client.post("/api/auth/login", json={"email": "viewer@example.com", "password": "BatteryStaple-99"})
    assert relogin.status_code == 200


def test_impersonate(client, make_user, admin, manager):
    viewer = make_user(name="Vera")

    assert client.post(f"/api/users/{viewer.id}/impersonate", headers=manager[1]).status_code == 403

    resp = client.post(f"/api/users/{viewer.id}/impersonate", headers=admin[1])
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["id"] == viewer.id

    me = client.get("/api/users/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.get_json()["email"] == "viewer@example.com"
