"""
Tests for user administration and the audit log endpoint.
"""


def test_list_users_requires_admin(client, admin, parent, auth_header):
    response = client.get("/api/v1/users/", headers=auth_header(parent["access_token"]))
    assert response.status_code == 403
    assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"

    response = client.get("/api/v1/users/", headers=auth_header(admin["access_token"]))
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 2
    assert page["page"] == 1
    assert {u["email"] for u in page["items"]} == {"admin@example.com", "parent@example.com"}


def test_list_users_by_role(client, admin, parent, therapist, auth_header):
    response = client.get("/api/v1/users/role/therapist", headers=auth_header(admin["access_token"]))
    assert response.status_code == 200
    items = response.json()["items"]
    assert [u["email"] for u in items] == ["therapist@example.com"]


def test_pagination(client, admin, register, auth_header):
    for i in range(3):
        register(f"parent{i}@example.com")
    response = client.get(
        "/api/v1/users/",
        params={"page": 2, "size": 2},
        headers=auth_header(admin["access_token"]),
    )
    page = response.json()
    assert page["total"] == 4
    assert page["pages"] == 2
    assert len(page["items"]) == 2
    assert page["has_prev"] is True
    assert page["has_next"] is False


def test_empty_listing_has_no_pages(client, admin, auth_header):
    response = client.get("/api/v1/users/role/therapist", headers=auth_header(admin["access_token"]))
    page = response.json()
    assert page["items"] == []
    assert page["total"] == 0
    assert page["pages"] == 0
    assert page["has_next"] is False
    assert page["has_prev"] is False


def test_user_may_read_self_but_not_others(client, parent, therapist, auth_header):
    own = client.get(f"/api/v1/users/{parent['user']['id']}", headers=auth_header(parent["access_token"]))
    assert own.status_code == 200

    other = client.get(f"/api/v1/users/{therapist['user']['id']}", headers=auth_header(parent["access_token"]))
    assert other.status_code == 403


def test_admin_reads_unknown_user(client, admin, auth_header):
    response = client.get("/api/v1/users/9999", headers=auth_header(admin["access_token"]))
    assert response.status_code == 404


def test_deactivate_and_activate(client, admin, parent, auth_header):
    user_id = parent["user"]["id"]
    headers = auth_header(admin["access_token"])

    response = client.put(f"/api/v1/users/{user_id}/deactivate", headers=headers)
    assert response.status_code == 200
    assert response.json()["user"]["is_active"] is False

    blocked = client.get("/api/v1/auth/me", headers=auth_header(parent["access_token"]))
    assert blocked.status_code == 401
    assert blocked.json()["code"] == "AUTH_ACCOUNT_DEACTIVATED"

    refresh = client.post("/api/v1/auth/refresh", json={"refreshToken": parent["refresh_token"]})
    assert refresh.status_code == 401

    response = client.put(f"/api/v1/users/{user_id}/activate", headers=headers)
    assert response.status_code == 200
    assert response.json()["user"]["is_active"] is True
    assert client.get("/api/v1/auth/me", headers=auth_header(parent["access_token"])).status_code == 200


def test_admin_cannot_deactivate_self(client, admin, auth_header):
    response = client.put(
        f"/api/v1/users/{admin['user']['id']}/deactivate",
        headers=auth_header(admin["access_token"]),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_audit_logs(client, admin, parent, auth_header):
    client.post("/api/v1/auth/login", json={"email": "parent@example.com", "password": "wrong"})
    client.get("/api/v1/users/", headers=auth_header(parent["access_token"]))

    response = client.get(
        "/api/v1/admin/audit-logs",
        params={"user_id": parent["user"]["id"]},
        headers=auth_header(admin["access_token"]),
    )
    assert response.status_code == 200
    actions = [entry["action"] for entry in response.json()]
    assert "USER_REGISTRATION_SUCCESS" in actions
    assert "USER_LOGIN_FAILED_INVALID_CREDENTIALS" in actions
    assert "RBAC_ACCESS_DENIED" in actions
    assert all(entry["user_id"] == parent["user"]["id"] for entry in response.json())
    assert all(entry["request_id"] for entry in response.json())

    forbidden = client.get("/api/v1/admin/audit-logs", headers=auth_header(parent["access_token"]))
    assert forbidden.status_code == 403
