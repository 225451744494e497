"""
End-to-end authorization tests over the clinic routes: role gate,
capability gate and ownership gate.
"""
import pytest

from spark_therapy.core.audit_models import AuditLog


@pytest.fixture
def clinic(client, register, auth_header):
    """
    One admin, two therapists, two parents and a child for each family.
    """
    admin = register("admin@example.com", role="admin")
    therapist = register("t1@example.com", role="therapist")
    other_therapist = register("t2@example.com", role="therapist")
    parent = register("p1@example.com")
    other_parent = register("p2@example.com")

    def create_child(parent_tokens, therapist_tokens, name):
        response = client.post("/api/v1/children", headers=auth_header(admin["access_token"]), json={
            "first_name": name,
            "last_name": "Doe",
            "parent_id": parent_tokens["user"]["id"],
            "therapist_id": therapist_tokens["user"]["id"],
        })
        assert response.status_code == 201, response.text
        return response.json()

    return {
        "admin": admin,
        "therapist": therapist,
        "other_therapist": other_therapist,
        "parent": parent,
        "other_parent": other_parent,
        "child": create_child(parent, therapist, "Sam"),
        "other_child": create_child(other_parent, other_therapist, "Max"),
    }


def _headers(auth_header, tokens):
    return auth_header(tokens["access_token"])


def test_only_admin_creates_children(client, clinic, auth_header):
    response = client.post("/api/v1/children", headers=_headers(auth_header, clinic["parent"]), json={
        "first_name": "Eve",
        "last_name": "Doe",
        "parent_id": clinic["parent"]["user"]["id"],
    })
    assert response.status_code == 403
    assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"


def test_child_visible_to_parent_assigned_therapist_and_admin(client, clinic, auth_header):
    url = f"/api/v1/children/{clinic['child']['id']}"
    for who in ("parent", "therapist", "admin"):
        response = client.get(url, headers=_headers(auth_header, clinic[who]))
        assert response.status_code == 200, who
        assert response.json()["first_name"] == "Sam"


def test_child_hidden_from_other_therapist_and_parent(client, db, clinic, auth_header):
    url = f"/api/v1/children/{clinic['child']['id']}"
    for who in ("other_therapist", "other_parent"):
        response = client.get(url, headers=_headers(auth_header, clinic[who]))
        assert response.status_code == 403, who
        assert response.json()["code"] == "AUTH_FORBIDDEN"

    denied = db.query(AuditLog).filter(AuditLog.action == "RBAC_ACCESS_DENIED").all()
    assert len(denied) == 2
    details = denied[0].details
    assert details["reason"] == "ownership check failed"
    assert details["method"] == "GET"
    assert details["endpoint"] == url
    assert {"role", "resource", "action", "timestamp"} <= set(details)


def test_missing_child_is_not_found(client, clinic, auth_header):
    response = client.get("/api/v1/children/9999", headers=_headers(auth_header, clinic["admin"]))
    assert response.status_code == 404
    assert response.json()["code"] == "RESOURCE_NOT_FOUND"


def test_non_integer_id_is_validation_error(client, clinic, auth_header):
    response = client.get("/api/v1/children/abc", headers=_headers(auth_header, clinic["admin"]))
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_programs_need_capability_and_ownership(client, clinic, auth_header):
    body = {"child_id": clinic["child"]["id"], "title": "Speech basics"}

    # parent lacks canCreatePrograms
    response = client.post("/api/v1/programs", headers=_headers(auth_header, clinic["parent"]), json=body)
    assert response.status_code == 403
    assert "Insufficient permissions" in response.json()["message"]

    # therapist holds the capability but is not assigned to this child
    response = client.post("/api/v1/programs", headers=_headers(auth_header, clinic["other_therapist"]), json=body)
    assert response.status_code == 403

    response = client.post("/api/v1/programs", headers=_headers(auth_header, clinic["therapist"]), json=body)
    assert response.status_code == 201
    program = response.json()
    assert program["therapist_id"] == clinic["therapist"]["user"]["id"]

    url = f"/api/v1/programs/{program['id']}"
    assert client.get(url, headers=_headers(auth_header, clinic["parent"])).status_code == 200
    assert client.get(url, headers=_headers(auth_header, clinic["other_parent"])).status_code == 403

    update = client.put(url, headers=_headers(auth_header, clinic["therapist"]), json={"title": "Speech II"})
    assert update.status_code == 200
    assert update.json()["title"] == "Speech II"

    # parent may read the program but not change it
    assert client.put(url, headers=_headers(auth_header, clinic["parent"]), json={"title": "x"}).status_code == 403


def test_sessions(client, clinic, auth_header):
    body = {"child_id": clinic["child"]["id"], "scheduled_at": "2026-11-02T10:00:00Z"}
    response = client.post("/api/v1/sessions", headers=_headers(auth_header, clinic["therapist"]), json=body)
    assert response.status_code == 201
    session = response.json()
    assert session["parent_id"] == clinic["parent"]["user"]["id"]

    url = f"/api/v1/sessions/{session['id']}"
    assert client.get(url, headers=_headers(auth_header, clinic["parent"])).status_code == 200
    assert client.get(url, headers=_headers(auth_header, clinic["other_therapist"])).status_code == 403

    assert client.post("/api/v1/sessions", headers=_headers(auth_header, clinic["parent"]), json=body).status_code == 403


def test_invoice_lifecycle(client, clinic, auth_header):
    body = {"parent_id": clinic["parent"]["user"]["id"], "child_id": clinic["child"]["id"], "amount": "120.50"}

    assert client.post("/api/v1/invoices", headers=_headers(auth_header, clinic["therapist"]), json=body).status_code == 403

    response = client.post("/api/v1/invoices", headers=_headers(auth_header, clinic["admin"]), json=body)
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["status"] == "pending"

    url = f"/api/v1/invoices/{invoice['id']}"
    assert client.get(url, headers=_headers(auth_header, clinic["parent"])).status_code == 200
    assert client.get(url, headers=_headers(auth_header, clinic["other_parent"])).status_code == 403
    # therapists hold no invoice capability
    assert client.get(url, headers=_headers(auth_header, clinic["therapist"])).status_code == 403

    assert client.post(f"{url}/pay", headers=_headers(auth_header, clinic["other_parent"])).status_code == 403

    paid = client.post(f"{url}/pay", headers=_headers(auth_header, clinic["parent"]))
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"
    assert paid.json()["paid_at"] is not None

    again = client.post(f"{url}/pay", headers=_headers(auth_header, clinic["parent"]))
    assert again.status_code == 409


def test_complaints(client, clinic, auth_header):
    body = {"subject": "Parking", "description": "No spaces on Tuesdays"}
    assert client.post("/api/v1/complaints", headers=_headers(auth_header, clinic["therapist"]), json=body).status_code == 403

    response = client.post("/api/v1/complaints", headers=_headers(auth_header, clinic["parent"]), json=body)
    assert response.status_code == 201
    complaint = response.json()
    assert complaint["status"] == "open"

    url = f"/api/v1/complaints/{complaint['id']}"
    assert client.get(url, headers=_headers(auth_header, clinic["parent"])).status_code == 200
    assert client.get(url, headers=_headers(auth_header, clinic["admin"])).status_code == 200
    assert client.get(url, headers=_headers(auth_header, clinic["other_parent"])).status_code == 403
