import pytest

from conftest import auth_header, make_user
from models.audit_log import AuditLogModel


def _application(**overrides):
    payload = {
        "name": "Erin",
        "email": "erin@example.com",
        "phone": "555-0199",
        "experience_level": "intermediate",
        "interests": ["watercolor", " "],
        "message": "Looking forward to it",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def admin_headers(token_service, user_manager):
    admin = make_user(user_manager, "root", role="admin", email="root@example.com")
    return auth_header(token_service, admin)


def test_submit_application(client, db_session):
    res = client.post("/api/enroll", json=_application())
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["success"] is True
    assert body["data"]["status"] == "pending"
    assert body["data"]["interests"] == ["watercolor"]

    entry = db_session.query(AuditLogModel).filter(AuditLogModel.action == "ENROLLMENT_SUBMITTED").one()
    assert entry.target_id == str(body["data"]["id"])


def test_submit_reports_missing_fields(client):
    res = client.post("/api/enroll", json={"name": "Erin", "interests": []})
    assert res.status_code == 400
    assert set(res.json()["details"]) == {"email", "phone", "experience_level", "interests"}


def test_submit_rejects_unknown_experience_level(client):
    res = client.post("/api/enroll", json=_application(experience_level="expert"))
    assert res.status_code == 400
    assert "experience_level" in res.json()["details"]


def test_admin_lists_and_updates_applications(client, admin_headers):
    first = client.post("/api/enroll", json=_application()).json()["data"]
    client.post("/api/enroll", json=_application(email="fred@example.com", name="Fred"))

    res = client.get("/api/admin/enrollments", headers=admin_headers)
    assert res.status_code == 200
    assert [e["name"] for e in res.json()] == ["Fred", "Erin"]

    res = client.patch(
        f"/api/admin/enrollments/{first['id']}/status",
        json={"status": "approved"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["status"] == "approved"


def test_update_application_status_errors(client, admin_headers):
    application = client.post("/api/enroll", json=_application()).json()["data"]
    res = client.patch(
        f"/api/admin/enrollments/{application['id']}/status",
        json={"status": "active"},
        headers=admin_headers,
    )
    assert res.status_code == 400
    res = client.patch(
        "/api/admin/enrollments/999/status",
        json={"status": "approved"},
        headers=admin_headers,
    )
    assert res.status_code == 404


def test_application_list_requires_admin(client, token_service, user_manager):
    student = make_user(user_manager, "alice")
    res = client.get("/api/admin/enrollments", headers=auth_header(token_service, student))
    assert res.status_code == 403
