import pytest
from jose import jwt

from conftest import PNG_BYTES, auth_header, make_user
from models.audit_log import AuditLogModel
from models.comment import CommentModel
from models.drawing import DrawingModel, RatingModel


@pytest.fixture
def admin(user_manager):
    return make_user(user_manager, "root", role="admin", email="root@example.com")


@pytest.fixture
def admin_headers(token_service, admin):
    return auth_header(token_service, admin)


def test_admin_login_promotes_pending_admin(client, user_manager):
    make_user(user_manager, "root", role="admin", status="pending", email="root@example.com")
    res = client.post("/api/admin/login", json={"email": "root@example.com", "password": "password123"})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["user"]["role"] == "admin"
    assert body["user"]["email"] == "root@example.com"
    assert user_manager.get_user_by_username("root").status == "active"

    claims = jwt.get_unverified_claims(body["token"])
    assert claims["exp"] - claims["iat"] == 24 * 3600


def test_admin_login_rejects_students_like_bad_passwords(client, user_manager):
    make_user(user_manager, "alice", email="alice@example.com")
    make_user(user_manager, "root", role="admin", email="root@example.com")
    student = client.post("/api/admin/login", json={"email": "alice@example.com", "password": "password123"})
    wrong = client.post("/api/admin/login", json={"email": "root@example.com", "password": "nope"})
    unknown = client.post("/api/admin/login", json={"email": "x@example.com", "password": "nope"})
    assert student.status_code == wrong.status_code == unknown.status_code == 401
    assert {r.json()["message"] for r in (student, wrong, unknown)} == {"Invalid credentials"}


def test_admin_routes_require_admin_role(client, token_service, user_manager):
    student = make_user(user_manager, "alice")
    res = client.get("/api/admin/stats", headers=auth_header(token_service, student))
    assert res.status_code == 403
    assert res.json()["message"] == "Access restricted to admin users"
    assert client.get("/api/admin/stats").status_code == 401


def test_stats(client, admin_headers, user_manager, db_session):
    alice = make_user(user_manager, "alice")
    make_user(user_manager, "bob", status="pending")
    drawing = DrawingModel(title="t", image_url="/uploads/t.png", user_id=alice.user_id)
    db_session.add(drawing)
    db_session.commit()
    db_session.add(CommentModel(content="c", drawing_id=drawing.id, user_id=alice.user_id))
    db_session.commit()

    res = client.get("/api/admin/stats", headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == {
        "total_users": 3,
        "pending_users": 1,
        "total_drawings": 1,
        "total_comments": 1,
    }


def test_page_views_count_public_gets(client, admin_headers):
    client.get("/api/drawings")
    client.get("/api/drawings")
    client.get("/api/health")
    res = client.get("/api/admin/stats/pageviews", headers=admin_headers)
    assert res.json() == {"page_views": 2}


def test_list_users_paginates(client, admin_headers, user_manager):
    for i in range(4):
        make_user(user_manager, f"user{i}")
    res = client.get("/api/admin/users", params={"page": 2, "limit": 2}, headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["current_page"] == 2
    assert body["total_users"] == 5
    assert body["total_pages"] == 3
    assert [u["username"] for u in body["users"]] == ["user1", "user0"]


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}])
def test_list_users_rejects_bad_pagination(client, admin_headers, params):
    assert client.get("/api/admin/users", params=params, headers=admin_headers).status_code == 400


def test_approve_and_reject_are_audited(client, admin, admin_headers, user_manager, db_session):
    alice = make_user(user_manager, "alice", status="pending", email="alice@example.com")

    res = client.patch(f"/api/admin/users/{alice.user_id}/approve", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "active"

    res = client.patch(f"/api/admin/users/{alice.user_id}/reject", headers=admin_headers)
    assert res.json()["status"] == "rejected"

    entries = (
        db_session.query(AuditLogModel)
        .filter(AuditLogModel.action == "UPDATE_USER_STATUS")
        .order_by(AuditLogModel.id)
        .all()
    )
    assert [e.details["new_status"] for e in entries] == ["active", "rejected"]
    assert entries[0].actor_id == admin.user_id
    assert entries[0].target_id == alice.user_id


def test_set_status_and_role(client, admin_headers, user_manager):
    alice = make_user(user_manager, "alice")
    res = client.patch(
        f"/api/admin/users/{alice.user_id}/status",
        json={"status": "pending"},
        headers=admin_headers,
    )
    assert res.json()["status"] == "pending"

    res = client.patch(
        f"/api/admin/users/{alice.user_id}/status",
        json={"status": "banned"},
        headers=admin_headers,
    )
    assert res.status_code == 400

    res = client.patch(
        f"/api/admin/users/{alice.user_id}/role",
        json={"role": "admin"},
        headers=admin_headers,
    )
    assert res.json()["role"] == "admin"


def test_lifecycle_on_missing_user_is_404(client, admin_headers):
    assert client.patch("/api/admin/users/missing/approve", headers=admin_headers).status_code == 404
    assert client.delete("/api/admin/users/missing", headers=admin_headers).status_code == 404


def test_delete_user_cascades(client, token_service, admin_headers, user_manager, db_session, storage):
    alice = make_user(user_manager, "alice")
    bob = make_user(user_manager, "bob")
    alice_headers = auth_header(token_service, alice)
    bob_headers = auth_header(token_service, bob)

    own = client.post(
        "/api/drawings",
        data={"title": "Mine"},
        files={"image": ("mine.png", PNG_BYTES, "image/png")},
        headers=alice_headers,
    ).json()
    theirs = client.post(
        "/api/drawings",
        data={"title": "Theirs"},
        files={"image": ("theirs.png", PNG_BYTES, "image/png")},
        headers=bob_headers,
    ).json()
    client.post(f"/api/drawings/{theirs['id']}/comments", json={"content": "hi"}, headers=alice_headers)
    client.post(f"/api/drawings/{theirs['id']}/rate", json={"rating": 1}, headers=alice_headers)
    client.post(f"/api/drawings/{theirs['id']}/rate", json={"rating": 5}, headers=bob_headers)

    res = client.delete(f"/api/admin/users/{alice.user_id}", headers=admin_headers)
    assert res.status_code == 200, res.text

    login = client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
    assert login.status_code == 401
    assert client.get(f"/api/drawings/{own['id']}").status_code == 404
    assert not (storage.base_path / own["image_url"].rsplit("/", 1)[1]).exists()
    assert db_session.query(CommentModel).filter(CommentModel.user_id == alice.user_id).count() == 0
    assert db_session.query(RatingModel).filter(RatingModel.user_id == alice.user_id).count() == 0

    remaining = client.get(f"/api/drawings/{theirs['id']}").json()
    assert remaining["rating_count"] == 1
    assert remaining["average_rating"] == 5


def test_admin_deletes_any_drawing(client, token_service, admin_headers, user_manager):
    alice = make_user(user_manager, "alice")
    drawing = client.post(
        "/api/drawings",
        data={"title": "Mine"},
        files={"image": ("mine.png", PNG_BYTES, "image/png")},
        headers=auth_header(token_service, alice),
    ).json()
    res = client.delete(f"/api/admin/drawings/{drawing['id']}", headers=admin_headers)
    assert res.status_code == 200
    assert client.get(f"/api/drawings/{drawing['id']}").status_code == 404
    assert client.delete("/api/admin/drawings/999", headers=admin_headers).status_code == 404


def test_students_view(client, admin_headers, user_manager):
    alice = make_user(user_manager, "alice", status="pending")
    user_manager.update_user(
        alice.user_id,
        phone="555",
        profile={"experience_level": "advanced", "interests": ["oil"], "message": "hi"},
    )
    res = client.get("/api/admin/students", headers=admin_headers)
    assert res.status_code == 200
    [student] = res.json()
    assert student["user_id"] == alice.user_id
    assert student["phone"] == "555"
    assert student["profile"]["experience_level"] == "advanced"
