import pytest

from conftest import PNG_BYTES, auth_header, make_user
from core.exceptions import ImageStorageError


@pytest.fixture
def author(user_manager):
    return make_user(user_manager, "alice", email="alice@example.com")


@pytest.fixture
def other(user_manager):
    return make_user(user_manager, "bob")


def _upload(client, headers, title="Sunset", content=PNG_BYTES, content_type="image/png"):
    files = {"image": ("sunset.png", content, content_type)} if content is not None else None
    return client.post(
        "/api/drawings",
        data={"title": title, "description": "Evening sky"},
        files=files,
        headers=headers,
    )


def test_create_drawing(client, token_service, author, storage):
    res = _upload(client, auth_header(token_service, author))
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["title"] == "Sunset"
    assert body["author"] == {"user_id": author.user_id, "name": "Alice", "email": "alice@example.com"}
    assert body["average_rating"] == 0
    assert body["image_url"].startswith("/uploads/")
    image_id = body["image_url"].rsplit("/", 1)[1]
    assert (storage.base_path / image_id).read_bytes() == PNG_BYTES


def test_create_requires_authentication(client):
    assert _upload(client, {}).status_code == 401


def test_create_requires_active_account(client, token_service, user_manager):
    pending = make_user(user_manager, "carol", status="pending")
    assert _upload(client, auth_header(token_service, pending)).status_code == 403


def test_create_validates_image(client, token_service, author):
    headers = auth_header(token_service, author)
    assert _upload(client, headers, content=None).status_code == 400
    res = _upload(client, headers, content=b"hello", content_type="text/plain")
    assert res.status_code == 400
    assert res.json()["details"] == {"image": "must be an image"}


def test_create_rejects_oversized_image(client, token_service, author, monkeypatch):
    monkeypatch.setattr("utils.drawing_manager.MAX_IMAGE_BYTES", 16)
    res = _upload(client, auth_header(token_service, author))
    assert res.status_code == 400
    assert res.json()["details"] == {"image": "too large"}


def test_create_requires_title(client, token_service, author, storage):
    res = _upload(client, auth_header(token_service, author), title="   ")
    assert res.status_code == 400
    assert not storage.base_path.exists() or not any(storage.base_path.iterdir())


def test_list_is_public_and_newest_first(client, token_service, author):
    headers = auth_header(token_service, author)
    _upload(client, headers, title="First")
    _upload(client, headers, title="Second")
    res = client.get("/api/drawings")
    assert res.status_code == 200
    assert [d["title"] for d in res.json()] == ["Second", "First"]


def test_get_drawing_includes_comments(client, token_service, author, other):
    drawing_id = _upload(client, auth_header(token_service, author)).json()["id"]
    client.post(
        f"/api/drawings/{drawing_id}/comments",
        json={"content": "Lovely colours"},
        headers=auth_header(token_service, other),
    )
    res = client.get(f"/api/drawings/{drawing_id}")
    assert res.status_code == 200
    comments = res.json()["comments"]
    assert [c["content"] for c in comments] == ["Lovely colours"]
    assert comments[0]["author"]["username"] == "bob"


def test_get_missing_drawing_is_404(client):
    res = client.get("/api/drawings/999")
    assert res.status_code == 404
    assert res.json()["message"] == "Drawing not found"


def test_only_author_can_update(client, token_service, author, other):
    drawing_id = _upload(client, auth_header(token_service, author)).json()["id"]

    res = client.put(
        f"/api/drawings/{drawing_id}",
        json={"title": "Hijacked"},
        headers=auth_header(token_service, other),
    )
    assert res.status_code == 403

    res = client.put(
        f"/api/drawings/{drawing_id}",
        json={"title": "Sunrise"},
        headers=auth_header(token_service, author),
    )
    assert res.status_code == 200
    assert res.json()["title"] == "Sunrise"
    assert res.json()["description"] == "Evening sky"


def test_only_author_can_delete(client, token_service, author, other, storage):
    body = _upload(client, auth_header(token_service, author)).json()
    image_id = body["image_url"].rsplit("/", 1)[1]

    res = client.delete(f"/api/drawings/{body['id']}", headers=auth_header(token_service, other))
    assert res.status_code == 403

    client.post(
        f"/api/drawings/{body['id']}/rate",
        json={"rating": 4},
        headers=auth_header(token_service, other),
    )
    client.post(
        f"/api/drawings/{body['id']}/comments",
        json={"content": "Nice"},
        headers=auth_header(token_service, other),
    )

    res = client.delete(f"/api/drawings/{body['id']}", headers=auth_header(token_service, author))
    assert res.status_code == 200
    assert client.get(f"/api/drawings/{body['id']}").status_code == 404
    assert client.get(f"/api/drawings/{body['id']}/comments").json() == []
    assert not (storage.base_path / image_id).exists()


def test_image_delete_failure_still_removes_drawing(client, token_service, author, storage, monkeypatch):
    body = _upload(client, auth_header(token_service, author)).json()

    def fail(image_id):
        raise ImageStorageError("Failed to delete image")

    monkeypatch.setattr(storage, "delete", fail)
    res = client.delete(f"/api/drawings/{body['id']}", headers=auth_header(token_service, author))
    assert res.status_code == 200
    assert client.get(f"/api/drawings/{body['id']}").status_code == 404


def test_rating_upserts_and_averages(client, token_service, author, other, user_manager):
    drawing_id = _upload(client, auth_header(token_service, author)).json()["id"]
    third = make_user(user_manager, "carol")

    res = client.post(
        f"/api/drawings/{drawing_id}/rate",
        json={"rating": 2},
        headers=auth_header(token_service, other),
    )
    assert res.status_code == 200
    assert res.json()["average_rating"] == 2

    # Re-rating replaces the earlier value
    res = client.post(
        f"/api/drawings/{drawing_id}/rate",
        json={"rating": 5},
        headers=auth_header(token_service, other),
    )
    assert res.json()["average_rating"] == 5
    assert res.json()["rating_count"] == 1

    res = client.post(
        f"/api/drawings/{drawing_id}/rate",
        json={"rating": 2},
        headers=auth_header(token_service, third),
    )
    assert res.json()["rating_count"] == 2
    assert res.json()["average_rating"] == pytest.approx(3.5)


@pytest.mark.parametrize("rating", [0, 6, None, 2.5, True, 4.0, "3"])
def test_invalid_rating_is_400(client, token_service, author, rating):
    drawing_id = _upload(client, auth_header(token_service, author)).json()["id"]
    res = client.post(
        f"/api/drawings/{drawing_id}/rate",
        json={"rating": rating},
        headers=auth_header(token_service, author),
    )
    assert res.status_code == 400


def test_rate_missing_drawing_is_404(client, token_service, author):
    res = client.post(
        "/api/drawings/999/rate",
        json={"rating": 3},
        headers=auth_header(token_service, author),
    )
    assert res.status_code == 404
