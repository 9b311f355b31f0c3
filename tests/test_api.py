"""HTTP API behaviour end to end."""

import pytest


def _register(client, username, **extra):
    body = {"username": username, "password": "password123", **extra}
    response = client.post("/api/auth/register", json=body)
    assert response.status_code == 200, response.text
    return response.json()["user_id"]


def _login(client, username):
    response = client.post(
        "/api/auth/login", json={"username": username, "password": "password123"}
    )
    assert response.status_code == 200, response.text
    return response.json()


def _auth(client, username, **extra):
    user_id = _register(client, username, **extra)
    token = _login(client, username)["token"]
    return user_id, {"Authorization": f"Bearer {token}"}


def _upload(client, headers, title="Intro to SQL", **extra):
    body = {
        "title": title,
        "content_type": "video",
        "content_url": "https://videos.example.com/intro.mp4",
        **extra,
    }
    response = client.post("/api/courses", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_register_login_and_me(client):
    user_id, headers = _auth(client, "alice", full_name="Alice", email="a@example.com")

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    user = me.json()["user"]
    assert user["user_id"] == user_id
    assert user["role"] == "user"
    assert "password_hash" not in user

    profile = client.get("/api/profiles/me", headers=headers).json()
    assert profile["full_name"] == "Alice"
    assert (profile["enrolled"], profile["completed"], profile["uploads"]) == (0, 0, 0)


def test_duplicate_username_conflicts(client):
    _register(client, "alice")
    response = client.post(
        "/api/auth/register", json={"username": "alice", "password": "password123"}
    )
    assert response.status_code == 409


def test_login_with_wrong_password(client):
    _register(client, "alice")
    response = client.post(
        "/api/auth/login", json={"username": "alice", "password": "wrong-password"}
    )
    assert response.status_code == 401


def test_admin_registration_needs_matching_token(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "mallory", "password": "password123", "admin_token": "guess"},
    )
    assert response.status_code == 403

    _register(client, "root", admin_token="test-admin-token")
    assert _login(client, "root")["user"]["role"] == "admin"


def test_invalid_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    # optional auth still rejects a token that was sent
    response = client.get("/api/courses", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_writes_require_authentication(client):
    response = client.post("/api/library", json={"course_id": "x"})
    assert response.status_code in (401, 403)
    response = client.post(
        "/api/courses",
        json={"title": "T", "content_type": "text", "content_text": "body"},
    )
    assert response.status_code in (401, 403)


def test_library_flow_updates_dashboard(client):
    _, author = _auth(client, "author")
    alice_id, alice = _auth(client, "alice")
    course = _upload(client, author)
    assert course["image_url"]
    assert course["tags"] == []

    added = client.post("/api/library", json={"course_id": course["id"]}, headers=alice)
    assert added.status_code == 201
    entry = added.json()
    assert entry["user_id"] == alice_id
    assert entry["completed"] is False

    again = client.post("/api/library", json={"course_id": course["id"]}, headers=alice)
    assert again.status_code == 409

    toggled = client.patch(f"/api/library/{entry['id']}", json={}, headers=alice)
    assert toggled.json()["completed"] is True
    assert toggled.json()["completed_at"] is not None

    _upload(client, alice, "My own course")

    dashboard = client.get("/api/dashboard", headers=alice).json()
    assert dashboard["stats"] == {"completed": 1, "enrolled": 1, "uploads": 1}
    assert [e["course"]["id"] for e in dashboard["enrolled"]] == [course["id"]]
    assert [c["title"] for c in dashboard["uploaded"]] == ["My own course"]

    removed = client.delete(f"/api/library/{entry['id']}", headers=alice)
    assert removed.status_code == 200
    profile = client.get(f"/api/profiles/{alice_id}").json()
    assert (profile["enrolled"], profile["completed"], profile["uploads"]) == (0, 0, 1)


def test_explicit_completion_state(client):
    _, author = _auth(client, "author")
    _, alice = _auth(client, "alice")
    course = _upload(client, author)
    entry = client.post(
        "/api/library", json={"course_id": course["id"]}, headers=alice
    ).json()

    for completed in (True, True, False):
        response = client.patch(
            f"/api/library/{entry['id']}", json={"completed": completed}, headers=alice
        )
        assert response.json()["completed"] is completed


def test_other_users_library_entries_are_not_found(client):
    _, author = _auth(client, "author")
    _, alice = _auth(client, "alice")
    _, bob = _auth(client, "bob")
    course = _upload(client, author)
    entry = client.post(
        "/api/library", json={"course_id": course["id"]}, headers=alice
    ).json()

    assert client.patch(f"/api/library/{entry['id']}", json={}, headers=bob).status_code == 404
    assert client.delete(f"/api/library/{entry['id']}", headers=bob).status_code == 404
    assert client.get("/api/library", headers=bob).json() == []
    assert len(client.get("/api/library", headers=alice).json()) == 1


def test_enrolling_in_unknown_course_is_not_found(client):
    _, alice = _auth(client, "alice")
    response = client.post("/api/library", json={"course_id": "missing"}, headers=alice)
    assert response.status_code == 404


def test_course_edits_are_uploader_only(client):
    _, author = _auth(client, "author")
    _, intruder = _auth(client, "intruder")
    course = _upload(client, author, tags="sql, databases")
    assert course["tags"] == ["sql", "databases"]
    url = f"/api/courses/{course['id']}"

    assert client.patch(url, json={"title": "Mine"}, headers=intruder).status_code == 403
    assert client.delete(url, headers=intruder).status_code == 403

    updated = client.patch(url, json={"title": "Advanced SQL"}, headers=author)
    assert updated.status_code == 200
    assert updated.json()["title"] == "Advanced SQL"
    assert updated.json()["content_url"] == course["content_url"]


def test_course_content_must_match_type(client):
    _, author = _auth(client, "author")
    response = client.post(
        "/api/courses",
        json={"title": "Missing URL", "content_type": "pdf"},
        headers=author,
    )
    assert response.status_code == 400

    course = _upload(client, author)
    response = client.patch(
        f"/api/courses/{course['id']}", json={"content_type": "text"}, headers=author
    )
    assert response.status_code == 400


def test_deleting_course_updates_everyone(client):
    author_id, author = _auth(client, "author")
    alice_id, alice = _auth(client, "alice")
    course = _upload(client, author)
    client.post("/api/library", json={"course_id": course["id"]}, headers=alice)

    response = client.delete(f"/api/courses/{course['id']}", headers=author)
    assert response.status_code == 200

    assert client.get(f"/api/courses/{course['id']}").status_code == 404
    assert client.get(f"/api/profiles/{author_id}").json()["uploads"] == 0
    assert client.get(f"/api/profiles/{alice_id}").json()["enrolled"] == 0
    assert client.get("/api/library", headers=alice).json() == []


@pytest.mark.parametrize(
    "viewer, expected",
    [
        ("anonymous", {"Public"}),
        ("user", {"Public"}),
        ("premium", {"Public", "Premium"}),
        ("author", {"Public", "Premium", "Private"}),
    ],
)
def test_browse_respects_access_type(client, viewer, expected):
    _, author = _auth(client, "author")
    _upload(client, author, "Public")
    _upload(client, author, "Premium", access_type="premium")
    private = _upload(client, author, "Private", access_type="private")

    _, admin = _auth(client, "root", admin_token="test-admin-token")
    _, user = _auth(client, "reader")
    premium_id, premium = _auth(client, "gold")
    response = client.put(
        f"/api/profiles/{premium_id}/role", json={"role": "premium"}, headers=admin
    )
    assert response.status_code == 200

    headers = {"anonymous": {}, "user": user, "premium": premium, "author": author}[viewer]
    titles = {c["title"] for c in client.get("/api/courses", headers=headers).json()}
    assert titles == expected

    # private courses are readable only by their uploader
    status_code = client.get(f"/api/courses/{private['id']}", headers=headers).status_code
    assert status_code == (200 if viewer == "author" else 404)


def test_my_courses_include_private(client):
    _, author = _auth(client, "author")
    _upload(client, author, "Private", access_type="private")
    mine = client.get("/api/courses/mine", headers=author).json()
    assert [c["title"] for c in mine] == ["Private"]


def test_browse_filters(client):
    _, author = _auth(client, "author")
    _upload(client, author, "Intro to SQL", difficulty="beginner")
    _upload(
        client,
        author,
        "Reading list",
        content_type="text",
        content_url=None,
        content_text="Chapter one",
        difficulty="advanced",
    )

    def titles(**params):
        return {c["title"] for c in client.get("/api/courses", params=params).json()}

    assert titles(search="sql") == {"Intro to SQL"}
    assert titles(difficulty="advanced") == {"Reading list"}
    assert titles(content_type="video") == {"Intro to SQL"}
    assert client.get("/api/courses", params={"difficulty": "expert"}).status_code == 422


def test_role_changes_are_admin_only(client):
    user_id, user = _auth(client, "alice")
    response = client.put(
        f"/api/profiles/{user_id}/role", json={"role": "admin"}, headers=user
    )
    assert response.status_code == 403

    _, admin = _auth(client, "root", admin_token="test-admin-token")
    response = client.put("/api/profiles/nobody/role", json={"role": "premium"}, headers=admin)
    assert response.status_code == 404


def test_profile_avatar_and_name(client):
    _, headers = _auth(client, "alice")

    suggestion = client.get("/api/profiles/me/avatar/random", headers=headers).json()
    assert suggestion["avatar_url"].endswith(f"seed={suggestion['avatar_seed']}")

    response = client.patch(
        "/api/profiles/me",
        json={"full_name": "Alice", "avatar_seed": suggestion["avatar_seed"]},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["avatar_url"] == suggestion["avatar_url"]
    assert response.json()["full_name"] == "Alice"

    response = client.patch("/api/profiles/me", json={"avatar_seed": " "}, headers=headers)
    assert response.status_code == 400


def test_unknown_profile_is_not_found(client):
    assert client.get("/api/profiles/nobody").status_code == 404


def test_profiles_listing(client):
    _register(client, "alice")
    _register(client, "bob")
    assert len(client.get("/api/profiles").json()) == 2


def test_browse_marks_courses_in_library(client):
    _, author = _auth(client, "author")
    _, alice = _auth(client, "alice")
    saved = _upload(client, author, "Saved")
    _upload(client, author, "Not saved")
    client.post("/api/library", json={"course_id": saved["id"]}, headers=alice)

    flags = {
        c["title"]: c["in_library"]
        for c in client.get("/api/courses", headers=alice).json()
    }
    assert flags == {"Saved": True, "Not saved": False}

    anonymous = client.get("/api/courses").json()
    assert {c["in_library"] for c in anonymous} == {None}

    detail = client.get(f"/api/courses/{saved['id']}", headers=alice).json()
    assert detail["in_library"] is True
    assert client.get(f"/api/courses/{saved['id']}").json()["in_library"] is None


def test_own_profile_shows_avatar_seed(client):
    user_id, headers = _auth(client, "alice")

    assert client.get("/api/profiles/me", headers=headers).json()["avatar_seed"] == user_id

    updated = client.patch(
        "/api/profiles/me", json={"avatar_seed": "moon"}, headers=headers
    ).json()
    assert updated["avatar_seed"] == "moon"
    assert client.get("/api/profiles/me", headers=headers).json()["avatar_seed"] == "moon"
    # other people's profiles do not expose it
    assert client.get(f"/api/profiles/{user_id}").json()["avatar_seed"] is None
