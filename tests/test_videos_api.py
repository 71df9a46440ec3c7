import pytest


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def video_body(title="Intro to Flask", **overrides):
    body = {
        "video_file": "https://cdn.example.com/v/intro.mp4",
        "thumbnail": "https://cdn.example.com/t/intro.png",
        "title": title,
        "description": "A short tour.",
        "duration": 61.5,
    }
    body.update(overrides)
    return body


@pytest.fixture
def ada(login):
    return login("ada")


@pytest.fixture
def upload(client):
    def _upload(tokens, title="Intro to Flask", **overrides):
        resp = client.post("/api/v1/videos", json=video_body(title, **overrides), headers=bearer(tokens["access_token"]))
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]

    return _upload


def test_create_video(client, ada):
    resp = client.post("/api/v1/videos", json=video_body(), headers=bearer(ada["access_token"]))

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["owner_id"] == ada["user_id"]
    assert data["views"] == 0
    assert data["is_published"] is True


def test_create_video_requires_auth(client):
    assert client.post("/api/v1/videos", json=video_body()).status_code == 401


@pytest.mark.parametrize("overrides", [
    {"duration": 0},
    {"title": "   "},
    {"title": "x" * 151},
    {"video_file": "not-a-url"},
])
def test_create_video_validation(client, ada, overrides):
    resp = client.post("/api/v1/videos", json=video_body(**overrides), headers=bearer(ada["access_token"]))
    assert resp.status_code == 422


def test_feed_lists_only_published(client, ada, upload):
    public = upload(ada, "Public")
    upload(ada, "Draft", is_published=False)

    resp = client.get("/api/v1/videos")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["count"] == 1
    assert [v["id"] for v in data["videos"]] == [public["id"]]


def test_feed_pagination(client, ada, upload):
    for i in range(3):
        upload(ada, f"Video {i}")

    data = client.get("/api/v1/videos?page=2&limit=2").get_json()["data"]

    assert data["count"] == 3
    assert data["page"] == 2
    assert data["limit"] == 2
    assert len(data["videos"]) == 1


def test_feed_rejects_non_integer_page(client):
    assert client.get("/api/v1/videos?page=two").status_code == 400


def test_my_videos_filters(client, ada, upload, login):
    upload(ada, "Cooking pasta")
    upload(ada, "Cooking rice", is_published=False)
    grace = login("grace")
    upload(grace, "Cooking soup")
    headers = bearer(ada["access_token"])

    everything = client.get("/api/v1/videos/mine", headers=headers).get_json()["data"]
    drafts = client.get("/api/v1/videos/mine?is_published=false", headers=headers).get_json()["data"]
    rice = client.get("/api/v1/videos/mine?title=RICE", headers=headers).get_json()["data"]

    assert everything["count"] == 2
    assert [v["title"] for v in drafts["videos"]] == ["Cooking rice"]
    assert [v["title"] for v in rice["videos"]] == ["Cooking rice"]


def test_update_video_owner_only(client, ada, upload, login):
    video = upload(ada)
    grace = login("grace")

    forbidden = client.patch(f"/api/v1/videos/{video['id']}", json={"title": "Hijacked"},
                             headers=bearer(grace["access_token"]))
    ok = client.patch(f"/api/v1/videos/{video['id']}", json={"title": "Renamed", "is_published": False},
                      headers=bearer(ada["access_token"]))
    missing = client.patch("/api/v1/videos/nope", json={"title": "x"}, headers=bearer(ada["access_token"]))

    assert forbidden.status_code == 403
    assert ok.status_code == 200
    assert ok.get_json()["data"]["title"] == "Renamed"
    assert ok.get_json()["data"]["is_published"] is False
    assert missing.status_code == 404


def test_video_detail_counts(client, ada, upload, login):
    video = upload(ada)
    grace = login("grace")
    client.post("/api/v1/likes/video", json={"video_id": video["id"], "is_like": True},
                headers=bearer(ada["access_token"]))
    client.post("/api/v1/likes/video", json={"video_id": video["id"], "is_like": False},
                headers=bearer(grace["access_token"]))
    client.post("/api/v1/comments", json={"video_id": video["id"], "content": "Nice!"},
                headers=bearer(grace["access_token"]))

    data = client.get(f"/api/v1/videos/{video['id']}").get_json()["data"]

    assert data["total_video_likes"] == 1
    assert data["total_video_dislikes"] == 1
    assert [c["content"] for c in data["comments"]] == ["Nice!"]
    assert data["comments"][0]["total_comment_likes"] == 0


def test_unpublished_video_hidden_from_others(client, ada, upload, login):
    draft = upload(ada, "Draft", is_published=False)
    grace = login("grace")

    assert client.get(f"/api/v1/videos/{draft['id']}").status_code == 404
    assert client.get(f"/api/v1/videos/{draft['id']}", headers=bearer(grace["access_token"])).status_code == 404
    assert client.get(f"/api/v1/videos/{draft['id']}", headers=bearer(ada["access_token"])).status_code == 200


def test_watch_history_most_recent_first(client, ada, upload):
    first = upload(ada, "First")
    second = upload(ada, "Second")
    headers = bearer(ada["access_token"])

    client.get(f"/api/v1/videos/{first['id']}", headers=headers)
    client.get(f"/api/v1/videos/{second['id']}", headers=headers)
    client.get(f"/api/v1/videos/{first['id']}", headers=headers)

    data = client.get("/api/v1/users/me/history", headers=headers).get_json()["data"]

    assert data["total"] == 2
    assert [v["id"] for v in data["videos"]] == [first["id"], second["id"]]


def test_anonymous_view_records_no_history(client, ada, upload):
    video = upload(ada)

    assert client.get(f"/api/v1/videos/{video['id']}").status_code == 200

    data = client.get("/api/v1/users/me/history", headers=bearer(ada["access_token"])).get_json()["data"]
    assert data["total"] == 0


def test_feed_is_newest_first(client, ada, upload):
    ids = [upload(ada, f"Video {i}")["id"] for i in range(6)]

    data = client.get("/api/v1/videos").get_json()["data"]

    assert [v["id"] for v in data["videos"]] == list(reversed(ids))


def test_my_videos_newest_first_across_pages(client, ada, upload):
    ids = [upload(ada, f"Video {i}")["id"] for i in range(5)]
    headers = bearer(ada["access_token"])

    first = client.get("/api/v1/videos/mine?limit=3", headers=headers).get_json()["data"]["videos"]
    second = client.get("/api/v1/videos/mine?page=2&limit=3", headers=headers).get_json()["data"]["videos"]

    assert [v["id"] for v in first + second] == list(reversed(ids))
