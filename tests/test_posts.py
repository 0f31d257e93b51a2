"""Post endpoints: create, read, update, delete, likes."""

from PIL import Image

from conftest import hide_existing, login, make_image_bytes, register
from photofeed.crud import post as crud
from photofeed.db.models.like import Like
from photofeed.db.models.post import Post, PostPhoto
from photofeed.db.models.user import User


def test_create_post_with_content_only(client, alice):
    response = client.post("/api/posts", data={"content": "hello"}, headers=alice)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    assert body["data"]["content"] == "hello"
    assert body["data"]["photos"] == []
    assert body["data"]["created_by"] == "alice"
    assert body["data"]["like_count"] == 0
    assert body["data"]["status"] == "public"


def test_create_post_with_photos_only(client, alice, storage, db):
    files = [
        ("photos", ("a.png", make_image_bytes((2000, 1000)), "image/png")),
        ("photos", ("b.png", make_image_bytes((300, 300)), "image/png")),
    ]
    response = client.post("/api/posts", files=files, headers=alice)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["content"] is None
    assert len(data["photos"]) == 2
    for photo in data["photos"]:
        assert photo["photo"].startswith("posts/")
        assert photo["photo"].endswith(".jpg")
        assert photo["url"] == f"/static/{photo['photo']}"
        # written before the response was sent
        assert storage.absolute(photo["photo"]).exists()

    with Image.open(storage.absolute(data["photos"][0]["photo"])) as image:
        assert image.format == "JPEG"
        assert max(image.size) == 1080
    with Image.open(storage.absolute(data["photos"][1]["photo"])) as image:
        assert image.size == (300, 300)

    assert db.query(PostPhoto).filter(PostPhoto.post_id == data["id"]).count() == 2


def test_create_post_without_content_or_photos_fails(client, alice, db):
    response = client.post("/api/posts", data={"content": "   "}, headers=alice)

    assert response.status_code == 400
    assert response.json() == {"status": "fail", "message": "missing parameters"}
    assert db.query(Post).count() == 0


def test_create_post_requires_token(client):
    response = client.post("/api/posts", data={"content": "hello"})

    assert response.status_code == 401
    assert response.json()["status"] == "fail"


def test_create_post_rejects_invalid_token(client):
    response = client.post("/api/posts", data={"content": "hello"},
                           headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_create_post_rejects_non_image_upload(client, alice, storage, db):
    files = [("photos", ("notes.txt", b"plain text", "text/plain"))]
    response = client.post("/api/posts", data={"content": "hi"}, files=files, headers=alice)

    assert response.status_code == 400
    assert response.json()["message"] == "invalid filetype"
    assert db.query(Post).count() == 0


def test_create_post_with_undecodable_image_leaves_nothing_behind(client, alice, storage, db):
    files = [
        ("photos", ("ok.png", make_image_bytes(), "image/png")),
        ("photos", ("broken.png", b"not really a png", "image/png")),
    ]
    response = client.post("/api/posts", files=files, headers=alice)

    assert response.status_code == 400
    assert response.json()["message"] == "invalid image"
    assert db.query(Post).count() == 0
    assert list(storage.root.rglob("*.jpg")) == []


def test_create_post_rejects_unknown_status(client, alice):
    response = client.post("/api/posts", data={"content": "hi", "status": "secret"}, headers=alice)

    assert response.status_code == 400


def test_get_post(client, make_post):
    post = make_post("hello", photos=1)

    response = client.get(f"/api/posts/{post['id']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == post["id"]
    assert len(data["photos"]) == 1
    # anonymous readers get no liked flag
    assert data["liked"] is None


def test_get_missing_post_returns_404_without_data(client):
    response = client.get("/api/posts/9999")

    assert response.status_code == 404
    assert response.json() == {"status": "fail", "message": "post not found"}


def test_get_post_with_non_numeric_id_is_not_found(client):
    response = client.get("/api/posts/abc")

    assert response.status_code == 404


def test_update_post_content_and_photos(client, alice, make_post, storage, db):
    post = make_post("before", photos=2)
    keep, drop = post["photos"]

    response = client.patch(
        f"/api/posts/{post['id']}",
        data={"content": "after", "remove_photos": f"{drop['id']}"},
        files=[("photos", ("new.png", make_image_bytes(), "image/png"))],
        headers=alice,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["content"] == "after"
    photo_ids = [photo["id"] for photo in data["photos"]]
    assert keep["id"] in photo_ids
    assert drop["id"] not in photo_ids
    assert len(photo_ids) == 2
    assert not storage.absolute(drop["photo"]).exists()
    assert storage.absolute(keep["photo"]).exists()
    assert db.query(PostPhoto).filter(PostPhoto.id == drop["id"]).first() is None


def test_update_post_ignores_photo_ids_of_other_posts(client, alice, make_post, db):
    mine = make_post("mine")
    other = make_post("other", photos=1)
    foreign_id = other["photos"][0]["id"]

    response = client.patch(
        f"/api/posts/{mine['id']}",
        data={"remove_photos": f"{foreign_id},12345,garbage"},
        headers=alice,
    )

    assert response.status_code == 200
    assert db.query(PostPhoto).filter(PostPhoto.id == foreign_id).first() is not None


def test_update_post_with_nothing_fails(client, alice, make_post):
    post = make_post("hello")

    response = client.patch(f"/api/posts/{post['id']}", headers=alice)

    assert response.status_code == 400
    assert response.json()["message"] == "missing parameters"


def test_update_post_too_long_content_keeps_photos(client, alice, make_post, db):
    post = make_post("hello", photos=1)
    photo_id = post["photos"][0]["id"]

    response = client.patch(
        f"/api/posts/{post['id']}",
        data={"content": "x" * 2201, "remove_photos": str(photo_id)},
        headers=alice,
    )

    assert response.status_code == 400
    assert db.query(PostPhoto).filter(PostPhoto.id == photo_id).first() is not None


def test_non_owner_cannot_update_or_delete_post(client, bob, make_post, db):
    post = make_post("hello")

    update = client.patch(f"/api/posts/{post['id']}", data={"content": "hacked"}, headers=bob)
    delete = client.delete(f"/api/posts/{post['id']}", headers=bob)

    assert update.status_code == 403
    assert delete.status_code == 403
    stored = db.query(Post).filter(Post.id == post["id"]).first()
    assert stored is not None
    assert stored.content == "hello"


def test_delete_post_removes_photos(client, alice, make_post, storage, db):
    post = make_post("bye", photos=2)

    response = client.delete(f"/api/posts/{post['id']}", headers=alice)

    assert response.status_code == 200
    assert response.json() == {"status": "success", "data": "deleted"}
    assert db.query(Post).filter(Post.id == post["id"]).first() is None
    assert db.query(PostPhoto).filter(PostPhoto.post_id == post["id"]).count() == 0
    for photo in post["photos"]:
        assert not storage.absolute(photo["photo"]).exists()

    again = client.get(f"/api/posts/{post['id']}")
    assert again.status_code == 404


def test_delete_post_tolerates_missing_files(client, alice, make_post, storage):
    post = make_post("bye", photos=1)
    storage.absolute(post["photos"][0]["photo"]).unlink()

    response = client.delete(f"/api/posts/{post['id']}", headers=alice)

    assert response.status_code == 200


def test_like_toggle_keeps_counter_equal_to_rows(client, alice, bob, make_post, db):
    post = make_post("likeable")
    url = f"/api/posts/{post['id']}/like"

    results = []
    for headers in (alice, bob, alice, alice, bob, bob):
        response = client.post(url, headers=headers)
        assert response.status_code == 200
        results.append(response.json()["data"])

        db.expire_all()
        stored = db.query(Post).filter(Post.id == post["id"]).one()
        rows = db.query(Like).filter(Like.post_id == post["id"]).count()
        assert stored.like_count == rows

    assert results == ["liked", "liked", "unliked", "liked", "unliked", "liked"]
    assert client.get(f"/api/posts/{post['id']}").json()["data"]["like_count"] == 2


def test_like_and_unlike_pairs_net_zero(client, alice, make_post):
    post = make_post("likeable")
    url = f"/api/posts/{post['id']}/like"

    for _ in range(2):
        assert client.post(url, headers=alice).json()["data"] == "liked"
        assert client.post(url, headers=alice).json()["data"] == "unliked"

    assert client.get(f"/api/posts/{post['id']}").json()["data"]["like_count"] == 0


def test_duplicate_like_insert_settles_on_one_like(client, alice, make_post, db, monkeypatch):
    post = make_post("contested")
    assert client.post(f"/api/posts/{post['id']}/like", headers=alice).json()["data"] == "liked"
    user = db.query(User).filter(User.username == "alice").one()

    # the lookup misses the committed like, so the insert hits the unique constraint
    hide_existing(monkeypatch, db, Like)
    result = crud.toggle_like(db, post["id"], user)
    monkeypatch.undo()

    db.expire_all()
    assert result == "liked"
    assert db.query(Like).filter(Like.post_id == post["id"]).count() == 1
    assert db.query(Post).filter(Post.id == post["id"]).one().like_count == 1


def test_update_post_with_blank_content_only_fails(client, alice, make_post, db):
    post = make_post("hello")

    response = client.patch(f"/api/posts/{post['id']}", data={"content": "   "}, headers=alice)

    assert response.status_code == 400
    assert response.json()["message"] == "missing parameters"
    assert db.query(Post).filter(Post.id == post["id"]).one().content == "hello"


def test_like_missing_post(client, alice):
    response = client.post("/api/posts/4242/like", headers=alice)

    assert response.status_code == 404


def test_get_post_shows_liked_flag_for_identified_user(client, alice, bob, make_post):
    post = make_post("hello")
    client.post(f"/api/posts/{post['id']}/like", headers=bob)

    assert client.get(f"/api/posts/{post['id']}", headers=bob).json()["data"]["liked"] is True
    assert client.get(f"/api/posts/{post['id']}", headers=alice).json()["data"]["liked"] is False


def test_get_likes_lists_likers_in_order(client, alice, bob, make_post):
    register(client, "carol", full_name="Carol Danvers")
    carol = login(client, "carol")
    post = make_post("hello")
    for headers in (bob, carol, alice):
        client.post(f"/api/posts/{post['id']}/like", headers=headers)

    response = client.get(f"/api/posts/{post['id']}/likes")

    assert response.status_code == 200
    likes = response.json()["data"]
    assert [like["liker"] for like in likes] == ["bob", "carol", "alice"]
    assert likes[0]["user"]["full_name"] == "Bob Builder"

    second = client.get(f"/api/posts/{post['id']}/likes", params={"from": 1, "limit": 1}).json()["data"]
    # limit is raised to the minimum page size
    assert [like["liker"] for like in second] == ["carol", "alice"]


def test_private_post_is_hidden_from_others(client, alice, bob, make_post):
    post = make_post("only me", status="private")

    assert client.get(f"/api/posts/{post['id']}", headers=alice).status_code == 200
    assert client.get(f"/api/posts/{post['id']}", headers=bob).status_code == 403
    assert client.get(f"/api/posts/{post['id']}").status_code == 403
    assert client.post(f"/api/posts/{post['id']}/like", headers=bob).status_code == 403


def test_locked_post_is_readable_but_not_likeable(client, alice, bob, make_post):
    post = make_post("look, don't touch", status="locked")

    assert client.get(f"/api/posts/{post['id']}", headers=bob).status_code == 200
    response = client.post(f"/api/posts/{post['id']}/like", headers=bob)
    assert response.status_code == 403
    assert response.json()["message"] == "post is locked"
    assert client.post(f"/api/posts/{post['id']}/like", headers=alice).status_code == 200


def test_owner_can_change_status(client, alice, bob, make_post):
    post = make_post("hello")

    response = client.patch(f"/api/posts/{post['id']}", data={"status": "private"}, headers=alice)

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "private"
    assert client.get(f"/api/posts/{post['id']}", headers=bob).status_code == 403
