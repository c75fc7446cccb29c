"""API tests for posts, likes and comments."""

from datetime import timedelta

from httpx import AsyncClient

from src.core.auth.models import UserStatus
from src.core.config import settings
from src.core.database.base import utcnow
from src.core.storage import LocalFileStore

FORM = {
    "title": "Science academy",
    "content": "Lab classes every Saturday",
    "region": "Daegu",
    "subject": "Science",
    "target_grade": "High 1",
}


def image(name: str, content: bytes = b"image-bytes", content_type: str = "image/jpeg"):
    return ("images", (name, content, content_type))


class TestCreatePost:
    async def test_create_post_with_images(self, client: AsyncClient, store: LocalFileStore, approved_user, headers_for):
        response = await client.post(
            "/api/v1/posts",
            data=FORM,
            files=[image("a.jpg"), image("b.png", b"png", "image/png")],
            headers=headers_for(approved_user),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Science academy"
        assert data["author_name"] == approved_user.username
        assert len(data["image_urls"]) == 2
        assert data["image_urls"][0].startswith(f"/uploads/post{data['id']}_1_")
        assert data["image_urls"][1].startswith(f"/uploads/post{data['id']}_2_")
        assert data["image_urls"][1].endswith(".png")
        # Only the permanent files remain
        assert sorted(store.list_files()) == sorted(store.filename_from_url(u) for u in data["image_urls"])

    async def test_create_post_without_images(self, client: AsyncClient, store: LocalFileStore, approved_user, headers_for):
        response = await client.post("/api/v1/posts", data=FORM, headers=headers_for(approved_user))

        assert response.status_code == 201
        assert response.json()["data"]["image_urls"] == []
        assert store.list_files() == []

    async def test_requires_authentication(self, client: AsyncClient, store: LocalFileStore):
        response = await client.post("/api/v1/posts", data=FORM, files=[image("a.jpg")])

        assert response.status_code == 401
        assert store.list_files() == []

    async def test_requires_approved_account(self, client: AsyncClient, store: LocalFileStore, user_factory, headers_for):
        pending = await user_factory("pending_academy", UserStatus.PENDING)

        response = await client.post(
            "/api/v1/posts", data=FORM, files=[image("a.jpg")], headers=headers_for(pending)
        )

        assert response.status_code == 403
        assert store.list_files() == []

    async def test_invalid_file_type_rejects_request(
        self, client: AsyncClient, store: LocalFileStore, approved_user, headers_for
    ):
        response = await client.post(
            "/api/v1/posts",
            data=FORM,
            files=[image("a.jpg"), image("notes.pdf", b"%PDF", "application/pdf")],
            headers=headers_for(approved_user),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["field"] == "images"
        assert store.list_files() == []

        posts = await client.get("/api/v1/posts")
        assert posts.json()["data"] == []

    async def test_oversized_file_returns_413(
        self, client: AsyncClient, store: LocalFileStore, approved_user, headers_for, monkeypatch
    ):
        monkeypatch.setattr(settings, "max_upload_size", 16)

        response = await client.post(
            "/api/v1/posts",
            data=FORM,
            files=[image("small.jpg", b"x" * 16), image("big.jpg", b"x" * 17)],
            headers=headers_for(approved_user),
        )

        assert response.status_code == 413
        assert store.list_files() == []

    async def test_too_many_files(self, client: AsyncClient, store: LocalFileStore, approved_user, headers_for):
        response = await client.post(
            "/api/v1/posts",
            data=FORM,
            files=[image(f"{i}.jpg") for i in range(21)],
            headers=headers_for(approved_user),
        )

        assert response.status_code == 422
        assert "20" in response.json()["message"]
        assert store.list_files() == []

    async def test_blank_title_rejected(self, client: AsyncClient, store: LocalFileStore, approved_user, headers_for):
        response = await client.post(
            "/api/v1/posts",
            data={**FORM, "title": "   "},
            files=[image("a.jpg")],
            headers=headers_for(approved_user),
        )

        assert response.status_code == 422
        assert store.list_files() == []


class TestReadPosts:
    async def test_list_newest_first_with_filters(self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory):
        now = utcnow()
        await post_factory(approved_user, title="Old math", created_at=now - timedelta(hours=5))
        await post_factory(approved_user, title="New math", created_at=now - timedelta(hours=1))
        await post_factory(approved_user, title="English", subject="English", region="Busan")

        response = await client.get("/api/v1/posts")
        titles = [p["title"] for p in response.json()["data"]]
        assert titles == ["English", "New math", "Old math"]

        response = await client.get("/api/v1/posts", params={"subject": "Math"})
        assert [p["title"] for p in response.json()["data"]] == ["New math", "Old math"]

        response = await client.get("/api/v1/posts", params={"region": "Busan", "subject": "English"})
        assert [p["title"] for p in response.json()["data"]] == ["English"]

    async def test_expired_posts_are_hidden(self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory):
        now = utcnow()
        fresh = await post_factory(approved_user, title="Fresh", created_at=now - timedelta(days=2, hours=23))
        expired = await post_factory(approved_user, title="Expired", created_at=now - timedelta(days=3, minutes=1))

        response = await client.get("/api/v1/posts")
        assert [p["id"] for p in response.json()["data"]] == [fresh.id]

        assert (await client.get(f"/api/v1/posts/{expired.id}")).status_code == 404
        assert (await client.get(f"/api/v1/posts/{fresh.id}")).status_code == 200

    async def test_missing_files_filtered_from_response(
        self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory
    ):
        store.write("post1_1_present.jpg", b"1")
        post = await post_factory(
            approved_user,
            image_urls=["/uploads/post1_1_present.jpg", "/uploads/post1_2_gone.jpg"],
        )

        response = await client.get(f"/api/v1/posts/{post.id}")

        assert response.json()["data"]["image_urls"] == ["/uploads/post1_1_present.jpg"]
        # Reads do not rewrite the stored list
        assert post.image_urls == ["/uploads/post1_1_present.jpg", "/uploads/post1_2_gone.jpg"]

    async def test_get_missing_post(self, client: AsyncClient, store: LocalFileStore):
        response = await client.get("/api/v1/posts/999")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestModifyPosts:
    async def test_author_can_update_text(self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory, headers_for):
        post = await post_factory(approved_user)

        response = await client.patch(
            f"/api/v1/posts/{post.id}",
            json={"title": "Updated title"},
            headers=headers_for(approved_user),
        )

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Updated title"
        assert response.json()["data"]["subject"] == "Math"

    async def test_other_user_cannot_update(
        self, client: AsyncClient, store: LocalFileStore, approved_user, user_factory, post_factory, headers_for
    ):
        post = await post_factory(approved_user)
        other = await user_factory("other_academy")

        response = await client.patch(
            f"/api/v1/posts/{post.id}", json={"title": "Hijacked"}, headers=headers_for(other)
        )

        assert response.status_code == 403

    async def test_delete_removes_files_comments_and_likes(
        self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory, headers_for
    ):
        store.write("post1_1_a.jpg", b"a")
        store.write("post1_2_b.jpg", b"b")
        store.write("unrelated.jpg", b"c")
        post = await post_factory(
            approved_user,
            image_urls=["/uploads/post1_1_a.jpg", "/uploads/post1_2_b.jpg", "/uploads/post1_3_gone.jpg"],
        )
        await client.post(
            f"/api/v1/posts/{post.id}/comments",
            json={"author_name": "parent", "password": "1234", "content": "Is there a trial class?"},
        )
        await client.post(f"/api/v1/posts/{post.id}/like")

        response = await client.delete(f"/api/v1/posts/{post.id}", headers=headers_for(approved_user))

        assert response.status_code == 200
        assert response.json()["data"]["files_deleted"] == 2
        assert store.list_files() == ["unrelated.jpg"]
        assert (await client.get(f"/api/v1/posts/{post.id}")).status_code == 404
        assert (await client.get(f"/api/v1/posts/{post.id}/comments")).status_code == 404

    async def test_admin_can_delete_any_post(
        self, client: AsyncClient, store: LocalFileStore, approved_user, admin_user, post_factory, headers_for
    ):
        post = await post_factory(approved_user)

        response = await client.delete(f"/api/v1/posts/{post.id}", headers=headers_for(admin_user))

        assert response.status_code == 200

        logs = await client.get(
            "/api/v1/admin/audit-logs", params={"entity_type": "Post"}, headers=headers_for(admin_user)
        )
        items = logs.json()["data"]["items"]
        assert len(items) == 1
        assert items[0]["action"] == "DELETE"
        assert items[0]["entity_id"] == post.id


class TestLikes:
    async def test_like_is_idempotent_per_ip(self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory):
        post = await post_factory(approved_user)

        first = await client.post(f"/api/v1/posts/{post.id}/like")
        second = await client.post(f"/api/v1/posts/{post.id}/like")

        assert first.json()["data"] == {"post_id": post.id, "liked": True, "likes_count": 1}
        assert second.json()["data"]["likes_count"] == 1

        status = await client.get(f"/api/v1/posts/{post.id}/like")
        assert status.json()["data"]["liked"] is True

    async def test_unlike(self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory):
        post = await post_factory(approved_user)
        await client.post(f"/api/v1/posts/{post.id}/like")

        response = await client.delete(f"/api/v1/posts/{post.id}/like")
        again = await client.delete(f"/api/v1/posts/{post.id}/like")

        assert response.json()["data"] == {"post_id": post.id, "liked": False, "likes_count": 0}
        assert again.json()["data"]["likes_count"] == 0

    async def test_like_missing_post(self, client: AsyncClient, store: LocalFileStore):
        response = await client.post("/api/v1/posts/404/like")
        assert response.status_code == 404


class TestComments:
    async def test_add_and_list_comments(self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory):
        post = await post_factory(approved_user)

        response = await client.post(
            f"/api/v1/posts/{post.id}/comments",
            json={"author_name": "parent", "password": "1234", "content": "How many students per class?"},
        )

        assert response.status_code == 201
        comment = response.json()["data"]
        assert "password" not in comment
        assert "password_hash" not in comment

        listing = await client.get(f"/api/v1/posts/{post.id}/comments")
        assert [c["content"] for c in listing.json()["data"]] == ["How many students per class?"]

    async def test_comment_password_limit_is_in_bytes(
        self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory
    ):
        post = await post_factory(approved_user)

        # 28 characters, 84 bytes
        response = await client.post(
            f"/api/v1/posts/{post.id}/comments",
            json={"author_name": "parent", "password": "비밀번호" * 7, "content": "Hello"},
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "password"
        listing = await client.get(f"/api/v1/posts/{post.id}/comments")
        assert listing.json()["data"] == []

    async def test_delete_comment_requires_password(
        self, client: AsyncClient, store: LocalFileStore, approved_user, post_factory
    ):
        post = await post_factory(approved_user)
        created = await client.post(
            f"/api/v1/posts/{post.id}/comments",
            json={"author_name": "parent", "password": "1234", "content": "Hello"},
        )
        comment_id = created.json()["data"]["id"]

        wrong = await client.request("DELETE", f"/api/v1/comments/{comment_id}", json={"password": "9999"})
        assert wrong.status_code == 403

        right = await client.request("DELETE", f"/api/v1/comments/{comment_id}", json={"password": "1234"})
        assert right.status_code == 200
        listing = await client.get(f"/api/v1/posts/{post.id}/comments")
        assert listing.json()["data"] == []

    async def test_admin_deletes_comment_without_password(
        self, client: AsyncClient, store: LocalFileStore, approved_user, admin_user, post_factory, headers_for
    ):
        post = await post_factory(approved_user)
        created = await client.post(
            f"/api/v1/posts/{post.id}/comments",
            json={"author_name": "spam", "password": "1234", "content": "Buy now"},
        )
        comment_id = created.json()["data"]["id"]

        response = await client.request(
            "DELETE", f"/api/v1/comments/{comment_id}", json={}, headers=headers_for(admin_user)
        )

        assert response.status_code == 200


class TestFileExists:
    async def test_exists_endpoint(self, client: AsyncClient, store: LocalFileStore):
        store.write("post1_1_x.jpg", b"x")

        present = await client.get("/api/v1/uploads/post1_1_x.jpg/exists")
        absent = await client.get("/api/v1/uploads/post1_1_y.jpg/exists")

        assert present.json()["data"] == {"filename": "post1_1_x.jpg", "exists": True}
        assert absent.json()["data"]["exists"] is False
