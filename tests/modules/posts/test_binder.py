"""Tests for promoting staged uploads to post-owned files."""

import re
import stat

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.storage import LocalFileStore
from src.modules.posts.binder import ImageBinder, permanent_filename
from src.modules.posts.repository import PostRepository
from src.modules.uploads.staging import UploadStager

POST_FIELDS = {
    "title": "English academy",
    "content": "Phonics for beginners",
    "region": "Busan",
    "subject": "English",
    "target_grade": "Elementary 3",
}


def url_pattern(post_id: int, index: int, ext: str) -> re.Pattern:
    return re.compile(rf"^/uploads/post{post_id}_{index}_[0-9a-f-]{{36}}\{ext}$")


class TestImageBinder:
    def test_permanent_filename_format(self):
        name = permanent_filename(42, 3, ".webp")
        assert re.match(r"^post42_3_[0-9a-f-]{36}\.webp$", name)

    async def test_create_post_promotes_in_order(
        self, db_session: AsyncSession, store: LocalFileStore, approved_user, upload_factory
    ):
        staged = await UploadStager(store).stage(
            [
                upload_factory("one.jpg", b"1111"),
                upload_factory("two.png", b"2222", "image/png"),
                upload_factory("three.gif", b"3333", "image/gif"),
            ]
        )
        binder = ImageBinder(PostRepository(db_session), store)

        post = await binder.create_post(approved_user.id, POST_FIELDS, staged)

        assert post.id is not None
        assert len(post.image_urls) == 3
        for index, (url, ext) in enumerate(zip(post.image_urls, [".jpg", ".png", ".gif"]), start=1):
            assert url_pattern(post.id, index, ext).match(url)
        contents = [(store.root / store.filename_from_url(u)).read_bytes() for u in post.image_urls]
        assert contents == [b"1111", b"2222", b"3333"]
        # Temp files are gone, permanent files are world-readable
        assert not any(name.startswith("temp_") for name in store.list_files())
        for url in post.image_urls:
            mode = stat.S_IMODE((store.root / store.filename_from_url(url)).stat().st_mode)
            assert mode == 0o644

    async def test_missing_temp_file_is_skipped(
        self, db_session: AsyncSession, store: LocalFileStore, approved_user, upload_factory
    ):
        staged = await UploadStager(store).stage(
            [upload_factory("a.jpg", b"a"), upload_factory("b.jpg", b"b"), upload_factory("c.jpg", b"c")]
        )
        store.delete(staged[1].temp_filename)
        binder = ImageBinder(PostRepository(db_session), store)

        post = await binder.create_post(approved_user.id, POST_FIELDS, staged)

        assert len(post.image_urls) == 2
        assert url_pattern(post.id, 1, ".jpg").match(post.image_urls[0])
        assert url_pattern(post.id, 3, ".jpg").match(post.image_urls[1])

    async def test_copy_failure_cleans_up_and_skips(
        self, db_session: AsyncSession, store: LocalFileStore, approved_user, upload_factory, monkeypatch
    ):
        staged = await UploadStager(store).stage([upload_factory("a.jpg", b"a"), upload_factory("b.jpg", b"b")])
        original_copy = store.copy

        def flaky_copy(source, destination):
            if source == staged[0].temp_filename:
                raise OSError("disk full")
            return original_copy(source, destination)

        monkeypatch.setattr(store, "copy", flaky_copy)
        binder = ImageBinder(PostRepository(db_session), store)

        post = await binder.create_post(approved_user.id, POST_FIELDS, staged)

        assert len(post.image_urls) == 1
        assert url_pattern(post.id, 2, ".jpg").match(post.image_urls[0])
        assert store.list_files() == [store.filename_from_url(post.image_urls[0])]

    async def test_empty_copy_is_rejected(
        self, db_session: AsyncSession, store: LocalFileStore, approved_user, upload_factory, monkeypatch
    ):
        staged = await UploadStager(store).stage([upload_factory("a.jpg", b"a")])
        monkeypatch.setattr(store, "copy", lambda source, destination: store.write(destination, b""))
        binder = ImageBinder(PostRepository(db_session), store)

        post = await binder.create_post(approved_user.id, POST_FIELDS, staged)

        assert post.image_urls is None
        assert store.list_files() == []

    async def test_post_without_images(self, db_session: AsyncSession, store: LocalFileStore, approved_user):
        binder = ImageBinder(PostRepository(db_session), store)

        post = await binder.create_post(approved_user.id, POST_FIELDS, [])

        assert post.id is not None
        assert post.image_urls is None
        assert post.title == "English academy"
