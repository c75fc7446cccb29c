from collections.abc import AsyncGenerator
from datetime import datetime
from io import BytesIO

import pytest
from fastapi import UploadFile
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.datastructures import Headers

from src.core.auth.jwt import create_access_token
from src.core.auth.models import User, UserStatus
from src.core.auth.password import hash_password
from src.core.config import settings
from src.core.database.base import Base
from src.core.database import get_db
from src.core.storage import LocalFileStore
from src.main import app
from src.modules.posts.models import Post

# Test database URL (in-memory SQLite for speed, or use test PostgreSQL)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def storage_tmp_path(tmp_path, monkeypatch):
    """Use tmp_path as the upload directory."""
    upload_dir = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(upload_dir))
    return upload_dir


@pytest.fixture
def store(storage_tmp_path) -> LocalFileStore:
    store = LocalFileStore(storage_tmp_path, settings.upload_url_prefix)
    store.ensure_directory()
    return store


async def make_user(
    db_session: AsyncSession,
    username: str = "academy",
    status: UserStatus = UserStatus.APPROVED,
    is_admin: bool = False,
) -> User:
    user = User(
        username=username,
        password_hash=hash_password("Password123"),
        phone="010-1234-5678",
        status=status.value,
        is_admin=is_admin,
    )
    db_session.add(user)
    await db_session.flush()
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.is_admin)}"}


async def make_post(
    db_session: AsyncSession,
    author: User,
    image_urls: list[str] | None = None,
    created_at: datetime | None = None,
    **fields,
) -> Post:
    values = {
        "title": "Math academy open",
        "content": "Small classes, experienced teachers",
        "region": "Seoul",
        "subject": "Math",
        "target_grade": "Middle 2",
    }
    values.update(fields)
    post = Post(author_id=author.id, image_urls=image_urls, **values)
    if created_at is not None:
        post.created_at = created_at
    db_session.add(post)
    await db_session.flush()
    await db_session.refresh(post)
    return post


def make_upload(
    filename: str = "photo.jpg",
    content: bytes = b"\xff\xd8\xff fake jpeg",
    content_type: str = "image/jpeg",
) -> UploadFile:
    return UploadFile(
        file=BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
async def approved_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "approved_academy", UserStatus.APPROVED)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "board_admin", UserStatus.APPROVED, is_admin=True)


@pytest.fixture
def user_factory(db_session: AsyncSession):
    async def factory(username: str, status: UserStatus = UserStatus.APPROVED, is_admin: bool = False) -> User:
        return await make_user(db_session, username, status, is_admin)

    return factory


@pytest.fixture
def post_factory(db_session: AsyncSession):
    async def factory(author: User, **kwargs) -> Post:
        return await make_post(db_session, author, **kwargs)

    return factory


@pytest.fixture
def upload_factory():
    return make_upload


@pytest.fixture
def headers_for():
    return auth_headers
