import logging
from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")

    url = make_url(database_url)
    logger.info("Connecting to database: %s", url.render_as_string(hide_password=True))

    options = {"echo": settings.debug and not settings.is_production}
    if url.get_backend_name() == "postgresql":
        # Long-lived connections get recycled by managed Postgres providers
        options.update(pool_pre_ping=True, pool_recycle=1800)
    return create_async_engine(url, **options)


engine = build_engine(settings.database_url)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, committed when the handler succeeds."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
