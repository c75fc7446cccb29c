"""Academy Board FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.core.auth.router import router as auth_router
from src.core.auth.service import AuthService
from src.core.config import settings
from src.core.database import async_session
from src.core.exceptions import AppException
from src.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from src.core.storage import get_file_store
from src.modules.admin.router import router as admin_router
from src.modules.maintenance.router import router as maintenance_router
from src.modules.maintenance.service import reconcile_on_startup
from src.modules.posts.router import comments_router, router as posts_router
from src.modules.uploads.router import router as uploads_router

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_admin() -> None:
    """Create the default administrator account if it is missing."""
    if not settings.admin_password:
        logger.info("ADMIN_PASSWORD not set, skipping default admin creation")
        return
    async with async_session() as session:
        admin = await AuthService(session).ensure_admin(
            settings.admin_username, settings.admin_password, settings.admin_phone
        )
        await session.commit()
    if admin:
        logger.info("Default admin user created: %s", settings.admin_username)


async def reconcile_images() -> None:
    """Drop references to image files that disappeared while the process was down."""
    async with async_session() as session:
        await reconcile_on_startup(session, get_file_store())
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    get_file_store().ensure_directory()
    try:
        await seed_admin()
    except Exception:
        logger.exception("Failed to create default admin user")
    if settings.reconcile_on_startup:
        try:
            await reconcile_images()
        except Exception:
            logger.exception("Error cleaning up missing images")
    yield
    # Shutdown


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Academy Board",
        description="Promotion board for tutoring academies",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(posts_router, prefix="/api/v1")
    app.include_router(comments_router, prefix="/api/v1")
    app.include_router(uploads_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")
    app.include_router(maintenance_router, prefix="/api/v1")

    # Uploaded post images
    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    return app


app = create_app()
