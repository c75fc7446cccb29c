from httpx import AsyncClient

from src.core.config import Settings, settings
from src.main import seed_admin


class TestApplication:
    """Tests for the application factory and startup hooks."""

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_unknown_paths_are_not_served(self, client: AsyncClient):
        """Only API routes and /uploads exist; anything else is a 404."""
        response = await client.get("/some/page")
        assert response.status_code == 404

        response = await client.get("/assets/index.js")
        assert response.status_code == 404

    def test_admin_password_has_no_default(self):
        assert Settings.model_fields["admin_password"].default is None

    async def test_seed_admin_skipped_without_password(self, monkeypatch):
        def fail_if_opened():
            raise AssertionError("database session opened")

        monkeypatch.setattr(settings, "admin_password", None)
        monkeypatch.setattr("src.main.async_session", fail_if_opened)

        await seed_admin()
