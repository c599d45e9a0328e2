"""
MEDS Backend — Application Shell Tests
========================================

What:  Health probe, request IDs, error bodies and the frontend mount.

What we test:
    ✅ /health reports the database state (200 / 503)
    ✅ X-Request-ID is echoed or generated
    ✅ Constraint violations reaching the app become 409, not 500
    ✅ Built frontend is served with index.html fallback for client routes
    ✅ API paths never fall back to index.html
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

import meds.database
from meds.database import build_engine
from meds.main import create_app
from meds.routes.frontend import resolve_frontend_dir


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_unreachable_database(self, client, tmp_path, monkeypatch):
        broken = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nope.db'}")
        monkeypatch.setattr(meds.database, "engine", broken)

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
        await broken.dispose()


class TestRequestId:
    @pytest.mark.asyncio
    async def test_echoes_client_id(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_generated_id_in_error_body(self, client):
        response = await client.get("/api/collections/patients/records")

        assert response.status_code == 401
        assert response.json()["request_id"] == response.headers["X-Request-ID"]


class TestErrorHandlers:
    @pytest.mark.asyncio
    async def test_integrity_error_is_conflict(self, tmp_path):
        app = create_app(frontend_dir=str(tmp_path / "no-frontend"))

        async def violate():
            raise IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed"))

        app.add_api_route("/api/violate", violate)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/violate")

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"


class TestFrontend:
    @pytest.fixture
    def build_dir(self, tmp_path):
        build = tmp_path / "build"
        (build / "assets").mkdir(parents=True)
        (build / "index.html").write_text("<html>MEDS</html>")
        (build / "assets" / "app.js").write_text("console.log('meds')")
        return build

    @pytest.mark.asyncio
    async def test_spa_fallback(self, build_dir):
        app = create_app(frontend_dir=str(build_dir))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/")
            assert response.status_code == 200
            assert "MEDS" in response.text

            response = await client.get("/patients/abc123")
            assert response.status_code == 200
            assert "MEDS" in response.text

            response = await client.get("/assets/app.js")
            assert "console.log" in response.text

            response = await client.get("/api/unknown")
            assert response.status_code == 404

            response = await client.get("/api/collections/patients/records")
            assert response.status_code == 401

    def test_missing_frontend(self, tmp_path):
        assert resolve_frontend_dir(str(tmp_path / "nothing-here")) is None

    def test_explicit_frontend(self, build_dir):
        assert resolve_frontend_dir(str(build_dir)) == build_dir.resolve()
