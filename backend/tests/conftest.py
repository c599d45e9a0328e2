"""
MEDS Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite file (schema built with
       `metadata.create_all`, queue trigger included), a session factory
       bound to it, and an HTTPX AsyncClient whose requests use that factory.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    db_engine            fresh SQLite database under tmp_path
    ├── session_factory  async_sessionmaker bound to db_engine
    │   ├── db_session   one session for service-level tests
    │   └── users        admin, provider, provider2, pharmacy, superuser (committed)
    │       └── headers  Authorization headers per role
    └── client           AsyncClient → create_app(), get_db_session overridden
"""

import os
import tempfile
from typing import Dict

# Override settings for testing BEFORE any meds imports
_TEST_ROOT = tempfile.mkdtemp(prefix="meds_test_")
os.environ["MEDS_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/meds.db"
os.environ["MEDS_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["MEDS_DATA_DIR"] = os.path.join(_TEST_ROOT, "data")
os.environ["MEDS_BACKUP_DIR"] = os.path.join(_TEST_ROOT, "backups")
os.environ["MEDS_LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

import meds.database  # noqa: E402
import meds.models  # noqa: E402,F401
from meds.database import Base, build_engine, get_db_session  # noqa: E402
from meds.main import create_app  # noqa: E402
from meds.models import Patient, User  # noqa: E402
from meds.services.auth_service import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "password123"

# pbkdf2 is deliberately slow; hash once for every test user
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'meds.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Users & Auth
# ══════════════════════════════════════════════════════════════════════════

def make_user(username: str, role: str, is_superuser: bool = False, **fields) -> User:
    return User(
        username=username,
        email=f"{username}@example.com",
        name=username.title(),
        password_hash=_PASSWORD_HASH,
        role=role,
        verified=True,
        is_superuser=is_superuser,
        **fields,
    )


@pytest_asyncio.fixture
async def users(session_factory) -> Dict[str, User]:
    """One committed user per role, keyed by a short label."""
    created = {
        "admin": make_user("admin", "admin"),
        "provider": make_user("provider", "provider"),
        "provider2": make_user("provider2", "provider"),
        "pharmacy": make_user("pharmacy", "pharmacy"),
        "superuser": make_user("root", "provider", is_superuser=True),
    }
    async with session_factory() as session:
        session.add_all(created.values())
        await session.commit()
    return created


def bearer(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers(users) -> Dict[str, Dict[str, str]]:
    """
    Authorization headers per user label.

    Usage:
        await client.get("/api/collections/patients/records", headers=headers["provider"])
    """
    return {label: bearer(user) for label, user in users.items()}


@pytest_asyncio.fixture
async def patient(session_factory) -> Patient:
    async with session_factory() as session:
        record = Patient(first_name="Maria", last_name="Lopez", gender="female", age=34)
        session.add(record)
        await session.commit()
    return record


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def app(session_factory, db_engine, tmp_path, monkeypatch):
    """The FastAPI app with every request session bound to the test database."""

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # /health probes the module-level engine
    monkeypatch.setattr(meds.database, "engine", db_engine)

    application = create_app(frontend_dir=str(tmp_path / "no-frontend"))
    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
