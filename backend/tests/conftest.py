"""
CaterHub Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked DB, a real app on a
       throwaway SQLite database, signed-up caterers, image bytes).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock standing in for AsyncSession (service unit tests)
    ├── temp_storage:     temporary directory for image storage tests
    ├── png_bytes:        a real PNG produced by Pillow
    ├── oversized_header_png: a PNG whose header claims 20000x20000 pixels
    ├── test_settings:    Settings pointing at tmp_path (SQLite file + storage)
    ├── app:              create_app(test_settings) with tables created and lookups seeded
    ├── test_client:      HTTPX AsyncClient over ASGITransport
    ├── lookups:          name → id maps of the seeded lookup rows
    ├── caterer / other_caterer: signed-up caterer accounts with auth headers
    └── make_account:     sign up any further account (USER, ADMIN, CATERER)
"""

import io
import os
import struct
import tempfile
import zlib
from dataclasses import dataclass
from typing import Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any caterhub import: caterhub.main builds a module-level app
# from the environment, which must never point at a real database
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-secret-not-real-0123456789abcdef"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="caterhub_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_ON_STARTUP"] = "false"

from caterhub.config import Settings  # noqa: E402
from caterhub.main import create_app  # noqa: E402
from caterhub.models.lookup import (  # noqa: E402
    Category,
    CuisineType,
    FreeForm,
    PackageType,
    SubCategory,
)
from caterhub.seed import seed_lookups  # noqa: E402
from sqlalchemy import select  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_user(mock_db_session):
            mock_db_session.get.return_value = user
            await auth_service.get_user(mock_db_session, user.id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


def make_image_bytes(image_format: str = "PNG", size=(4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny but genuine PNG that Pillow can verify."""
    return make_image_bytes("PNG")


@pytest.fixture
def oversized_header_png() -> bytes:
    """
    An 8x8 PNG whose IHDR claims 20000x20000 pixels.

    The IHDR CRC is recomputed so Pillow gets as far as its pixel-count
    check instead of failing on a corrupt chunk.
    """
    data = bytearray(make_image_bytes("PNG", size=(8, 8)))
    # signature (8) + chunk length (4) + "IHDR" (4), then width and height
    data[16:24] = struct.pack(">II", 20000, 20000)
    data[29:33] = struct.pack(">I", zlib.crc32(bytes(data[12:29])) & 0xFFFFFFFF)
    return bytes(data)


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'caterhub.db'}",
        storage_root=str(tmp_path / "storage"),
        jwt_secret="test-secret-not-real-0123456789abcdef",
        bcrypt_rounds=4,
        seed_on_startup=False,
        log_level="WARNING",
        rate_limit_requests=1000,
    )


@pytest_asyncio.fixture
async def app(test_settings):
    """
    A fully wired app on a fresh SQLite file.

    ASGITransport does not run the lifespan, so the schema and the lookup
    seed are created here instead.
    """
    application = create_app(test_settings)
    database = application.state.db
    await database.create_all()
    async with database.session_factory() as session:
        async with session.begin():
            await seed_lookups(session)
    yield application
    await database.drop_all()
    await database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def lookups(app) -> Dict[str, Dict[str, str]]:
    """Seeded lookup ids by name, e.g. lookups["category"]["Main Course"]."""
    result: Dict[str, Dict[str, str]] = {}
    async with app.state.db.session_factory() as session:
        for key, model in (
            ("cuisine", CuisineType),
            ("category", Category),
            ("sub_category", SubCategory),
            ("free_form", FreeForm),
            ("package_type", PackageType),
        ):
            rows = (await session.execute(select(model))).scalars().all()
            result[key] = {row.name: str(row.id) for row in rows}
    return result


@dataclass
class Account:
    id: str
    email: str
    token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


async def signup(client: AsyncClient, email: str, role: str = "CATERER", **overrides) -> Account:
    body = {
        "first_name": "Test",
        "last_name": "Caterer",
        "phone": "+971500000000",
        "email": email,
        "password": "secret1",
        "type": role,
        "company_name": "Acme Catering",
    }
    body.update(overrides)
    response = await client.post("/auth/signup", json=body)
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return Account(id=data["user"]["id"], email=email, token=data["token"])


@pytest_asyncio.fixture
async def caterer(test_client) -> Account:
    return await signup(test_client, "caterer@example.com")


@pytest_asyncio.fixture
async def other_caterer(test_client) -> Account:
    return await signup(test_client, "rival@example.com", company_name="Rival Foods")


@pytest.fixture
def dish_body(lookups):
    """A valid dish create body built from seeded lookups."""

    def _build(**overrides):
        body = {
            "name": "Chicken Biryani",
            "cuisine_type_id": lookups["cuisine"]["Indian"],
            "category_id": lookups["category"]["Main Course"],
            "sub_category_id": lookups["sub_category"]["Rice Dishes"],
            "price": 10,
        }
        body.update(overrides)
        return body

    return _build


@pytest.fixture
def image_factory():
    """make_image_bytes as a fixture: image_factory("JPEG") → bytes."""
    return make_image_bytes


@pytest.fixture
def make_account(test_client):
    """Sign up another account: `await make_account("u@x.com", role="USER")`."""

    async def _make(email: str, role: str = "CATERER", **overrides) -> Account:
        return await signup(test_client, email, role=role, **overrides)

    return _make
