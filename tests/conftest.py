import io
import os

# Test-friendly environment before the app is imported: no real record store
# or Cloudinary account, a fixed JWT secret and one allow-listed admin.
os.environ["DATABASE_URL"] = ""
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_EMAILS", '["artist@example.com"]')
os.environ.setdefault("FIREBASE_PROJECT_ID", "portfolio-test")
os.environ.setdefault("COOKIE_SECURE", "false")

import pytest  # noqa: E402
from cloudinary.exceptions import Error as CloudinaryError  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from portfolio.database import Base, get_db  # noqa: E402
from portfolio.main import app  # noqa: E402
from portfolio.routes import cms  # noqa: E402
from portfolio.utils.jwt_auth import create_access_token  # noqa: E402
from portfolio.utils.rate_limit import limiter  # noqa: E402


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def seed(session_factory):
    """Insert records in their own committed session and return them."""
    async def _seed(*records):
        async with session_factory() as session:
            session.add_all(records)
            await session.commit()
        return records
    return _seed


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def offline_client():
    """Client for an app running without a record store."""
    async def no_backend():
        yield None

    app.dependency_overrides[get_db] = no_backend
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"role": "admin", "sub": "artist@example.com", "email": "artist@example.com"})
    return {"Authorization": f"Bearer {token}"}


class FakeStorage:
    """In-memory stand-in for the Cloudinary upload/destroy calls."""

    def __init__(self):
        self.assets = {}
        self.fail_upload = False
        self.fail_delete = False

    async def upload(self, data, folder, public_id=None, max_retries=3):
        if self.fail_upload:
            raise CloudinaryError("upload refused")
        full_id = f"{folder}/{public_id}"
        self.assets[full_id] = data
        return {
            "url": f"https://res.cloudinary.com/demo/image/upload/v1/{full_id}.webp",
            "public_id": full_id,
            "format": "webp",
            "bytes": len(data),
        }

    async def delete(self, public_id, max_retries=3):
        if self.fail_delete:
            raise CloudinaryError("destroy refused")
        self.assets.pop(public_id, None)
        return {"result": "ok"}


@pytest.fixture
def storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(cms, "upload_image", fake.upload)
    monkeypatch.setattr(cms, "delete_image", fake.delete)
    monkeypatch.setattr(cms, "validate_cloudinary_config", lambda: True)
    return fake


def make_png(color=(200, 40, 40), size=(64, 64)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()
