import os
from contextlib import contextmanager
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Optional overrides for local test runs
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from libs.auth.dependencies import get_current_user  # noqa: E402
from libs.auth.models import AuthUser  # noqa: E402
from libs.common.config import get_settings  # noqa: E402
from libs.db.base import Base  # noqa: E402
from libs.db.config import build_engine, build_session_factory  # noqa: E402
from libs.db.session import get_async_db  # noqa: E402
from services.store_service import models as _store_models  # noqa: F401,E402
from services.store_service.app.main import app  # noqa: E402

get_settings.cache_clear()
settings = get_settings()


def make_auth_user(user, **overrides) -> AuthUser:
    """Authenticated identity for a seeded ``User`` row."""
    defaults = {"user_id": str(user.id), "email": user.email}
    defaults.update(overrides)
    return AuthUser(**defaults)


@contextmanager
def override_auth(target_app, user: Optional[AuthUser]):
    """Temporarily authenticate requests as ``user``."""
    previous = target_app.dependency_overrides.get(get_current_user)
    target_app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield
    finally:
        if previous is None:
            target_app.dependency_overrides.pop(get_current_user, None)
        else:
            target_app.dependency_overrides[get_current_user] = previous


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    A fresh SQLite database file per test, with all tables created.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Session for seeding and direct service calls. Seed data must be committed
    before requests or other sessions can see it.
    """
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient over the app, with one session per request from the test DB.
    """

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = _test_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
