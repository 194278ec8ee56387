import os

# Keep the application's own engine off disk; tests use per-test databases.
os.environ.setdefault("VOCAB_REVIEW_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from backend.database import enable_sqlite_foreign_keys, get_session  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models import Base, User  # noqa: E402


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user_id(session_factory) -> int:
    async with session_factory() as session:
        user = User(name="Test")
        session.add(user)
        await session.commit()
        return user.id


@pytest_asyncio.fixture
async def other_user_id(session_factory) -> int:
    async with session_factory() as session:
        user = User(name="Other")
        session.add(user)
        await session.commit()
        return user.id


@pytest_asyncio.fixture
async def client(session_factory):
    async def _get_test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _get_test_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
