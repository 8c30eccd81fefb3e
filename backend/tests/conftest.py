from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coursemart.db import registry  # noqa: F401
from coursemart.db.base import Base
from coursemart.services.file_storage import FileStorage
from support import FakeBucket, Lookups, seed_lookups


@pytest.fixture
def bucket() -> FakeBucket:
    return FakeBucket()


@pytest.fixture
def storage(bucket: FakeBucket) -> FileStorage:
    # Tiny read size so uploads span several chunks.
    return FileStorage(bucket, max_size_bytes=64 * 1024, read_chunk_size=4)


@pytest_asyncio.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker) -> AsyncSession:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def lookups(db: AsyncSession) -> Lookups:
    return await seed_lookups(db)


@pytest_asyncio.fixture
async def app(session_maker, storage: FileStorage):
    from coursemart.api.deps import get_file_storage
    from coursemart.db.session import get_db
    from coursemart.main import app as fastapi_app

    async def _override_db():
        async with session_maker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_db
    fastapi_app.dependency_overrides[get_file_storage] = lambda: storage
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.pop(get_db, None)
        fastapi_app.dependency_overrides.pop(get_file_storage, None)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
