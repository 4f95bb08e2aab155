import os

# The app engine is created at import time; keep it off the developer database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from brackets.database import init_db  # noqa: E402
from brackets.main import app  # noqa: E402
from brackets.routes.stages import get_storage  # noqa: E402
from brackets.storage.memory import MemoryStorage  # noqa: E402
from brackets.storage.sql import SqlStorage  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(name="storage")
def storage_fixture():
    """Fresh in-memory storage per test"""
    return MemoryStorage()


@pytest.fixture(name="sql_storage")
async def sql_storage_fixture():
    """SQLModel storage on an in-memory SQLite database

    StaticPool keeps every session on the same connection, so the tables
    created here are the ones the storage sees.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Create all tables on test engine (explicit, don't rely on app startup)
    await init_db(test_engine)

    async with AsyncSession(test_engine, expire_on_commit=False) as session:
        yield SqlStorage(session)

    await test_engine.dispose()


@pytest.fixture(name="client")
def client_fixture(storage: MemoryStorage):
    """Test client backed by the in-memory storage

    Not entered as a context manager: startup (table creation on the app
    engine) is not needed when storage is overridden.
    """
    app.dependency_overrides[get_storage] = lambda: storage
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
