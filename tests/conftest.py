"""Pytest bootstrap configuration.

Ensure environment variables are set before test collection and module
imports that depend on application settings (the database engine is
created at import time).
"""
import os

os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("METRICS__ENABLED", "false")
os.environ["REDIS__URL"] = ""

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tests.fakes import InMemoryStore, RecordingObserver, seed_store


@pytest.fixture
def store() -> InMemoryStore:
    """商户1 / 收银员10 / 订单100：小计 25000，税 2750，总额 27750"""
    return seed_store()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
async def sqlite_session_factory():
    """独立的内存 SQLite 引擎；StaticPool 保证所有会话看到同一个库"""
    from infrastructure.database import create_tables

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    try:
        yield async_sessionmaker(bind=engine, expire_on_commit=False)
    finally:
        await engine.dispose()
