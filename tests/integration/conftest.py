"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session.

Pre-condition: PostgreSQL at DATABASE_URL with `alembic upgrade head` applied.
The suite is skipped when that database cannot be reached.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.bk_common.database import engine
from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def migrated_database() -> None:
    """Skip unless the database is reachable and migrated to head."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM payment_gateways LIMIT 1"))
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"Migrated PostgreSQL not available: {exc}")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
