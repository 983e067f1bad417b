"""Integration-test fixtures (requires PostgreSQL with migrations applied).

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool stays valid across the session.
"""

import os
import uuid
from datetime import UTC, datetime, timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import text

from config.settings import settings
from src.ent_common.database import async_session_factory
from src.main import app

# Opt-in: set RUN_INTEGRATION=1 to run against PostgreSQL.
if os.environ.get("RUN_INTEGRATION") != "1":
    collect_ignore_glob = ["test_*.py"]


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def account() -> dict[str, str]:
    """Insert a fresh account with 100 credits; return its user id and bearer token."""
    user_id = f"it_{uuid.uuid4().hex[:10]}"
    async with async_session_factory() as db:
        await db.execute(
            text("INSERT INTO accounts (user_id, email, credits) VALUES (:user_id, :email, 100)"),
            {"user_id": user_id, "email": f"{user_id}@example.com"},
        )
        await db.commit()
    token = jwt.encode(
        {"sub": user_id, "exp": datetime.now(UTC) + timedelta(minutes=15)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {"user_id": user_id, "token": token}
