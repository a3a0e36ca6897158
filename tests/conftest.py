"""Shared fixtures and utilities for tests."""

import os

# Settings are read once at import time, so the test environment must be in
# place before any application module is imported.
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["JSON_LOGS"] = "false"
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.identity import ActorContext, ActorRole
from database.engine import Base
from database.models import Actor, VerificationRecord, VerificationStatus
import database.models  # noqa: F401


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
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
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_actor(session):
    """Factory creating a committed actor, optionally already verified."""

    async def _make(
        actor_id: str,
        role: ActorRole,
        verified: bool = False,
        **fields,
    ) -> ActorContext:
        session.add(
            Actor(
                id=actor_id,
                email=f"{actor_id}@example.com",
                role=role,
                profile={},
                **fields,
            )
        )
        if verified:
            session.add(
                VerificationRecord(
                    owner_id=actor_id,
                    status=VerificationStatus.VERIFIED,
                )
            )
        await session.commit()
        return ActorContext(id=actor_id, role=role)

    return _make


@pytest.fixture
async def staff(make_actor) -> ActorContext:
    return await make_actor("staff-1", ActorRole.STAFF)


@pytest.fixture
async def admin(make_actor) -> ActorContext:
    return await make_actor("admin-1", ActorRole.ADMIN)


@pytest.fixture
async def candidate(make_actor) -> ActorContext:
    return await make_actor("candidate-1", ActorRole.CANDIDATE, first_name="Ada", last_name="Lovelace")


@pytest.fixture
async def employer(make_actor) -> ActorContext:
    """A verified employer."""
    return await make_actor("employer-1", ActorRole.EMPLOYER, verified=True, company_name="Acme GmbH")

