"""
Shared pytest fixtures for the roster tests.

Sets required environment variables BEFORE any roster module is imported so
that pydantic-settings and SQLAlchemy engine initialisation use safe test
values.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from typing import AsyncGenerator

# ── Set env vars before any roster import ─────────────────────────────────────
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RECONCILE_MAX_ATTEMPTS", "3")

# ── Third-party ───────────────────────────────────────────────────────────────
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# ── Roster imports (safe after env vars are set) ──────────────────────────────
from roster.models.base import Base

# Every age in the suite is computed against this date.
AS_OF = date(2025, 6, 1)


# ── DB fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a fresh AsyncSession backed by an isolated in-memory SQLite database.
    Schema is created fresh for every test function; engine is always disposed
    on teardown, even if the test raises an exception.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await engine.dispose()


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    File-backed database shared by several independent sessions, for tests
    that need real separate transactions (concurrency, retry, rollback).
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'roster.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


# ── Mock helpers ──────────────────────────────────────────────────────────────

@dataclass
class _MockAthlete:
    """Minimal athlete for the pure rules (no DB required)."""
    gender:     str
    birth_year: int


@dataclass
class _MockTournament:
    """Minimal tournament instance for the pure rules."""
    id:        int
    division:  str
    modality:  str = "full"
    equipment: str = "classic"


def athlete_aged(age: int, gender: str = "M") -> _MockAthlete:
    """Athlete who is exactly ``age`` on AS_OF."""
    return _MockAthlete(gender=gender, birth_year=AS_OF.year - age)


@pytest.fixture
def full_catalog() -> list[_MockTournament]:
    """Every (division, modality, equipment) combination, ids 1..12."""
    catalog = []
    next_id = 1
    for division in ("juniors", "open", "masters"):
        for modality in ("full", "bench"):
            for equipment in ("classic", "equipped"):
                catalog.append(_MockTournament(next_id, division, modality, equipment))
                next_id += 1
    return catalog
