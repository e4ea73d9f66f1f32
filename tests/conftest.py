"""Shared fixtures for engine, repository and service tests."""
from datetime import date

import pytest
import pytest_asyncio

from cycleplan.db.database import build_engine, build_session_maker, init_db
from cycleplan.repositories import InMemoryProgramRepository, SqlProgramRepository
from cycleplan.schemas import Program, WeeklyRecurrence

# 2026-01-05 is a Monday.
MONDAY = date(2026, 1, 5)


@pytest.fixture
def mwf() -> WeeklyRecurrence:
    """Monday / Wednesday / Friday rule."""
    return WeeklyRecurrence(days={1, 3, 5})


@pytest.fixture
def program(mwf) -> Program:
    """Program with a weekly default rule and no cycles."""
    return Program.create(name="Full Body Strength", default_recurrence=mwf)


@pytest.fixture
def memory_repo() -> InMemoryProgramRepository:
    return InMemoryProgramRepository()


@pytest_asyncio.fixture
async def sql_repo(tmp_path):
    """SqlProgramRepository over a throwaway SQLite file."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'programs.db'}", echo=False)
    await init_db(engine)
    session_maker = build_session_maker(engine)
    async with session_maker() as session:
        yield SqlProgramRepository(session)
    await engine.dispose()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def repository(request, tmp_path):
    """Each ProgramRepository implementation in turn."""
    if request.param == "memory":
        yield InMemoryProgramRepository()
        return
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'programs.db'}", echo=False)
    await init_db(engine)
    session_maker = build_session_maker(engine)
    async with session_maker() as session:
        yield SqlProgramRepository(session)
    await engine.dispose()
