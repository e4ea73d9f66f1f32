"""Tests for settings, structured logging, date parsing and the transaction decorator."""
from datetime import date, datetime

import pytest
import structlog
from structlog.testing import capture_logs

from cycleplan.config.settings import Settings
from cycleplan.core.logging import (
    add_log_context,
    clear_log_context,
    configure_logging,
    get_logger,
    log_scope,
)
from cycleplan.core.transactions import transactional
from cycleplan.schemas import Cycle, SessionStub
from cycleplan.schemas.datetime import parse_date
from cycleplan.services.reschedule import reschedule_engine


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.app_name == "cycleplan"
        assert settings.debug is False
        assert settings.database_url.startswith("sqlite+aiosqlite://")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./other.db")
        monkeypatch.setenv("DEBUG", "true")
        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite+aiosqlite:///./other.db"
        assert settings.debug is True


class TestLogging:
    def test_events_are_captured_with_level(self):
        configure_logging()
        with capture_logs() as logs:
            add_log_context(program_id="p-1")
            get_logger(__name__).info("cycle_created", cycle_number=2)
            clear_log_context()

        assert len(logs) == 1
        assert logs[0]["event"] == "cycle_created"
        assert logs[0]["cycle_number"] == 2
        assert logs[0]["log_level"] == "info"

    def test_reschedule_logs_shift_count(self):
        cycle = Cycle.create("p-1", 1, date(2026, 1, 5), date(2026, 1, 31))
        first = SessionStub(cycle_id=cycle.id, date=date(2026, 1, 10))
        later = SessionStub(cycle_id=cycle.id, date=date(2026, 1, 17))
        cycle = cycle.with_fields(sessions=(first, later))

        with capture_logs() as logs:
            reschedule_engine.reschedule_future_sessions(
                cycle, first.with_date(date(2026, 1, 11)), date(2026, 1, 10)
            )

        events = [entry for entry in logs if entry["event"] == "sessions_rescheduled"]
        assert len(events) == 1
        assert events[0]["delta_days"] == 1
        assert events[0]["shifted_count"] == 1

    def test_log_scope_binds_and_clears_context(self):
        add_log_context(stale="left over")
        with log_scope(program_id="p-1"):
            assert structlog.contextvars.get_contextvars() == {"program_id": "p-1"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_scope_clears_on_error(self):
        with pytest.raises(RuntimeError):
            with log_scope(program_id="p-1"):
                raise RuntimeError("boom")
        assert structlog.contextvars.get_contextvars() == {}


class TestParseDate:
    @pytest.mark.parametrize(
        "value",
        [
            date(2026, 1, 5),
            datetime(2026, 1, 5, 23, 59),
            "2026-01-05",
            "2026-01-05T06:15:00",
            "2026-01-05T06:15:00Z",
        ],
    )
    def test_reduces_to_calendar_day(self, value):
        assert parse_date(value) == date(2026, 1, 5)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_date("next monday")

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            parse_date(20260105)


class TestTransactional:
    @pytest.mark.asyncio
    async def test_requires_a_session(self):
        @transactional
        async def orphan(value):
            return value

        with pytest.raises(ValueError):
            await orphan(1)

    @pytest.mark.asyncio
    async def test_nested_calls_share_the_transaction(self, sql_repo, program):
        """save_session runs find_cycle and update inside its own transaction."""
        p = program.create_cycle(date(2026, 1, 5), date(2026, 1, 18))
        p = p.update_cycle(p.cycles[0].generate_scheduled_sessions())
        await sql_repo.save_program(p)

        session = p.cycles[0].sessions[0].with_date(date(2026, 1, 6))
        saved = await sql_repo.save_session(session, propagate=True)

        assert saved.cycles[0].sessions[0].date == date(2026, 1, 6)
        assert not sql_repo._session.in_transaction()
