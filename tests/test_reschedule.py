"""Tests for delta propagation when a session is moved."""
from datetime import date, datetime

import pytest

from cycleplan.schemas import Cycle, SessionStub
from cycleplan.services.reschedule import RescheduleEngine


@pytest.fixture
def engine():
    return RescheduleEngine()


@pytest.fixture
def cycle():
    """Cycle with three weekly Saturday sessions: Jan 10, 17 and 24."""
    base = Cycle.create("program-1", 1, date(2026, 1, 5), date(2026, 2, 1))
    sessions = [
        SessionStub(id=f"s{i}", cycle_id=base.id, date=day)
        for i, day in enumerate(
            [date(2026, 1, 10), date(2026, 1, 17), date(2026, 1, 24)], start=1
        )
    ]
    return base.with_fields(sessions=tuple(sessions))


def dates_by_id(cycle):
    return {s.id: s.date for s in cycle.sessions}


class TestRescheduleFutureSessions:
    def test_later_sessions_follow_the_edit(self, engine, cycle):
        """Moving s2 by three days moves s3 by three days; s1 stays put."""
        edited = cycle.find_session("s2").with_date(date(2026, 1, 20))
        result = engine.reschedule_future_sessions(cycle, edited, date(2026, 1, 17))

        assert dates_by_id(result) == {
            "s1": date(2026, 1, 10),
            "s2": date(2026, 1, 20),
            "s3": date(2026, 1, 27),
        }

    def test_completed_sessions_are_not_moved(self, engine, cycle):
        cycle.find_session("s3").complete(datetime(2026, 1, 24, 9, 0))
        edited = cycle.find_session("s2").with_date(date(2026, 1, 20))
        result = engine.reschedule_future_sessions(cycle, edited, date(2026, 1, 17))

        assert dates_by_id(result)["s3"] == date(2026, 1, 24)
        assert dates_by_id(result)["s2"] == date(2026, 1, 20)

    def test_moving_earlier_shifts_backwards(self, engine, cycle):
        edited = cycle.find_session("s2").with_date(date(2026, 1, 15))
        result = engine.reschedule_future_sessions(cycle, edited, date(2026, 1, 17))

        assert dates_by_id(result) == {
            "s1": date(2026, 1, 10),
            "s2": date(2026, 1, 15),
            "s3": date(2026, 1, 22),
        }

    def test_edited_session_already_stored_is_not_shifted_twice(self, engine, cycle):
        edited = cycle.find_session("s2").with_date(date(2026, 1, 20))
        stored = cycle.update_session(edited)
        result = engine.reschedule_future_sessions(stored, edited, date(2026, 1, 17))

        assert dates_by_id(result)["s2"] == date(2026, 1, 20)
        assert dates_by_id(result)["s3"] == date(2026, 1, 27)

    def test_zero_delta_moves_nothing(self, engine, cycle):
        edited = cycle.find_session("s2").model_copy(update={"notes": "felt strong"})
        result = engine.reschedule_future_sessions(cycle, edited, date(2026, 1, 17))

        assert dates_by_id(result) == dates_by_id(cycle)
        assert result.find_session("s2").notes == "felt strong"

    def test_input_cycle_is_not_modified(self, engine, cycle):
        edited = cycle.find_session("s1").with_date(date(2026, 1, 12))
        engine.reschedule_future_sessions(cycle, edited, date(2026, 1, 10))

        assert dates_by_id(cycle) == {
            "s1": date(2026, 1, 10),
            "s2": date(2026, 1, 17),
            "s3": date(2026, 1, 24),
        }

    def test_same_day_sessions_are_untouched(self, engine, cycle):
        """Only sessions strictly after the original date move."""
        twin = SessionStub(id="s2b", cycle_id=cycle.id, date=date(2026, 1, 17))
        with_twin = cycle.add_session(twin)
        edited = with_twin.find_session("s2").with_date(date(2026, 1, 19))
        result = engine.reschedule_future_sessions(with_twin, edited, date(2026, 1, 17))

        assert dates_by_id(result)["s2b"] == date(2026, 1, 17)
        assert dates_by_id(result)["s3"] == date(2026, 1, 26)
