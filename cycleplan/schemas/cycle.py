"""
Cycle - one time-boxed run of a program.

A cycle holds its recurrence rule, the session stubs expanded from it and its
activation state. Values are immutable: every transition returns a new cycle
built through ``with_fields``.

States::

    active  <-- start / stop -->  inactive
       \\                            /
        `-------> completed <-------'   (terminal, never active)
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Any, Iterable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cycleplan.config.scheduling import ACTIVATION_WINDOW_DAYS, PLANNING_HORIZON_DAYS
from cycleplan.core.clock import now, today
from cycleplan.core.exceptions import InvalidTransitionError
from cycleplan.schemas.datetime import CalendarDay, parse_date
from cycleplan.schemas.recurrence import RecurrenceRule, expand_recurrence
from cycleplan.schemas.session import SessionStub


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Overlap test shared by cycle creation and ``Program.would_cycle_overlap``.

    Strict on both sides: a range ending on the day another begins does not
    overlap it.
    """
    return start_a < end_b and end_a > start_b


def default_effective_end(start_date: date, end_date: date | None) -> date:
    return end_date if end_date is not None else start_date + timedelta(days=ACTIVATION_WINDOW_DAYS)


class Cycle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    program_id: str
    cycle_number: int = Field(ge=1)
    start_date: CalendarDay
    end_date: CalendarDay | None = None
    active: bool = True
    completed: bool = False
    recurrence: RecurrenceRule | None = None
    sessions: tuple[SessionStub, ...] = ()
    notes: str | None = None
    created_at: datetime = Field(default_factory=now)

    @model_validator(mode="after")
    def _completed_is_never_active(self) -> Cycle:
        if self.completed and self.active:
            raise ValueError("a completed cycle cannot be active")
        return self

    # -- Factory ----------------------------------------------------------

    @classmethod
    def create(
        cls,
        program_id: str,
        cycle_number: int,
        start_date: date,
        end_date: date | None = None,
        active: bool = True,
        recurrence: RecurrenceRule | None = None,
        sessions: Iterable[SessionStub] = (),
        notes: str | None = None,
    ) -> Cycle:
        """New cycle with a generated id and creation timestamp."""
        return cls(
            id=str(uuid4()),
            program_id=program_id,
            cycle_number=cycle_number,
            start_date=start_date,
            end_date=end_date,
            active=active,
            recurrence=recurrence,
            sessions=tuple(sessions),
            notes=notes,
            created_at=now(),
        )

    def with_fields(self, **changes: Any) -> Cycle:
        """Copy with selected fields overridden. The result is re-validated."""
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self)(**values)

    # -- Date range -------------------------------------------------------

    @property
    def effective_end_date(self) -> date:
        """End used for range checks; open cycles run a year from their start."""
        return default_effective_end(self.start_date, self.end_date)

    @property
    def planning_end_date(self) -> date:
        """End used when generating sessions; open cycles plan twelve weeks."""
        if self.end_date is not None:
            return self.end_date
        return self.start_date + timedelta(days=PLANNING_HORIZON_DAYS)

    @property
    def duration_in_days(self) -> int | None:
        if self.end_date is None:
            return None
        return (self.end_date - self.start_date).days + 1

    @property
    def duration_in_weeks(self) -> int | None:
        days = self.duration_in_days
        if days is None:
            return None
        return math.ceil(days / 7)

    def is_within_date_range(self, day: date) -> bool:
        day = parse_date(day)
        return self.start_date <= day <= self.effective_end_date

    def can_be_activated_on(self, day: date) -> bool:
        return not self.completed and self.is_within_date_range(day)

    def is_currently_active(self, as_of: date | None = None) -> bool:
        if not self.active or self.completed:
            return False
        return self.is_within_date_range(as_of or today())

    def overlaps(self, start_date: date, end_date: date | None) -> bool:
        start = parse_date(start_date)
        end = default_effective_end(start, parse_date(end_date) if end_date is not None else None)
        return ranges_overlap(start, end, self.start_date, self.effective_end_date)

    # -- Lifecycle --------------------------------------------------------

    def start(self, as_of: date | None = None) -> Cycle:
        """
        Mark the cycle active.

        Raises:
            InvalidTransitionError: If the cycle is already completed or ``as_of``
                falls outside the cycle's effective range
        """
        day = parse_date(as_of) if as_of is not None else today()
        if self.completed:
            raise InvalidTransitionError(
                "Cannot start a completed cycle",
                {"cycle_id": self.id},
            )
        if not self.is_within_date_range(day):
            raise InvalidTransitionError(
                "Cannot start a cycle outside its valid date range",
                {
                    "cycle_id": self.id,
                    "as_of": day.isoformat(),
                    "start_date": self.start_date.isoformat(),
                    "effective_end_date": self.effective_end_date.isoformat(),
                },
            )
        return self.with_fields(active=True)

    def stop(self) -> Cycle:
        if not self.active:
            return self
        return self.with_fields(active=False)

    def complete(self, as_of: date | None = None) -> Cycle:
        """Close the cycle. An explicit end date is kept; a missing one becomes ``as_of``."""
        day = parse_date(as_of) if as_of is not None else today()
        return self.with_fields(
            completed=True,
            active=False,
            end_date=self.end_date if self.end_date is not None else day,
        )

    # -- Session generation -----------------------------------------------

    def generate_scheduled_sessions(self, replace_existing: bool = False) -> Cycle:
        """
        Expand the recurrence over the planning window into session stubs.

        Without ``replace_existing`` a day that already holds a session is
        skipped, and sessions the rule no longer produces are kept. With it the
        current sessions are discarded first.
        """
        if self.recurrence is None:
            dates: list[date] = []
        else:
            dates = expand_recurrence(self.recurrence, self.start_date, self.planning_end_date)

        sessions: list[SessionStub] = [] if replace_existing else list(self.sessions)
        taken = {s.date for s in sessions}
        for day in dates:
            if day in taken:
                continue
            sessions.append(SessionStub(cycle_id=self.id, date=day))
            taken.add(day)
        return self.with_fields(sessions=tuple(sessions))

    def is_session_expected_on(self, day: date) -> bool:
        """Whether the recurrence schedules a session on ``day`` inside this cycle."""
        day = parse_date(day)
        if self.recurrence is None or not self.is_within_date_range(day):
            return False
        dates = expand_recurrence(self.recurrence, self.start_date, day)
        return bool(dates) and dates[-1] == day

    # -- Sessions ---------------------------------------------------------

    def find_session(self, session_id: str) -> SessionStub | None:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def add_session(self, session: SessionStub) -> Cycle:
        return self.with_fields(sessions=(*self.sessions, session))

    def remove_session(self, session_id: str) -> Cycle:
        return self.with_fields(sessions=tuple(s for s in self.sessions if s.id != session_id))

    def update_session(self, updated: SessionStub) -> Cycle:
        return self.with_fields(
            sessions=tuple(updated if s.id == updated.id else s for s in self.sessions)
        )

    @property
    def total_sessions_count(self) -> int:
        return len(self.sessions)

    @property
    def completed_sessions_count(self) -> int:
        return sum(1 for s in self.sessions if s.completed)

    @property
    def completion_percentage(self) -> float:
        """Completed share of scheduled sessions, 0.0 to 1.0."""
        if not self.sessions:
            return 0.0
        return self.completed_sessions_count / self.total_sessions_count

    def current_session(self, as_of: date | None = None) -> SessionStub | None:
        """Latest open session on or before ``as_of``."""
        day = parse_date(as_of) if as_of is not None else today()
        candidates = [s for s in self.sessions if not s.completed and s.date <= day]
        return max(candidates, key=lambda s: s.date, default=None)

    def next_session(self, as_of: date | None = None) -> SessionStub | None:
        """Earliest open session after ``as_of``."""
        day = parse_date(as_of) if as_of is not None else today()
        candidates = [s for s in self.sessions if not s.completed and s.date > day]
        return min(candidates, key=lambda s: s.date, default=None)

    @property
    def last_completed_session(self) -> SessionStub | None:
        done = [s for s in self.sessions if s.completed]
        return max(done, key=lambda s: s.date, default=None)

    def sessions_for_week(self, week_start: date) -> list[SessionStub]:
        first = parse_date(week_start)
        last = first + timedelta(days=6)
        return [s for s in self.sessions if first <= s.date <= last]

    def sessions_for_date(self, day: date) -> list[SessionStub]:
        day = parse_date(day)
        return [s for s in self.sessions if s.date == day]

    # -- Serialization ----------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Cycle:
        return cls.model_validate(record)
