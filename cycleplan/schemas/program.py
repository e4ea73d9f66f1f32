"""
Program - a workout program and the cycles it has been run as.

The program is the consistency boundary for its cycles:

- at most one cycle is active after every operation
- a new or updated cycle may not overlap any other cycle's effective range

Creating a cycle and activating a cycle are separate operations. Creation
never touches the activation state of existing cycles; callers that want the
new cycle to take over call ``activate_cycle`` afterwards.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from cycleplan.config.scheduling import LOOKAHEAD_DAYS
from cycleplan.core.clock import now, today
from cycleplan.core.exceptions import BusinessRuleError, NotFoundError, ValidationError
from cycleplan.models.enums import ProgramDifficulty, ProgramType
from cycleplan.schemas.cycle import Cycle, default_effective_end, ranges_overlap
from cycleplan.schemas.datetime import parse_date
from cycleplan.schemas.recurrence import RecurrenceRule, expand_recurrence

logger = logging.getLogger(__name__)


class Program(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    program_type: ProgramType = ProgramType.GENERAL
    difficulty: ProgramDifficulty = ProgramDifficulty.BEGINNER
    tags: tuple[str, ...] = ()
    default_recurrence: RecurrenceRule | None = None
    created_at: datetime = Field(default_factory=now)
    created_by: str | None = None
    is_public: bool = False
    metadata: dict[str, Any] | None = None
    cycles: tuple[Cycle, ...] = ()

    @classmethod
    def create(
        cls,
        name: str,
        program_type: ProgramType = ProgramType.GENERAL,
        difficulty: ProgramDifficulty = ProgramDifficulty.BEGINNER,
        default_recurrence: RecurrenceRule | None = None,
        **extra: Any,
    ) -> Program:
        """New program with a generated id and creation timestamp."""
        return cls(
            id=str(uuid4()),
            name=name,
            program_type=program_type,
            difficulty=difficulty,
            default_recurrence=default_recurrence,
            created_at=now(),
            **extra,
        )

    def with_fields(self, **changes: Any) -> Program:
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self)(**values)

    # -- Queries ----------------------------------------------------------

    @property
    def active_cycle(self) -> Cycle | None:
        for cycle in self.cycles:
            if cycle.active:
                return cycle
        return None

    @property
    def active_cycles_count(self) -> int:
        return sum(1 for c in self.cycles if c.active)

    @property
    def has_valid_cycle_state(self) -> bool:
        return self.active_cycles_count <= 1

    @property
    def next_cycle_number(self) -> int:
        if not self.cycles:
            return 1
        return max(c.cycle_number for c in self.cycles) + 1

    @property
    def completed_cycles(self) -> list[Cycle]:
        return [c for c in self.cycles if c.completed]

    @property
    def last_completed_cycle(self) -> Cycle | None:
        return max(self.completed_cycles, key=lambda c: c.created_at, default=None)

    def find_cycle(self, cycle_id: str) -> Cycle | None:
        for cycle in self.cycles:
            if cycle.id == cycle_id:
                return cycle
        return None

    def would_cycle_overlap(
        self,
        start_date: date,
        end_date: date | None = None,
        ignore_cycle_id: str | None = None,
    ) -> bool:
        """Whether a cycle spanning the given dates would collide with an existing one."""
        start = parse_date(start_date)
        end = default_effective_end(start, parse_date(end_date) if end_date is not None else None)
        return any(
            ranges_overlap(start, end, other.start_date, other.effective_end_date)
            for other in self.cycles
            if other.id != ignore_cycle_id
        )

    def activatable_cycles(self, as_of: date | None = None) -> list[Cycle]:
        """Cycles that are not completed and whose range contains ``as_of``."""
        day = parse_date(as_of) if as_of is not None else today()
        return [c for c in self.cycles if c.can_be_activated_on(day)]

    # -- Cycle management -------------------------------------------------

    def _check_no_overlap(self, cycle: Cycle) -> None:
        if self.would_cycle_overlap(cycle.start_date, cycle.end_date, ignore_cycle_id=cycle.id):
            raise ValidationError(
                "date_range",
                "cycle date range overlaps with an existing cycle",
                {
                    "program_id": self.id,
                    "start_date": cycle.start_date.isoformat(),
                    "effective_end_date": cycle.effective_end_date.isoformat(),
                },
            )

    def _require_cycle(self, cycle_id: str) -> Cycle:
        cycle = self.find_cycle(cycle_id)
        if cycle is None:
            raise NotFoundError(
                "cycle",
                f"Cycle {cycle_id} not found",
                {"cycle_id": cycle_id, "program_id": self.id},
            )
        return cycle

    def _replace_cycle(self, updated: Cycle) -> Program:
        return self.with_fields(
            cycles=tuple(updated if c.id == updated.id else c for c in self.cycles)
        )

    def add_cycle(self, cycle: Cycle) -> Program:
        """
        Append an already-built cycle.

        An incoming active cycle is stored stopped when another cycle is
        already active.

        Raises:
            ValidationError: If its range overlaps an existing cycle
        """
        self._check_no_overlap(cycle)
        if cycle.active and self.active_cycle is not None:
            cycle = cycle.stop()
        return self.with_fields(cycles=(*self.cycles, cycle))

    def create_cycle(
        self,
        start_date: date,
        end_date: date | None = None,
        recurrence: RecurrenceRule | None = None,
        notes: str | None = None,
    ) -> Program:
        """
        Create the next cycle of this program.

        The recurrence falls back to the program default. Other cycles keep
        their activation state, so the new cycle only starts out active when
        no other cycle is.

        Raises:
            ValidationError: If the date range overlaps an existing cycle
        """
        cycle = Cycle.create(
            program_id=self.id,
            cycle_number=self.next_cycle_number,
            start_date=start_date,
            end_date=end_date,
            active=self.active_cycle is None,
            recurrence=recurrence if recurrence is not None else self.default_recurrence,
            notes=notes,
        )
        self._check_no_overlap(cycle)
        return self.with_fields(cycles=(*self.cycles, cycle))

    def start_immediate_cycle(
        self,
        as_of: date | None = None,
        end_date: date | None = None,
        recurrence: RecurrenceRule | None = None,
        notes: str | None = None,
    ) -> Program:
        return self.create_cycle(
            start_date=as_of if as_of is not None else today(),
            end_date=end_date,
            recurrence=recurrence,
            notes=notes,
        )

    def update_cycle(self, updated: Cycle) -> Program:
        """
        Replace a cycle by id.

        Raises:
            NotFoundError: If no cycle has that id
            ValidationError: If the new range overlaps another cycle
            BusinessRuleError: If it would leave two cycles active
        """
        self._require_cycle(updated.id)
        self._check_no_overlap(updated)
        if updated.active and any(c.active and c.id != updated.id for c in self.cycles):
            raise BusinessRuleError(
                "Another cycle is already active; use activate_cycle instead",
                code="BR_SINGLE_ACTIVE_CYCLE",
                details={"program_id": self.id, "cycle_id": updated.id},
            )
        return self._replace_cycle(updated)

    def remove_cycle(self, cycle_id: str) -> Program:
        return self.with_fields(cycles=tuple(c for c in self.cycles if c.id != cycle_id))

    def activate_cycle(self, cycle_id: str, as_of: date | None = None) -> Program:
        """
        Make one cycle the active cycle and stop every other active one.

        Raises:
            NotFoundError: If the cycle is not part of this program
            ValidationError: If ``as_of`` is outside the cycle's effective range
            InvalidTransitionError: If the cycle is completed
        """
        day = parse_date(as_of) if as_of is not None else today()
        target = self._require_cycle(cycle_id)
        if not target.is_within_date_range(day):
            raise ValidationError(
                "as_of",
                "cycle cannot be activated outside its valid date range",
                {
                    "cycle_id": cycle_id,
                    "as_of": day.isoformat(),
                    "start_date": target.start_date.isoformat(),
                    "effective_end_date": target.effective_end_date.isoformat(),
                },
            )
        started = target.start(day)
        return self.with_fields(
            cycles=tuple(
                started if c.id == cycle_id else (c.stop() if c.active else c)
                for c in self.cycles
            )
        )

    def refresh_cycle_activation(self, as_of: date | None = None) -> Program:
        """
        Reconcile every ``active`` flag with the calendar.

        A cycle should be active when it is not completed and ``as_of`` lies in
        its effective range. Should overlapping data make several cycles
        qualify, only the first one is activated.
        """
        day = parse_date(as_of) if as_of is not None else today()
        eligible = self.activatable_cycles(day)
        if len(eligible) > 1:
            logger.warning(
                "Program %s has %d cycles eligible on %s; activating cycle %s only",
                self.id,
                len(eligible),
                day.isoformat(),
                eligible[0].id,
            )
        chosen_id = eligible[0].id if eligible else None

        cycles = []
        for cycle in self.cycles:
            should_be_active = cycle.id == chosen_id
            if cycle.active == should_be_active:
                cycles.append(cycle)
            elif should_be_active:
                cycles.append(cycle.start(day))
            else:
                cycles.append(cycle.stop())
        return self.with_fields(cycles=tuple(cycles))

    def complete_current_cycle(self, as_of: date | None = None) -> Program:
        """
        Complete the active cycle, if any.

        A missing end date is filled with ``as_of`` clamped to the cycle's
        effective range, so a late completion never reaches into the window
        of a cycle created after it.
        """
        active = self.active_cycle
        if active is None:
            return self
        day = parse_date(as_of) if as_of is not None else today()
        day = min(max(day, active.start_date), active.effective_end_date)
        return self._replace_cycle(active.complete(day))

    # -- Schedule ---------------------------------------------------------

    @property
    def recurrence_description(self) -> str:
        if self.default_recurrence is None:
            return "No periodicity defined"
        return self.default_recurrence.description

    @property
    def frequency_description(self) -> str:
        if self.default_recurrence is None:
            return "No schedule"
        return self.default_recurrence.frequency_description

    def next_expected_session_date(self, from_date: date | None = None) -> date | None:
        """First day on or after ``from_date`` the default recurrence schedules, within a year."""
        if self.default_recurrence is None:
            return None
        start = parse_date(from_date) if from_date is not None else today()
        dates = expand_recurrence(
            self.default_recurrence, start, start + timedelta(days=LOOKAHEAD_DAYS)
        )
        return dates[0] if dates else None

    def is_session_expected_on(self, day: date) -> bool:
        active = self.active_cycle
        if active is None:
            return False
        return active.is_session_expected_on(day)

    # -- Serialization ----------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Program:
        return cls.model_validate(record)
