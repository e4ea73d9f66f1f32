"""Pydantic value types for programs, cycles, sessions and recurrence rules."""
from cycleplan.schemas.cycle import Cycle
from cycleplan.schemas.program import Program
from cycleplan.schemas.recurrence import (
    CustomRecurrence,
    CyclicRecurrence,
    IntervalRecurrence,
    RecurrenceRule,
    WeeklyRecurrence,
    expand_recurrence,
    recurrence_from_record,
    recurrence_to_record,
)
from cycleplan.schemas.session import SessionStub
from cycleplan.schemas.status import CycleWithProgram, ProgramCycleStatus

__all__ = [
    "Cycle",
    "CustomRecurrence",
    "CycleWithProgram",
    "CyclicRecurrence",
    "IntervalRecurrence",
    "Program",
    "ProgramCycleStatus",
    "RecurrenceRule",
    "SessionStub",
    "WeeklyRecurrence",
    "expand_recurrence",
    "recurrence_from_record",
    "recurrence_to_record",
]
