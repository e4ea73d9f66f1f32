"""Scheduled session stubs - one concrete occurrence inside a cycle."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from cycleplan.schemas.datetime import CalendarDay, parse_date


class SessionStub(BaseModel):
    """
    A scheduled workout occurrence.

    Unlike cycles and programs, a stub is mutable: completing it updates the
    owned instance in place. Moving it to another day goes through
    ``with_date`` so the stored copy is never changed behind the cycle's back.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    cycle_id: str
    date: CalendarDay
    completed: bool = False
    completed_at: datetime | None = None
    notes: str | None = None

    def complete(self, at: datetime) -> None:
        self.completed = True
        self.completed_at = at

    def reopen(self) -> None:
        self.completed = False
        self.completed_at = None

    def with_date(self, new_date: date) -> SessionStub:
        return self.model_copy(update={"date": parse_date(new_date)})

    def shifted(self, days: int) -> SessionStub:
        return self.with_date(self.date + timedelta(days=days))

    def is_on(self, day: date) -> bool:
        return self.date == day

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> SessionStub:
        return cls.model_validate(record)
