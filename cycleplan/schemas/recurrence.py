"""
Recurrence rules - which calendar days a cycle schedules sessions on.

A rule is one of four variants discriminated by ``kind``:

- weekly:   fixed ISO weekdays (1=Monday .. 7=Sunday)
- cyclic:   N workout days followed by M rest days, repeating
- interval: every N days from the start date
- custom:   opaque pattern; expansion is not implemented and yields nothing

Expansion is inclusive of both endpoints and works on calendar days only.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from cycleplan.schemas.datetime import parse_date

_DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}


def _each_day(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class _RecurrenceBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def expand(self, start_date: date, end_date: date) -> list[date]:
        raise NotImplementedError

    @property
    def description(self) -> str:
        raise NotImplementedError

    @property
    def frequency_description(self) -> str:
        raise NotImplementedError


class WeeklyRecurrence(_RecurrenceBase):
    """Sessions on fixed weekdays, e.g. Monday/Wednesday/Friday."""

    kind: Literal["weekly"] = "weekly"
    days: tuple[int, ...] = ()

    @field_validator("days", mode="before")
    @classmethod
    def _normalize_days(cls, value: Any) -> tuple[int, ...]:
        if value is None:
            return ()
        days = tuple(sorted({int(d) for d in value}))
        invalid = [d for d in days if not 1 <= d <= 7]
        if invalid:
            raise ValueError(f"weekdays must be between 1 (Monday) and 7 (Sunday), got {invalid}")
        return days

    def expand(self, start_date: date, end_date: date) -> list[date]:
        if not self.days:
            return []
        return [d for d in _each_day(start_date, end_date) if d.isoweekday() in self.days]

    @property
    def description(self) -> str:
        if not self.days:
            return "No schedule"
        return "Every " + ", ".join(_DAY_NAMES[d] for d in self.days)

    @property
    def frequency_description(self) -> str:
        return f"{len(self.days)} days/week"


class CyclicRecurrence(_RecurrenceBase):
    """``workout_days`` on, ``rest_days`` off, repeating from the start date."""

    kind: Literal["cyclic"] = "cyclic"
    workout_days: int
    rest_days: int

    @property
    def is_well_formed(self) -> bool:
        return self.workout_days > 0 and self.rest_days >= 0

    def expand(self, start_date: date, end_date: date) -> list[date]:
        if not self.is_well_formed:
            return []
        cycle_length = self.workout_days + self.rest_days
        dates: list[date] = []
        position = 0
        for day in _each_day(start_date, end_date):
            if position < self.workout_days:
                dates.append(day)
            position = (position + 1) % cycle_length
        return dates

    @property
    def description(self) -> str:
        if not self.is_well_formed:
            return "Invalid cycle"
        return f"{self.workout_days} days on, {self.rest_days} days rest"

    @property
    def frequency_description(self) -> str:
        if not self.is_well_formed:
            return "Variable"
        weekly = round(self.workout_days / (self.workout_days + self.rest_days) * 7)
        return f"~{weekly} days/week"


class IntervalRecurrence(_RecurrenceBase):
    """One session every ``every_n_days`` days."""

    kind: Literal["interval"] = "interval"
    every_n_days: int

    def expand(self, start_date: date, end_date: date) -> list[date]:
        if self.every_n_days <= 0:
            return []
        step = timedelta(days=self.every_n_days)
        dates: list[date] = []
        current = start_date
        while current <= end_date:
            dates.append(current)
            current += step
        return dates

    @property
    def description(self) -> str:
        if self.every_n_days <= 0:
            return "Invalid interval"
        return f"Every {self.every_n_days} days"

    @property
    def frequency_description(self) -> str:
        if self.every_n_days <= 0:
            return "Variable"
        return f"~{round(7 / self.every_n_days)} days/week"


class CustomRecurrence(_RecurrenceBase):
    """Placeholder for user-defined patterns. Expands to nothing."""

    kind: Literal["custom"] = "custom"
    pattern: dict[str, Any] = Field(default_factory=dict)

    def expand(self, start_date: date, end_date: date) -> list[date]:
        return []

    @property
    def description(self) -> str:
        return "Custom schedule"

    @property
    def frequency_description(self) -> str:
        return "Variable"


RecurrenceRule = Annotated[
    Union[WeeklyRecurrence, CyclicRecurrence, IntervalRecurrence, CustomRecurrence],
    Field(discriminator="kind"),
]

_rule_adapter: TypeAdapter[RecurrenceRule] = TypeAdapter(RecurrenceRule)


def expand_recurrence(rule: RecurrenceRule, start_date: date, end_date: date) -> list[date]:
    """
    Expand a rule into the ordered dates it schedules in ``[start_date, end_date]``.

    Both bounds are inclusive; datetimes are reduced to their calendar day.
    An inverted range yields an empty list.
    """
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start > end:
        return []
    return rule.expand(start, end)


def recurrence_to_record(rule: RecurrenceRule) -> dict[str, Any]:
    return rule.model_dump(mode="json")


def recurrence_from_record(record: dict[str, Any]) -> RecurrenceRule:
    return _rule_adapter.validate_python(record)
