from __future__ import annotations

from typing import Any

from cycleplan.core.exceptions import ConflictError, NotFoundError
from cycleplan.repositories.program_repository import ProgramRepository
from cycleplan.schemas.program import Program


class InMemoryProgramRepository(ProgramRepository):
    """Dict-backed repository holding serialized records.

    Records are rebuilt on every read, so callers never share a stored value.
    """

    def __init__(self, programs: list[Program] | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self._records: dict[str, dict[str, Any]] = {}
        for program in programs or []:
            self._records[program.id] = program.to_record()

    async def exists(self, id: str) -> bool:
        return id in self._records

    async def get(self, id: str) -> Program | None:
        record = self._records.get(id)
        if record is None:
            return None
        return Program.from_record(record)

    async def list(self, filter: dict | None = None) -> list[Program]:
        filter = self._check_filter(filter)
        programs = [Program.from_record(r) for r in self._records.values()]
        return [p for p in programs if self._matches_filter(p, filter)]

    async def create(self, entity: Program) -> Program:
        if entity.id in self._records:
            raise ConflictError(
                f"Program {entity.id} already exists",
                code="CF_PROGRAM_EXISTS",
                details={"program_id": entity.id},
            )
        self._records[entity.id] = entity.to_record()
        return entity

    async def update(self, entity: Program) -> Program:
        if entity.id not in self._records:
            raise NotFoundError("program", f"Program {entity.id} not found", {"program_id": entity.id})
        self._records[entity.id] = entity.to_record()
        return entity

    async def delete(self, id: str) -> bool:
        return self._records.pop(id, None) is not None
