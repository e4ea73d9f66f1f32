from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cycleplan.core.exceptions import ConflictError, NotFoundError
from cycleplan.core.transactions import transactional
from cycleplan.models.program import ProgramRecord
from cycleplan.repositories.program_repository import ProgramRepository
from cycleplan.schemas.program import Program
from cycleplan.schemas.session import SessionStub


class SqlProgramRepository(ProgramRepository):
    """Program repository over an async SQLAlchemy session.

    Every public call runs in one transaction; calls made from inside another
    repository call join the outer transaction.
    """

    def __init__(self, session: AsyncSession, **kwargs: Any):
        super().__init__(**kwargs)
        self._session = session

    @transactional
    async def exists(self, id: str) -> bool:
        return await self._session.get(ProgramRecord, id) is not None

    @transactional
    async def get(self, id: str) -> Program | None:
        record = await self._session.get(ProgramRecord, id)
        if record is None:
            return None
        return Program.from_record(record.document)

    @transactional
    async def list(self, filter: dict | None = None) -> list[Program]:
        filter = self._check_filter(filter)
        query = select(ProgramRecord).order_by(ProgramRecord.created_at)
        if "name" in filter:
            query = query.where(ProgramRecord.name == filter["name"])
        result = await self._session.execute(query)
        programs = [Program.from_record(r.document) for r in result.scalars().all()]
        # type and difficulty live only in the JSON document
        return [p for p in programs if self._matches_filter(p, filter)]

    @transactional
    async def create(self, entity: Program) -> Program:
        if await self._session.get(ProgramRecord, entity.id) is not None:
            raise ConflictError(
                f"Program {entity.id} already exists",
                code="CF_PROGRAM_EXISTS",
                details={"program_id": entity.id},
            )
        self._session.add(
            ProgramRecord(
                id=entity.id,
                name=entity.name,
                document=entity.to_record(),
                created_at=entity.created_at,
            )
        )
        await self._session.flush()
        return entity

    @transactional
    async def update(self, entity: Program) -> Program:
        record = await self._session.get(ProgramRecord, entity.id)
        if record is None:
            raise NotFoundError("program", f"Program {entity.id} not found", {"program_id": entity.id})
        record.name = entity.name
        record.document = entity.to_record()
        await self._session.flush()
        return entity

    @transactional
    async def delete(self, id: str) -> bool:
        record = await self._session.get(ProgramRecord, id)
        if record is None:
            return False
        await self._session.delete(record)
        return True

    @transactional
    async def save_session(self, session: SessionStub, propagate: bool = False) -> Program:
        return await super().save_session(session, propagate)
