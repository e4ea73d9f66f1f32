"""
Persistence contract for programs.

The engine never performs storage I/O. Callers load a program, apply an
engine operation to the in-memory value and hand the result back here.
"""
from __future__ import annotations

from abc import abstractmethod

from cycleplan.core.exceptions import NotFoundError, ValidationError
from cycleplan.core.logging import get_logger
from cycleplan.repositories.base import Repository
from cycleplan.schemas.cycle import Cycle
from cycleplan.schemas.program import Program
from cycleplan.schemas.session import SessionStub
from cycleplan.services.reschedule import RescheduleEngine, reschedule_engine

logger = get_logger(__name__)

PROGRAM_FILTER_KEYS = ("name", "program_type", "difficulty")


class ProgramRepository(Repository[Program, str]):
    """Storage-agnostic program repository.

    Subclasses implement the CRUD primitives; loading, saving and session
    edits are built on top of them.
    """

    def __init__(self, engine: RescheduleEngine | None = None):
        self._reschedule = engine or reschedule_engine

    @abstractmethod
    async def exists(self, id: str) -> bool: ...

    async def load_program(self, id: str) -> Program | None:
        return await self.get(id)

    async def save_program(self, program: Program) -> None:
        if await self.exists(program.id):
            await self.update(program)
        else:
            await self.create(program)

    async def list_programs(self, filter: dict | None = None) -> list[Program]:
        return await self.list(filter)

    @staticmethod
    def _check_filter(filter: dict | None) -> dict:
        filter = filter or {}
        unknown = sorted(set(filter) - set(PROGRAM_FILTER_KEYS))
        if unknown:
            raise ValidationError(
                "filter",
                f"unsupported program filter keys: {', '.join(unknown)}",
                {"unsupported": unknown, "supported": list(PROGRAM_FILTER_KEYS)},
            )
        return filter

    @staticmethod
    def _matches_filter(program: Program, filter: dict) -> bool:
        return all(getattr(program, key) == value for key, value in filter.items())

    async def delete_program(self, id: str) -> bool:
        return await self.delete(id)

    async def find_cycle(self, cycle_id: str) -> tuple[Program, Cycle] | None:
        for program in await self.list():
            cycle = program.find_cycle(cycle_id)
            if cycle is not None:
                return program, cycle
        return None

    async def save_session(self, session: SessionStub, propagate: bool = False) -> Program:
        """
        Store an edited session inside its owning cycle.

        Args:
            session: The session with its new state
            propagate: Shift later open sessions by the same day delta

        Returns:
            The saved program

        Raises:
            NotFoundError: If no stored program owns ``session.cycle_id``
        """
        found = await self.find_cycle(session.cycle_id)
        if found is None:
            raise NotFoundError(
                "cycle",
                f"Cycle {session.cycle_id} not found",
                {"cycle_id": session.cycle_id, "session_id": session.id},
            )
        program, cycle = found

        stored = cycle.find_session(session.id)
        if stored is None:
            updated_cycle = cycle.add_session(session)
        elif propagate:
            updated_cycle = self._reschedule.reschedule_future_sessions(cycle, session, stored.date)
        else:
            updated_cycle = cycle.update_session(session)

        updated_program = program.update_cycle(updated_cycle)
        await self.update(updated_program)
        logger.info(
            "session_saved",
            program_id=program.id,
            cycle_id=cycle.id,
            session_id=session.id,
            propagate=propagate,
        )
        return updated_program
