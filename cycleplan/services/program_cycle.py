"""
ProgramCycleService - cycle lifecycle operations over stored programs.

Responsible for:
- Loading a program, applying one engine operation and saving the result
- Resolving a cycle's owning program through the repository
- Rescheduling edited sessions with propagation to later sessions
- Reporting cycle status per program

The engine itself is synchronous; this service is the async boundary where
"today" is resolved for callers that do not pass ``as_of``.
"""

from datetime import date
from typing import Optional

from cycleplan.core.clock import today
from cycleplan.core.exceptions import NotFoundError
from cycleplan.core.logging import get_logger, log_scope
from cycleplan.repositories.program_repository import ProgramRepository
from cycleplan.schemas.cycle import Cycle
from cycleplan.schemas.program import Program
from cycleplan.schemas.recurrence import RecurrenceRule
from cycleplan.schemas.session import SessionStub
from cycleplan.schemas.status import CycleWithProgram, ProgramCycleStatus

logger = get_logger(__name__)


class ProgramCycleService:
    """Cycle management for programs held in a ProgramRepository."""

    def __init__(self, program_repo: ProgramRepository):
        self._repo = program_repo

    async def _get_program_or_404(self, program_id: str) -> Program:
        program = await self._repo.load_program(program_id)
        if program is None:
            raise NotFoundError("program", f"Program {program_id} not found", {"program_id": program_id})
        return program

    # -- Lookups ----------------------------------------------------------

    async def cycle_with_program(self, cycle_id: str) -> Optional[CycleWithProgram]:
        """Resolve a cycle together with the program that owns it."""
        found = await self._repo.find_cycle(cycle_id)
        if found is None:
            return None
        program, cycle = found
        return CycleWithProgram(cycle=cycle, program=program)

    async def cycles_for_program(self, program_id: str) -> list[Cycle]:
        program = await self._repo.load_program(program_id)
        if program is None:
            return []
        return list(program.cycles)

    async def activatable_cycles_for_program(
        self, program_id: str, as_of: Optional[date] = None
    ) -> list[Cycle]:
        program = await self._repo.load_program(program_id)
        if program is None:
            return []
        return program.activatable_cycles(as_of or today())

    async def would_cycle_overlap(
        self, program_id: str, start_date: date, end_date: Optional[date] = None
    ) -> bool:
        program = await self._repo.load_program(program_id)
        if program is None:
            return False
        return program.would_cycle_overlap(start_date, end_date)

    async def program_cycle_status(
        self, program_id: str, as_of: Optional[date] = None
    ) -> ProgramCycleStatus:
        """
        Summarize the cycles of a program.

        Raises:
            NotFoundError: If the program does not exist
        """
        day = as_of or today()
        program = await self._get_program_or_404(program_id)
        active = program.active_cycle
        return ProgramCycleStatus(
            program_id=program.id,
            total_cycles=len(program.cycles),
            active_cycles=program.active_cycles_count,
            completed_cycles=len(program.completed_cycles),
            activatable_cycles=len(program.activatable_cycles(day)),
            current_active_cycle_id=active.id if active else None,
            has_valid_cycle_state=program.has_valid_cycle_state,
            next_cycle_number=program.next_cycle_number,
            as_of=day,
        )

    # -- Mutations --------------------------------------------------------

    async def create_cycle_for_program(
        self,
        program_id: str,
        start_date: date,
        end_date: Optional[date] = None,
        recurrence: Optional[RecurrenceRule] = None,
        notes: Optional[str] = None,
    ) -> Program:
        """
        Create the next cycle of a program after checking for overlaps.

        Args:
            program_id: Program to extend
            start_date: First day of the cycle
            end_date: Last day, or None for an open-ended cycle
            recurrence: Rule for the cycle, defaults to the program's rule
            notes: Free-form notes

        Returns:
            The saved program

        Raises:
            NotFoundError: If the program does not exist
            ValidationError: If the range overlaps an existing cycle
        """
        with log_scope(program_id=program_id):
            program = await self._get_program_or_404(program_id)
            updated = program.create_cycle(
                start_date=start_date,
                end_date=end_date,
                recurrence=recurrence,
                notes=notes,
            )
            await self._repo.save_program(updated)
            created = updated.cycles[-1]
            logger.info(
                "cycle_created",
                cycle_id=created.id,
                cycle_number=created.cycle_number,
                start_date=created.start_date.isoformat(),
                end_date=created.end_date.isoformat() if created.end_date else None,
            )
            return updated

    async def start_immediate_cycle_for_program(
        self,
        program_id: str,
        as_of: Optional[date] = None,
        end_date: Optional[date] = None,
        recurrence: Optional[RecurrenceRule] = None,
        notes: Optional[str] = None,
    ) -> Program:
        return await self.create_cycle_for_program(
            program_id,
            start_date=as_of or today(),
            end_date=end_date,
            recurrence=recurrence,
            notes=notes,
        )

    async def activate_cycle(
        self, program_id: str, cycle_id: str, as_of: Optional[date] = None
    ) -> Program:
        """
        Activate a cycle and stop whichever cycle was active before.

        Raises:
            NotFoundError: If the program or cycle does not exist
            ValidationError: If ``as_of`` is outside the cycle's range
            InvalidTransitionError: If the cycle is completed
        """
        with log_scope(program_id=program_id):
            program = await self._get_program_or_404(program_id)
            previous = program.active_cycle
            updated = program.activate_cycle(cycle_id, as_of or today())
            await self._repo.save_program(updated)
            logger.info(
                "cycle_activated",
                cycle_id=cycle_id,
                previous_cycle_id=previous.id if previous and previous.id != cycle_id else None,
            )
            return updated

    async def complete_current_cycle(
        self, program_id: str, as_of: Optional[date] = None
    ) -> Program:
        with log_scope(program_id=program_id):
            program = await self._get_program_or_404(program_id)
            active = program.active_cycle
            if active is None:
                logger.info("no_active_cycle_to_complete")
                return program
            updated = program.complete_current_cycle(as_of or today())
            await self._repo.save_program(updated)
            logger.info(
                "cycle_completed",
                cycle_id=active.id,
                end_date=updated.find_cycle(active.id).end_date.isoformat(),
            )
            return updated

    async def refresh_all_program_cycle_activations(
        self, as_of: Optional[date] = None
    ) -> list[Program]:
        """
        Reconcile cycle activation with the calendar for every stored program.

        Only programs whose active flags changed are saved.

        Returns:
            The programs that were updated
        """
        day = as_of or today()
        changed: list[Program] = []
        for program in await self._repo.list_programs():
            refreshed = program.refresh_cycle_activation(day)
            before = [c.active for c in program.cycles]
            after = [c.active for c in refreshed.cycles]
            if before != after:
                with log_scope(program_id=program.id):
                    await self._repo.save_program(refreshed)
                    active = refreshed.active_cycle
                    logger.info(
                        "program_activation_changed",
                        active_cycle_id=active.id if active else None,
                    )
                changed.append(refreshed)
        logger.info("cycle_activation_refreshed", as_of=day.isoformat(), changed_count=len(changed))
        return changed

    async def generate_sessions_for_cycle(
        self, program_id: str, cycle_id: str, replace_existing: bool = False
    ) -> Cycle:
        """
        Expand a cycle's recurrence into scheduled sessions and save them.

        Raises:
            NotFoundError: If the program or cycle does not exist
        """
        with log_scope(program_id=program_id):
            program = await self._get_program_or_404(program_id)
            cycle = program.find_cycle(cycle_id)
            if cycle is None:
                raise NotFoundError(
                    "cycle", f"Cycle {cycle_id} not found", {"cycle_id": cycle_id, "program_id": program_id}
                )
            generated = cycle.generate_scheduled_sessions(replace_existing=replace_existing)
            await self._repo.save_program(program.update_cycle(generated))
            logger.info(
                "sessions_generated",
                cycle_id=cycle_id,
                replace_existing=replace_existing,
                before_count=cycle.total_sessions_count,
                after_count=generated.total_sessions_count,
            )
            return generated

    async def reschedule_session(
        self, session: SessionStub, propagate_to_future: bool = True
    ) -> Program:
        """Persist a session's new date, optionally moving later sessions with it."""
        return await self._repo.save_session(session, propagate=propagate_to_future)
