from datetime import date

from pydantic import BaseModel

from cycleplan.schemas.cycle import Cycle
from cycleplan.schemas.program import Program


class ProgramCycleStatus(BaseModel):
    """Summary of a program's cycles as of one day."""
    program_id: str
    total_cycles: int
    active_cycles: int
    completed_cycles: int
    activatable_cycles: int
    current_active_cycle_id: str | None = None
    has_valid_cycle_state: bool
    next_cycle_number: int
    as_of: date


class CycleWithProgram(BaseModel):
    """A cycle paired with its owning program, resolved through the repository."""
    cycle: Cycle
    program: Program

    @property
    def display_name(self) -> str:
        return (
            f"Cycle {self.cycle.cycle_number} of {self.program.name} "
            f"({self.program.program_type.value}, {self.program.difficulty.value})"
        )

    @property
    def effective_recurrence(self):
        """The cycle's own rule, falling back to the program default."""
        if self.cycle.recurrence is not None:
            return self.cycle.recurrence
        return self.program.default_recurrence
