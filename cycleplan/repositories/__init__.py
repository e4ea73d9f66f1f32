"""Repositories package."""
from cycleplan.repositories.base import Repository
from cycleplan.repositories.memory_repository import InMemoryProgramRepository
from cycleplan.repositories.program_repository import ProgramRepository
from cycleplan.repositories.sql_repository import SqlProgramRepository

__all__ = [
    "Repository",
    "InMemoryProgramRepository",
    "ProgramRepository",
    "SqlProgramRepository",
]
