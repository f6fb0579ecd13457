"""
League Scheduler - deterministic assignment of games to field slots and umpires.
"""

__version__ = "0.1.0"

from .config import SchedulerProblemSpec, load_problem_spec, save_problem_spec
from .models import Assignment, RunStatus, SchedulerResult, UnscheduledGame, UnscheduledReason
from .engine import SchedulingEngine, solve, validate_result
from .validation import (
    InvalidGameWindow,
    SchedulerValidationError,
    UnknownFieldReference,
    UnknownTeamReference,
    validate_problem_spec,
)

__all__ = [
    "SchedulerProblemSpec",
    "load_problem_spec",
    "save_problem_spec",
    "Assignment",
    "RunStatus",
    "SchedulerResult",
    "UnscheduledGame",
    "UnscheduledReason",
    "SchedulingEngine",
    "solve",
    "validate_result",
    "InvalidGameWindow",
    "SchedulerValidationError",
    "UnknownFieldReference",
    "UnknownTeamReference",
    "validate_problem_spec",
]
