"""
Data models for scheduling runs: intervals, candidates and results.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd
import pytz

from .config import FieldSlot


class Weekday(Enum):
    """Weekday enumeration."""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class RunStatus(Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"


class UnscheduledReason(Enum):
    """Why a game could not be placed."""
    NO_VIABLE_FIELD_SLOT = "NoViableFieldSlot"
    LIGHTING_REQUIRED = "LightingRequired"
    FIELD_CAPACITY_EXCEEDED = "FieldCapacityExceeded"
    NO_AVAILABLE_UMPIRES = "NoAvailableUmpires"
    BLACKOUT_CONFLICT = "BlackoutConflict"
    TEAM_CONFLICT = "TeamConflict"
    DAILY_CAP_EXCEEDED = "DailyCapExceeded"


# Highest first. The reported reason is the highest one any candidate hit.
REASON_PRECEDENCE = [
    UnscheduledReason.DAILY_CAP_EXCEEDED,
    UnscheduledReason.TEAM_CONFLICT,
    UnscheduledReason.BLACKOUT_CONFLICT,
    UnscheduledReason.NO_AVAILABLE_UMPIRES,
    UnscheduledReason.FIELD_CAPACITY_EXCEEDED,
    UnscheduledReason.LIGHTING_REQUIRED,
    UnscheduledReason.NO_VIABLE_FIELD_SLOT,
]

REASON_DESCRIPTIONS = {
    UnscheduledReason.NO_VIABLE_FIELD_SLOT: "No field slot can hold the game inside its window",
    UnscheduledReason.LIGHTING_REQUIRED: "Only unlit fields were available after the lighting hour",
    UnscheduledReason.FIELD_CAPACITY_EXCEEDED: "Every fitting field slot was already at capacity",
    UnscheduledReason.NO_AVAILABLE_UMPIRES: "Not enough umpires were free for any fitting slot",
    UnscheduledReason.BLACKOUT_CONFLICT: "A team blackout covers every remaining slot",
    UnscheduledReason.TEAM_CONFLICT: "A team already plays at every remaining time",
    UnscheduledReason.DAILY_CAP_EXCEEDED: "A team reached its games-per-day limit",
}


def format_timestamp(dt: datetime) -> str:
    """Render a timestamp as UTC ISO-8601 with a trailing Z."""
    return dt.astimezone(pytz.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


@dataclass(frozen=True)
class Interval:
    """A half-open time interval [start, end)."""
    start: datetime
    end: datetime


@dataclass
class Candidate:
    """A provisional placement of one game."""
    slot: FieldSlot
    window_start: datetime
    window_end: datetime
    umpire_ids: List[str] = field(default_factory=list)

    @property
    def field_id(self) -> str:
        return self.slot.field_id

    @property
    def window(self) -> Interval:
        return Interval(self.window_start, self.window_end)


@dataclass
class Assignment:
    """A game committed to a field window with its umpire crew."""
    game_id: str
    field_id: str
    field_slot_id: str
    start_time: datetime
    end_time: datetime
    umpire_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_candidate(cls, game_id: str, candidate: Candidate) -> "Assignment":
        return cls(
            game_id=game_id,
            field_id=candidate.field_id,
            field_slot_id=candidate.slot.id,
            start_time=candidate.window_start,
            end_time=candidate.window_end,
            umpire_ids=list(candidate.umpire_ids),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gameId': self.game_id,
            'fieldId': self.field_id,
            'fieldSlotId': self.field_slot_id,
            'startTime': format_timestamp(self.start_time),
            'endTime': format_timestamp(self.end_time),
            'umpireIds': list(self.umpire_ids),
        }


@dataclass
class UnscheduledGame:
    game_id: str
    reason: UnscheduledReason

    @property
    def description(self) -> str:
        return REASON_DESCRIPTIONS[self.reason]

    def to_dict(self) -> Dict[str, Any]:
        return {'gameId': self.game_id, 'reason': self.reason.value}


@dataclass
class SolveMetrics:
    total_games: int = 0
    scheduled_games: int = 0
    unscheduled_games: int = 0

    @property
    def objective_value(self) -> int:
        return self.scheduled_games

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalGames': self.total_games,
            'scheduledGames': self.scheduled_games,
            'unscheduledGames': self.unscheduled_games,
            'objectiveValue': self.objective_value,
        }


@dataclass
class SchedulerResult:
    """Outcome of one solve call."""
    run_id: str
    assignments: List[Assignment] = field(default_factory=list)
    unscheduled: List[UnscheduledGame] = field(default_factory=list)

    @property
    def status(self) -> RunStatus:
        return RunStatus.COMPLETED if not self.unscheduled else RunStatus.PARTIAL

    @property
    def metrics(self) -> SolveMetrics:
        return SolveMetrics(
            total_games=len(self.assignments) + len(self.unscheduled),
            scheduled_games=len(self.assignments),
            unscheduled_games=len(self.unscheduled),
        )

    def get_assignment(self, game_id: str) -> Optional[Assignment]:
        for assignment in self.assignments:
            if assignment.game_id == game_id:
                return assignment
        return None

    def get_field_assignments(self, field_id: str) -> List[Assignment]:
        """Get all assignments on a specific field."""
        return [a for a in self.assignments if a.field_id == field_id]

    def get_umpire_assignments(self, umpire_id: str) -> List[Assignment]:
        """Get all assignments an umpire works."""
        return [a for a in self.assignments if umpire_id in a.umpire_ids]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'runId': self.run_id,
            'status': self.status.value,
            'metrics': self.metrics.to_dict(),
            'assignments': [a.to_dict() for a in self.assignments],
            'unscheduled': [u.to_dict() for u in self.unscheduled],
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        """Stable JSON encoding; identical results encode to identical text."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert assignments to pandas DataFrame."""
        if not self.assignments:
            return pd.DataFrame()

        data = []
        for assignment in self.assignments:
            start = assignment.start_time.astimezone(pytz.utc)
            end = assignment.end_time.astimezone(pytz.utc)
            data.append({
                'Game ID': assignment.game_id,
                'Field': assignment.field_id,
                'Slot': assignment.field_slot_id,
                'Date': start.date(),
                'Start Time': start.time(),
                'End Time': end.time(),
                'Minutes': int((end - start).total_seconds() // 60),
                'Umpires': ', '.join(assignment.umpire_ids),
            })

        df = pd.DataFrame(data)
        return df.sort_values(['Date', 'Start Time', 'Field', 'Game ID']).reset_index(drop=True)
