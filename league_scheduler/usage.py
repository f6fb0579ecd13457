"""
Running record of committed resources for one solve call.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .models import Candidate, Interval
from .timeutils import day_key, overlaps


@dataclass
class UsageAccumulator:
    """Field occupancy, team/umpire bookings and per-day counters."""
    field_bookings: Dict[str, List[Interval]] = field(default_factory=lambda: defaultdict(list))
    team_bookings: Dict[str, List[Interval]] = field(default_factory=lambda: defaultdict(list))
    umpire_bookings: Dict[str, List[Interval]] = field(default_factory=lambda: defaultdict(list))
    team_daily_counts: Dict[Tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))
    umpire_daily_counts: Dict[Tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))

    def overlapping_field_games(self, field_id: str, window: Interval) -> int:
        """Number of committed games on the field overlapping the window."""
        return sum(1 for booked in self.field_bookings.get(field_id, []) if overlaps(booked, window))

    def team_is_booked(self, team_season_id: str, window: Interval) -> bool:
        return any(overlaps(booked, window) for booked in self.team_bookings.get(team_season_id, []))

    def umpire_is_booked(self, umpire_id: str, window: Interval) -> bool:
        return any(overlaps(booked, window) for booked in self.umpire_bookings.get(umpire_id, []))

    def team_games_on(self, team_season_id: str, window: Interval) -> int:
        return self.team_daily_counts.get((team_season_id, day_key(window.start)), 0)

    def umpire_games_on(self, umpire_id: str, window: Interval) -> int:
        return self.umpire_daily_counts.get((umpire_id, day_key(window.start)), 0)

    def commit(self, team_season_ids: List[str], candidate: Candidate) -> None:
        """Record a placed game against every resource it consumes."""
        window = candidate.window
        day = day_key(window.start)

        self.field_bookings[candidate.field_id].append(window)
        for team_season_id in team_season_ids:
            self.team_bookings[team_season_id].append(window)
            self.team_daily_counts[(team_season_id, day)] += 1
        for umpire_id in candidate.umpire_ids:
            self.umpire_bookings[umpire_id].append(window)
            self.umpire_daily_counts[(umpire_id, day)] += 1
