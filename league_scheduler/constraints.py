"""
Hard constraint checks applied to candidate placements.

Every check is a pure read of the problem spec and the running usage
accumulator; nothing here mutates state.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import GameRequest, HardConstraints, SchedulerField, SchedulerProblemSpec, Umpire
from .models import REASON_PRECEDENCE, Candidate, Interval, UnscheduledReason
from .timeutils import contains, local_hour, overlaps
from .usage import UsageAccumulator


@dataclass
class SchedulingContext:
    """Lookup tables derived once per solve call from the problem spec."""
    spec: SchedulerProblemSpec
    hard: HardConstraints
    fields_by_id: Dict[str, SchedulerField]
    umpires: List[Umpire]
    umpires_by_id: Dict[str, Umpire]
    umpire_availability: Dict[str, List[Interval]]
    team_blackouts: Dict[str, List[Interval]]

    @classmethod
    def from_spec(cls, spec: SchedulerProblemSpec) -> "SchedulingContext":
        availability = defaultdict(list)
        for window in spec.umpire_availability:
            availability[window.umpire_id].append(Interval(window.start_time, window.end_time))

        blackouts = defaultdict(list)
        for window in spec.team_blackouts:
            blackouts[window.team_season_id].append(Interval(window.start_time, window.end_time))

        return cls(
            spec=spec,
            hard=spec.hard,
            fields_by_id={f.id: f for f in spec.fields},
            umpires=list(spec.umpires),
            umpires_by_id={umpire.id: umpire for umpire in spec.umpires},
            umpire_availability=dict(availability),
            team_blackouts=dict(blackouts),
        )

    def field_capacity(self, field_id: str) -> int:
        return self.fields_by_id[field_id].properties.max_parallel_games

    def field_has_lights(self, field_id: str) -> bool:
        return self.fields_by_id[field_id].properties.has_lights

    def umpire_daily_limit(self, umpire: Umpire) -> Optional[int]:
        """Tighter of the umpire's own cap and the global umpire cap."""
        limits = [
            limit for limit in (umpire.max_games_per_day, self.hard.max_games_per_umpire_per_day)
            if limit is not None
        ]
        return min(limits) if limits else None


@dataclass
class RejectionLog:
    """Reasons candidates were turned down while placing one game."""
    reasons: List[UnscheduledReason] = field(default_factory=list)

    def record(self, reason: UnscheduledReason) -> None:
        self.reasons.append(reason)

    def resolve(self) -> UnscheduledReason:
        for reason in REASON_PRECEDENCE:
            if reason in self.reasons:
                return reason
        return UnscheduledReason.NO_VIABLE_FIELD_SLOT


def violates_lights_requirement(field_id: str, window: Interval, context: SchedulingContext) -> bool:
    """True when the window starts after the lighting hour on an unlit field."""
    rule = context.hard.require_lights_after
    if rule is None or not rule.enabled:
        return False

    if local_hour(window.start, rule.time_zone) < rule.start_hour_local:
        return False

    return not context.field_has_lights(field_id)


def intersects_blackout(game: GameRequest, window: Interval, context: SchedulingContext) -> bool:
    for team_season_id in game.team_season_ids:
        blocks = context.team_blackouts.get(team_season_id, [])
        if any(overlaps(block, window) for block in blocks):
            return True
    return False


def is_umpire_eligible(umpire: Umpire, window: Interval, context: SchedulingContext,
                       usage: UsageAccumulator) -> bool:
    """Check availability, double booking and the daily cap for one umpire."""
    if context.hard.respect_umpire_availability:
        windows = context.umpire_availability.get(umpire.id)
        # No availability entries at all means the umpire can work any time.
        if windows is not None and not any(contains(w, window) for w in windows):
            return False

    if context.hard.no_umpire_overlap and usage.umpire_is_booked(umpire.id, window):
        return False

    limit = context.umpire_daily_limit(umpire)
    if limit is not None and usage.umpire_games_on(umpire.id, window) >= limit:
        return False

    return True


def select_umpires(game: GameRequest, window: Interval, context: SchedulingContext,
                   usage: UsageAccumulator) -> Optional[List[str]]:
    """
    Pick the first ``required_umpires`` eligible umpires in input order.

    Returns:
        The umpire ids, or None when too few umpires are eligible.
    """
    required = game.required_umpires
    if required == 0:
        return []

    selected = []
    for umpire in context.umpires:
        if is_umpire_eligible(umpire, window, context, usage):
            selected.append(umpire.id)
            if len(selected) == required:
                return selected

    return None


def exceeds_team_daily_cap(game: GameRequest, window: Interval, context: SchedulingContext,
                           usage: UsageAccumulator) -> bool:
    cap = context.hard.max_games_per_team_per_day
    if cap is None:
        return False
    return any(usage.team_games_on(team, window) >= cap for team in game.team_season_ids)


def check_placement(game: GameRequest, candidate: Candidate, context: SchedulingContext,
                    usage: UsageAccumulator) -> Optional[UnscheduledReason]:
    """
    Evaluate the field and team constraints, leaving the umpire crew aside.

    Returns:
        None when the placement is allowed, else the first violated constraint.
    """
    window = candidate.window
    slot_window = Interval(candidate.slot.start_time, candidate.slot.end_time)

    if not contains(slot_window, window):
        return UnscheduledReason.NO_VIABLE_FIELD_SLOT

    if violates_lights_requirement(candidate.field_id, window, context):
        return UnscheduledReason.LIGHTING_REQUIRED

    if (context.hard.no_field_overlap and
            usage.overlapping_field_games(candidate.field_id, window) >= context.field_capacity(candidate.field_id)):
        return UnscheduledReason.FIELD_CAPACITY_EXCEEDED

    if context.hard.respect_team_blackouts and intersects_blackout(game, window, context):
        return UnscheduledReason.BLACKOUT_CONFLICT

    if context.hard.no_team_overlap and any(
            usage.team_is_booked(team, window) for team in game.team_season_ids):
        return UnscheduledReason.TEAM_CONFLICT

    if exceeds_team_daily_cap(game, window, context, usage):
        return UnscheduledReason.DAILY_CAP_EXCEEDED

    return None


def check_candidate(game: GameRequest, candidate: Candidate, context: SchedulingContext,
                    usage: UsageAccumulator) -> Optional[UnscheduledReason]:
    """
    Evaluate every hard constraint against a candidate.

    Returns:
        None when the candidate is admissible, else the first violated constraint.
    """
    reason = check_placement(game, candidate, context, usage)
    if reason is not None:
        return reason

    window = candidate.window
    if len(candidate.umpire_ids) != game.required_umpires:
        return UnscheduledReason.NO_AVAILABLE_UMPIRES

    for umpire_id in candidate.umpire_ids:
        if not is_umpire_eligible(context.umpires_by_id[umpire_id], window, context, usage):
            return UnscheduledReason.NO_AVAILABLE_UMPIRES

    return None


def is_admissible(game: GameRequest, candidate: Candidate, context: SchedulingContext,
                  usage: UsageAccumulator) -> bool:
    return check_candidate(game, candidate, context, usage) is None
