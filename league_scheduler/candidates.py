"""
Candidate generation: which field slots (and umpire crews) could host a game.
"""

from typing import Iterator, List, Optional, Sequence

from .config import FieldSlot, GameRequest
from .constraints import RejectionLog, SchedulingContext, check_placement, select_umpires
from .models import Candidate, UnscheduledReason
from .timeutils import add_minutes, resolve_game_duration
from .usage import UsageAccumulator


def fit_slot(game: GameRequest, slot: FieldSlot, duration_minutes: int) -> Optional[Candidate]:
    """
    Place the game at the earliest feasible start inside a slot.

    The window starts at the slot start, clipped up to the game's earliest
    start, and must end within both the slot and the game's latest end.

    Returns:
        Candidate without umpires, or None if the game does not fit.
    """
    window_start = max(slot.start_time, game.earliest_start)
    window_end = add_minutes(window_start, duration_minutes)

    if window_end > slot.end_time or window_end > game.latest_end:
        return None

    return Candidate(slot=slot, window_start=window_start, window_end=window_end)


def candidate_sort_key(game: GameRequest):
    """
    Sort key for a game's candidates.

    Preferred fields come first in the order listed, then everything else;
    within a tier candidates run chronologically, then by field id and slot id.
    """
    preference = {field_id: i for i, field_id in enumerate(game.preferred_field_ids)}
    unpreferred = len(game.preferred_field_ids)

    def key(candidate: Candidate):
        return (
            preference.get(candidate.field_id, unpreferred),
            candidate.window_start,
            candidate.field_id,
            candidate.slot.id,
        )

    return key


def build_slot_pool(game: GameRequest, slots: Sequence[FieldSlot], duration_minutes: int) -> List[Candidate]:
    """All slots that can hold the game, in the order they should be tried."""
    pool = []
    for slot in slots:
        candidate = fit_slot(game, slot, duration_minutes)
        if candidate is not None:
            pool.append(candidate)

    pool.sort(key=candidate_sort_key(game))
    return pool


def generate_candidates(game: GameRequest, context: SchedulingContext, usage: UsageAccumulator,
                        rejections: Optional[RejectionLog] = None) -> Iterator[Candidate]:
    """
    Lazily yield the game's candidates, with umpire crews, in preference order.

    Slots that break a field or team constraint (lighting, capacity,
    blackouts, team overlap, team daily cap) are skipped before an umpire crew
    is picked, as are slots for which not enough umpires are free; the search
    always moves on to the next slot. Skipped slots are noted in
    ``rejections`` when given.
    """
    if rejections is None:
        rejections = RejectionLog()

    duration = resolve_game_duration(game, context.spec.season.game_durations)

    for candidate in build_slot_pool(game, context.spec.field_slots, duration):
        reason = check_placement(game, candidate, context, usage)
        if reason is not None:
            rejections.record(reason)
            continue

        umpire_ids = select_umpires(game, candidate.window, context, usage)
        if umpire_ids is None:
            rejections.record(UnscheduledReason.NO_AVAILABLE_UMPIRES)
            continue

        candidate.umpire_ids = umpire_ids
        yield candidate
