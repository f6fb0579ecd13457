"""
Tests for candidate generation and constraint checks.
"""

from datetime import datetime

import pytest
import pytz

from league_scheduler.candidates import build_slot_pool, fit_slot, generate_candidates
from league_scheduler.config import SchedulerProblemSpec
from league_scheduler.constraints import (
    RejectionLog,
    SchedulingContext,
    check_candidate,
    is_admissible,
    select_umpires,
    violates_lights_requirement,
)
from league_scheduler.models import Candidate, Interval, UnscheduledReason
from league_scheduler.usage import UsageAccumulator


def _utc(*args):
    return datetime(*args, tzinfo=pytz.utc)


@pytest.fixture
def build(spec_data):
    def _build(**overrides):
        data = dict(spec_data)
        data.update(overrides)
        spec = SchedulerProblemSpec.model_validate(data)
        return spec, SchedulingContext.from_spec(spec)
    return _build


def test_fit_slot(build, make_game, make_slot):
    spec, _ = build(
        games=[make_game("g1", "ts-1", "ts-2", "2026-04-07T17:30:00Z", "2026-04-07T19:00:00Z")],
        fieldSlots=[
            make_slot("s1", "f1", "2026-04-07T17:00:00Z", "2026-04-07T19:00:00Z"),
            make_slot("s2", "f1", "2026-04-07T18:30:00Z", "2026-04-07T20:00:00Z"),
        ],
    )
    game = spec.games[0]

    candidate = fit_slot(game, spec.field_slots[0], 60)
    assert candidate.window_start == _utc(2026, 4, 7, 17, 30)
    assert candidate.window_end == _utc(2026, 4, 7, 18, 30)
    assert candidate.umpire_ids == []

    # ends after the game's latest end
    assert fit_slot(game, spec.field_slots[1], 60) is None
    # does not fit in the slot
    assert fit_slot(game, spec.field_slots[0], 120) is None


def test_slot_pool_order(build, make_game, make_slot):
    """Test preferred fields first in listed order, then by time, field and slot id."""
    spec, _ = build(
        fields=[{"id": "a", "name": "A"}, {"id": "b", "name": "B"}, {"id": "c", "name": "C"}],
        games=[make_game("g1", "ts-1", "ts-2", "2026-04-07T16:00:00Z", "2026-04-07T22:00:00Z",
                         preferredFieldIds=["c", "b"])],
        fieldSlots=[
            make_slot("a1", "a", "2026-04-07T16:00:00Z", "2026-04-07T17:00:00Z"),
            make_slot("b2", "b", "2026-04-07T18:00:00Z", "2026-04-07T19:00:00Z"),
            make_slot("b1", "b", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z"),
            make_slot("c1", "c", "2026-04-07T20:00:00Z", "2026-04-07T21:00:00Z"),
            make_slot("a0", "a", "2026-04-07T16:00:00Z", "2026-04-07T17:00:00Z"),
        ],
    )

    pool = build_slot_pool(spec.games[0], spec.field_slots, 60)

    assert [c.slot.id for c in pool] == ["c1", "b1", "b2", "a0", "a1"]


def test_generate_candidates_attaches_umpires(build, make_game, make_slot):
    spec, context = build(
        games=[make_game("g1", "ts-1", "ts-2", "2026-04-07T17:00:00Z", "2026-04-07T19:00:00Z",
                         required_umpires=2)],
        fieldSlots=[make_slot("s1", "f1", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z")],
    )

    candidates = list(generate_candidates(spec.games[0], context, UsageAccumulator()))

    assert len(candidates) == 1
    assert candidates[0].umpire_ids == ["u1", "u2"]


def test_generate_candidates_records_skips(build, make_game, make_slot):
    spec, context = build(
        games=[make_game("g1", "ts-1", "ts-2", "2026-04-07T23:00:00Z", "2026-04-08T03:00:00Z",
                         required_umpires=3)],
        fieldSlots=[
            make_slot("dark", "f1", "2026-04-07T23:00:00Z", "2026-04-08T00:00:00Z"),
            make_slot("lit", "f2", "2026-04-07T23:00:00Z", "2026-04-08T00:00:00Z"),
        ],
        constraints={"hard": {"requireLightsAfter": {
            "enabled": True, "startHourLocal": 18, "timeZone": "America/Chicago"}}},
    )
    rejections = RejectionLog()

    candidates = list(generate_candidates(spec.games[0], context, UsageAccumulator(), rejections))

    assert candidates == []
    assert rejections.reasons == [UnscheduledReason.LIGHTING_REQUIRED, UnscheduledReason.NO_AVAILABLE_UMPIRES]
    assert rejections.resolve() == UnscheduledReason.NO_AVAILABLE_UMPIRES


def test_generate_candidates_checks_teams_before_umpires(build, make_game, make_slot):
    spec, context = build(
        umpires=[{"id": "u1", "maxGamesPerDay": 1}],
        games=[make_game("g2", "ts-2", "ts-1", "2026-04-07T18:00:00Z", "2026-04-07T20:00:00Z")],
        fieldSlots=[make_slot("s2", "f1", "2026-04-07T18:00:00Z", "2026-04-07T19:00:00Z")],
        constraints={"hard": {"maxGamesPerTeamPerDay": 1}},
    )
    usage = UsageAccumulator()
    usage.commit(["ts-1", "ts-2"], Candidate(slot=spec.field_slots[0],
                                             window_start=_utc(2026, 4, 7, 17),
                                             window_end=_utc(2026, 4, 7, 18), umpire_ids=["u1"]))
    rejections = RejectionLog()

    candidates = list(generate_candidates(spec.games[0], context, usage, rejections))

    assert candidates == []
    assert rejections.reasons == [UnscheduledReason.DAILY_CAP_EXCEEDED]


def test_rejection_log_default():
    assert RejectionLog().resolve() == UnscheduledReason.NO_VIABLE_FIELD_SLOT


def test_rejection_log_precedence():
    log = RejectionLog()
    for reason in (UnscheduledReason.FIELD_CAPACITY_EXCEEDED, UnscheduledReason.BLACKOUT_CONFLICT,
                   UnscheduledReason.LIGHTING_REQUIRED):
        log.record(reason)

    assert log.resolve() == UnscheduledReason.BLACKOUT_CONFLICT


def test_lights_requirement_disabled(build):
    _, context = build(constraints={"hard": {"requireLightsAfter": {
        "enabled": False, "startHourLocal": 18, "timeZone": "America/Chicago"}}})
    window = Interval(_utc(2026, 4, 8, 1), _utc(2026, 4, 8, 2))

    assert not violates_lights_requirement("f1", window, context)


def test_lights_requirement_local_hour(build):
    _, context = build(constraints={"hard": {"requireLightsAfter": {
        "enabled": True, "startHourLocal": 18, "timeZone": "America/Chicago"}}})

    # 22:59Z is 17:59 CDT, 23:00Z is 18:00 CDT
    before = Interval(_utc(2026, 4, 7, 22, 59), _utc(2026, 4, 7, 23, 59))
    at = Interval(_utc(2026, 4, 7, 23, 0), _utc(2026, 4, 8, 0, 0))

    assert not violates_lights_requirement("f1", before, context)
    assert violates_lights_requirement("f1", at, context)
    assert not violates_lights_requirement("f2", at, context)


def test_check_candidate_order(build, make_game, make_slot):
    """Test that field capacity is reported before a team conflict on the same window."""
    spec, context = build(
        games=[
            make_game("g1", "ts-1", "ts-2", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z"),
            make_game("g2", "ts-1", "ts-3", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z"),
        ],
        fieldSlots=[make_slot("s1", "f1", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z")],
    )
    first, second = spec.games
    slot = spec.field_slots[0]
    usage = UsageAccumulator()

    candidate = Candidate(slot=slot, window_start=slot.start_time, window_end=slot.end_time, umpire_ids=["u1"])
    assert is_admissible(first, candidate, context, usage)
    usage.commit(first.team_season_ids, candidate)

    retry = Candidate(slot=slot, window_start=slot.start_time, window_end=slot.end_time, umpire_ids=["u2"])
    assert check_candidate(second, retry, context, usage) == UnscheduledReason.FIELD_CAPACITY_EXCEEDED


def test_check_candidate_rechecks_umpires(build, make_game, make_slot):
    spec, context = build(
        games=[make_game("g1", "ts-1", "ts-2", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z")],
        fieldSlots=[
            make_slot("s1", "f1", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z"),
            make_slot("s2", "f2", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z"),
        ],
    )
    game = spec.games[0]
    s1, s2 = spec.field_slots
    usage = UsageAccumulator()
    usage.commit(["ts-3", "ts-4"], Candidate(slot=s2, window_start=s2.start_time,
                                             window_end=s2.end_time, umpire_ids=["u1"]))

    busy = Candidate(slot=s1, window_start=s1.start_time, window_end=s1.end_time, umpire_ids=["u1"])
    short = Candidate(slot=s1, window_start=s1.start_time, window_end=s1.end_time, umpire_ids=[])

    assert check_candidate(game, busy, context, usage) == UnscheduledReason.NO_AVAILABLE_UMPIRES
    assert check_candidate(game, short, context, usage) == UnscheduledReason.NO_AVAILABLE_UMPIRES
    assert select_umpires(game, busy.window, context, usage) == ["u2"]


def test_field_overlap_toggle(build, make_game, make_slot):
    spec, context = build(
        games=[make_game("g1", "ts-1", "ts-2", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z")],
        fieldSlots=[make_slot("s1", "f1", "2026-04-07T17:00:00Z", "2026-04-07T18:00:00Z")],
        constraints={"hard": {"noFieldOverlap": False}},
    )
    slot = spec.field_slots[0]
    usage = UsageAccumulator()
    usage.commit(["ts-3", "ts-4"], Candidate(slot=slot, window_start=slot.start_time,
                                             window_end=slot.end_time, umpire_ids=["u2"]))

    candidate = Candidate(slot=slot, window_start=slot.start_time, window_end=slot.end_time, umpire_ids=["u1"])

    assert check_candidate(spec.games[0], candidate, context, usage) is None


def test_umpire_daily_limit(build):
    _, context = build(
        umpires=[{"id": "u1", "maxGamesPerDay": 3}, {"id": "u2"}],
        constraints={"hard": {"maxGamesPerUmpirePerDay": 2}},
    )

    assert context.umpire_daily_limit(context.umpires_by_id["u1"]) == 2
    assert context.umpire_daily_limit(context.umpires_by_id["u2"]) == 2

    _, context = build(umpires=[{"id": "u1", "maxGamesPerDay": 1}])
    assert context.umpire_daily_limit(context.umpires_by_id["u1"]) == 1
