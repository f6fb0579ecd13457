"""
Core scheduling engine: deterministic greedy assignment of games to field slots.
"""

import hashlib
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .candidates import generate_candidates
from .config import GameRequest, SchedulerProblemSpec
from .constraints import RejectionLog, SchedulingContext, check_candidate
from .models import Assignment, Interval, SchedulerResult, UnscheduledGame, UnscheduledReason
from .timeutils import contains, day_key, overlaps
from .usage import UsageAccumulator
from .validation import validate_problem_spec

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """Core scheduling engine with greedy, input-ordered assignment."""

    def __init__(self, spec: SchedulerProblemSpec):
        self.spec = spec
        self.context = SchedulingContext.from_spec(spec)

    def schedule(self, run_id: str) -> SchedulerResult:
        """
        Main scheduling function.

        Games are placed in input order; each takes its first admissible
        candidate and is never revisited.

        Args:
            run_id: Identifier echoed in the result

        Returns:
            SchedulerResult: Assignments and unscheduled games
        """
        result = SchedulerResult(run_id=run_id)
        usage = UsageAccumulator()

        for game in self.spec.games:
            assignment, reason = self._place_game(game, usage)

            if assignment is not None:
                result.assignments.append(assignment)
                logger.debug(
                    "Scheduled %s on %s at %s (umpires: %s)",
                    game.id, assignment.field_id, assignment.start_time.isoformat(),
                    ", ".join(assignment.umpire_ids) or "none",
                )
            else:
                result.unscheduled.append(UnscheduledGame(game_id=game.id, reason=reason))
                logger.debug("Could not schedule %s: %s", game.id, reason.value)

        metrics = result.metrics
        logger.info(
            "Run %s: scheduled %d of %d games (%s)",
            run_id, metrics.scheduled_games, metrics.total_games, result.status.value,
        )
        return result

    def _place_game(self, game: GameRequest,
                    usage: UsageAccumulator) -> Tuple[Optional[Assignment], Optional[UnscheduledReason]]:
        """Commit the first admissible candidate, or report why none was."""
        rejections = RejectionLog()

        for candidate in generate_candidates(game, self.context, usage, rejections):
            reason = check_candidate(game, candidate, self.context, usage)
            if reason is not None:
                rejections.record(reason)
                continue

            usage.commit(game.team_season_ids, candidate)
            return Assignment.from_candidate(game.id, candidate), None

        return None, rejections.resolve()


def build_run_id(spec: SchedulerProblemSpec, account_id: Optional[Union[int, str]] = None,
                 idempotency_key: Optional[str] = None) -> str:
    """
    Deterministic run id for a solve call.

    Hashes the idempotency key when one is given, otherwise the canonical
    (sorted-key) JSON form of the problem spec without its run id.
    """
    prefix = f"sched_account_{account_id}" if account_id is not None else "sched"
    digest = hashlib.sha256()

    if idempotency_key:
        digest.update(f"{prefix}:key:{idempotency_key}".encode("utf-8"))
    else:
        canonical = spec.to_dict()
        canonical.pop("runId", None)
        payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
        digest.update(f"{prefix}:spec:{payload}".encode("utf-8"))

    return f"{prefix}_{digest.hexdigest()[:16]}"


def solve(spec: Union[SchedulerProblemSpec, Mapping[str, Any]], account_id: Optional[Union[int, str]] = None,
          idempotency_key: Optional[str] = None) -> SchedulerResult:
    """
    Validate a problem spec and schedule its games.

    Args:
        spec: Problem spec, as a model or as plain (camelCase) data
        account_id: Optional account scope for the generated run id
        idempotency_key: Optional key the run id is derived from

    Returns:
        SchedulerResult: Complete or partial schedule

    Raises:
        pydantic.ValidationError: malformed plain-data input
        SchedulerValidationError: structurally invalid spec
    """
    if not isinstance(spec, SchedulerProblemSpec):
        spec = SchedulerProblemSpec.model_validate(spec)

    validate_problem_spec(spec)

    run_id = spec.run_id or build_run_id(spec, account_id, idempotency_key)
    engine = SchedulingEngine(spec)
    return engine.schedule(run_id)


def validate_result(result: SchedulerResult, spec: SchedulerProblemSpec) -> Dict[str, List[str]]:
    """
    Check a result against the placement invariants.

    Args:
        result: Result to validate
        spec: Problem spec the result was produced from

    Returns:
        Dict[str, List[str]]: Validation results
    """
    violations = {
        'errors': [],
        'warnings': []
    }

    games = {game.id: game for game in spec.games}
    slots = {slot.id: slot for slot in spec.field_slots}
    capacity = {f.id: f.properties.max_parallel_games for f in spec.fields}

    seen = set()
    for assignment in result.assignments:
        window = Interval(assignment.start_time, assignment.end_time)
        game = games.get(assignment.game_id)

        if game is None:
            violations['errors'].append(f"Assignment for unknown game {assignment.game_id}")
            continue
        if assignment.game_id in seen:
            violations['errors'].append(f"Game {assignment.game_id} assigned more than once")
        seen.add(assignment.game_id)

        slot = slots.get(assignment.field_slot_id)
        if (slot is None or slot.field_id != assignment.field_id or
                not contains(Interval(slot.start_time, slot.end_time), window)):
            violations['errors'].append(
                f"Game {assignment.game_id} is not inside a field slot on {assignment.field_id}"
            )

        if not contains(Interval(game.earliest_start, game.latest_end), window):
            violations['errors'].append(f"Game {assignment.game_id} is outside its allowed window")

        if len(assignment.umpire_ids) != game.required_umpires:
            violations['errors'].append(
                f"Game {assignment.game_id} has {len(assignment.umpire_ids)} umpires, "
                f"needs {game.required_umpires}"
            )

    # Field capacity: peak concurrency always occurs at some game start
    for assignment in result.assignments:
        instant = assignment.start_time
        concurrent = sum(
            1 for other in result.get_field_assignments(assignment.field_id)
            if other.start_time <= instant < other.end_time
        )
        if spec.hard.no_field_overlap and concurrent > capacity.get(assignment.field_id, 1):
            violations['errors'].append(
                f"Field {assignment.field_id} over capacity at {instant.isoformat()}"
            )

    for i, first in enumerate(result.assignments):
        first_window = Interval(first.start_time, first.end_time)
        for second in result.assignments[i + 1:]:
            if not spec.hard.no_umpire_overlap or not overlaps(first_window, Interval(second.start_time, second.end_time)):
                continue
            for umpire_id in sorted(set(first.umpire_ids) & set(second.umpire_ids)):
                violations['errors'].append(
                    f"Umpire {umpire_id} double-booked for {first.game_id} and {second.game_id}"
                )

    cap = spec.hard.max_games_per_team_per_day
    if cap is not None:
        team_days: Dict[Tuple[str, str], int] = {}
        for assignment in result.assignments:
            game = games.get(assignment.game_id)
            if game is None:
                continue
            for team in game.team_season_ids:
                key = (team, day_key(assignment.start_time))
                team_days[key] = team_days.get(key, 0) + 1
        for (team, day), count in sorted(team_days.items()):
            if count > cap:
                violations['errors'].append(f"Team {team} plays {count} games on {day}")

    if result.unscheduled:
        violations['warnings'].append(f"Unscheduled games: {len(result.unscheduled)}")

    return violations
