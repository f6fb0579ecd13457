"""
Structural validation of a problem spec, run before any scheduling work.
"""

from typing import Iterable, List

from .config import SchedulerProblemSpec


class SchedulerValidationError(ValueError):
    """Base exception for invalid problem specs"""

    pass


class InvalidGameWindow(SchedulerValidationError):
    """A game's earliest start is not before its latest end"""

    pass


class UnknownTeamReference(SchedulerValidationError):
    pass


class UnknownFieldReference(SchedulerValidationError):
    pass


class UnknownUmpireReference(SchedulerValidationError):
    pass


class InvalidSeasonWindow(SchedulerValidationError):
    pass


class InvalidInterval(SchedulerValidationError):
    """A slot, blackout or availability window with start >= end"""

    pass


class InvalidTeamPairing(SchedulerValidationError):
    pass


class DuplicateIdentifier(SchedulerValidationError):
    pass


def validate_problem_spec(spec: SchedulerProblemSpec) -> None:
    """
    Validate a problem spec, raising on the first violation.

    Every game window is checked first, then every game's home and visitor
    references, then field slot references. The remaining integrity checks
    follow.

    Raises:
        SchedulerValidationError: one of its subclasses, describing the violation
    """
    team_season_ids = [team.team_season_id for team in spec.teams]
    field_ids = [f.id for f in spec.fields]
    umpire_ids = [umpire.id for umpire in spec.umpires]

    team_season_id_set = set(team_season_ids)
    field_id_set = set(field_ids)
    umpire_id_set = set(umpire_ids)

    for game in spec.games:
        if not game.earliest_start < game.latest_end:
            raise InvalidGameWindow(f"Game {game.id} earliestStart must be before latestEnd")

    for game in spec.games:
        if game.home_team_season_id not in team_season_id_set:
            raise UnknownTeamReference(
                f"Unknown homeTeamSeasonId for game {game.id}: {game.home_team_season_id}"
            )
        if game.visitor_team_season_id not in team_season_id_set:
            raise UnknownTeamReference(
                f"Unknown visitorTeamSeasonId for game {game.id}: {game.visitor_team_season_id}"
            )

    for slot in spec.field_slots:
        if slot.field_id not in field_id_set:
            raise UnknownFieldReference(f"Unknown fieldId for field slot {slot.id}: {slot.field_id}")

    if spec.season.start_date > spec.season.end_date:
        raise InvalidSeasonWindow("Season startDate must be before endDate")

    _ensure_unique(team_season_ids, "teamSeasonId")
    _ensure_unique(field_ids, "fieldId")
    _ensure_unique(umpire_ids, "umpireId")

    for game in spec.games:
        if game.home_team_season_id == game.visitor_team_season_id:
            raise InvalidTeamPairing(f"Game {game.id} must reference two different teams")
        for preferred_field_id in game.preferred_field_ids:
            if preferred_field_id not in field_id_set:
                raise UnknownFieldReference(
                    f"Unknown preferredFieldId for game {game.id}: {preferred_field_id}"
                )

    for slot in spec.field_slots:
        if slot.start_time >= slot.end_time:
            raise InvalidInterval(f"Field slot {slot.id} startTime must be before endTime")

    for blackout in spec.team_blackouts:
        if blackout.start_time >= blackout.end_time:
            raise InvalidInterval(
                f"Team blackout {blackout.team_season_id} startTime must be before endTime"
            )
        if blackout.team_season_id not in team_season_id_set:
            raise UnknownTeamReference(f"Unknown teamSeasonId for blackout: {blackout.team_season_id}")

    for availability in spec.umpire_availability:
        if availability.start_time >= availability.end_time:
            raise InvalidInterval(
                f"Umpire availability {availability.umpire_id} startTime must be before endTime"
            )
        if availability.umpire_id not in umpire_id_set:
            raise UnknownUmpireReference(
                f"Unknown umpireId for umpire availability: {availability.umpire_id}"
            )


def _ensure_unique(values: Iterable[str], name: str) -> None:
    duplicates = _collect_duplicates(values)
    if duplicates:
        raise DuplicateIdentifier(f"Duplicate {name} values: {', '.join(duplicates)}")


def _collect_duplicates(values: Iterable[str]) -> List[str]:
    seen = set()
    duplicates = set()
    for value in values:
        if value in seen:
            duplicates.add(value)
        else:
            seen.add(value)
    return sorted(duplicates)
