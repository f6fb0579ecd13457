"""
Problem specification models for the league scheduler.

The problem spec is the engine's whole input: season, teams, fields, umpires,
the games to place, bookable field slots and the hard-constraint toggles.
Keys are accepted in camelCase (as produced by the surrounding service) or
snake_case.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    """Normalize a timestamp to an aware UTC datetime (naive means UTC)."""
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


class SchedulerModel(BaseModel):
    """Base for all problem spec models."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class TimeWindowModel(SchedulerModel):
    """A model carrying a start_time/end_time pair."""
    start_time: datetime = Field(alias="startTime", description="Window start (UTC)")
    end_time: datetime = Field(alias="endTime", description="Window end (UTC, exclusive)")

    @field_validator('start_time', 'end_time')
    @classmethod
    def normalize_timestamps(cls, v):
        return _as_utc(v)


class GameDurations(SchedulerModel):
    """Game lengths in minutes, selected by the day of week of the game."""
    default_minutes: int = Field(default=60, gt=0, alias="defaultMinutes", description="Game length when no other length applies")
    weekend_minutes: Optional[int] = Field(default=None, gt=0, alias="weekendMinutes",
                                           description="Game length on Saturday and Sunday")
    weekday_minutes: Optional[int] = Field(default=None, gt=0, alias="weekdayMinutes",
                                           description="Game length Monday through Friday")


class Season(SchedulerModel):
    id: str
    name: str
    start_date: date = Field(alias="startDate", description="First day of the season")
    end_date: date = Field(alias="endDate", description="Last day of the season")
    game_durations: GameDurations = Field(default_factory=GameDurations, alias="gameDurations")


class LeagueRef(SchedulerModel):
    id: str
    name: Optional[str] = None


class Team(SchedulerModel):
    """A team-season taking part in the schedule."""
    id: str
    team_season_id: str = Field(alias="teamSeasonId", description="Team-season id games refer to")
    division_season_id: Optional[str] = Field(default=None, alias="divisionSeasonId")
    league: Optional[LeagueRef] = None


class FieldProperties(SchedulerModel):
    max_parallel_games: int = Field(default=1, ge=1, alias="maxParallelGames",
                                    description="Games the field can host at the same time")
    has_lights: bool = Field(default=False, alias="hasLights", description="Field can host games after dark")
    start_increment_minutes: Optional[int] = Field(default=None, gt=0, alias="startIncrementMinutes",
                                                   description="Minutes between generated slot starts")


class SchedulerField(SchedulerModel):
    id: str
    name: str
    properties: FieldProperties = Field(default_factory=FieldProperties)


class Umpire(SchedulerModel):
    id: str
    name: Optional[str] = None
    max_games_per_day: Optional[int] = Field(default=None, gt=0, alias="maxGamesPerDay",
                                             description="Most games this umpire works per day")


class GameRequest(SchedulerModel):
    """A game waiting to be placed on a field slot."""
    id: str
    league_season_id: str = Field(alias="leagueSeasonId")
    home_team_season_id: str = Field(alias="homeTeamSeasonId")
    visitor_team_season_id: str = Field(alias="visitorTeamSeasonId")
    earliest_start: datetime = Field(alias="earliestStart", description="Game may not start before this")
    latest_end: datetime = Field(alias="latestEnd", description="Game must be over by this")
    required_umpires: int = Field(default=1, ge=0, alias="requiredUmpires", description="Size of the umpire crew")
    preferred_field_ids: List[str] = Field(default_factory=list, alias="preferredFieldIds",
                                          description="Fields to try first, most preferred first")
    duration_minutes: Optional[int] = Field(default=None, gt=0, alias="durationMinutes",
                                            description="Overrides the season game length")

    @field_validator('earliest_start', 'latest_end')
    @classmethod
    def normalize_timestamps(cls, v):
        return _as_utc(v)

    @property
    def team_season_ids(self) -> List[str]:
        return [self.home_team_season_id, self.visitor_team_season_id]


class FieldSlot(TimeWindowModel):
    """A bookable window on a field."""
    id: str
    field_id: str = Field(alias="fieldId")


class UmpireAvailability(TimeWindowModel):
    umpire_id: str = Field(alias="umpireId")


class TeamBlackout(TimeWindowModel):
    team_season_id: str = Field(alias="teamSeasonId")


class RequireLightsAfter(SchedulerModel):
    """Games starting at or after start_hour_local need a lit field."""
    enabled: bool
    start_hour_local: int = Field(ge=0, le=23, alias="startHourLocal", description="Local hour from which lights are needed")
    time_zone: str = Field(alias="timeZone", description="Time zone the hour is read in")

    @field_validator('time_zone')
    @classmethod
    def validate_timezone(cls, v):
        try:
            pytz.timezone(v)
            return v
        except pytz.exceptions.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")


class HardConstraints(SchedulerModel):
    """Hard constraint toggles. Each field has one fixed effect on placement."""
    respect_team_blackouts: bool = Field(default=True, alias="respectTeamBlackouts",
                                        description="Keep games out of team blackouts")
    respect_umpire_availability: bool = Field(default=True, alias="respectUmpireAvailability",
                                             description="Only use umpires inside their availability windows")
    # Field slots are always the placement resource; the flag is carried through as-is.
    respect_field_slots: bool = Field(default=True, alias="respectFieldSlots", description="Place games in field slots")
    max_games_per_team_per_day: Optional[int] = Field(default=None, gt=0, alias="maxGamesPerTeamPerDay",
                                                      description="Most games a team plays per day")
    max_games_per_umpire_per_day: Optional[int] = Field(default=None, gt=0, alias="maxGamesPerUmpirePerDay",
                                                        description="Most games any umpire works per day")
    no_field_overlap: bool = Field(default=True, alias="noFieldOverlap", description="Enforce field capacity")
    no_team_overlap: bool = Field(default=True, alias="noTeamOverlap", description="A team plays one game at a time")
    no_umpire_overlap: bool = Field(default=True, alias="noUmpireOverlap", description="An umpire works one game at a time")
    require_lights_after: Optional[RequireLightsAfter] = Field(default=None, alias="requireLightsAfter")


class Constraints(SchedulerModel):
    hard: HardConstraints = Field(default_factory=HardConstraints)


class SchedulerProblemSpec(SchedulerModel):
    """Main input of a scheduling run."""
    season: Season
    teams: List[Team] = Field(default_factory=list)
    fields: List[SchedulerField] = Field(default_factory=list)
    umpires: List[Umpire] = Field(default_factory=list)
    games: List[GameRequest] = Field(default_factory=list)
    field_slots: List[FieldSlot] = Field(default_factory=list, alias="fieldSlots", description="Bookable field windows")
    umpire_availability: List[UmpireAvailability] = Field(default_factory=list, alias="umpireAvailability",
                                                         description="Windows umpires can work")
    team_blackouts: List[TeamBlackout] = Field(default_factory=list, alias="teamBlackouts",
                                              description="Windows teams cannot play")
    constraints: Constraints = Field(default_factory=Constraints)
    run_id: Optional[str] = Field(default=None, alias="runId", description="Run id echoed in the result")

    @property
    def hard(self) -> HardConstraints:
        return self.constraints.hard

    def get_field(self, field_id: str) -> Optional[SchedulerField]:
        """Get a field by id."""
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def to_dict(self) -> dict:
        """Plain-data (camelCase, JSON-compatible) form of the spec."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FieldAvailabilityRule(SchedulerModel):
    """A weekly recurring local-time window on a field, expanded into field slots."""
    id: str
    field_id: str = Field(alias="fieldId")
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    days_of_week_mask: int = Field(ge=1, le=127, alias="daysOfWeekMask", description="Bit 0 is Monday, bit 6 is Sunday")
    start_time_local: str = Field(alias="startTimeLocal", description="Daily window start, HH:MM local")
    end_time_local: str = Field(alias="endTimeLocal", description="Daily window end, HH:MM local")
    enabled: bool = True

    @field_validator('start_time_local', 'end_time_local')
    @classmethod
    def validate_time_format(cls, v):
        parts = v.strip().split(":")
        if len(parts) != 2 or not all(p.isdigit() and len(p) == 2 for p in parts):
            raise ValueError(f"Invalid time format: {v}. Use HH:MM format.")
        if int(parts[0]) > 23 or int(parts[1]) > 59:
            raise ValueError(f"Invalid time format: {v}. Use HH:MM format.")
        return v.strip()


class FieldExclusionDate(SchedulerModel):
    """A date on which no slots are generated for a field."""
    field_id: str = Field(alias="fieldId")
    exclusion_date: date = Field(alias="date")
    enabled: bool = True


class SeasonExclusion(TimeWindowModel):
    """A season-wide window in which no game may start."""
    enabled: bool = True


def load_problem_spec(spec_path: str) -> SchedulerProblemSpec:
    """Load a problem spec from a YAML or JSON file."""
    import yaml

    path = Path(spec_path)
    with open(path, 'r') as f:
        if path.suffix.lower() == '.json':
            spec_data = json.load(f)
        else:
            spec_data = yaml.safe_load(f)

    return SchedulerProblemSpec.model_validate(spec_data)


def save_problem_spec(spec: SchedulerProblemSpec, spec_path: str) -> None:
    """Save a problem spec to a YAML or JSON file."""
    import yaml

    path = Path(spec_path)
    with open(path, 'w') as f:
        if path.suffix.lower() == '.json':
            json.dump(spec.to_dict(), f, indent=2, sort_keys=True)
        else:
            yaml.dump(spec.to_dict(), f, default_flow_style=False, indent=2)
