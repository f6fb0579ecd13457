"""
Shared fixtures for scheduler tests.

2026-04-07 is a Tuesday, 2026-04-11 a Saturday.
"""

import pytest


def _game(game_id, home, visitor, earliest, latest, required_umpires=1, **extra):
    game = {
        "id": game_id,
        "leagueSeasonId": "ls-1",
        "homeTeamSeasonId": home,
        "visitorTeamSeasonId": visitor,
        "earliestStart": earliest,
        "latestEnd": latest,
        "requiredUmpires": required_umpires,
    }
    game.update(extra)
    return game


def _slot(slot_id, field_id, start, end):
    return {"id": slot_id, "fieldId": field_id, "startTime": start, "endTime": end}


@pytest.fixture
def make_game():
    return _game


@pytest.fixture
def make_slot():
    return _slot


@pytest.fixture
def spec_data():
    """A small league: four team-seasons, an unlit and a lit field, two umpires."""
    return {
        "season": {
            "id": "spring-2026",
            "name": "Spring 2026",
            "startDate": "2026-04-01",
            "endDate": "2026-08-31",
            "gameDurations": {"defaultMinutes": 60},
        },
        "teams": [
            {"id": f"team-{i}", "teamSeasonId": f"ts-{i}", "league": {"id": "league-1", "name": "Open"}}
            for i in range(1, 5)
        ],
        "fields": [
            {"id": "f1", "name": "Field 1"},
            {"id": "f2", "name": "Field 2", "properties": {"hasLights": True}},
        ],
        "umpires": [
            {"id": "u1", "name": "Alice"},
            {"id": "u2", "name": "Bob"},
        ],
        "games": [],
        "fieldSlots": [],
    }
