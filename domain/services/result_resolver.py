"""
Fixture result resolution.

Pure functions: no persistence, no clock.
"""

from domain.models.fixture import Fixture
from domain.models.pick import PickResult
from domain.models.room import DoubleGameweekRule

# Ordering used when a team's fixtures disagree under both_count
_OUTCOME_RANK = {PickResult.LOSE: 0, PickResult.DRAW: 1, PickResult.WIN: 2}


def resolve_fixture(fixture: Fixture) -> dict[int, PickResult]:
    """
    Map a finished fixture to {team_id: outcome} for both sides.

    Raises:
        ValueError: If the fixture is not finished or a score is missing
    """
    if not fixture.is_finished:
        raise ValueError(f"Fixture {fixture.fixture_id} is not finished")
    if fixture.home_score is None or fixture.away_score is None:
        raise ValueError(f"Fixture {fixture.fixture_id} has no final score")

    if fixture.home_score > fixture.away_score:
        home, away = PickResult.WIN, PickResult.LOSE
    elif fixture.home_score < fixture.away_score:
        home, away = PickResult.LOSE, PickResult.WIN
    else:
        home = away = PickResult.DRAW
    return {fixture.home_team_id: home, fixture.away_team_id: away}


def is_gameweek_resolvable(fixtures: list[Fixture]) -> bool:
    """
    A gameweek can be resolved once it has fixtures and every one is finished
    with both scores recorded. The feed can mark a fixture finished before the
    score arrives.
    """
    return bool(fixtures) and all(
        f.is_finished and f.home_score is not None and f.away_score is not None for f in fixtures
    )


def team_outcomes(
    fixtures: list[Fixture],
    dgw_rule: DoubleGameweekRule = DoubleGameweekRule.FIRST_ONLY,
) -> dict[int, PickResult]:
    """
    Aggregate finished fixtures into one outcome per team.

    Teams with two fixtures in the gameweek are scored by dgw_rule:
    FIRST_ONLY keeps the earliest fixture (kickoff, then fixture id);
    BOTH_COUNT keeps the worst outcome, so a team must win both.
    Teams without a finished fixture are absent from the result.
    """
    ordered = sorted(
        (f for f in fixtures if f.is_finished),
        key=lambda f: (f.kickoff if f.kickoff is not None else 0, f.fixture_id),
    )
    outcomes: dict[int, PickResult] = {}
    for fixture in ordered:
        for team_id, outcome in resolve_fixture(fixture).items():
            existing = outcomes.get(team_id)
            if existing is None:
                outcomes[team_id] = outcome
            elif dgw_rule == DoubleGameweekRule.BOTH_COUNT:
                if _OUTCOME_RANK[outcome] < _OUTCOME_RANK[existing]:
                    outcomes[team_id] = outcome
    return outcomes


def playing_team_ids(fixtures: list[Fixture]) -> set[int]:
    """Teams that have at least one fixture in the given list."""
    teams: set[int] = set()
    for fixture in fixtures:
        teams.add(fixture.home_team_id)
        teams.add(fixture.away_team_id)
    return teams
