"""
Tests for fixture result resolution and double gameweek aggregation.
"""

import pytest

from domain.models.fixture import Fixture, FixtureStatus
from domain.models.pick import PickResult
from domain.models.room import DoubleGameweekRule
from domain.services.result_resolver import (
    is_gameweek_resolvable,
    playing_team_ids,
    resolve_fixture,
    team_outcomes,
)


def _fixture(fixture_id, home, away, home_score=None, away_score=None, finished=True, kickoff=None):
    return Fixture(
        fixture_id=fixture_id,
        gameweek=1,
        home_team_id=home,
        away_team_id=away,
        home_score=home_score,
        away_score=away_score,
        status=FixtureStatus.FINISHED if finished else FixtureStatus.SCHEDULED,
        kickoff=kickoff,
    )


class TestResolveFixture:
    def test_home_win(self):
        outcome = resolve_fixture(_fixture(1, 10, 20, 2, 1))
        assert outcome == {10: PickResult.WIN, 20: PickResult.LOSE}

    def test_away_win(self):
        outcome = resolve_fixture(_fixture(1, 10, 20, 0, 3))
        assert outcome == {10: PickResult.LOSE, 20: PickResult.WIN}

    def test_draw(self):
        outcome = resolve_fixture(_fixture(1, 10, 20, 1, 1))
        assert outcome == {10: PickResult.DRAW, 20: PickResult.DRAW}

    def test_unfinished_fixture_raises(self):
        with pytest.raises(ValueError):
            resolve_fixture(_fixture(1, 10, 20, finished=False))

    def test_missing_score_raises(self):
        with pytest.raises(ValueError):
            resolve_fixture(_fixture(1, 10, 20, home_score=1, away_score=None))


class TestResolvable:
    def test_empty_gameweek_is_not_resolvable(self):
        assert is_gameweek_resolvable([]) is False

    def test_all_finished_is_resolvable(self):
        fixtures = [_fixture(1, 10, 20, 1, 0), _fixture(2, 30, 40, 0, 0)]
        assert is_gameweek_resolvable(fixtures) is True

    def test_one_unfinished_blocks(self):
        fixtures = [_fixture(1, 10, 20, 1, 0), _fixture(2, 30, 40, finished=False)]
        assert is_gameweek_resolvable(fixtures) is False

    def test_finished_without_score_blocks(self):
        fixtures = [_fixture(1, 10, 20, 1, 0), _fixture(2, 30, 40, home_score=None, away_score=None)]
        assert is_gameweek_resolvable(fixtures) is False

    def test_finished_with_one_score_blocks(self):
        assert is_gameweek_resolvable([_fixture(1, 10, 20, home_score=2, away_score=None)]) is False


class TestTeamOutcomes:
    def test_single_fixture_per_team(self):
        outcomes = team_outcomes([_fixture(1, 10, 20, 1, 0), _fixture(2, 30, 40, 2, 2)])
        assert outcomes == {
            10: PickResult.WIN,
            20: PickResult.LOSE,
            30: PickResult.DRAW,
            40: PickResult.DRAW,
        }

    def test_first_only_uses_earliest_kickoff(self):
        fixtures = [
            _fixture(2, 10, 30, 0, 1, kickoff=200),  # later loss
            _fixture(1, 10, 20, 3, 0, kickoff=100),  # earlier win
        ]
        outcomes = team_outcomes(fixtures, DoubleGameweekRule.FIRST_ONLY)
        assert outcomes[10] == PickResult.WIN

    def test_both_count_keeps_worst_outcome(self):
        fixtures = [
            _fixture(1, 10, 20, 3, 0, kickoff=100),
            _fixture(2, 10, 30, 1, 1, kickoff=200),
        ]
        outcomes = team_outcomes(fixtures, DoubleGameweekRule.BOTH_COUNT)
        assert outcomes[10] == PickResult.DRAW

    def test_both_count_two_wins(self):
        fixtures = [
            _fixture(1, 10, 20, 3, 0, kickoff=100),
            _fixture(2, 30, 10, 0, 2, kickoff=200),
        ]
        outcomes = team_outcomes(fixtures, DoubleGameweekRule.BOTH_COUNT)
        assert outcomes[10] == PickResult.WIN

    def test_unfinished_fixtures_are_skipped(self):
        outcomes = team_outcomes([_fixture(1, 10, 20, 1, 0), _fixture(2, 30, 40, finished=False)])
        assert 30 not in outcomes
        assert 40 not in outcomes


def test_playing_team_ids():
    fixtures = [_fixture(1, 10, 20, finished=False), _fixture(2, 30, 10, finished=False)]
    assert playing_team_ids(fixtures) == {10, 20, 30}
