"""
Read-only models supplied by the upstream fixture feed.
"""

from dataclasses import dataclass
from enum import Enum


class FixtureStatus(Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"


@dataclass(frozen=True)
class Team:
    """A Premier League team with a stable feed identifier."""

    team_id: int
    name: str
    short_name: str | None = None


@dataclass(frozen=True)
class Gameweek:
    gw: int
    deadline: int  # Unix timestamp
    is_finished: bool = False


@dataclass(frozen=True)
class Fixture:
    fixture_id: int
    gameweek: int
    home_team_id: int
    away_team_id: int
    home_score: int | None = None
    away_score: int | None = None
    status: FixtureStatus = FixtureStatus.SCHEDULED
    kickoff: int | None = None

    @property
    def is_finished(self) -> bool:
        return self.status == FixtureStatus.FINISHED

    def involves(self, team_id: int) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)
