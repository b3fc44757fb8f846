"""
Pytest fixtures for tests.

Performance optimization: Uses a session-scoped schema template so migrations
run once. Each test copies the resulting database file instead of
re-initializing it.

The fixture feed is seeded with six teams and three gameweeks. Deadlines are
fixed unix timestamps and every service is wired to a controllable clock,
so tests move time forward explicitly with clock.advance()/clock.set().
"""

import shutil

import pytest

from database import Database
from repositories.deal_repository import DealRepository
from repositories.fixture_repository import FixtureRepository
from repositories.pick_repository import PickRepository
from repositories.rematch_repository import RematchRepository
from repositories.room_repository import RoomRepository
from services.deal_service import DealService
from services.elimination_service import EliminationService
from services.gameweek_processing_service import GameweekProcessingService
from services.pick_service import PickService
from services.player_status_service import PlayerStatusService
from services.rematch_service import RematchService
from services.room_service import RoomService
from services.room_status_service import RoomStatusService
from services.weekly_brief_service import WeeklyBriefService


# =============================================================================
# FEED DATA
# =============================================================================

TEAMS = {
    1: ("Arsenal", "ARS"),
    2: ("Chelsea", "CHE"),
    3: ("Liverpool", "LIV"),
    4: ("Everton", "EVE"),
    5: ("Tottenham", "TOT"),
    6: ("Aston Villa", "AVL"),
}

GW1_DEADLINE = 1_000_000
GW2_DEADLINE = 2_000_000
GW3_DEADLINE = 3_000_000

DEADLINES = {1: GW1_DEADLINE, 2: GW2_DEADLINE, 3: GW3_DEADLINE}

# gameweek -> [(fixture_id, home_team_id, away_team_id)]
SCHEDULE = {
    1: [(101, 1, 2), (102, 3, 4), (103, 5, 6)],
    2: [(201, 2, 3), (202, 4, 5), (203, 6, 1)],
    3: [(301, 1, 3), (302, 2, 5), (303, 4, 6)],
}

HOST_ID = 1000
PLAYER_A = 1001
PLAYER_B = 1002
PLAYER_C = 1003


class FakeClock:
    """Callable clock returning a settable unix timestamp."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def set(self, now: int) -> None:
        self.now = now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def _schema_template_path(tmp_path_factory):
    """
    Create a schema template database once per test session.

    Tests copy from this template instead of running schema
    initialization each time.
    """
    template_dir = tmp_path_factory.mktemp("schema_template")
    template_path = str(template_dir / "template.db")
    Database(template_path)
    yield template_path


@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path (no schema)."""
    path = str(tmp_path / "temp.db")
    yield path


@pytest.fixture
def repo_db_path(_schema_template_path, tmp_path):
    """
    Create a temporary database with initialized schema for repository tests.

    The schema template is created once per session and copied here.
    """
    test_db_path = str(tmp_path / "test.db")
    shutil.copy2(_schema_template_path, test_db_path)
    yield test_db_path


@pytest.fixture
def clock():
    """Clock set before the gameweek 1 deadline."""
    return FakeClock(GW1_DEADLINE - 10_000)


# =============================================================================
# REPOSITORIES
# =============================================================================


@pytest.fixture
def room_repository(repo_db_path):
    return RoomRepository(repo_db_path)


@pytest.fixture
def pick_repository(repo_db_path):
    return PickRepository(repo_db_path)


@pytest.fixture
def deal_repository(repo_db_path):
    return DealRepository(repo_db_path)


@pytest.fixture
def rematch_repository(repo_db_path):
    return RematchRepository(repo_db_path)


@pytest.fixture
def fixture_repository(repo_db_path):
    """Fixture feed seeded with teams, gameweeks 1-3 and scheduled fixtures."""
    feed = FixtureRepository(repo_db_path)
    for team_id, (name, short_name) in TEAMS.items():
        feed.upsert_team(team_id, name, short_name)
    for gw, deadline in DEADLINES.items():
        feed.upsert_gameweek(gw, deadline)
        for fixture_id, home, away in SCHEDULE[gw]:
            feed.upsert_fixture(fixture_id, gw, home, away, kickoff=deadline + 3600)
    return feed


@pytest.fixture
def finish_gameweek(fixture_repository):
    """
    Return a helper that finishes every fixture of a gameweek.

    Scores are given per fixture id as (home, away); unlisted fixtures end 0-0.
    """

    def _finish(gameweek: int, scores: dict | None = None, mark_finished: bool = True):
        scores = scores or {}
        for fixture_id, home, away in SCHEDULE[gameweek]:
            home_score, away_score = scores.get(fixture_id, (0, 0))
            fixture_repository.upsert_fixture(
                fixture_id,
                gameweek,
                home,
                away,
                home_score=home_score,
                away_score=away_score,
                status="finished",
                kickoff=DEADLINES[gameweek] + 3600,
            )
        if mark_finished:
            fixture_repository.mark_gameweek_finished(gameweek)

    return _finish


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def room_service(room_repository, fixture_repository, clock):
    return RoomService(room_repository, fixture_repository, lock_lead_seconds=0, clock=clock)


@pytest.fixture
def pick_service(room_repository, pick_repository, fixture_repository, clock):
    return PickService(
        room_repository, pick_repository, fixture_repository, lock_lead_seconds=0, clock=clock
    )


@pytest.fixture
def elimination_service(room_repository, pick_repository, fixture_repository, clock):
    return EliminationService(
        room_repository, pick_repository, fixture_repository, lock_lead_seconds=0, clock=clock
    )


@pytest.fixture
def room_status_service(room_repository, fixture_repository, clock):
    return RoomStatusService(room_repository, fixture_repository, lock_lead_seconds=0, clock=clock)


@pytest.fixture
def player_status_service(room_repository, pick_repository, fixture_repository, clock):
    return PlayerStatusService(
        room_repository, pick_repository, fixture_repository, lock_lead_seconds=0, clock=clock
    )


@pytest.fixture
def weekly_brief_service(room_repository, pick_repository, fixture_repository, clock):
    return WeeklyBriefService(
        room_repository, pick_repository, fixture_repository, lock_lead_seconds=0, clock=clock
    )


@pytest.fixture
def deal_service(room_repository, deal_repository, clock):
    return DealService(room_repository, deal_repository, expiry_seconds=86400, clock=clock)


@pytest.fixture
def rematch_service(room_repository, rematch_repository, fixture_repository, clock):
    return RematchService(room_repository, rematch_repository, fixture_repository, clock=clock)


@pytest.fixture
def gameweek_processing_service(room_repository, elimination_service, deal_service):
    return GameweekProcessingService(
        room_repository,
        elimination_service,
        deal_service,
        max_workers=2,
        max_retries=2,
        retry_base_delay=0.01,
        sleep=lambda _delay: None,
    )


@pytest.fixture
def make_room(room_service):
    """
    Return a helper that creates a room hosted by HOST_ID and joins extra players.
    """

    def _make(players=(PLAYER_A, PLAYER_B), buy_in=1000, name="Test Room", **kwargs):
        result = room_service.create_room(HOST_ID, name, buy_in, **kwargs)
        assert result.success, result.error
        room = result.value
        for player_id in players:
            joined = room_service.join_room(room.room_id, player_id)
            assert joined.success, joined.error
        return room_service.get_room(room.room_id)

    return _make
