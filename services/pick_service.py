"""
Pick ledger: one team per player per gameweek, never the same team twice.

Picks are editable until the gameweek's lock time. The lock is computed from
the clock and the feed deadline on every call; the stored is_locked flag is
only written when a gameweek is resolved.
"""

import logging
import time
from collections.abc import Callable

from config import PICK_LOCK_LEAD_SECONDS
from domain.models.fixture import Team
from domain.models.pick import Pick, is_pick_window_closed, lock_time
from domain.models.room import PlayerStatus
from domain.services.result_resolver import playing_team_ids
from repositories.interfaces import IFixtureFeed, IPickRepository, IRoomRepository
from services import error_codes
from services.interfaces import IPickService
from services.result import Result

logger = logging.getLogger("survivor_bot.services.pick")


class PickService(IPickService):
    """Validates and records picks."""

    def __init__(
        self,
        room_repo: IRoomRepository,
        pick_repo: IPickRepository,
        fixture_feed: IFixtureFeed,
        lock_lead_seconds: int | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.room_repo = room_repo
        self.pick_repo = pick_repo
        self.fixture_feed = fixture_feed
        self.lock_lead_seconds = (
            lock_lead_seconds if lock_lead_seconds is not None else PICK_LOCK_LEAD_SECONDS
        )
        self.clock = clock or time.time

    def _now(self) -> int:
        return int(self.clock())

    def get_lock_time(self, gameweek: int) -> int | None:
        """Unix timestamp at which picks for the gameweek lock, or None if unknown."""
        gw = self.fixture_feed.get_gameweek(gameweek)
        if gw is None:
            return None
        return lock_time(gw.deadline, self.lock_lead_seconds)

    def is_gameweek_locked(self, gameweek: int) -> bool:
        gw = self.fixture_feed.get_gameweek(gameweek)
        if gw is None:
            return False
        return is_pick_window_closed(gw.deadline, self._now(), self.lock_lead_seconds)

    def submit_pick(self, room_id: int, player_id: int, gameweek: int, team_id: int) -> Result[Pick]:
        """
        Create or replace a player's pick for a gameweek.

        Resubmitting the same team is a no-op success; a different team
        overwrites the unlocked pick.
        """
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if room.is_completed:
            return Result.fail("This room has already finished.", code=error_codes.ROOM_COMPLETED)

        member = self.room_repo.get_room_player(room_id, player_id)
        if member is None:
            return Result.fail("You are not in this room.", code=error_codes.NOT_IN_ROOM)
        if member.is_eliminated:
            return Result.fail(
                "You have been eliminated from this room.", code=error_codes.PLAYER_ELIMINATED
            )

        team = self.fixture_feed.get_team(team_id)
        if team is None:
            return Result.fail("That is not a Premier League team.", code=error_codes.INVALID_TEAM)

        gw = self.fixture_feed.get_gameweek(gameweek)
        if gw is None:
            return Result.fail(f"Gameweek {gameweek} does not exist.", code=error_codes.GAMEWEEK_NOT_FOUND)
        if gameweek < room.current_gameweek:
            return Result.fail(
                f"Gameweek {gameweek} has already been played in this room.",
                code=error_codes.GAMEWEEK_ALREADY_PLAYED,
            )
        if is_pick_window_closed(gw.deadline, self._now(), self.lock_lead_seconds):
            return Result.fail(
                f"The deadline for gameweek {gameweek} has passed.", code=error_codes.DEADLINE_PASSED
            )

        if team_id not in playing_team_ids(self.fixture_feed.list_fixtures(gameweek)):
            return Result.fail(
                f"{team.name} have no fixture in gameweek {gameweek}.",
                code=error_codes.TEAM_NOT_PLAYING,
            )

        outcome = self.pick_repo.upsert_pick_atomic(room_id, player_id, gameweek, team_id, self._now())
        if outcome == "locked":
            return Result.fail("Your pick for this gameweek is locked.", code=error_codes.PICK_LOCKED)
        if outcome == "team_used":
            return Result.fail(
                f"You have already used {team.name} in this room.", code=error_codes.TEAM_ALREADY_USED
            )

        if member.status == PlayerStatus.PENDING_PICK:
            self.room_repo.update_player_status(
                room_id, player_id, PlayerStatus.PENDING_PICK, PlayerStatus.ACTIVE
            )

        logger.info(f"Pick saved: room={room_id} player={player_id} gw={gameweek} team={team_id}")
        return Result.ok(self.pick_repo.get_pick(room_id, player_id, gameweek))

    def remove_pick(self, room_id: int, player_id: int, gameweek: int) -> Result[None]:
        """Delete an unlocked pick before the lock time."""
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if self.room_repo.get_room_player(room_id, player_id) is None:
            return Result.fail("You are not in this room.", code=error_codes.NOT_IN_ROOM)

        pick = self.pick_repo.get_pick(room_id, player_id, gameweek)
        if pick is None:
            return Result.fail("You have no pick for that gameweek.", code=error_codes.NOT_FOUND)
        if pick.is_locked:
            return Result.fail("Your pick for this gameweek is locked.", code=error_codes.PICK_LOCKED)

        gw = self.fixture_feed.get_gameweek(gameweek)
        if gw is None:
            return Result.fail(f"Gameweek {gameweek} does not exist.", code=error_codes.GAMEWEEK_NOT_FOUND)
        if is_pick_window_closed(gw.deadline, self._now(), self.lock_lead_seconds):
            return Result.fail(
                f"The deadline for gameweek {gameweek} has passed.", code=error_codes.DEADLINE_PASSED
            )

        if not self.pick_repo.delete_pick(room_id, player_id, gameweek):
            return Result.fail("Your pick for this gameweek is locked.", code=error_codes.PICK_LOCKED)
        logger.info(f"Pick removed: room={room_id} player={player_id} gw={gameweek}")
        return Result.ok()

    def get_pick(self, room_id: int, player_id: int, gameweek: int) -> Pick | None:
        return self.pick_repo.get_pick(room_id, player_id, gameweek)

    def get_player_picks(self, room_id: int, player_id: int) -> list[Pick]:
        return self.pick_repo.get_player_picks(room_id, player_id)

    def get_available_teams(self, room_id: int, player_id: int, gameweek: int) -> list[Team]:
        used = self.pick_repo.get_used_team_ids(room_id, player_id, exclude_gameweek=gameweek)
        playing = playing_team_ids(self.fixture_feed.list_fixtures(gameweek))
        return [
            team
            for team in self.fixture_feed.list_teams()
            if team.team_id in playing and team.team_id not in used
        ]

    def list_teams(self) -> list[Team]:
        return self.fixture_feed.list_teams()

    def find_team(self, query: str) -> Team | None:
        """Resolve a typed team name or short name."""
        return self.fixture_feed.find_team(query)
