"""
Service for rematches of completed rooms.
"""

import logging
import time
from collections.abc import Callable

from domain.models.deal import RematchVoteChoice
from repositories.interfaces import IFixtureFeed, IRematchRepository, IRoomRepository
from services import error_codes
from services.interfaces import IRematchService
from services.result import Result

logger = logging.getLogger("survivor_bot.services.rematch")

MIN_REMATCH_PLAYERS = 2


class RematchService(IRematchService):
    """
    Collects rematch votes and resets the room once everyone has voted.

    Players who vote no are removed; if fewer than two say yes the room
    stays completed and the votes remain open for changes.
    """

    def __init__(
        self,
        room_repo: IRoomRepository,
        rematch_repo: IRematchRepository,
        fixture_feed: IFixtureFeed,
        clock: Callable[[], float] | None = None,
    ):
        self.room_repo = room_repo
        self.rematch_repo = rematch_repo
        self.fixture_feed = fixture_feed
        self.clock = clock or time.time

    def _now(self) -> int:
        return int(self.clock())

    def get_rematch_votes(self, room_id: int) -> dict[int, RematchVoteChoice]:
        return self.rematch_repo.get_votes(room_id)

    def vote_on_rematch(self, room_id: int, player_id: int, vote: RematchVoteChoice) -> Result[dict]:
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if not room.is_completed:
            return Result.fail(
                "A rematch can only be voted on once the room has finished.",
                code=error_codes.STATE_ERROR,
            )
        if self.room_repo.get_room_player(room_id, player_id) is None:
            return Result.fail("You are not in this room.", code=error_codes.NOT_IN_ROOM)

        now = self._now()
        self.rematch_repo.upsert_vote(room_id, player_id, vote, now)

        players = [p.player_id for p in self.room_repo.get_room_players(room_id)]
        votes = self.rematch_repo.get_votes(room_id)
        yes_ids = sorted(pid for pid in players if votes.get(pid) == RematchVoteChoice.YES)
        no_ids = sorted(pid for pid in players if votes.get(pid) == RematchVoteChoice.NO)
        summary = {
            "room_id": room_id,
            "yes": yes_ids,
            "no": no_ids,
            "required": len(players),
            "started": False,
            "gameweek": None,
        }

        if len(yes_ids) + len(no_ids) < len(players):
            return Result.ok(summary)
        if len(yes_ids) < MIN_REMATCH_PLAYERS:
            logger.info(f"Room {room_id} rematch vote complete but only {len(yes_ids)} said yes")
            return Result.ok(summary)

        next_gameweek = self.fixture_feed.get_next_open_gameweek(now)
        if next_gameweek is None:
            return Result.fail(
                "There is no upcoming gameweek to start a rematch in.",
                code=error_codes.NO_OPEN_GAMEWEEK,
            )

        started = self.rematch_repo.reset_room_for_rematch_atomic(room_id, no_ids, next_gameweek, now)
        if started:
            logger.info(
                f"Room {room_id} rematch started in gameweek {next_gameweek} "
                f"with {yes_ids}, removed {no_ids}"
            )
            if room.host_id in no_ids:
                logger.info(f"Room {room_id} host {room.host_id} declined, {yes_ids[0]} now hosts")
        summary["started"] = started
        summary["gameweek"] = next_gameweek if started else None
        return Result.ok(summary)
