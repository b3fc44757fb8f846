"""
Elimination engine: applies a finished gameweek to a room.

The round is resolved purely from a snapshot (domain.services.elimination_rules)
and written back in one transaction guarded on the room's gameweek and round,
so retries and concurrent workers apply each round at most once.
"""

import logging
import time
from collections.abc import Callable

from config import PICK_LOCK_LEAD_SECONDS
from domain.models.pick import is_pick_window_closed
from domain.models.room import RoomStatus
from domain.services.elimination_rules import RoomInconsistencyError, RoundResolution, resolve_round
from domain.services.payouts import split_pot_evenly
from domain.services.result_resolver import is_gameweek_resolvable, playing_team_ids, team_outcomes
from repositories.interfaces import IFixtureFeed, IPickRepository, IRoomRepository
from services import error_codes
from services.interfaces import IEliminationService
from services.result import Result

logger = logging.getLogger("survivor_bot.services.elimination")


class EliminationService(IEliminationService):
    """Resolves gameweeks and advances rooms."""

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

    def activate_room(self, room_id: int) -> Result[bool]:
        """
        Move a waiting room to active once round-1 picks have locked.

        Returns Result.ok(True) if the room was activated by this call.
        """
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if room.status != RoomStatus.WAITING:
            return Result.ok(False)

        gw = self.fixture_feed.get_gameweek(room.current_gameweek)
        if gw is None:
            return Result.fail(
                f"Gameweek {room.current_gameweek} does not exist.",
                code=error_codes.GAMEWEEK_NOT_FOUND,
            )
        if not is_pick_window_closed(gw.deadline, self._now(), self.lock_lead_seconds):
            return Result.ok(False)

        activated = self.room_repo.activate_room(room_id, self._now())
        if activated:
            logger.info(f"Room {room_id} activated for gameweek {room.current_gameweek}")
        return Result.ok(activated)

    def process_gameweek_results(self, room_id: int, gameweek: int | None = None) -> Result[dict]:
        """
        Resolve a finished gameweek for a room.

        Args:
            room_id: Room to process
            gameweek: Gameweek to resolve (defaults to the room's current gameweek)

        Returns:
            Result with a summary dict. "applied" is False when the gameweek
            was already processed, which makes reruns a no-op success.

        Raises:
            FeedUnavailableError: The fixture feed could not be read (retryable)
        """
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if gameweek is None:
            gameweek = room.current_gameweek

        if room.is_completed or gameweek < room.current_gameweek:
            return Result.ok(self._noop_summary(room_id, gameweek))
        if gameweek > room.current_gameweek:
            return Result.fail(
                f"Room {room_id} is still on gameweek {room.current_gameweek}.",
                code=error_codes.STATE_ERROR,
            )
        if room.needs_attention:
            return Result.fail(
                f"Room {room_id} needs attention: {room.attention_reason}",
                code=error_codes.ROOM_INCONSISTENT,
            )

        fixtures = self.fixture_feed.list_fixtures(gameweek)
        if not is_gameweek_resolvable(fixtures):
            return Result.fail(
                f"Gameweek {gameweek} has not finished yet.", code=error_codes.GAMEWEEK_NOT_FINISHED
            )

        players = self.room_repo.get_room_players(room_id)
        picks = self.pick_repo.get_picks_for_gameweek(room_id, gameweek)
        used_teams = self.pick_repo.get_used_teams_by_player(room_id, exclude_gameweek=gameweek)
        next_gameweek = self.fixture_feed.get_next_unfinished_gameweek(gameweek)

        try:
            resolution = resolve_round(
                room,
                players,
                picks,
                team_outcomes(fixtures, room.dgw_rule),
                playing_team_ids(fixtures),
                used_teams,
                next_gameweek,
            )
        except RoomInconsistencyError as e:
            logger.error(f"Halting room {room_id} at gameweek {gameweek}: {e}")
            self.room_repo.flag_room(room_id, str(e), self._now())
            return Result.fail(str(e), code=error_codes.ROOM_INCONSISTENT)

        payouts = split_pot_evenly(room.prize_pot, resolution.winners) if resolution.winners else {}
        applied = self.room_repo.apply_round_resolution_atomic(resolution, payouts, self._now())
        if not applied:
            logger.info(f"Room {room_id} gameweek {gameweek} already processed, skipping")
            return Result.ok(self._noop_summary(room_id, gameweek))

        self._log_resolution(resolution)
        return Result.ok(self._summary(resolution, payouts))

    @staticmethod
    def _noop_summary(room_id: int, gameweek: int) -> dict:
        return {"room_id": room_id, "gameweek": gameweek, "applied": False}

    @staticmethod
    def _summary(resolution: RoundResolution, payouts: dict[int, int]) -> dict:
        return {
            "room_id": resolution.room_id,
            "gameweek": resolution.gameweek,
            "round": resolution.round_number,
            "applied": True,
            "eliminated": resolution.eliminated_ids,
            "survivors": list(resolution.survivors),
            "recovered": resolution.recovered,
            "auto_picks": {o.player_id: o.team_id for o in resolution.auto_picks},
            "missing_results": list(resolution.missing_results),
            "status": resolution.next_status.value,
            "next_gameweek": resolution.next_gameweek,
            "next_round": resolution.next_round,
            "completed_reason": (
                resolution.completed_reason.value if resolution.completed_reason else None
            ),
            "winners": resolution.winners,
            "payouts": payouts,
        }

    def _log_resolution(self, resolution: RoundResolution) -> None:
        room_id = resolution.room_id
        gw = resolution.gameweek
        if resolution.recovered:
            logger.info(
                f"Room {room_id} gameweek {gw}: all {len(resolution.survivors)} players went out, "
                "reactivating everyone"
            )
        elif resolution.eliminated_ids:
            logger.info(f"Room {room_id} gameweek {gw}: eliminated {resolution.eliminated_ids}")
        if resolution.auto_picks:
            auto = {o.player_id: o.team_id for o in resolution.auto_picks}
            logger.info(f"Room {room_id} gameweek {gw}: auto-picked {auto}")
        if resolution.next_status == RoomStatus.COMPLETED:
            logger.info(
                f"Room {room_id} completed ({resolution.completed_reason.value}), "
                f"winners: {resolution.winners}"
            )
        else:
            logger.info(
                f"Room {room_id} advanced to round {resolution.next_round}, "
                f"gameweek {resolution.next_gameweek}, {resolution.remaining_active} remaining"
            )
