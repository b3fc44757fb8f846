"""
Derived, read-only room status for display.
"""

import time
from collections.abc import Callable

from config import PICK_LOCK_LEAD_SECONDS
from domain.models.pick import is_pick_window_closed
from domain.models.room import PlayerStatus, RoomStatus
from repositories.interfaces import IFixtureFeed, IRoomRepository
from services import error_codes
from services.interfaces import IRoomStatusService
from services.result import Result


class RoomStatusService(IRoomStatusService):
    def __init__(
        self,
        room_repo: IRoomRepository,
        fixture_feed: IFixtureFeed,
        lock_lead_seconds: int | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.room_repo = room_repo
        self.fixture_feed = fixture_feed
        self.lock_lead_seconds = (
            lock_lead_seconds if lock_lead_seconds is not None else PICK_LOCK_LEAD_SECONDS
        )
        self.clock = clock or time.time

    def _now(self) -> int:
        return int(self.clock())

    def get_room_status(self, room_id: int) -> Result[dict]:
        """
        Summarize where a room is in its lifecycle.

        display_text is one of "Round N Picks" (before the lock),
        "Round N In Progress" (locked, fixtures still being played),
        "Round N Results Pending" (fixtures finished, not yet processed)
        or "Completed".
        """
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)

        gw = self.fixture_feed.get_gameweek(room.current_gameweek)
        deadline = gw.deadline if gw else None
        deadline_passed = gw is not None and is_pick_window_closed(
            gw.deadline, self._now(), self.lock_lead_seconds
        )
        gameweek_finished = deadline_passed and self.fixture_feed.is_gameweek_finished(
            room.current_gameweek
        )

        if room.is_completed:
            display_text = "Completed"
        elif not deadline_passed:
            display_text = f"Round {room.current_round} Picks"
        elif not gameweek_finished:
            display_text = f"Round {room.current_round} In Progress"
        else:
            display_text = f"Round {room.current_round} Results Pending"

        players = self.room_repo.get_room_players(room_id)
        in_play = [p for p in players if p.is_in_play]
        eliminated = [p for p in players if p.status == PlayerStatus.ELIMINATED]
        winners = sorted(p.player_id for p in players if p.payout is not None) if room.is_completed else []

        return Result.ok(
            {
                "room_id": room.room_id,
                "name": room.name,
                "status": room.status.value,
                "round": room.current_round,
                "gameweek": room.current_gameweek,
                "display_text": display_text,
                "is_joinable": (
                    room.status == RoomStatus.WAITING
                    and gw is not None
                    and not deadline_passed
                    and len(players) < room.max_players
                ),
                "deadline": deadline,
                "deadline_passed": deadline_passed,
                "gameweek_finished": gameweek_finished,
                "active_count": len(in_play),
                "eliminated_count": len(eliminated),
                "total_players": len(players),
                "prize_pot": room.prize_pot,
                "deal_available": not room.is_completed and room.deal_available(len(in_play)),
                "completed_reason": room.completed_reason.value if room.completed_reason else None,
                "winners": winners,
                "needs_attention": room.needs_attention,
            }
        )

    def get_recovery_notice(self, room_id: int, player_id: int) -> dict | None:
        """
        The all-eliminated recovery the player has not acknowledged yet, if any.
        """
        room = self.room_repo.get_room(room_id)
        if room is None or room.last_recovery_gameweek is None:
            return None
        member = self.room_repo.get_room_player(room_id, player_id)
        if member is None:
            return None
        seen = member.last_notified_gameweek
        if seen is not None and seen >= room.last_recovery_gameweek:
            return None
        return {
            "room_id": room_id,
            "gameweek": room.last_recovery_gameweek,
            "message": (
                f"Everyone went out in gameweek {room.last_recovery_gameweek}, "
                "so all players from that round are back in."
            ),
        }

    def acknowledge_recovery_notice(self, room_id: int, player_id: int) -> bool:
        room = self.room_repo.get_room(room_id)
        if room is None or room.last_recovery_gameweek is None:
            return False
        return self.room_repo.set_last_notified_gameweek(
            room_id, player_id, room.last_recovery_gameweek
        )
