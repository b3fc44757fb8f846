"""
Service for creating, joining and leaving rooms.
"""

import logging
import secrets
import string
import time
from collections.abc import Callable

from config import (
    DEFAULT_DEAL_THRESHOLD,
    DEFAULT_DGW_RULE,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_NO_PICK_POLICY,
    INVITE_CODE_LENGTH,
    MAX_BUY_IN_CENTS,
    PICK_LOCK_LEAD_SECONDS,
)
from domain.models.pick import is_pick_window_closed
from domain.models.room import DoubleGameweekRule, NoPickPolicy, Room, RoomStatus
from repositories.interfaces import IFixtureFeed, IRoomRepository
from services import error_codes
from services.interfaces import IRoomService
from services.result import Result

logger = logging.getLogger("survivor_bot.services.room")

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_ROOM_NAME_LENGTH = 50
MAX_PLAYERS_LIMIT = 100


class RoomService(IRoomService):
    def __init__(
        self,
        room_repo: IRoomRepository,
        fixture_feed: IFixtureFeed,
        lock_lead_seconds: int | None = None,
        invite_code_length: int | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.room_repo = room_repo
        self.fixture_feed = fixture_feed
        self.lock_lead_seconds = (
            lock_lead_seconds if lock_lead_seconds is not None else PICK_LOCK_LEAD_SECONDS
        )
        self.invite_code_length = invite_code_length or INVITE_CODE_LENGTH
        self.clock = clock or time.time

    def _now(self) -> int:
        return int(self.clock())

    def next_open_gameweek(self) -> int | None:
        """First unfinished gameweek whose picks have not locked yet."""
        now = self._now()
        for gw in self.fixture_feed.list_gameweeks():
            if gw.is_finished:
                continue
            if not is_pick_window_closed(gw.deadline, now, self.lock_lead_seconds):
                return gw.gw
        return None

    def _generate_invite_code(self) -> str:
        for _ in range(10):
            code = "".join(
                secrets.choice(INVITE_CODE_ALPHABET) for _ in range(self.invite_code_length)
            )
            if not self.room_repo.invite_code_exists(code):
                return code
        raise RuntimeError("Could not generate a unique invite code")

    def create_room(
        self,
        host_id: int,
        name: str,
        buy_in: int,
        max_players: int | None = None,
        is_public: bool = True,
        description: str | None = None,
        deal_threshold: int | None = None,
        no_pick_policy: str | None = None,
        dgw_rule: str | None = None,
        invite_code: str | None = None,
    ) -> Result[Room]:
        """
        Create a room starting at the next open gameweek. The host joins automatically.

        Args:
            host_id: Creating player's id
            name: Display name
            buy_in: Buy-in in integer cents
            invite_code: Optional custom code; one is generated otherwise
        """
        name = (name or "").strip()
        if not name or len(name) > MAX_ROOM_NAME_LENGTH:
            return Result.fail(
                f"Room name must be 1-{MAX_ROOM_NAME_LENGTH} characters.",
                code=error_codes.VALIDATION_ERROR,
            )
        if buy_in < 0 or buy_in > MAX_BUY_IN_CENTS:
            return Result.fail(
                f"Buy-in must be between 0 and {MAX_BUY_IN_CENTS} cents.",
                code=error_codes.VALIDATION_ERROR,
            )

        max_players = max_players if max_players is not None else DEFAULT_MAX_PLAYERS
        if max_players < 2 or max_players > MAX_PLAYERS_LIMIT:
            return Result.fail(
                f"Rooms hold between 2 and {MAX_PLAYERS_LIMIT} players.",
                code=error_codes.VALIDATION_ERROR,
            )
        deal_threshold = deal_threshold if deal_threshold is not None else DEFAULT_DEAL_THRESHOLD
        if deal_threshold < 2 or deal_threshold > max_players:
            return Result.fail(
                "Deal threshold must be at least 2 and no more than the player limit.",
                code=error_codes.VALIDATION_ERROR,
            )

        try:
            policy = NoPickPolicy(no_pick_policy or DEFAULT_NO_PICK_POLICY)
            rule = DoubleGameweekRule(dgw_rule or DEFAULT_DGW_RULE)
        except ValueError as e:
            return Result.fail(str(e), code=error_codes.VALIDATION_ERROR)

        if invite_code:
            invite_code = invite_code.strip().upper()
            if not invite_code.isalnum() or not 4 <= len(invite_code) <= 12:
                return Result.fail(
                    "Invite codes are 4-12 letters or digits.", code=error_codes.VALIDATION_ERROR
                )
            if self.room_repo.invite_code_exists(invite_code):
                return Result.fail("That invite code is taken.", code=error_codes.VALIDATION_ERROR)
        else:
            invite_code = self._generate_invite_code()

        gameweek = self.next_open_gameweek()
        if gameweek is None:
            return Result.fail(
                "There is no upcoming gameweek to start a room in.",
                code=error_codes.NO_OPEN_GAMEWEEK,
            )

        room_id = self.room_repo.create_room(
            name=name,
            host_id=host_id,
            buy_in=buy_in,
            max_players=max_players,
            is_public=is_public,
            invite_code=invite_code,
            current_gameweek=gameweek,
            deal_threshold=deal_threshold,
            no_pick_policy=policy.value,
            dgw_rule=rule.value,
            now=self._now(),
            description=description,
        )
        logger.info(f"Room {room_id} '{name}' created by {host_id} starting gameweek {gameweek}")
        return Result.ok(self.room_repo.get_room(room_id))

    def get_room(self, room_id: int) -> Room | None:
        return self.room_repo.get_room(room_id)

    def is_joinable(self, room: Room) -> bool:
        """Rooms accept players while waiting and before round-1 picks lock."""
        if room.status != RoomStatus.WAITING:
            return False
        gw = self.fixture_feed.get_gameweek(room.current_gameweek)
        if gw is None:
            return False
        return not is_pick_window_closed(gw.deadline, self._now(), self.lock_lead_seconds)

    def join_room(self, room_id: int, player_id: int) -> Result[Room]:
        """Join a room. Joining a room you are already in succeeds without changes."""
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if self.room_repo.get_room_player(room_id, player_id) is not None:
            return Result.ok(room)
        if not self.is_joinable(room):
            return Result.fail("This room is no longer accepting players.", code=error_codes.ROOM_CLOSED)

        outcome = self.room_repo.add_player_atomic(room_id, player_id, self._now())
        if outcome == "full":
            return Result.fail("This room is full.", code=error_codes.ROOM_FULL)
        if outcome == "added":
            logger.info(f"Player {player_id} joined room {room_id}")
        return Result.ok(self.room_repo.get_room(room_id))

    def join_room_by_code(self, invite_code: str, player_id: int) -> Result[Room]:
        room = self.room_repo.get_room_by_invite_code(invite_code or "")
        if room is None:
            return Result.fail("No room has that invite code.", code=error_codes.ROOM_NOT_FOUND)
        return self.join_room(room.room_id, player_id)

    def leave_room(self, room_id: int, player_id: int) -> Result[None]:
        """Leave a room before it starts. The host cannot leave their own room."""
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if self.room_repo.get_room_player(room_id, player_id) is None:
            return Result.fail("You are not in this room.", code=error_codes.NOT_IN_ROOM)
        if room.status != RoomStatus.WAITING:
            return Result.fail(
                "You can only leave a room before it starts.", code=error_codes.ROOM_CLOSED
            )
        if room.host_id == player_id:
            return Result.fail(
                "The host cannot leave their own room.", code=error_codes.PERMISSION_DENIED
            )

        self.room_repo.remove_player(room_id, player_id)
        logger.info(f"Player {player_id} left room {room_id}")
        return Result.ok()

    def list_public_rooms(self, player_id: int | None = None) -> list[Room]:
        return self.room_repo.list_public_rooms(exclude_player_id=player_id)

    def get_player_rooms(self, player_id: int) -> list[Room]:
        return self.room_repo.get_player_rooms(player_id)
