"""
Per-player status within a room for a gameweek.
"""

import time
from collections.abc import Callable

from config import PICK_LOCK_LEAD_SECONDS
from domain.models.pick import PickResult, is_pick_window_closed
from domain.models.room import NoPickPolicy, RoomPlayer
from repositories.interfaces import IFixtureFeed, IPickRepository, IRoomRepository
from services import error_codes
from services.result import Result


class PlayerStatusService:
    """
    Status values: awaiting_pick, picked, active, eliminated.

    Before the lock a player is awaiting_pick or picked. After the lock they
    are active (showing their team) unless eliminated.
    """

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

    def _team_names(self) -> dict[int, str]:
        return {team.team_id: team.name for team in self.fixture_feed.list_teams()}

    def _describe(
        self,
        member: RoomPlayer,
        pick,
        team_names: dict[int, str],
        deadline_passed: bool,
        policy: NoPickPolicy,
        gameweek: int,
    ) -> dict:
        team_name = team_names.get(pick.team_id) if pick else None

        if member.is_eliminated:
            status = "eliminated"
            if member.eliminated_gameweek == gameweek and team_name:
                display_text = f"Eliminated ({team_name})"
            elif member.eliminated_gameweek == gameweek and pick is None:
                display_text = "Eliminated (No Pick)"
            else:
                display_text = "Eliminated"
        elif deadline_passed:
            if pick is not None:
                status = "active"
                if pick.result == PickResult.WIN:
                    display_text = f"Active ({team_name})"
                else:
                    display_text = team_name or "Picked"
            elif policy == NoPickPolicy.RANDOM_PICK:
                status = "active"
                display_text = "Random Pick"
            else:
                status = "eliminated"
                display_text = "Eliminated (No Pick)"
        elif pick is not None:
            status = "picked"
            display_text = "Picked"
        else:
            status = "awaiting_pick"
            display_text = "Awaiting Pick"

        return {
            "player_id": member.player_id,
            "status": status,
            "display_text": display_text,
            "team_id": pick.team_id if pick else None,
            "team_name": team_name,
            "result": pick.result.value if pick else None,
            "gameweek": gameweek,
            "deadline_passed": deadline_passed,
        }

    def _deadline_passed(self, gameweek: int) -> bool | None:
        gw = self.fixture_feed.get_gameweek(gameweek)
        if gw is None:
            return None
        return is_pick_window_closed(gw.deadline, int(self.clock()), self.lock_lead_seconds)

    def get_player_status(
        self, room_id: int, player_id: int, gameweek: int | None = None
    ) -> Result[dict]:
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        member = self.room_repo.get_room_player(room_id, player_id)
        if member is None:
            return Result.fail("Player is not in this room.", code=error_codes.NOT_IN_ROOM)

        gameweek = gameweek if gameweek is not None else room.current_gameweek
        deadline_passed = self._deadline_passed(gameweek)
        if deadline_passed is None:
            return Result.fail(f"Gameweek {gameweek} does not exist.", code=error_codes.GAMEWEEK_NOT_FOUND)

        pick = self.pick_repo.get_pick(room_id, player_id, gameweek)
        status = self._describe(
            member, pick, self._team_names(), deadline_passed, room.no_pick_policy, gameweek
        )
        status["is_current_gameweek"] = gameweek == room.current_gameweek
        return Result.ok(status)

    def get_all_players_status(self, room_id: int, gameweek: int | None = None) -> Result[list[dict]]:
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)

        gameweek = gameweek if gameweek is not None else room.current_gameweek
        deadline_passed = self._deadline_passed(gameweek)
        if deadline_passed is None:
            return Result.fail(f"Gameweek {gameweek} does not exist.", code=error_codes.GAMEWEEK_NOT_FOUND)

        picks = self.pick_repo.get_picks_for_gameweek(room_id, gameweek)
        team_names = self._team_names()
        statuses = []
        for member in self.room_repo.get_room_players(room_id):
            status = self._describe(
                member,
                picks.get(member.player_id),
                team_names,
                deadline_passed,
                room.no_pick_policy,
                gameweek,
            )
            status["is_current_gameweek"] = gameweek == room.current_gameweek
            if not deadline_passed:
                # Other players' teams stay hidden until picks lock
                status["team_id"] = None
                status["team_name"] = None
            statuses.append(status)
        return Result.ok(statuses)
