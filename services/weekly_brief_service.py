"""
Read-only weekly overview for a player and the fixture list behind it.
"""

import time
from collections.abc import Callable

from config import PICK_LOCK_LEAD_SECONDS
from domain.models.pick import is_pick_window_closed, lock_time
from domain.services.result_resolver import playing_team_ids
from repositories.interfaces import IFixtureFeed, IPickRepository, IRoomRepository
from services import error_codes
from services.result import Result


class WeeklyBriefService:
    """
    Builds the "what do I need to do this week" summary shown by /survivor brief
    and the gameweek fixture list shown by /survivor fixtures.
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

    def _now(self) -> int:
        return int(self.clock())

    def _next_open_gameweek(self, now: int) -> int | None:
        # A gameweek whose lock has passed is no longer open for picks
        return self.fixture_feed.get_next_open_gameweek(now + self.lock_lead_seconds)

    def get_weekly_brief(self, player_id: int) -> Result[dict]:
        """
        Summarize the player's week across every room they are still alive in.

        Returns the next open gameweek with its deadline and lock time (None
        once the season has no open gameweek left), the player's most recent
        pick, totals over their live rooms, and the rooms where they still owe
        a pick or have no unused team left to pick.
        """
        now = self._now()
        next_gw = self._next_open_gameweek(now)
        gameweek = self.fixture_feed.get_gameweek(next_gw) if next_gw is not None else None
        team_names = {team.team_id: team.name for team in self.fixture_feed.list_teams()}

        live_rooms = []
        last_pick = None
        for room in self.room_repo.get_player_rooms(player_id):
            for pick in self.pick_repo.get_player_picks(room.room_id, player_id):
                if last_pick is None or (pick.created_at, pick.gameweek) > (
                    last_pick[1].created_at,
                    last_pick[1].gameweek,
                ):
                    last_pick = (room, pick)
            if room.is_completed:
                continue
            member = self.room_repo.get_room_player(room.room_id, player_id)
            if member is not None and member.is_in_play:
                live_rooms.append(room)

        active_players = 0
        awaiting_pick = []
        out_of_picks = []
        for room in live_rooms:
            players = self.room_repo.get_room_players(room.room_id)
            active_players += sum(1 for p in players if p.is_in_play)

            room_gw = self.fixture_feed.get_gameweek(room.current_gameweek)
            if room_gw is None or is_pick_window_closed(room_gw.deadline, now, self.lock_lead_seconds):
                continue
            if self.pick_repo.get_pick(room.room_id, player_id, room.current_gameweek) is not None:
                continue
            playing = playing_team_ids(self.fixture_feed.list_fixtures(room.current_gameweek))
            used = self.pick_repo.get_used_team_ids(
                room.room_id, player_id, exclude_gameweek=room.current_gameweek
            )
            entry = {"room_id": room.room_id, "name": room.name, "gameweek": room.current_gameweek}
            if playing and playing <= used:
                out_of_picks.append(entry)
            else:
                awaiting_pick.append(entry)

        brief = {
            "player_id": player_id,
            "gameweek": gameweek.gw if gameweek else None,
            "deadline": gameweek.deadline if gameweek else None,
            "lock_time": lock_time(gameweek.deadline, self.lock_lead_seconds) if gameweek else None,
            "last_pick": None,
            "active_rooms": len(live_rooms),
            "total_pot": sum(room.prize_pot for room in live_rooms),
            "active_players": active_players,
            "rooms_awaiting_pick": awaiting_pick,
            "rooms_out_of_picks": out_of_picks,
        }
        if last_pick is not None:
            room, pick = last_pick
            brief["last_pick"] = {
                "room_id": room.room_id,
                "room_name": room.name,
                "gameweek": pick.gameweek,
                "team_id": pick.team_id,
                "team_name": team_names.get(pick.team_id, str(pick.team_id)),
            }
        return Result.ok(brief)

    def get_gameweek_fixtures(
        self, gameweek: int | None = None, team_id: int | None = None
    ) -> Result[dict]:
        """
        List a gameweek's fixtures in kickoff order, optionally only those
        involving one team. Defaults to the next gameweek still open for picks.
        """
        now = self._now()
        if gameweek is None:
            gameweek = self._next_open_gameweek(now)
            if gameweek is None:
                return Result.fail(
                    "There is no upcoming gameweek open for picks.",
                    code=error_codes.NO_OPEN_GAMEWEEK,
                )

        gw = self.fixture_feed.get_gameweek(gameweek)
        if gw is None:
            return Result.fail(
                f"Gameweek {gameweek} does not exist.", code=error_codes.GAMEWEEK_NOT_FOUND
            )

        team_names = {team.team_id: team.name for team in self.fixture_feed.list_teams()}
        fixtures = self.fixture_feed.list_fixtures(gameweek)
        if team_id is not None:
            fixtures = [f for f in fixtures if f.involves(team_id)]
        fixtures.sort(key=lambda f: (f.kickoff is None, f.kickoff or 0, f.fixture_id))

        return Result.ok(
            {
                "gameweek": gw.gw,
                "deadline": gw.deadline,
                "lock_time": lock_time(gw.deadline, self.lock_lead_seconds),
                "deadline_passed": is_pick_window_closed(gw.deadline, now, self.lock_lead_seconds),
                "is_finished": gw.is_finished,
                "fixtures": [
                    {
                        "fixture_id": f.fixture_id,
                        "home_team_id": f.home_team_id,
                        "away_team_id": f.away_team_id,
                        "home_team": team_names.get(f.home_team_id, "TBD"),
                        "away_team": team_names.get(f.away_team_id, "TBD"),
                        "home_score": f.home_score,
                        "away_score": f.away_score,
                        "status": f.status.value,
                        "kickoff": f.kickoff,
                    }
                    for f in fixtures
                ],
            }
        )
