"""
Round resolution rules for the survivor game.

Contains the pure state-machine step run when a gameweek finishes: which
players survive, the all-eliminated recovery rule, and where the room goes
next. No side effects; the elimination service persists the returned plan.
"""

import random
from dataclasses import dataclass, field

from domain.models.pick import Pick, PickResult
from domain.models.room import (
    CompletionReason,
    NoPickPolicy,
    Room,
    RoomPlayer,
    RoomStatus,
)


class RoomInconsistencyError(Exception):
    """A room reached results processing with no players in play."""

    def __init__(self, room_id: int, gameweek: int, message: str):
        super().__init__(message)
        self.room_id = room_id
        self.gameweek = gameweek


@dataclass
class PlayerRoundOutcome:
    """What happened to one in-play player this round."""

    player_id: int
    team_id: int | None  # None when the player had no pick and no auto-pick
    result: PickResult | None
    eliminated: bool
    auto_picked: bool = False


@dataclass
class RoundResolution:
    """The full, deterministic outcome of resolving one gameweek for one room."""

    room_id: int
    gameweek: int
    round_number: int
    outcomes: list[PlayerRoundOutcome]
    survivors: list[int]
    recovered: bool
    next_status: RoomStatus
    next_gameweek: int
    next_round: int
    completed_reason: CompletionReason | None = None
    missing_results: list[int] = field(default_factory=list)

    @property
    def eliminated_ids(self) -> list[int]:
        """Players who end the round eliminated (empty after a recovery)."""
        if self.recovered:
            return []
        return [o.player_id for o in self.outcomes if o.eliminated]

    @property
    def remaining_active(self) -> int:
        return len(self.survivors)

    @property
    def winners(self) -> list[int]:
        if self.next_status != RoomStatus.COMPLETED:
            return []
        return list(self.survivors)

    @property
    def auto_picks(self) -> list[PlayerRoundOutcome]:
        return [o for o in self.outcomes if o.auto_picked]


def choose_auto_pick(room_id: int, player_id: int, gameweek: int, candidates: set[int]) -> int | None:
    """
    Deterministically choose a team for a player who missed the deadline.

    The RNG is seeded from (room, player, gameweek), so every retry of the same
    round picks the same team.
    """
    if not candidates:
        return None
    rng = random.Random(f"{room_id}:{player_id}:{gameweek}")
    return rng.choice(sorted(candidates))


def resolve_round(
    room: Room,
    players: list[RoomPlayer],
    picks: dict[int, Pick],
    outcomes: dict[int, PickResult],
    teams_in_gameweek: set[int],
    used_teams: dict[int, set[int]],
    next_gameweek: int | None,
) -> RoundResolution:
    """
    Resolve the room's current gameweek.

    Args:
        room: Room being processed (current_gameweek is the gameweek resolved)
        players: All room players
        picks: Picks for the current gameweek keyed by player id
        outcomes: Team outcomes for the gameweek keyed by team id
        teams_in_gameweek: Teams with a fixture this gameweek (auto-pick pool)
        used_teams: Teams each player already used in other gameweeks
        next_gameweek: Smallest unfinished gameweek after the current one

    Raises:
        RoomInconsistencyError: If no player is in play entering the round
    """
    gameweek = room.current_gameweek
    entering = sorted(p.player_id for p in players if p.is_in_play)
    if not entering:
        raise RoomInconsistencyError(
            room.room_id,
            gameweek,
            f"Room {room.room_id} has no players in play entering gameweek {gameweek}",
        )

    round_outcomes: list[PlayerRoundOutcome] = []
    missing_results: list[int] = []
    for player_id in entering:
        pick = picks.get(player_id)
        team_id = pick.team_id if pick else None
        auto = False

        if pick is None and room.no_pick_policy == NoPickPolicy.RANDOM_PICK:
            candidates = teams_in_gameweek - used_teams.get(player_id, set())
            team_id = choose_auto_pick(room.room_id, player_id, gameweek, candidates)
            auto = team_id is not None

        if team_id is None:
            round_outcomes.append(
                PlayerRoundOutcome(player_id=player_id, team_id=None, result=None, eliminated=True)
            )
            continue

        result = outcomes.get(team_id)
        if result is None:
            # Blank or postponed fixture: the pick stands, the player survives
            missing_results.append(player_id)
        round_outcomes.append(
            PlayerRoundOutcome(
                player_id=player_id,
                team_id=team_id,
                result=result,
                eliminated=result in (PickResult.LOSE, PickResult.DRAW),
                auto_picked=auto,
            )
        )

    survivors = [o.player_id for o in round_outcomes if not o.eliminated]
    recovered = False
    if not survivors:
        # Everyone went out together: only this round's eliminations are undone
        recovered = True
        survivors = list(entering)

    completed_reason = None
    if next_gameweek is None:
        next_status = RoomStatus.COMPLETED
        completed_reason = (
            CompletionReason.WINNER if len(survivors) == 1 else CompletionReason.SEASON_END
        )
        next_gw = gameweek
        next_round = room.current_round
    else:
        next_gw = next_gameweek
        next_round = room.current_round + 1
        if len(survivors) == 1:
            next_status = RoomStatus.COMPLETED
            completed_reason = CompletionReason.WINNER
        else:
            next_status = RoomStatus.ACTIVE

    return RoundResolution(
        room_id=room.room_id,
        gameweek=gameweek,
        round_number=room.current_round,
        outcomes=round_outcomes,
        survivors=survivors,
        recovered=recovered,
        next_status=next_status,
        next_gameweek=next_gw,
        next_round=next_round,
        completed_reason=completed_reason,
        missing_results=missing_results,
    )
