"""
Pick domain model.
"""

from dataclasses import dataclass
from enum import Enum


class PickResult(Enum):
    """Outcome of a pick (and of a team in a fixture)."""

    PENDING = "pending"
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"

    @property
    def survives(self) -> bool:
        return self == PickResult.WIN


@dataclass
class Pick:
    """A player's team selection for one gameweek in one room."""

    room_id: int
    player_id: int
    gameweek: int
    team_id: int
    is_locked: bool = False
    result: PickResult = PickResult.PENDING
    is_auto: bool = False
    created_at: int = 0
    updated_at: int = 0
    locked_at: int | None = None

    @property
    def is_resolved(self) -> bool:
        return self.result != PickResult.PENDING


def lock_time(deadline: int, lead_seconds: int = 0) -> int:
    """Unix timestamp at which picks for a gameweek stop being editable."""
    return deadline - lead_seconds


def is_pick_window_closed(deadline: int, now: int, lead_seconds: int = 0) -> bool:
    """
    Pure lock predicate: picks are editable strictly before the lock time.

    Equality counts as closed.
    """
    return now >= lock_time(deadline, lead_seconds)
