"""
Room domain model: the survivor game aggregate and its players.
"""

from dataclasses import dataclass
from enum import Enum


class RoomStatus(Enum):
    """Lifecycle of a room."""

    WAITING = "waiting"  # Round 1 picks open, players may join
    ACTIVE = "active"
    COMPLETED = "completed"


class PlayerStatus(Enum):
    """Status of a player within one room."""

    ACTIVE = "active"
    ELIMINATED = "eliminated"
    PENDING_PICK = "pending_pick"  # Joined, first pick not yet submitted


class NoPickPolicy(Enum):
    """What happens to an in-play player with no pick when results come in."""

    ELIMINATE = "eliminate"
    RANDOM_PICK = "random_pick"


class DoubleGameweekRule(Enum):
    """How a team with two fixtures in one gameweek is scored."""

    FIRST_ONLY = "first_only"
    BOTH_COUNT = "both_count"


class CompletionReason(Enum):
    WINNER = "winner"
    DEAL = "deal"
    SEASON_END = "season_end"


IN_PLAY_STATUSES = (PlayerStatus.ACTIVE, PlayerStatus.PENDING_PICK)


@dataclass
class RoomPlayer:
    """A player's membership in a room."""

    room_id: int
    player_id: int
    status: PlayerStatus
    joined_at: int
    eliminated_at: int | None = None
    eliminated_gameweek: int | None = None
    payout: int | None = None  # cents, set when the room completes
    last_notified_gameweek: int | None = None

    @property
    def is_in_play(self) -> bool:
        return self.status in IN_PLAY_STATUSES

    @property
    def is_eliminated(self) -> bool:
        return self.status == PlayerStatus.ELIMINATED


@dataclass
class Room:
    """
    One instance of the survivor pool.

    Amounts (buy_in, prize_pot) are integer cents.
    """

    room_id: int
    name: str
    buy_in: int
    max_players: int
    is_public: bool
    invite_code: str
    host_id: int
    current_gameweek: int
    current_round: int
    status: RoomStatus
    deal_threshold: int
    no_pick_policy: NoPickPolicy
    dgw_rule: DoubleGameweekRule
    prize_pot: int = 0
    description: str | None = None
    completed_reason: CompletionReason | None = None
    needs_attention: bool = False
    attention_reason: str | None = None
    last_recovery_gameweek: int | None = None
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_completed(self) -> bool:
        return self.status == RoomStatus.COMPLETED

    def deal_available(self, remaining_active: int) -> bool:
        """Whether a pot-split deal may be proposed with this many players left."""
        return 1 < remaining_active <= self.deal_threshold
