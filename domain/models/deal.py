"""
Deal (early pot split) and rematch domain models.
"""

from dataclasses import dataclass, field
from enum import Enum


class DealStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class DealVoteChoice(Enum):
    ACCEPT = "accept"
    DECLINE = "decline"


class RematchVoteChoice(Enum):
    YES = "yes"
    NO = "no"


@dataclass
class DealRequest:
    """A proposal to split the pot among the players active when it was made."""

    deal_id: int
    room_id: int
    initiated_by: int
    gameweek: int
    status: DealStatus
    created_at: int
    expires_at: int
    participants: list[int] = field(default_factory=list)
    votes: dict[int, DealVoteChoice] = field(default_factory=dict)
    resolved_at: int | None = None

    def is_expired(self, now: int) -> bool:
        return now >= self.expires_at

    @property
    def accept_count(self) -> int:
        return sum(1 for v in self.votes.values() if v == DealVoteChoice.ACCEPT)

    @property
    def decline_count(self) -> int:
        return sum(1 for v in self.votes.values() if v == DealVoteChoice.DECLINE)

    @property
    def all_accepted(self) -> bool:
        """Every snapshot player has an accept vote on record."""
        return bool(self.participants) and all(
            self.votes.get(pid) == DealVoteChoice.ACCEPT for pid in self.participants
        )
