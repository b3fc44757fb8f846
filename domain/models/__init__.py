"""
Domain models - pure data structures representing business entities.
"""

from domain.models.deal import DealRequest, DealStatus, DealVoteChoice, RematchVoteChoice
from domain.models.fixture import Fixture, FixtureStatus, Gameweek, Team
from domain.models.pick import Pick, PickResult
from domain.models.room import (
    CompletionReason,
    DoubleGameweekRule,
    NoPickPolicy,
    PlayerStatus,
    Room,
    RoomPlayer,
    RoomStatus,
)

__all__ = [
    "CompletionReason",
    "DealRequest",
    "DealStatus",
    "DealVoteChoice",
    "DoubleGameweekRule",
    "Fixture",
    "FixtureStatus",
    "Gameweek",
    "NoPickPolicy",
    "Pick",
    "PickResult",
    "PlayerStatus",
    "RematchVoteChoice",
    "Room",
    "RoomPlayer",
    "RoomStatus",
    "Team",
]
