"""
Repository layer for data access abstraction.
"""

from repositories.base_repository import BaseRepository
from repositories.deal_repository import DealRepository
from repositories.fixture_repository import FixtureRepository
from repositories.interfaces import (
    FeedUnavailableError,
    IDealRepository,
    IFixtureFeed,
    IPickRepository,
    IRematchRepository,
    IRoomRepository,
)
from repositories.pick_repository import PickRepository
from repositories.rematch_repository import RematchRepository
from repositories.room_repository import RoomRepository

__all__ = [
    "BaseRepository",
    "RoomRepository",
    "PickRepository",
    "DealRepository",
    "RematchRepository",
    "FixtureRepository",
    "FeedUnavailableError",
    "IRoomRepository",
    "IPickRepository",
    "IDealRepository",
    "IRematchRepository",
    "IFixtureFeed",
]
