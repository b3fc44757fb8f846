"""
Application services layer.

Services orchestrate business operations using repositories and domain services.
"""

from services.deal_service import DealService
from services.elimination_service import EliminationService
from services.gameweek_processing_service import GameweekProcessingService
from services.permissions import has_admin_permission, has_allowlisted_admin
from services.pick_service import PickService
from services.player_status_service import PlayerStatusService
from services.rematch_service import RematchService
from services.room_service import RoomService
from services.room_status_service import RoomStatusService

# Result type for consistent error handling
from services.result import Result

# Service interfaces (ABCs)
from services.interfaces import (
    IDealService,
    IEliminationService,
    IPickService,
    IRematchService,
    IRoomService,
    IRoomStatusService,
)

__all__ = [
    # Concrete services
    "RoomService",
    "PickService",
    "EliminationService",
    "DealService",
    "RematchService",
    "RoomStatusService",
    "PlayerStatusService",
    "GameweekProcessingService",
    # Permissions
    "has_admin_permission",
    "has_allowlisted_admin",
    # Result type
    "Result",
    # Interfaces
    "IRoomService",
    "IPickService",
    "IEliminationService",
    "IDealService",
    "IRematchService",
    "IRoomStatusService",
]
