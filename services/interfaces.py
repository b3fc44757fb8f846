"""
Service layer interfaces (ABCs).

These abstract base classes define the contracts for the survivor services.
Services inherit from their corresponding interface to keep the command layer
and tests decoupled from concrete implementations.

Usage:
    class MyService(IMyService):
        def my_method(self, param: str) -> Result[dict]:
            ...
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.models.deal import DealRequest, DealVoteChoice, RematchVoteChoice
    from domain.models.fixture import Team
    from domain.models.pick import Pick
    from domain.models.room import Room
    from services.result import Result


class IPickService(ABC):
    """Interface for the per-gameweek pick ledger."""

    @abstractmethod
    def submit_pick(self, room_id: int, player_id: int, gameweek: int, team_id: int) -> "Result[Pick]":
        """Create or replace the player's unlocked pick for a gameweek."""
        ...

    @abstractmethod
    def remove_pick(self, room_id: int, player_id: int, gameweek: int) -> "Result[None]":
        """Delete an unlocked pick before the lock time."""
        ...

    @abstractmethod
    def get_pick(self, room_id: int, player_id: int, gameweek: int) -> "Pick | None":
        ...

    @abstractmethod
    def get_player_picks(self, room_id: int, player_id: int) -> list["Pick"]:
        ...

    @abstractmethod
    def get_available_teams(self, room_id: int, player_id: int, gameweek: int) -> list["Team"]:
        """Teams playing in the gameweek that the player has not used elsewhere."""
        ...


class IEliminationService(ABC):
    """Interface for resolving finished gameweeks."""

    @abstractmethod
    def process_gameweek_results(self, room_id: int, gameweek: int | None = None) -> "Result[dict]":
        """Resolve the room's current gameweek. Idempotent."""
        ...

    @abstractmethod
    def activate_room(self, room_id: int) -> "Result[bool]":
        """Move a waiting room to active once its round-1 picks lock."""
        ...


class IDealService(ABC):
    """Interface for pot-split deal negotiation."""

    @abstractmethod
    def check_deal_trigger(self, room_id: int) -> bool:
        ...

    @abstractmethod
    def create_deal_request(self, room_id: int, player_id: int, gameweek: int | None = None) -> "Result[DealRequest]":
        ...

    @abstractmethod
    def vote_on_deal(self, deal_id: int, player_id: int, vote: "DealVoteChoice") -> "Result[dict]":
        ...

    @abstractmethod
    def expire_stale_deals(self) -> list[int]:
        ...


class IRematchService(ABC):
    """Interface for post-completion rematch negotiation."""

    @abstractmethod
    def vote_on_rematch(self, room_id: int, player_id: int, vote: "RematchVoteChoice") -> "Result[dict]":
        ...


class IRoomService(ABC):
    """Interface for room creation and membership."""

    @abstractmethod
    def create_room(self, host_id: int, name: str, buy_in: int, **options) -> "Result[Room]":
        ...

    @abstractmethod
    def join_room(self, room_id: int, player_id: int) -> "Result[Room]":
        ...

    @abstractmethod
    def leave_room(self, room_id: int, player_id: int) -> "Result[None]":
        ...


class IRoomStatusService(ABC):
    """Interface for derived room status."""

    @abstractmethod
    def get_room_status(self, room_id: int) -> "Result[dict]":
        """Return {status, round, gameweek, display_text, ...} for a room."""
        ...
