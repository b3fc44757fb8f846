"""
Abstract repository interfaces for data access.

These interfaces define the contracts implemented by concrete repositories.
"""

from abc import ABC, abstractmethod

from domain.models.deal import DealRequest, DealVoteChoice, RematchVoteChoice
from domain.models.fixture import Fixture, Gameweek, Team
from domain.models.pick import Pick
from domain.models.room import PlayerStatus, Room, RoomPlayer, RoomStatus
from domain.services.elimination_rules import RoundResolution


class FeedUnavailableError(Exception):
    """The upstream fixture feed could not be read. Safe to retry."""


class IFixtureFeed(ABC):
    """Read side of the upstream fixture/result feed."""

    @abstractmethod
    def list_fixtures(self, gameweek: int) -> list[Fixture]: ...

    @abstractmethod
    def is_gameweek_finished(self, gameweek: int) -> bool: ...

    @abstractmethod
    def get_gameweek(self, gameweek: int) -> Gameweek | None: ...

    @abstractmethod
    def list_gameweeks(self) -> list[Gameweek]: ...

    @abstractmethod
    def get_next_unfinished_gameweek(self, after_gameweek: int) -> int | None:
        """Smallest gameweek number greater than after_gameweek not marked finished."""
        ...

    @abstractmethod
    def get_next_open_gameweek(self, now: int) -> int | None:
        """Smallest unfinished gameweek whose deadline is still in the future."""
        ...

    @abstractmethod
    def list_teams(self) -> list[Team]: ...

    @abstractmethod
    def get_team(self, team_id: int) -> Team | None: ...

    @abstractmethod
    def find_team(self, query: str) -> Team | None:
        """Case-insensitive match on name or short name."""
        ...


class IRoomRepository(ABC):
    @abstractmethod
    def create_room(
        self,
        name: str,
        host_id: int,
        buy_in: int,
        max_players: int,
        is_public: bool,
        invite_code: str,
        current_gameweek: int,
        deal_threshold: int,
        no_pick_policy: str,
        dgw_rule: str,
        now: int,
        description: str | None = None,
    ) -> int: ...

    @abstractmethod
    def get_room(self, room_id: int) -> Room | None: ...

    @abstractmethod
    def get_room_by_invite_code(self, invite_code: str) -> Room | None: ...

    @abstractmethod
    def invite_code_exists(self, invite_code: str) -> bool: ...

    @abstractmethod
    def list_rooms(self, statuses: list[RoomStatus] | None = None) -> list[Room]: ...

    @abstractmethod
    def list_public_rooms(self, exclude_player_id: int | None = None) -> list[Room]: ...

    @abstractmethod
    def get_player_rooms(self, player_id: int) -> list[Room]: ...

    @abstractmethod
    def add_player_atomic(self, room_id: int, player_id: int, now: int) -> str:
        """Returns 'added', 'exists' or 'full'."""
        ...

    @abstractmethod
    def remove_player(self, room_id: int, player_id: int) -> bool: ...

    @abstractmethod
    def get_room_player(self, room_id: int, player_id: int) -> RoomPlayer | None: ...

    @abstractmethod
    def get_room_players(self, room_id: int) -> list[RoomPlayer]: ...

    @abstractmethod
    def count_players_by_status(self, room_id: int) -> dict[str, int]: ...

    @abstractmethod
    def update_player_status(
        self, room_id: int, player_id: int, from_status: PlayerStatus, to_status: PlayerStatus
    ) -> bool: ...

    @abstractmethod
    def activate_room(self, room_id: int, now: int) -> bool: ...

    @abstractmethod
    def flag_room(self, room_id: int, reason: str, now: int) -> None: ...

    @abstractmethod
    def clear_attention(self, room_id: int, now: int) -> bool: ...

    @abstractmethod
    def apply_round_resolution_atomic(self, resolution: RoundResolution, payouts: dict[int, int], now: int) -> bool:
        """Persist a resolved round. Returns False if the round was already applied."""
        ...

    @abstractmethod
    def set_last_notified_gameweek(self, room_id: int, player_id: int, gameweek: int) -> bool: ...


class IPickRepository(ABC):
    @abstractmethod
    def get_pick(self, room_id: int, player_id: int, gameweek: int) -> Pick | None: ...

    @abstractmethod
    def get_picks_for_gameweek(self, room_id: int, gameweek: int) -> dict[int, Pick]: ...

    @abstractmethod
    def get_player_picks(self, room_id: int, player_id: int) -> list[Pick]: ...

    @abstractmethod
    def get_used_team_ids(self, room_id: int, player_id: int, exclude_gameweek: int | None = None) -> set[int]: ...

    @abstractmethod
    def get_used_teams_by_player(self, room_id: int, exclude_gameweek: int) -> dict[int, set[int]]:
        """Teams each player has picked in the room in every other gameweek."""
        ...

    @abstractmethod
    def upsert_pick_atomic(self, room_id: int, player_id: int, gameweek: int, team_id: int, now: int) -> str:
        """Returns 'saved', 'locked' or 'team_used'."""
        ...

    @abstractmethod
    def delete_pick(self, room_id: int, player_id: int, gameweek: int) -> bool: ...


class IDealRepository(ABC):
    @abstractmethod
    def create_request_atomic(
        self,
        room_id: int,
        initiated_by: int,
        gameweek: int,
        participants: list[int],
        now: int,
        expires_at: int,
    ) -> int | None:
        """Create a pending request. Returns None if one is already pending."""
        ...

    @abstractmethod
    def get_request(self, deal_id: int) -> DealRequest | None: ...

    @abstractmethod
    def get_pending_request(self, room_id: int) -> DealRequest | None: ...

    @abstractmethod
    def upsert_vote(self, deal_id: int, player_id: int, vote: DealVoteChoice, now: int) -> None: ...

    @abstractmethod
    def mark_expired(self, deal_id: int, now: int) -> bool: ...

    @abstractmethod
    def expire_stale_requests(self, now: int) -> list[int]: ...

    @abstractmethod
    def finalize_deal_atomic(self, deal_id: int, payouts: dict[int, int], now: int) -> bool: ...


class IRematchRepository(ABC):
    @abstractmethod
    def upsert_vote(self, room_id: int, player_id: int, vote: RematchVoteChoice, now: int) -> None: ...

    @abstractmethod
    def get_votes(self, room_id: int) -> dict[int, RematchVoteChoice]: ...

    @abstractmethod
    def reset_room_for_rematch_atomic(
        self, room_id: int, remove_player_ids: list[int], next_gameweek: int, now: int
    ) -> bool: ...
