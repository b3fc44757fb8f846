"""
Service container for dependency injection and initialization.

This module centralizes service creation and wiring so bot.py and the
tests build the same object graph.

Usage:
    container = ServiceContainer(config)
    await container.initialize()

    # Access services
    pick_service = container.pick_service
    elimination_service = container.elimination_service
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from services.deal_service import DealService
    from services.elimination_service import EliminationService
    from services.gameweek_processing_service import GameweekProcessingService
    from services.pick_service import PickService
    from services.player_status_service import PlayerStatusService
    from services.rematch_service import RematchService
    from services.room_service import RoomService
    from services.room_status_service import RoomStatusService
    from services.weekly_brief_service import WeeklyBriefService

from database import Database

# Repositories
from repositories.deal_repository import DealRepository
from repositories.fixture_repository import FixtureRepository
from repositories.pick_repository import PickRepository
from repositories.rematch_repository import RematchRepository
from repositories.room_repository import RoomRepository

logger = logging.getLogger("survivor_bot.infrastructure.container")


@dataclass
class RepositoryContainer:
    """Container for all repositories."""

    room: RoomRepository | None = None
    pick: PickRepository | None = None
    deal: DealRepository | None = None
    rematch: RematchRepository | None = None
    fixture: FixtureRepository | None = None


@dataclass
class ServiceConfig:
    """Configuration for service initialization."""

    # Database
    db_path: str = "survivor_pool.db"

    # Pick locking
    pick_lock_lead_seconds: int = 0

    # Deals
    deal_expiry_seconds: int = 86400  # 24 hours

    # Results processing
    results_max_workers: int = 4
    results_max_retries: int = 3
    results_retry_base_delay: float = 1.0


class ServiceContainer:
    """
    Central container for all application services.

    Handles proper initialization order and dependency injection.

    Example:
        container = ServiceContainer(config)
        await container.initialize()

        # Services are now available
        room_service = container.room_service
    """

    def __init__(self, config: ServiceConfig | None = None):
        """
        Initialize the container with configuration.

        Args:
            config: Service configuration (uses defaults if None)
        """
        self.config = config or ServiceConfig()
        self._initialized = False
        self._repos = RepositoryContainer()

        self._database: Database | None = None
        self._services: dict[str, Any] = {}

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize all services in correct order.

        This method is idempotent - calling it multiple times has no effect.
        """
        if self._initialized:
            logger.debug("ServiceContainer already initialized, skipping")
            return

        logger.info("Initializing ServiceContainer...")

        self._init_database()
        self._init_repositories()
        self._init_game_services()
        self._init_negotiation_services()
        self._init_background_services()

        self._initialized = True
        logger.info("ServiceContainer initialization complete")

    def _init_database(self) -> None:
        """Initialize database and run migrations."""
        logger.debug(f"Initializing database at {self.config.db_path}")
        self._database = Database(self.config.db_path)

    def _init_repositories(self) -> None:
        logger.debug("Initializing repositories")

        db_path = self.config.db_path
        self._repos.room = RoomRepository(db_path)
        self._repos.pick = PickRepository(db_path)
        self._repos.deal = DealRepository(db_path)
        self._repos.rematch = RematchRepository(db_path)
        self._repos.fixture = FixtureRepository(db_path)

    def _init_game_services(self) -> None:
        """Rooms, picks, elimination, status and the weekly brief."""
        logger.debug("Initializing game services")

        from services.elimination_service import EliminationService
        from services.pick_service import PickService
        from services.player_status_service import PlayerStatusService
        from services.room_service import RoomService
        from services.room_status_service import RoomStatusService
        from services.weekly_brief_service import WeeklyBriefService

        lead = self.config.pick_lock_lead_seconds
        self._services["room"] = RoomService(
            room_repo=self._repos.room,
            fixture_feed=self._repos.fixture,
            lock_lead_seconds=lead,
        )
        self._services["pick"] = PickService(
            room_repo=self._repos.room,
            pick_repo=self._repos.pick,
            fixture_feed=self._repos.fixture,
            lock_lead_seconds=lead,
        )
        self._services["elimination"] = EliminationService(
            room_repo=self._repos.room,
            pick_repo=self._repos.pick,
            fixture_feed=self._repos.fixture,
            lock_lead_seconds=lead,
        )
        self._services["room_status"] = RoomStatusService(
            room_repo=self._repos.room,
            fixture_feed=self._repos.fixture,
            lock_lead_seconds=lead,
        )
        self._services["player_status"] = PlayerStatusService(
            room_repo=self._repos.room,
            pick_repo=self._repos.pick,
            fixture_feed=self._repos.fixture,
            lock_lead_seconds=lead,
        )
        self._services["weekly_brief"] = WeeklyBriefService(
            room_repo=self._repos.room,
            pick_repo=self._repos.pick,
            fixture_feed=self._repos.fixture,
            lock_lead_seconds=lead,
        )

    def _init_negotiation_services(self) -> None:
        """Deals and rematches."""
        logger.debug("Initializing negotiation services")

        from services.deal_service import DealService
        from services.rematch_service import RematchService

        self._services["deal"] = DealService(
            room_repo=self._repos.room,
            deal_repo=self._repos.deal,
            expiry_seconds=self.config.deal_expiry_seconds,
        )
        self._services["rematch"] = RematchService(
            room_repo=self._repos.room,
            rematch_repo=self._repos.rematch,
            fixture_feed=self._repos.fixture,
        )

    def _init_background_services(self) -> None:
        logger.debug("Initializing background services")

        from services.gameweek_processing_service import GameweekProcessingService

        self._services["gameweek_processing"] = GameweekProcessingService(
            room_repo=self._repos.room,
            elimination_service=self._services["elimination"],
            deal_service=self._services["deal"],
            max_workers=self.config.results_max_workers,
            max_retries=self.config.results_max_retries,
            retry_base_delay=self.config.results_retry_base_delay,
        )

    # =========================================================================
    # Service accessors
    # =========================================================================

    @property
    def room_repo(self) -> RoomRepository:
        return self._repos.room

    @property
    def pick_repo(self) -> PickRepository:
        return self._repos.pick

    @property
    def deal_repo(self) -> DealRepository:
        return self._repos.deal

    @property
    def rematch_repo(self) -> RematchRepository:
        return self._repos.rematch

    @property
    def fixture_repo(self) -> FixtureRepository:
        return self._repos.fixture

    @property
    def room_service(self) -> "RoomService | None":
        return self._services.get("room")

    @property
    def pick_service(self) -> "PickService | None":
        return self._services.get("pick")

    @property
    def elimination_service(self) -> "EliminationService | None":
        return self._services.get("elimination")

    @property
    def room_status_service(self) -> "RoomStatusService | None":
        return self._services.get("room_status")

    @property
    def player_status_service(self) -> "PlayerStatusService | None":
        return self._services.get("player_status")

    @property
    def weekly_brief_service(self) -> "WeeklyBriefService | None":
        return self._services.get("weekly_brief")

    @property
    def deal_service(self) -> "DealService | None":
        return self._services.get("deal")

    @property
    def rematch_service(self) -> "RematchService | None":
        return self._services.get("rematch")

    @property
    def gameweek_processing_service(self) -> "GameweekProcessingService | None":
        return self._services.get("gameweek_processing")

    def expose_to_bot(self, bot) -> None:
        """
        Expose all services to a Discord bot object.

        Cogs access services via bot.<service_name>.

        Args:
            bot: The Discord bot instance
        """
        # Repositories
        bot.room_repo = self.room_repo
        bot.pick_repo = self.pick_repo
        bot.deal_repo = self.deal_repo
        bot.rematch_repo = self.rematch_repo
        bot.fixture_repo = self.fixture_repo

        # Services
        bot.room_service = self.room_service
        bot.pick_service = self.pick_service
        bot.elimination_service = self.elimination_service
        bot.room_status_service = self.room_status_service
        bot.player_status_service = self.player_status_service
        bot.weekly_brief_service = self.weekly_brief_service
        bot.deal_service = self.deal_service
        bot.rematch_service = self.rematch_service
        bot.gameweek_processing_service = self.gameweek_processing_service

        logger.info("Services exposed to bot object")
