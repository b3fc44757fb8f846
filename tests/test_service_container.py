"""Tests for ServiceContainer."""

import os
import tempfile
import time

import pytest

from infrastructure.service_container import ServiceConfig, ServiceContainer


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    time.sleep(0.1)  # Windows file locking
    try:
        os.unlink(path)
    except Exception:
        pass


@pytest.fixture
def config(temp_db_path):
    """Create a test configuration."""
    return ServiceConfig(
        db_path=temp_db_path,
        pick_lock_lead_seconds=300,
        deal_expiry_seconds=3600,
        results_max_workers=2,
    )


SERVICE_NAMES = [
    "room_service",
    "pick_service",
    "elimination_service",
    "room_status_service",
    "player_status_service",
    "weekly_brief_service",
    "deal_service",
    "rematch_service",
    "gameweek_processing_service",
]

REPO_NAMES = ["room_repo", "pick_repo", "deal_repo", "rematch_repo", "fixture_repo"]


class TestServiceContainerInitialization:
    """Tests for ServiceContainer initialization."""

    @pytest.mark.asyncio
    async def test_initialize_creates_all_repositories(self, config):
        """All repositories are created after initialization."""
        container = ServiceContainer(config)
        await container.initialize()

        for name in REPO_NAMES:
            assert getattr(container, name) is not None, name

    @pytest.mark.asyncio
    async def test_initialize_creates_all_services(self, config):
        """All services are created after initialization."""
        container = ServiceContainer(config)
        await container.initialize()

        for name in SERVICE_NAMES:
            assert getattr(container, name) is not None, name

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, config):
        """Calling initialize multiple times is safe."""
        container = ServiceContainer(config)

        await container.initialize()
        first_pick_service = container.pick_service

        await container.initialize()

        assert container.pick_service is first_pick_service

    @pytest.mark.asyncio
    async def test_is_initialized_flag(self, config):
        """is_initialized returns correct state."""
        container = ServiceContainer(config)

        assert container.is_initialized is False
        assert container.room_service is None

        await container.initialize()

        assert container.is_initialized is True


class TestServiceConfigValues:
    """Configuration values reach the services."""

    @pytest.mark.asyncio
    async def test_lock_lead_and_expiry_are_applied(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        assert container.pick_service.lock_lead_seconds == 300
        assert container.elimination_service.lock_lead_seconds == 300
        assert container.deal_service.expiry_seconds == 3600
        assert container.gameweek_processing_service.max_workers == 2


class TestServiceContainerBotExposure:
    """Tests for expose_to_bot functionality."""

    @pytest.mark.asyncio
    async def test_expose_to_bot_sets_attributes(self, config):
        """expose_to_bot sets all expected attributes on bot."""
        container = ServiceContainer(config)
        await container.initialize()

        class MockBot:
            pass

        bot = MockBot()
        container.expose_to_bot(bot)

        for name in REPO_NAMES + SERVICE_NAMES:
            assert getattr(bot, name) is getattr(container, name), name


class TestServiceDependencies:
    """Tests for proper service dependency wiring."""

    @pytest.mark.asyncio
    async def test_services_share_repositories(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        assert container.pick_service.room_repo is container.room_repo
        assert container.elimination_service.pick_repo is container.pick_repo
        assert container.rematch_service.fixture_feed is container.fixture_repo

    @pytest.mark.asyncio
    async def test_processing_uses_container_services(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        processing = container.gameweek_processing_service
        assert processing.elimination_service is container.elimination_service
        assert processing.deal_service is container.deal_service
