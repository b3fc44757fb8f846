"""
Background results processing across all rooms.

Run periodically by the bot's task loop. Every step is idempotent, so a run
that fails halfway is simply repeated on the next tick.
"""

import logging
import sqlite3
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from config import RESULTS_MAX_RETRIES, RESULTS_MAX_WORKERS, RESULTS_RETRY_BASE_DELAY
from domain.models.room import Room, RoomStatus
from repositories.interfaces import FeedUnavailableError, IRoomRepository
from services import error_codes
from services.deal_service import DealService
from services.elimination_service import EliminationService

logger = logging.getLogger("survivor_bot.services.gameweek_processing")

RETRYABLE_ERRORS = (FeedUnavailableError, sqlite3.OperationalError)


class GameweekProcessingService:
    """
    Expires stale deals, activates rooms whose first picks have locked and
    resolves every room whose current gameweek has finished.
    """

    def __init__(
        self,
        room_repo: IRoomRepository,
        elimination_service: EliminationService,
        deal_service: DealService,
        max_workers: int | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.room_repo = room_repo
        self.elimination_service = elimination_service
        self.deal_service = deal_service
        self.max_workers = max_workers if max_workers is not None else RESULTS_MAX_WORKERS
        self.max_retries = max_retries if max_retries is not None else RESULTS_MAX_RETRIES
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else RESULTS_RETRY_BASE_DELAY
        )
        self.sleep = sleep or time.sleep

    def _with_retries(self, fn: Callable, description: str):
        """Call fn, retrying infrastructure errors with exponential backoff."""
        attempt = 0
        while True:
            try:
                return fn()
            except RETRYABLE_ERRORS as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.retry_base_delay * (2**attempt)
                attempt += 1
                logger.warning(
                    f"{description} failed ({e}), retry {attempt}/{self.max_retries} in {delay:.1f}s"
                )
                self.sleep(delay)

    def process_room(self, room: Room) -> dict:
        """Activate and/or resolve one room. Never raises."""
        room_id = room.room_id
        summary = {"room_id": room_id, "status": "skipped", "activated": False}
        try:
            if room.status == RoomStatus.WAITING:
                activation = self._with_retries(
                    lambda: self.elimination_service.activate_room(room_id),
                    f"Activating room {room_id}",
                )
                summary["activated"] = bool(activation.success and activation.value)

            result = self._with_retries(
                lambda: self.elimination_service.process_gameweek_results(room_id),
                f"Processing room {room_id}",
            )
        except Exception as e:
            logger.exception(f"Error processing room {room_id}: {e}")
            summary["status"] = "error"
            summary["error"] = str(e)
            return summary

        if result.success:
            summary["status"] = "processed" if result.value.get("applied") else "unchanged"
            summary["result"] = result.value
        elif result.error_code == error_codes.GAMEWEEK_NOT_FINISHED:
            summary["status"] = "waiting_for_results"
        elif result.error_code == error_codes.ROOM_INCONSISTENT:
            summary["status"] = "flagged"
            summary["error"] = result.error
        else:
            summary["status"] = "failed"
            summary["error"] = result.error
        return summary

    def process_all_rooms(self) -> dict:
        """
        One polling pass over every open room.

        Returns:
            Dict with:
            - expired_deals: list of deal ids expired this pass
            - processed / unchanged / waiting / flagged / errors: counts
            - details: per-room summaries
        """
        results = {
            "expired_deals": [],
            "processed": 0,
            "unchanged": 0,
            "waiting": 0,
            "flagged": 0,
            "skipped": 0,
            "errors": 0,
            "details": [],
        }

        try:
            results["expired_deals"] = self._with_retries(
                self.deal_service.expire_stale_deals, "Expiring stale deals"
            )
        except Exception as e:
            logger.exception(f"Error expiring stale deals: {e}")
            results["errors"] += 1

        rooms = self.room_repo.list_rooms([RoomStatus.WAITING, RoomStatus.ACTIVE])
        runnable = []
        for room in rooms:
            if room.needs_attention:
                logger.debug(f"Skipping room {room.room_id}: {room.attention_reason}")
                results["skipped"] += 1
                continue
            runnable.append(room)

        if runnable:
            with ThreadPoolExecutor(max_workers=max(1, self.max_workers)) as pool:
                summaries = list(pool.map(self.process_room, runnable))
        else:
            summaries = []

        for summary in summaries:
            results["details"].append(summary)
            status = summary["status"]
            if status == "processed":
                results["processed"] += 1
            elif status == "unchanged":
                results["unchanged"] += 1
            elif status == "waiting_for_results":
                results["waiting"] += 1
            elif status == "flagged":
                results["flagged"] += 1
            elif status in ("error", "failed"):
                results["errors"] += 1

        logger.info(
            f"Results pass complete: {results['processed']} processed, "
            f"{results['waiting']} waiting, {results['flagged']} flagged, "
            f"{results['skipped']} skipped, {results['errors']} errors, "
            f"{len(results['expired_deals'])} deals expired"
        )
        return results
