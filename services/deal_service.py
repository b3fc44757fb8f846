"""
Service for pot-split deals.

When few enough players remain (room.deal_threshold), any of them may propose
splitting the pot. The deal goes through only if every player active at
proposal time accepts before the request expires.
"""

import logging
import time
from collections.abc import Callable

from config import DEAL_EXPIRY_SECONDS
from domain.models.deal import DealRequest, DealStatus, DealVoteChoice
from domain.services.payouts import split_pot_evenly
from repositories.interfaces import IDealRepository, IRoomRepository
from services import error_codes
from services.interfaces import IDealService
from services.result import Result

logger = logging.getLogger("survivor_bot.services.deal")


class DealService(IDealService):
    """Handles deal requests, votes and finalization."""

    def __init__(
        self,
        room_repo: IRoomRepository,
        deal_repo: IDealRepository,
        expiry_seconds: int | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.room_repo = room_repo
        self.deal_repo = deal_repo
        self.expiry_seconds = expiry_seconds if expiry_seconds is not None else DEAL_EXPIRY_SECONDS
        self.clock = clock or time.time

    def _now(self) -> int:
        return int(self.clock())

    def _in_play_ids(self, room_id: int) -> list[int]:
        return sorted(p.player_id for p in self.room_repo.get_room_players(room_id) if p.is_in_play)

    def check_deal_trigger(self, room_id: int) -> bool:
        """Whether a deal may currently be proposed in the room."""
        room = self.room_repo.get_room(room_id)
        if room is None or room.is_completed:
            return False
        return room.deal_available(len(self._in_play_ids(room_id)))

    def create_deal_request(
        self, room_id: int, player_id: int, gameweek: int | None = None
    ) -> Result[DealRequest]:
        """
        Propose a pot split, snapshotting the players currently in play.
        """
        room = self.room_repo.get_room(room_id)
        if room is None:
            return Result.fail("Room not found.", code=error_codes.ROOM_NOT_FOUND)
        if room.is_completed:
            return Result.fail("This room has already finished.", code=error_codes.ROOM_COMPLETED)

        now = self._now()
        pending = self.deal_repo.get_pending_request(room_id)
        if pending is not None and not pending.is_expired(now):
            return Result.fail(
                "A deal is already being voted on in this room.",
                code=error_codes.DEAL_ALREADY_PENDING,
            )

        snapshot = self._in_play_ids(room_id)
        if not room.deal_available(len(snapshot)):
            return Result.fail(
                f"Deals are only available with 2 to {room.deal_threshold} players remaining.",
                code=error_codes.DEAL_NOT_AVAILABLE,
            )
        if player_id not in snapshot:
            return Result.fail(
                "Only players still in the game can propose a deal.",
                code=error_codes.NOT_ACTIVE_PLAYER,
            )

        deal_id = self.deal_repo.create_request_atomic(
            room_id,
            player_id,
            gameweek if gameweek is not None else room.current_gameweek,
            snapshot,
            now,
            now + self.expiry_seconds,
        )
        if deal_id is None:
            return Result.fail(
                "A deal is already being voted on in this room.",
                code=error_codes.DEAL_ALREADY_PENDING,
            )
        logger.info(f"Deal {deal_id} proposed in room {room_id} by {player_id} for players {snapshot}")
        return Result.ok(self.deal_repo.get_request(deal_id))

    def vote_on_deal(self, deal_id: int, player_id: int, vote: DealVoteChoice) -> Result[dict]:
        """
        Record a vote. Votes may be changed until the request expires.

        The deal finalizes as soon as every snapshot player has accepted.
        """
        request = self.deal_repo.get_request(deal_id)
        if request is None:
            return Result.fail("Deal not found.", code=error_codes.NOT_FOUND)
        if request.status == DealStatus.EXPIRED:
            return Result.fail("This deal has expired.", code=error_codes.REQUEST_EXPIRED)
        if request.status != DealStatus.PENDING:
            return Result.fail("This deal is no longer open.", code=error_codes.STATE_ERROR)
        if player_id not in request.participants:
            return Result.fail(
                "Only players who were active when the deal was proposed can vote.",
                code=error_codes.NOT_ACTIVE_PLAYER,
            )

        now = self._now()
        if request.is_expired(now):
            self.deal_repo.mark_expired(deal_id, now)
            logger.info(f"Deal {deal_id} expired before vote from {player_id}")
            return Result.fail("This deal has expired.", code=error_codes.REQUEST_EXPIRED)
        if request.votes.get(player_id) == vote:
            return Result.fail(
                f"You have already voted to {vote.value}.", code=error_codes.ALREADY_VOTED
            )

        self.deal_repo.upsert_vote(deal_id, player_id, vote, now)
        request = self.deal_repo.get_request(deal_id)

        finalized = False
        payouts: dict[int, int] = {}
        if request.all_accepted:
            room = self.room_repo.get_room(request.room_id)
            payouts = split_pot_evenly(room.prize_pot, request.participants)
            finalized = self.deal_repo.finalize_deal_atomic(deal_id, payouts, now)
            if finalized:
                logger.info(f"Room {request.room_id} completed by deal {deal_id}, payouts {payouts}")
            else:
                payouts = {}

        return Result.ok(
            {
                "deal_id": deal_id,
                "room_id": request.room_id,
                "accepted": request.accept_count,
                "declined": request.decline_count,
                "required": len(request.participants),
                "finalized": finalized,
                "payouts": payouts,
            }
        )

    def get_active_deal(self, room_id: int) -> DealRequest | None:
        """The room's pending, unexpired deal request, if any."""
        request = self.deal_repo.get_pending_request(room_id)
        if request is None:
            return None
        now = self._now()
        if request.is_expired(now):
            self.deal_repo.mark_expired(request.deal_id, now)
            return None
        return request

    def get_deal_votes(self, deal_id: int) -> dict[int, DealVoteChoice]:
        request = self.deal_repo.get_request(deal_id)
        return dict(request.votes) if request else {}

    def expire_stale_deals(self) -> list[int]:
        expired = self.deal_repo.expire_stale_requests(self._now())
        if expired:
            logger.info(f"Expired deal requests: {expired}")
        return expired
