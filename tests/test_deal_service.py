"""
Tests for DealService: proposing, voting on and finalizing pot splits.
"""

import pytest

from domain.models.deal import DealStatus, DealVoteChoice
from domain.models.room import CompletionReason, RoomStatus
from services import error_codes
from tests.conftest import GW1_DEADLINE, HOST_ID, PLAYER_A, PLAYER_B

ACCEPT = DealVoteChoice.ACCEPT
DECLINE = DealVoteChoice.DECLINE


@pytest.fixture
def two_player_room(make_room):
    """Host and one player: a deal is available with the default threshold of 2."""
    return make_room(players=(PLAYER_A,))


class TestCreateDealRequest:
    def test_trigger_checks_remaining_players(self, make_room, deal_service):
        room = make_room(players=(PLAYER_A, PLAYER_B))
        assert deal_service.check_deal_trigger(room.room_id) is False

        result = deal_service.create_deal_request(room.room_id, HOST_ID)

        assert result.error_code == error_codes.DEAL_NOT_AVAILABLE

    def test_higher_threshold_allows_deal(self, make_room, deal_service):
        room = make_room(players=(PLAYER_A, PLAYER_B), deal_threshold=3)

        result = deal_service.create_deal_request(room.room_id, PLAYER_B)

        assert result.success
        assert result.value.participants == sorted([HOST_ID, PLAYER_A, PLAYER_B])

    def test_create_snapshots_players_and_expiry(self, two_player_room, deal_service, clock):
        result = deal_service.create_deal_request(two_player_room.room_id, HOST_ID)

        assert result.success
        request = result.value
        assert request.status == DealStatus.PENDING
        assert request.participants == [HOST_ID, PLAYER_A]
        assert request.gameweek == 1
        assert request.expires_at == clock.now + 86400

    def test_only_one_pending_request(self, two_player_room, deal_service):
        deal_service.create_deal_request(two_player_room.room_id, HOST_ID)

        result = deal_service.create_deal_request(two_player_room.room_id, PLAYER_A)

        assert result.error_code == error_codes.DEAL_ALREADY_PENDING

    def test_outsider_cannot_propose(self, two_player_room, deal_service):
        result = deal_service.create_deal_request(two_player_room.room_id, 55555)

        assert result.error_code == error_codes.NOT_ACTIVE_PLAYER

    def test_expired_request_does_not_block_new_one(self, two_player_room, deal_service, clock):
        first = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value
        clock.advance(86400)

        second = deal_service.create_deal_request(two_player_room.room_id, PLAYER_A)

        assert second.success
        assert second.value.deal_id != first.deal_id


class TestVoteOnDeal:
    def test_all_accept_finalizes(self, two_player_room, deal_service, room_repository):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value

        first = deal_service.vote_on_deal(request.deal_id, HOST_ID, ACCEPT)
        assert first.value["finalized"] is False
        assert first.value["accepted"] == 1

        second = deal_service.vote_on_deal(request.deal_id, PLAYER_A, ACCEPT)

        assert second.success
        assert second.value["finalized"] is True
        assert second.value["payouts"] == {HOST_ID: 1000, PLAYER_A: 1000}
        room = room_repository.get_room(two_player_room.room_id)
        assert room.status == RoomStatus.COMPLETED
        assert room.completed_reason == CompletionReason.DEAL
        assert room_repository.get_room_player(room.room_id, PLAYER_A).payout == 1000

    def test_decline_blocks_finalization(self, two_player_room, deal_service, room_repository):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value
        deal_service.vote_on_deal(request.deal_id, HOST_ID, ACCEPT)

        result = deal_service.vote_on_deal(request.deal_id, PLAYER_A, DECLINE)

        assert result.value["finalized"] is False
        assert result.value["declined"] == 1
        assert room_repository.get_room(two_player_room.room_id).status == RoomStatus.WAITING

    def test_vote_can_change_until_expiry(self, two_player_room, deal_service):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value
        deal_service.vote_on_deal(request.deal_id, PLAYER_A, DECLINE)
        deal_service.vote_on_deal(request.deal_id, HOST_ID, ACCEPT)

        result = deal_service.vote_on_deal(request.deal_id, PLAYER_A, ACCEPT)

        assert result.value["finalized"] is True

    def test_same_vote_twice(self, two_player_room, deal_service):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value
        deal_service.vote_on_deal(request.deal_id, HOST_ID, DECLINE)

        result = deal_service.vote_on_deal(request.deal_id, HOST_ID, DECLINE)

        assert result.error_code == error_codes.ALREADY_VOTED

    def test_non_participant_cannot_vote(self, two_player_room, deal_service):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value

        result = deal_service.vote_on_deal(request.deal_id, PLAYER_B, ACCEPT)

        assert result.error_code == error_codes.NOT_ACTIVE_PLAYER

    def test_vote_after_expiry(self, two_player_room, deal_service, deal_repository, clock):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value
        clock.set(request.expires_at)

        result = deal_service.vote_on_deal(request.deal_id, HOST_ID, ACCEPT)

        assert result.error_code == error_codes.REQUEST_EXPIRED
        assert deal_repository.get_request(request.deal_id).status == DealStatus.EXPIRED
        assert deal_service.get_active_deal(two_player_room.room_id) is None

    def test_unknown_deal(self, deal_service):
        assert deal_service.vote_on_deal(404, HOST_ID, ACCEPT).error_code == error_codes.NOT_FOUND

    def test_get_deal_votes(self, two_player_room, deal_service):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value
        deal_service.vote_on_deal(request.deal_id, PLAYER_A, DECLINE)

        assert deal_service.get_deal_votes(request.deal_id) == {PLAYER_A: DECLINE}


class TestDealAndRounds:
    def test_deal_completion_skips_elimination(
        self, two_player_room, deal_service, pick_service, elimination_service,
        room_repository, finish_gameweek, clock,
    ):
        """2 active, deal accepted by both: completed, nobody eliminated that gameweek."""
        room_id = two_player_room.room_id
        pick_service.submit_pick(room_id, HOST_ID, 1, 1)
        pick_service.submit_pick(room_id, PLAYER_A, 1, 2)
        request = deal_service.create_deal_request(room_id, HOST_ID).value
        deal_service.vote_on_deal(request.deal_id, HOST_ID, ACCEPT)
        deal_service.vote_on_deal(request.deal_id, PLAYER_A, ACCEPT)

        clock.set(GW1_DEADLINE + 10_000)
        finish_gameweek(1, {101: (3, 0)})
        result = elimination_service.process_gameweek_results(room_id)

        assert result.success
        assert result.value["applied"] is False
        counts = room_repository.count_players_by_status(room_id)
        assert counts["eliminated"] == 0

    def test_round_resolution_expires_pending_deal(
        self, make_room, deal_service, pick_service, elimination_service, deal_repository,
        finish_gameweek, clock,
    ):
        room = make_room(players=(PLAYER_A, PLAYER_B), deal_threshold=3)
        for player_id, team_id in ((HOST_ID, 1), (PLAYER_A, 3), (PLAYER_B, 5)):
            pick_service.submit_pick(room.room_id, player_id, 1, team_id)
        request = deal_service.create_deal_request(room.room_id, HOST_ID).value

        clock.set(GW1_DEADLINE + 10_000)
        finish_gameweek(1, {101: (1, 0), 102: (1, 0), 103: (1, 0)})
        elimination_service.process_gameweek_results(room.room_id)

        assert deal_repository.get_request(request.deal_id).status == DealStatus.EXPIRED
        assert deal_service.get_active_deal(room.room_id) is None

    def test_expire_stale_deals(self, two_player_room, deal_service, clock):
        request = deal_service.create_deal_request(two_player_room.room_id, HOST_ID).value

        assert deal_service.expire_stale_deals() == []
        clock.advance(86400)
        assert deal_service.expire_stale_deals() == [request.deal_id]


class TestFinalizeGuards:
    """finalize_deal_atomic only ever completes a room once."""

    def test_second_finalize_is_rejected(
        self, two_player_room, deal_service, deal_repository, room_repository, clock
    ):
        room_id = two_player_room.room_id
        request = deal_service.create_deal_request(room_id, HOST_ID).value
        payouts = {HOST_ID: 1000, PLAYER_A: 1000}

        assert deal_repository.finalize_deal_atomic(request.deal_id, payouts, clock.now) is True
        room_before = room_repository.get_room(room_id)
        players_before = room_repository.get_room_players(room_id)

        clock.advance(30)
        again = deal_repository.finalize_deal_atomic(request.deal_id, {HOST_ID: 2000}, clock.now)

        assert again is False
        assert room_repository.get_room(room_id) == room_before
        assert room_repository.get_room_players(room_id) == players_before
        assert deal_repository.get_request(request.deal_id).status == DealStatus.ACCEPTED

    def test_room_completed_elsewhere_rolls_back_deal(
        self, two_player_room, deal_service, deal_repository, room_repository, clock
    ):
        room_id = two_player_room.room_id
        request = deal_service.create_deal_request(room_id, HOST_ID).value
        with room_repository.connection() as conn:
            conn.execute(
                "UPDATE rooms SET status = 'completed', completed_reason = 'winner' WHERE room_id = ?",
                (room_id,),
            )

        finalized = deal_repository.finalize_deal_atomic(
            request.deal_id, {HOST_ID: 1000, PLAYER_A: 1000}, clock.now
        )

        assert finalized is False
        assert deal_repository.get_request(request.deal_id).status == DealStatus.PENDING
        room = room_repository.get_room(room_id)
        assert room.completed_reason == CompletionReason.WINNER
        assert room_repository.get_room_player(room_id, PLAYER_A).payout is None

    def test_last_accept_after_room_completed_reports_not_finalized(
        self, two_player_room, deal_service, room_repository
    ):
        room_id = two_player_room.room_id
        request = deal_service.create_deal_request(room_id, HOST_ID).value
        deal_service.vote_on_deal(request.deal_id, HOST_ID, ACCEPT)
        with room_repository.connection() as conn:
            conn.execute(
                "UPDATE rooms SET status = 'completed', completed_reason = 'winner' WHERE room_id = ?",
                (room_id,),
            )

        result = deal_service.vote_on_deal(request.deal_id, PLAYER_A, ACCEPT)

        assert result.success
        assert result.value["finalized"] is False
        assert result.value["payouts"] == {}
