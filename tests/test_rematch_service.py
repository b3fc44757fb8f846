"""
Tests for RematchService voting and the room reset it triggers.
"""

import pytest

from domain.models.deal import RematchVoteChoice
from domain.models.room import PlayerStatus, RoomStatus
from services import error_codes
from tests.conftest import GW1_DEADLINE, HOST_ID, PLAYER_A, PLAYER_B

YES = RematchVoteChoice.YES
NO = RematchVoteChoice.NO


@pytest.fixture
def completed_room(make_room, pick_service, elimination_service, finish_gameweek, clock):
    """Three-player room won by the host in gameweek 1."""
    room = make_room(players=(PLAYER_A, PLAYER_B))
    pick_service.submit_pick(room.room_id, HOST_ID, 1, 1)
    pick_service.submit_pick(room.room_id, PLAYER_A, 1, 2)
    pick_service.submit_pick(room.room_id, PLAYER_B, 1, 3)
    clock.set(GW1_DEADLINE + 10_000)
    finish_gameweek(1, {101: (2, 0), 102: (0, 1)})
    result = elimination_service.process_gameweek_results(room.room_id)
    assert result.value["status"] == "completed"
    return room


class TestVoteOnRematch:
    def test_requires_completed_room(self, make_room, rematch_service):
        room = make_room()

        result = rematch_service.vote_on_rematch(room.room_id, HOST_ID, YES)

        assert result.error_code == error_codes.STATE_ERROR

    def test_non_member(self, completed_room, rematch_service):
        result = rematch_service.vote_on_rematch(completed_room.room_id, 77777, YES)

        assert result.error_code == error_codes.NOT_IN_ROOM

    def test_waits_for_every_vote(self, completed_room, rematch_service, room_repository):
        result = rematch_service.vote_on_rematch(completed_room.room_id, HOST_ID, YES)

        assert result.success
        assert result.value["started"] is False
        assert result.value["yes"] == [HOST_ID]
        assert result.value["required"] == 3
        assert room_repository.get_room(completed_room.room_id).status == RoomStatus.COMPLETED

    def test_two_yes_one_no_starts_rematch(
        self, completed_room, rematch_service, room_repository, pick_repository
    ):
        """Completed room, 3 players, 2 yes / 1 no: no-voter removed, 2 active, round 1."""
        room_id = completed_room.room_id
        rematch_service.vote_on_rematch(room_id, HOST_ID, YES)
        rematch_service.vote_on_rematch(room_id, PLAYER_A, YES)

        result = rematch_service.vote_on_rematch(room_id, PLAYER_B, NO)

        assert result.value["started"] is True
        assert result.value["gameweek"] == 2
        room = room_repository.get_room(room_id)
        assert room.status == RoomStatus.WAITING
        assert room.current_round == 1
        assert room.current_gameweek == 2
        assert room.completed_reason is None
        assert room.prize_pot == 2000

        players = room_repository.get_room_players(room_id)
        assert sorted(p.player_id for p in players) == [HOST_ID, PLAYER_A]
        assert all(p.status == PlayerStatus.ACTIVE for p in players)
        assert all(p.eliminated_gameweek is None and p.payout is None for p in players)

        assert pick_repository.get_player_picks(room_id, HOST_ID) == []
        assert rematch_service.get_rematch_votes(room_id) == {}

    def test_declining_host_hands_room_to_remaining_player(
        self, completed_room, rematch_service, room_service, room_repository
    ):
        room_id = completed_room.room_id
        rematch_service.vote_on_rematch(room_id, PLAYER_A, YES)
        rematch_service.vote_on_rematch(room_id, PLAYER_B, YES)

        result = rematch_service.vote_on_rematch(room_id, HOST_ID, NO)

        assert result.value["started"] is True
        room = room_repository.get_room(room_id)
        assert room.host_id == PLAYER_A
        assert room_repository.get_room_player(room_id, HOST_ID) is None

        # The new host is protected by the host-cannot-leave rule
        leave = room_service.leave_room(room_id, PLAYER_A)
        assert leave.error_code == error_codes.PERMISSION_DENIED
        assert sorted(p.player_id for p in room_repository.get_room_players(room_id)) == [
            PLAYER_A,
            PLAYER_B,
        ]

    def test_host_kept_when_host_votes_yes(self, completed_room, rematch_service, room_repository):
        room_id = completed_room.room_id
        rematch_service.vote_on_rematch(room_id, HOST_ID, YES)
        rematch_service.vote_on_rematch(room_id, PLAYER_A, NO)
        rematch_service.vote_on_rematch(room_id, PLAYER_B, YES)

        assert room_repository.get_room(room_id).host_id == HOST_ID

    def test_too_few_yes_keeps_room_completed(self, completed_room, rematch_service, room_repository):
        room_id = completed_room.room_id
        rematch_service.vote_on_rematch(room_id, HOST_ID, YES)
        rematch_service.vote_on_rematch(room_id, PLAYER_A, NO)

        result = rematch_service.vote_on_rematch(room_id, PLAYER_B, NO)

        assert result.value["started"] is False
        assert room_repository.get_room(room_id).status == RoomStatus.COMPLETED
        assert len(room_repository.get_room_players(room_id)) == 3
        assert rematch_service.get_rematch_votes(room_id)[PLAYER_A] == NO

    def test_changed_vote_can_start_rematch(self, completed_room, rematch_service):
        room_id = completed_room.room_id
        rematch_service.vote_on_rematch(room_id, HOST_ID, YES)
        rematch_service.vote_on_rematch(room_id, PLAYER_A, NO)
        rematch_service.vote_on_rematch(room_id, PLAYER_B, NO)

        result = rematch_service.vote_on_rematch(room_id, PLAYER_B, YES)

        assert result.value["started"] is True
        assert result.value["no"] == [PLAYER_A]

    def test_rematch_room_can_be_played(
        self, completed_room, rematch_service, pick_service, clock
    ):
        room_id = completed_room.room_id
        for player_id in (HOST_ID, PLAYER_A, PLAYER_B):
            rematch_service.vote_on_rematch(room_id, player_id, YES)

        # Teams used in the previous game are available again
        assert pick_service.submit_pick(room_id, HOST_ID, 2, 1).success


class TestResetGuard:
    def test_second_reset_is_rejected(self, completed_room, rematch_repository, room_repository, clock):
        room_id = completed_room.room_id

        assert rematch_repository.reset_room_for_rematch_atomic(room_id, [PLAYER_B], 2, clock.now) is True
        room_before = room_repository.get_room(room_id)
        players_before = room_repository.get_room_players(room_id)

        clock.advance(30)
        again = rematch_repository.reset_room_for_rematch_atomic(room_id, [PLAYER_A], 3, clock.now)

        assert again is False
        assert room_repository.get_room(room_id) == room_before
        assert room_repository.get_room_players(room_id) == players_before
        assert room_before.current_gameweek == 2

    def test_reset_of_unknown_room(self, rematch_repository, clock):
        assert rematch_repository.reset_room_for_rematch_atomic(424242, [], 2, clock.now) is False
