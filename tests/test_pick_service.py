"""
Tests for PickService: submission rules, deadline lock and removal.
"""

from domain.models.pick import PickResult
from domain.models.room import PlayerStatus
from services import error_codes
from tests.conftest import GW1_DEADLINE, GW2_DEADLINE, HOST_ID, PLAYER_A, PLAYER_B

ARSENAL, CHELSEA, LIVERPOOL = 1, 2, 3


class TestSubmitPick:
    def test_submit_pick_saves_unlocked_pick(self, make_room, pick_service):
        room = make_room()

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        assert result.success, result.error
        pick = result.value
        assert pick.team_id == ARSENAL
        assert pick.is_locked is False
        assert pick.result == PickResult.PENDING

    def test_first_pick_promotes_pending_player(self, make_room, pick_service, room_repository):
        room = make_room()
        assert room_repository.get_room_player(room.room_id, PLAYER_A).status == PlayerStatus.PENDING_PICK

        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        assert room_repository.get_room_player(room.room_id, PLAYER_A).status == PlayerStatus.ACTIVE

    def test_resubmit_same_team_is_idempotent(self, make_room, pick_service):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        assert result.success
        assert len(pick_service.get_player_picks(room.room_id, PLAYER_A)) == 1

    def test_change_pick_before_deadline(self, make_room, pick_service):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, LIVERPOOL)

        assert result.success
        assert pick_service.get_pick(room.room_id, PLAYER_A, 1).team_id == LIVERPOOL

    def test_team_used_in_another_gameweek(self, make_room, pick_service):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 2, ARSENAL)

        assert not result.success
        assert result.error_code == error_codes.TEAM_ALREADY_USED

    def test_same_team_allowed_for_different_players(self, make_room, pick_service):
        room = make_room()
        assert pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL).success
        assert pick_service.submit_pick(room.room_id, PLAYER_B, 1, ARSENAL).success

    def test_unknown_team(self, make_room, pick_service):
        room = make_room()

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, 999)

        assert result.error_code == error_codes.INVALID_TEAM

    def test_unknown_gameweek(self, make_room, pick_service):
        room = make_room()

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 38, ARSENAL)

        assert result.error_code == error_codes.GAMEWEEK_NOT_FOUND

    def test_not_in_room(self, make_room, pick_service):
        room = make_room()

        result = pick_service.submit_pick(room.room_id, 424242, 1, ARSENAL)

        assert result.error_code == error_codes.NOT_IN_ROOM

    def test_unknown_room(self, pick_service, fixture_repository):
        result = pick_service.submit_pick(9999, PLAYER_A, 1, ARSENAL)

        assert result.error_code == error_codes.ROOM_NOT_FOUND

    def test_eliminated_player_cannot_pick(self, make_room, pick_service, room_repository):
        room = make_room()
        room_repository.update_player_status(
            room.room_id, PLAYER_A, PlayerStatus.PENDING_PICK, PlayerStatus.ELIMINATED
        )

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        assert result.error_code == error_codes.PLAYER_ELIMINATED

    def test_team_without_fixture(self, make_room, pick_service, fixture_repository):
        fixture_repository.upsert_team(7, "Brentford", "BRE")
        room = make_room()

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, 7)

        assert result.error_code == error_codes.TEAM_NOT_PLAYING

    def test_future_gameweek_pick_allowed(self, make_room, pick_service):
        room = make_room()

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 2, CHELSEA)

        assert result.success


class TestDeadline:
    def test_pick_allowed_one_second_before_deadline(self, make_room, pick_service, clock):
        room = make_room()
        clock.set(GW1_DEADLINE - 1)

        assert pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL).success

    def test_pick_rejected_at_deadline(self, make_room, pick_service, clock):
        """Equality counts as locked."""
        room = make_room()
        clock.set(GW1_DEADLINE)

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        assert result.error_code == error_codes.DEADLINE_PASSED

    def test_existing_pick_cannot_change_after_deadline(self, make_room, pick_service, clock):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)
        clock.set(GW1_DEADLINE + 60)

        result = pick_service.submit_pick(room.room_id, PLAYER_A, 1, LIVERPOOL)

        assert result.error_code == error_codes.DEADLINE_PASSED
        assert pick_service.get_pick(room.room_id, PLAYER_A, 1).team_id == ARSENAL

    def test_lock_lead_moves_the_lock_earlier(self, make_room, room_repository, pick_repository, fixture_repository, clock):
        from services.pick_service import PickService

        service = PickService(
            room_repository, pick_repository, fixture_repository, lock_lead_seconds=3600, clock=clock
        )
        room = make_room()
        clock.set(GW1_DEADLINE - 3600)

        assert service.get_lock_time(1) == GW1_DEADLINE - 3600
        assert service.is_gameweek_locked(1) is True
        assert service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL).error_code == (
            error_codes.DEADLINE_PASSED
        )

    def test_is_gameweek_locked(self, pick_service, fixture_repository, clock):
        assert pick_service.is_gameweek_locked(1) is False
        clock.set(GW1_DEADLINE)
        assert pick_service.is_gameweek_locked(1) is True
        assert pick_service.is_gameweek_locked(2) is False
        assert pick_service.get_lock_time(2) == GW2_DEADLINE


class TestRemovePick:
    def test_remove_before_deadline(self, make_room, pick_service):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        result = pick_service.remove_pick(room.room_id, PLAYER_A, 1)

        assert result.success
        assert pick_service.get_pick(room.room_id, PLAYER_A, 1) is None

    def test_removed_team_can_be_used_again(self, make_room, pick_service):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)
        pick_service.remove_pick(room.room_id, PLAYER_A, 1)

        assert pick_service.submit_pick(room.room_id, PLAYER_A, 2, ARSENAL).success

    def test_remove_after_deadline(self, make_room, pick_service, clock):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)
        clock.set(GW1_DEADLINE)

        result = pick_service.remove_pick(room.room_id, PLAYER_A, 1)

        assert result.error_code == error_codes.DEADLINE_PASSED
        assert pick_service.get_pick(room.room_id, PLAYER_A, 1) is not None

    def test_remove_missing_pick(self, make_room, pick_service):
        room = make_room()

        result = pick_service.remove_pick(room.room_id, HOST_ID, 1)

        assert result.error_code == error_codes.NOT_FOUND


class TestAvailableTeams:
    def test_used_teams_are_excluded(self, make_room, pick_service):
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        available = {t.team_id for t in pick_service.get_available_teams(room.room_id, PLAYER_A, 2)}

        assert ARSENAL not in available
        assert CHELSEA in available

    def test_current_gameweek_pick_is_still_available(self, make_room, pick_service):
        """The team picked for the same gameweek can be re-selected."""
        room = make_room()
        pick_service.submit_pick(room.room_id, PLAYER_A, 1, ARSENAL)

        available = {t.team_id for t in pick_service.get_available_teams(room.room_id, PLAYER_A, 1)}

        assert ARSENAL in available

    def test_find_team_by_name_or_short_name(self, pick_service, fixture_repository):
        assert pick_service.find_team("arsenal").team_id == ARSENAL
        assert pick_service.find_team("CHE").team_id == CHELSEA
        assert pick_service.find_team("Nobody FC") is None
