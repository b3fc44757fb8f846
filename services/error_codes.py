"""
Standard error codes for service layer.

These error codes allow command handlers to programmatically handle
specific error conditions without parsing error message text.

Usage:
    from services.error_codes import PICK_LOCKED, TEAM_ALREADY_USED
    from services.result import Result

    if is_pick_window_closed(deadline, now):
        return Result.fail("Picks for this gameweek are locked", code=PICK_LOCKED)
"""

# General errors
NOT_FOUND = "not_found"
VALIDATION_ERROR = "validation_error"
STATE_ERROR = "state_error"
PERMISSION_DENIED = "permission_denied"

# Room errors
ROOM_NOT_FOUND = "room_not_found"
ROOM_FULL = "room_full"
ROOM_CLOSED = "room_closed"
ROOM_COMPLETED = "room_completed"
ROOM_INCONSISTENT = "room_inconsistent"
NOT_IN_ROOM = "not_in_room"
ALREADY_IN_ROOM = "already_in_room"

# Gameweek errors
GAMEWEEK_NOT_FOUND = "gameweek_not_found"
GAMEWEEK_ALREADY_PLAYED = "gameweek_already_played"
GAMEWEEK_NOT_FINISHED = "gameweek_not_finished"
NO_OPEN_GAMEWEEK = "no_open_gameweek"

# Pick errors
INVALID_TEAM = "invalid_team"
TEAM_ALREADY_USED = "team_already_used"
TEAM_NOT_PLAYING = "team_not_playing"
DEADLINE_PASSED = "deadline_passed"
PICK_LOCKED = "pick_locked"
PLAYER_ELIMINATED = "player_eliminated"

# Deal/rematch errors
DEAL_NOT_AVAILABLE = "deal_not_available"
DEAL_ALREADY_PENDING = "deal_already_pending"
NOT_ACTIVE_PLAYER = "not_active_player"
ALREADY_VOTED = "already_voted"
REQUEST_EXPIRED = "request_expired"
