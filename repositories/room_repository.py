"""
Repository for rooms and room membership.
"""

from __future__ import annotations

import logging

from domain.models.room import (
    CompletionReason,
    DoubleGameweekRule,
    NoPickPolicy,
    PlayerStatus,
    Room,
    RoomPlayer,
    RoomStatus,
)
from domain.services.elimination_rules import RoundResolution
from repositories.base_repository import BaseRepository
from repositories.interfaces import IRoomRepository

logger = logging.getLogger("survivor_bot.repositories.room")

_ROOM_COLUMNS = """
    room_id, name, description, buy_in, max_players, is_public, invite_code,
    host_id, current_gameweek, current_round, status, deal_threshold,
    no_pick_policy, dgw_rule, prize_pot, completed_reason, needs_attention,
    attention_reason, last_recovery_gameweek, created_at, updated_at
"""

_PLAYER_COLUMNS = """
    room_id, player_id, status, joined_at, eliminated_at, eliminated_gameweek,
    payout, last_notified_gameweek
"""


class RoomRepository(BaseRepository, IRoomRepository):
    """
    Handles CRUD operations for rooms and room_players tables, plus the
    atomic write that applies a resolved gameweek.
    """

    @staticmethod
    def _row_to_room(row) -> Room:
        return Room(
            room_id=row["room_id"],
            name=row["name"],
            description=row["description"],
            buy_in=row["buy_in"],
            max_players=row["max_players"],
            is_public=bool(row["is_public"]),
            invite_code=row["invite_code"],
            host_id=row["host_id"],
            current_gameweek=row["current_gameweek"],
            current_round=row["current_round"],
            status=RoomStatus(row["status"]),
            deal_threshold=row["deal_threshold"],
            no_pick_policy=NoPickPolicy(row["no_pick_policy"]),
            dgw_rule=DoubleGameweekRule(row["dgw_rule"]),
            prize_pot=row["prize_pot"],
            completed_reason=(
                CompletionReason(row["completed_reason"]) if row["completed_reason"] else None
            ),
            needs_attention=bool(row["needs_attention"]),
            attention_reason=row["attention_reason"],
            last_recovery_gameweek=row["last_recovery_gameweek"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_player(row) -> RoomPlayer:
        return RoomPlayer(
            room_id=row["room_id"],
            player_id=row["player_id"],
            status=PlayerStatus(row["status"]),
            joined_at=row["joined_at"],
            eliminated_at=row["eliminated_at"],
            eliminated_gameweek=row["eliminated_gameweek"],
            payout=row["payout"],
            last_notified_gameweek=row["last_notified_gameweek"],
        )

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
    ) -> int:
        """
        Create a room with the host as its first player.

        Returns:
            The new room_id
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO rooms
                    (name, description, buy_in, max_players, is_public, invite_code,
                     host_id, current_gameweek, current_round, status, deal_threshold,
                     no_pick_policy, dgw_rule, prize_pot, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, 'waiting', ?, ?, ?, ?, ?, ?)
                """,
                (
                    name,
                    description,
                    buy_in,
                    max_players,
                    1 if is_public else 0,
                    invite_code,
                    host_id,
                    current_gameweek,
                    deal_threshold,
                    no_pick_policy,
                    dgw_rule,
                    buy_in,
                    now,
                    now,
                ),
            )
            room_id = cursor.lastrowid
            cursor.execute(
                """
                INSERT INTO room_players (room_id, player_id, status, joined_at)
                VALUES (?, ?, 'pending_pick', ?)
                """,
                (room_id, host_id, now),
            )
            return room_id

    def get_room(self, room_id: int) -> Room | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {_ROOM_COLUMNS} FROM rooms WHERE room_id = ?", (room_id,))
            row = cursor.fetchone()
            return self._row_to_room(row) if row else None

    def get_room_by_invite_code(self, invite_code: str) -> Room | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_ROOM_COLUMNS} FROM rooms WHERE UPPER(invite_code) = UPPER(?)",
                (invite_code.strip(),),
            )
            row = cursor.fetchone()
            return self._row_to_room(row) if row else None

    def invite_code_exists(self, invite_code: str) -> bool:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM rooms WHERE UPPER(invite_code) = UPPER(?)",
                (invite_code,),
            )
            return cursor.fetchone() is not None

    def list_rooms(self, statuses: list[RoomStatus] | None = None) -> list[Room]:
        with self.connection() as conn:
            cursor = conn.cursor()
            if statuses:
                values = [s.value for s in statuses]
                cursor.execute(
                    f"""
                    SELECT {_ROOM_COLUMNS} FROM rooms
                    WHERE status IN ({self.placeholders(len(values))})
                    ORDER BY room_id
                    """,
                    values,
                )
            else:
                cursor.execute(f"SELECT {_ROOM_COLUMNS} FROM rooms ORDER BY room_id")
            return [self._row_to_room(row) for row in cursor.fetchall()]

    def list_public_rooms(self, exclude_player_id: int | None = None) -> list[Room]:
        """Public rooms still accepting players, excluding rooms the player is in."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ROOM_COLUMNS} FROM rooms r
                WHERE r.is_public = 1 AND r.status = 'waiting'
                  AND NOT EXISTS (
                      SELECT 1 FROM room_players rp
                      WHERE rp.room_id = r.room_id AND rp.player_id = ?
                  )
                ORDER BY r.created_at DESC
                """,
                (exclude_player_id if exclude_player_id is not None else -1,),
            )
            return [self._row_to_room(row) for row in cursor.fetchall()]

    def get_player_rooms(self, player_id: int) -> list[Room]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_ROOM_COLUMNS} FROM rooms
                WHERE room_id IN (SELECT room_id FROM room_players WHERE player_id = ?)
                ORDER BY room_id
                """,
                (player_id,),
            )
            return [self._row_to_room(row) for row in cursor.fetchall()]

    # --- Membership ---

    def add_player_atomic(self, room_id: int, player_id: int, now: int) -> str:
        """
        Add a player to a room if there is space.

        Returns:
            'added', 'exists' (already a member) or 'full'
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM room_players WHERE room_id = ? AND player_id = ?",
                (room_id, player_id),
            )
            if cursor.fetchone():
                return "exists"

            cursor.execute("SELECT max_players FROM rooms WHERE room_id = ?", (room_id,))
            max_players = cursor.fetchone()["max_players"]
            cursor.execute("SELECT COUNT(*) AS c FROM room_players WHERE room_id = ?", (room_id,))
            if cursor.fetchone()["c"] >= max_players:
                return "full"

            cursor.execute(
                """
                INSERT INTO room_players (room_id, player_id, status, joined_at)
                VALUES (?, ?, 'pending_pick', ?)
                """,
                (room_id, player_id, now),
            )
            self._refresh_prize_pot(cursor, room_id, now)
            return "added"

    def remove_player(self, room_id: int, player_id: int) -> bool:
        """Remove a player and every per-player record they hold in the room."""
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM room_players WHERE room_id = ? AND player_id = ?",
                (room_id, player_id),
            )
            removed = cursor.rowcount > 0
            if removed:
                cursor.execute(
                    "DELETE FROM picks WHERE room_id = ? AND player_id = ?",
                    (room_id, player_id),
                )
                cursor.execute(
                    "DELETE FROM rematch_votes WHERE room_id = ? AND player_id = ?",
                    (room_id, player_id),
                )
                self._refresh_prize_pot(cursor, room_id, None)
            return removed

    def _refresh_prize_pot(self, cursor, room_id: int, now: int | None) -> None:
        cursor.execute(
            """
            UPDATE rooms
            SET prize_pot = buy_in * (SELECT COUNT(*) FROM room_players WHERE room_id = ?),
                updated_at = COALESCE(?, updated_at)
            WHERE room_id = ?
            """,
            (room_id, now, room_id),
        )

    def get_room_player(self, room_id: int, player_id: int) -> RoomPlayer | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_PLAYER_COLUMNS} FROM room_players WHERE room_id = ? AND player_id = ?",
                (room_id, player_id),
            )
            row = cursor.fetchone()
            return self._row_to_player(row) if row else None

    def get_room_players(self, room_id: int) -> list[RoomPlayer]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_PLAYER_COLUMNS} FROM room_players
                WHERE room_id = ?
                ORDER BY joined_at, player_id
                """,
                (room_id,),
            )
            return [self._row_to_player(row) for row in cursor.fetchall()]

    def count_players_by_status(self, room_id: int) -> dict[str, int]:
        counts = {status.value: 0 for status in PlayerStatus}
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT status, COUNT(*) AS count FROM room_players
                WHERE room_id = ?
                GROUP BY status
                """,
                (room_id,),
            )
            for row in cursor.fetchall():
                counts[row["status"]] = row["count"]
        return counts

    def update_player_status(
        self, room_id: int, player_id: int, from_status: PlayerStatus, to_status: PlayerStatus
    ) -> bool:
        """Compare-and-set a player's status. Returns True if the row changed."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE room_players SET status = ?
                WHERE room_id = ? AND player_id = ? AND status = ?
                """,
                (to_status.value, room_id, player_id, from_status.value),
            )
            return cursor.rowcount > 0

    def set_last_notified_gameweek(self, room_id: int, player_id: int, gameweek: int) -> bool:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE room_players SET last_notified_gameweek = ?
                WHERE room_id = ? AND player_id = ?
                  AND (last_notified_gameweek IS NULL OR last_notified_gameweek < ?)
                """,
                (gameweek, room_id, player_id, gameweek),
            )
            return cursor.rowcount > 0

    # --- Lifecycle ---

    def activate_room(self, room_id: int, now: int) -> bool:
        """waiting -> active. Returns False if the room was not waiting."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE rooms SET status = 'active', updated_at = ?
                WHERE room_id = ? AND status = 'waiting'
                """,
                (now, room_id),
            )
            return cursor.rowcount > 0

    def flag_room(self, room_id: int, reason: str, now: int) -> None:
        """Mark a room for manual inspection; the results poller skips it."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE rooms SET needs_attention = 1, attention_reason = ?, updated_at = ?
                WHERE room_id = ?
                """,
                (reason, now, room_id),
            )

    def clear_attention(self, room_id: int, now: int) -> bool:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE rooms SET needs_attention = 0, attention_reason = NULL, updated_at = ?
                WHERE room_id = ? AND needs_attention = 1
                """,
                (now, room_id),
            )
            return cursor.rowcount > 0

    def apply_round_resolution_atomic(
        self, resolution: RoundResolution, payouts: dict[int, int], now: int
    ) -> bool:
        """
        Persist a resolved round in one write transaction.

        The room row is compared against the gameweek/round the resolution was
        computed for; if another worker already moved the room on, nothing is
        written and False is returned. Every row update is additionally guarded
        on its pre-resolution state.
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT status, current_gameweek, current_round FROM rooms WHERE room_id = ?",
                (resolution.room_id,),
            )
            row = cursor.fetchone()
            if (
                row is None
                or row["status"] == RoomStatus.COMPLETED.value
                or row["current_gameweek"] != resolution.gameweek
                or row["current_round"] != resolution.round_number
            ):
                return False

            gw = resolution.gameweek
            for outcome in resolution.outcomes:
                if outcome.team_id is not None and outcome.auto_picked:
                    cursor.execute(
                        """
                        INSERT OR IGNORE INTO picks
                            (room_id, player_id, gameweek, team_id, is_locked, result,
                             is_auto, created_at, updated_at, locked_at)
                        VALUES (?, ?, ?, ?, 1, ?, 1, ?, ?, ?)
                        """,
                        (
                            resolution.room_id,
                            outcome.player_id,
                            gw,
                            outcome.team_id,
                            outcome.result.value if outcome.result else "pending",
                            now,
                            now,
                            now,
                        ),
                    )
                elif outcome.team_id is not None and outcome.result is not None:
                    cursor.execute(
                        """
                        UPDATE picks SET result = ?, updated_at = ?
                        WHERE room_id = ? AND player_id = ? AND gameweek = ? AND result = 'pending'
                        """,
                        (outcome.result.value, now, resolution.room_id, outcome.player_id, gw),
                    )

                if outcome.eliminated and not resolution.recovered:
                    cursor.execute(
                        """
                        UPDATE room_players
                        SET status = 'eliminated', eliminated_at = ?, eliminated_gameweek = ?
                        WHERE room_id = ? AND player_id = ? AND status IN ('active', 'pending_pick')
                        """,
                        (now, gw, resolution.room_id, outcome.player_id),
                    )
                else:
                    cursor.execute(
                        """
                        UPDATE room_players SET status = 'active'
                        WHERE room_id = ? AND player_id = ? AND status = 'pending_pick'
                        """,
                        (resolution.room_id, outcome.player_id),
                    )

            # Every pick for the gameweek becomes a permanent record
            cursor.execute(
                """
                UPDATE picks SET is_locked = 1, locked_at = COALESCE(locked_at, ?)
                WHERE room_id = ? AND gameweek = ? AND is_locked = 0
                """,
                (now, resolution.room_id, gw),
            )

            for player_id, amount in payouts.items():
                cursor.execute(
                    "UPDATE room_players SET payout = ? WHERE room_id = ? AND player_id = ?",
                    (amount, resolution.room_id, player_id),
                )

            cursor.execute(
                """
                UPDATE rooms
                SET status = ?, current_gameweek = ?, current_round = ?,
                    completed_reason = ?,
                    last_recovery_gameweek = CASE WHEN ? THEN ? ELSE last_recovery_gameweek END,
                    updated_at = ?
                WHERE room_id = ?
                """,
                (
                    resolution.next_status.value,
                    resolution.next_gameweek,
                    resolution.next_round,
                    resolution.completed_reason.value if resolution.completed_reason else None,
                    1 if resolution.recovered else 0,
                    gw,
                    now,
                    resolution.room_id,
                ),
            )

            # A pending deal's player snapshot is stale once the round moves on
            cursor.execute(
                """
                UPDATE deal_requests SET status = 'expired', resolved_at = ?
                WHERE room_id = ? AND status = 'pending'
                """,
                (now, resolution.room_id),
            )
            return True
