"""
Repository for per-gameweek picks.
"""

from __future__ import annotations

from domain.models.pick import Pick, PickResult
from repositories.base_repository import BaseRepository
from repositories.interfaces import IPickRepository

_PICK_COLUMNS = """
    room_id, player_id, gameweek, team_id, is_locked, result, is_auto,
    created_at, updated_at, locked_at
"""


class PickRepository(BaseRepository, IPickRepository):
    @staticmethod
    def _row_to_pick(row) -> Pick:
        return Pick(
            room_id=row["room_id"],
            player_id=row["player_id"],
            gameweek=row["gameweek"],
            team_id=row["team_id"],
            is_locked=bool(row["is_locked"]),
            result=PickResult(row["result"]),
            is_auto=bool(row["is_auto"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            locked_at=row["locked_at"],
        )

    def get_pick(self, room_id: int, player_id: int, gameweek: int) -> Pick | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_PICK_COLUMNS} FROM picks
                WHERE room_id = ? AND player_id = ? AND gameweek = ?
                """,
                (room_id, player_id, gameweek),
            )
            row = cursor.fetchone()
            return self._row_to_pick(row) if row else None

    def get_picks_for_gameweek(self, room_id: int, gameweek: int) -> dict[int, Pick]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_PICK_COLUMNS} FROM picks WHERE room_id = ? AND gameweek = ?",
                (room_id, gameweek),
            )
            return {row["player_id"]: self._row_to_pick(row) for row in cursor.fetchall()}

    def get_player_picks(self, room_id: int, player_id: int) -> list[Pick]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_PICK_COLUMNS} FROM picks
                WHERE room_id = ? AND player_id = ?
                ORDER BY gameweek
                """,
                (room_id, player_id),
            )
            return [self._row_to_pick(row) for row in cursor.fetchall()]

    def get_used_team_ids(
        self, room_id: int, player_id: int, exclude_gameweek: int | None = None
    ) -> set[int]:
        """Teams the player has picked in this room, optionally ignoring one gameweek."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT team_id FROM picks
                WHERE room_id = ? AND player_id = ? AND gameweek != ?
                """,
                (room_id, player_id, exclude_gameweek if exclude_gameweek is not None else -1),
            )
            return {row["team_id"] for row in cursor.fetchall()}

    def get_used_teams_by_player(self, room_id: int, exclude_gameweek: int) -> dict[int, set[int]]:
        used: dict[int, set[int]] = {}
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT player_id, team_id FROM picks WHERE room_id = ? AND gameweek != ?",
                (room_id, exclude_gameweek),
            )
            for row in cursor.fetchall():
                used.setdefault(row["player_id"], set()).add(row["team_id"])
        return used

    def upsert_pick_atomic(
        self, room_id: int, player_id: int, gameweek: int, team_id: int, now: int
    ) -> str:
        """
        Insert or replace the player's pick for a gameweek.

        Returns:
            'saved' on success, 'locked' if the existing pick is locked,
            'team_used' if the team was picked in another gameweek
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT is_locked FROM picks
                WHERE room_id = ? AND player_id = ? AND gameweek = ?
                """,
                (room_id, player_id, gameweek),
            )
            existing = cursor.fetchone()
            if existing and existing["is_locked"]:
                return "locked"

            cursor.execute(
                """
                SELECT 1 FROM picks
                WHERE room_id = ? AND player_id = ? AND team_id = ? AND gameweek != ?
                """,
                (room_id, player_id, team_id, gameweek),
            )
            if cursor.fetchone():
                return "team_used"

            cursor.execute(
                """
                INSERT INTO picks
                    (room_id, player_id, gameweek, team_id, is_locked, result,
                     is_auto, created_at, updated_at)
                VALUES (?, ?, ?, ?, 0, 'pending', 0, ?, ?)
                ON CONFLICT(room_id, player_id, gameweek) DO UPDATE SET
                    team_id = excluded.team_id,
                    updated_at = excluded.updated_at
                WHERE picks.is_locked = 0
                """,
                (room_id, player_id, gameweek, team_id, now, now),
            )
            return "saved"

    def delete_pick(self, room_id: int, player_id: int, gameweek: int) -> bool:
        """Delete an unlocked pick. Returns False if there was none or it is locked."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                DELETE FROM picks
                WHERE room_id = ? AND player_id = ? AND gameweek = ? AND is_locked = 0
                """,
                (room_id, player_id, gameweek),
            )
            return cursor.rowcount > 0
