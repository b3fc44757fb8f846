"""
Repository for pot-split deal requests and their votes.
"""

from __future__ import annotations

import logging
import sqlite3

from domain.models.deal import DealRequest, DealStatus, DealVoteChoice
from repositories.base_repository import BaseRepository
from repositories.interfaces import IDealRepository

logger = logging.getLogger("survivor_bot.repositories.deal")


class DealRepository(BaseRepository, IDealRepository):
    """
    Handles CRUD operations for deal_requests, deal_participants and deal_votes.
    """

    def _load_request(self, cursor, row) -> DealRequest:
        deal_id = row["deal_id"]
        cursor.execute(
            "SELECT player_id FROM deal_participants WHERE deal_id = ? ORDER BY player_id",
            (deal_id,),
        )
        participants = [r["player_id"] for r in cursor.fetchall()]
        cursor.execute("SELECT player_id, vote FROM deal_votes WHERE deal_id = ?", (deal_id,))
        votes = {r["player_id"]: DealVoteChoice(r["vote"]) for r in cursor.fetchall()}
        return DealRequest(
            deal_id=deal_id,
            room_id=row["room_id"],
            initiated_by=row["initiated_by"],
            gameweek=row["gameweek"],
            status=DealStatus(row["status"]),
            created_at=row["created_at"],
            expires_at=row["expires_at"],
            participants=participants,
            votes=votes,
            resolved_at=row["resolved_at"],
        )

    def create_request_atomic(
        self,
        room_id: int,
        initiated_by: int,
        gameweek: int,
        participants: list[int],
        now: int,
        expires_at: int,
    ) -> int | None:
        """
        Create a pending request with its player snapshot.

        A pending request that has already passed its expiry is marked expired
        first so it does not block the new one.

        Returns:
            The new deal_id, or None if an unexpired request is still pending
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE deal_requests SET status = 'expired', resolved_at = ?
                WHERE room_id = ? AND status = 'pending' AND expires_at <= ?
                """,
                (now, room_id, now),
            )
            try:
                cursor.execute(
                    """
                    INSERT INTO deal_requests
                        (room_id, initiated_by, gameweek, status, created_at, expires_at)
                    VALUES (?, ?, ?, 'pending', ?, ?)
                    """,
                    (room_id, initiated_by, gameweek, now, expires_at),
                )
            except sqlite3.IntegrityError:
                return None
            deal_id = cursor.lastrowid
            cursor.executemany(
                "INSERT INTO deal_participants (deal_id, player_id) VALUES (?, ?)",
                [(deal_id, pid) for pid in participants],
            )
            return deal_id

    def get_request(self, deal_id: int) -> DealRequest | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT deal_id, room_id, initiated_by, gameweek, status,
                       created_at, expires_at, resolved_at
                FROM deal_requests WHERE deal_id = ?
                """,
                (deal_id,),
            )
            row = cursor.fetchone()
            return self._load_request(cursor, row) if row else None

    def get_pending_request(self, room_id: int) -> DealRequest | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT deal_id, room_id, initiated_by, gameweek, status,
                       created_at, expires_at, resolved_at
                FROM deal_requests WHERE room_id = ? AND status = 'pending'
                """,
                (room_id,),
            )
            row = cursor.fetchone()
            return self._load_request(cursor, row) if row else None

    def upsert_vote(self, deal_id: int, player_id: int, vote: DealVoteChoice, now: int) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO deal_votes (deal_id, player_id, vote, voted_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(deal_id, player_id) DO UPDATE SET
                    vote = excluded.vote,
                    voted_at = excluded.voted_at
                """,
                (deal_id, player_id, vote.value, now),
            )

    def mark_expired(self, deal_id: int, now: int) -> bool:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE deal_requests SET status = 'expired', resolved_at = ?
                WHERE deal_id = ? AND status = 'pending'
                """,
                (now, deal_id),
            )
            return cursor.rowcount > 0

    def expire_stale_requests(self, now: int) -> list[int]:
        """Expire every pending request past its expiry. Returns the expired deal ids."""
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT deal_id FROM deal_requests
                WHERE status = 'pending' AND expires_at <= ?
                ORDER BY deal_id
                """,
                (now,),
            )
            deal_ids = [row["deal_id"] for row in cursor.fetchall()]
            if deal_ids:
                cursor.execute(
                    f"""
                    UPDATE deal_requests SET status = 'expired', resolved_at = ?
                    WHERE deal_id IN ({self.placeholders(len(deal_ids))})
                    """,
                    [now, *deal_ids],
                )
            return deal_ids

    def finalize_deal_atomic(self, deal_id: int, payouts: dict[int, int], now: int) -> bool:
        """
        Accept a deal and complete its room with the given payouts.

        Returns False if the request is no longer pending or the room already
        completed (another voter finalized first).
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE deal_requests SET status = 'accepted', resolved_at = ?
                WHERE deal_id = ? AND status = 'pending'
                """,
                (now, deal_id),
            )
            if cursor.rowcount == 0:
                return False

            cursor.execute("SELECT room_id FROM deal_requests WHERE deal_id = ?", (deal_id,))
            room_id = cursor.fetchone()["room_id"]
            cursor.execute(
                """
                UPDATE rooms
                SET status = 'completed', completed_reason = 'deal', updated_at = ?
                WHERE room_id = ? AND status != 'completed'
                """,
                (now, room_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                return False

            for player_id, amount in payouts.items():
                cursor.execute(
                    "UPDATE room_players SET payout = ? WHERE room_id = ? AND player_id = ?",
                    (amount, room_id, player_id),
                )
            logger.info(f"Deal {deal_id} finalized for room {room_id}: {payouts}")
            return True
