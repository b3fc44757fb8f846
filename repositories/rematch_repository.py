"""
Repository for rematch votes and the room reset that starts a rematch.
"""

from __future__ import annotations

from domain.models.deal import RematchVoteChoice
from repositories.base_repository import BaseRepository
from repositories.interfaces import IRematchRepository


class RematchRepository(BaseRepository, IRematchRepository):
    def upsert_vote(self, room_id: int, player_id: int, vote: RematchVoteChoice, now: int) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO rematch_votes (room_id, player_id, vote, voted_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(room_id, player_id) DO UPDATE SET
                    vote = excluded.vote,
                    voted_at = excluded.voted_at
                """,
                (room_id, player_id, vote.value, now),
            )

    def get_votes(self, room_id: int) -> dict[int, RematchVoteChoice]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT player_id, vote FROM rematch_votes WHERE room_id = ?",
                (room_id,),
            )
            return {row["player_id"]: RematchVoteChoice(row["vote"]) for row in cursor.fetchall()}

    def reset_room_for_rematch_atomic(
        self, room_id: int, remove_player_ids: list[int], next_gameweek: int, now: int
    ) -> bool:
        """
        Reset a completed room into a fresh game.

        Decliners are removed (a declining host is replaced by the lowest
        remaining player id); picks, deals, votes and elimination history are
        cleared; everyone left is active again in round 1. Returns False if the
        room is not completed (a concurrent vote already reset it).
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT status FROM rooms WHERE room_id = ?", (room_id,))
            row = cursor.fetchone()
            if not row or row["status"] != "completed":
                return False

            if remove_player_ids:
                cursor.execute(
                    f"""
                    DELETE FROM room_players
                    WHERE room_id = ? AND player_id IN ({self.placeholders(len(remove_player_ids))})
                    """,
                    [room_id, *remove_player_ids],
                )
                # A departing host hands the room to the lowest remaining player id
                cursor.execute(
                    """
                    UPDATE rooms
                    SET host_id = (SELECT MIN(player_id) FROM room_players WHERE room_id = ?)
                    WHERE room_id = ?
                      AND host_id NOT IN (SELECT player_id FROM room_players WHERE room_id = ?)
                    """,
                    (room_id, room_id, room_id),
                )

            cursor.execute("DELETE FROM picks WHERE room_id = ?", (room_id,))
            cursor.execute(
                """
                DELETE FROM deal_votes
                WHERE deal_id IN (SELECT deal_id FROM deal_requests WHERE room_id = ?)
                """,
                (room_id,),
            )
            cursor.execute(
                """
                DELETE FROM deal_participants
                WHERE deal_id IN (SELECT deal_id FROM deal_requests WHERE room_id = ?)
                """,
                (room_id,),
            )
            cursor.execute("DELETE FROM deal_requests WHERE room_id = ?", (room_id,))
            cursor.execute("DELETE FROM rematch_votes WHERE room_id = ?", (room_id,))

            cursor.execute(
                """
                UPDATE room_players
                SET status = 'active', eliminated_at = NULL, eliminated_gameweek = NULL,
                    payout = NULL, last_notified_gameweek = NULL
                WHERE room_id = ?
                """,
                (room_id,),
            )
            cursor.execute(
                """
                UPDATE rooms
                SET status = 'waiting', current_round = 1, current_gameweek = ?,
                    completed_reason = NULL, needs_attention = 0, attention_reason = NULL,
                    last_recovery_gameweek = NULL,
                    prize_pot = buy_in * (SELECT COUNT(*) FROM room_players WHERE room_id = ?),
                    updated_at = ?
                WHERE room_id = ?
                """,
                (next_gameweek, room_id, now, room_id),
            )
            return True
