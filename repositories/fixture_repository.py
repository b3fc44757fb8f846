"""
Repository for the upstream fixture feed tables (pl_teams, gameweeks, fixtures).

The survivor core only reads these tables. They are filled by the external
feed sync, which uses the upsert_* methods below.
"""

from __future__ import annotations

import sqlite3

from domain.models.fixture import Fixture, FixtureStatus, Gameweek, Team
from repositories.base_repository import BaseRepository
from repositories.interfaces import FeedUnavailableError, IFixtureFeed


class FixtureRepository(BaseRepository, IFixtureFeed):
    """SQLite-backed fixture feed."""

    @staticmethod
    def _row_to_fixture(row) -> Fixture:
        return Fixture(
            fixture_id=row["fixture_id"],
            gameweek=row["gw"],
            home_team_id=row["home_team_id"],
            away_team_id=row["away_team_id"],
            home_score=row["home_score"],
            away_score=row["away_score"],
            status=FixtureStatus(row["status"]),
            kickoff=row["kickoff_utc"],
        )

    @staticmethod
    def _row_to_gameweek(row) -> Gameweek:
        return Gameweek(
            gw=row["gw"],
            deadline=row["deadline_utc"],
            is_finished=bool(row["is_finished"]),
        )

    @staticmethod
    def _row_to_team(row) -> Team:
        return Team(team_id=row["team_id"], name=row["name"], short_name=row["short_name"])

    # --- Feed reads ---

    def list_fixtures(self, gameweek: int) -> list[Fixture]:
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT fixture_id, gw, kickoff_utc, home_team_id, away_team_id,
                           home_score, away_score, status
                    FROM fixtures
                    WHERE gw = ?
                    ORDER BY kickoff_utc, fixture_id
                    """,
                    (gameweek,),
                )
                return [self._row_to_fixture(row) for row in cursor.fetchall()]
        except sqlite3.OperationalError as e:
            raise FeedUnavailableError(f"Could not read fixtures for gameweek {gameweek}: {e}") from e

    def is_gameweek_finished(self, gameweek: int) -> bool:
        """True when the gameweek has fixtures and all of them are finished."""
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    SELECT COUNT(*) AS total,
                           SUM(CASE WHEN status = 'finished' THEN 1 ELSE 0 END) AS finished
                    FROM fixtures
                    WHERE gw = ?
                    """,
                    (gameweek,),
                )
                row = cursor.fetchone()
        except sqlite3.OperationalError as e:
            raise FeedUnavailableError(f"Could not read gameweek {gameweek} status: {e}") from e
        total = row["total"] or 0
        return total > 0 and (row["finished"] or 0) == total

    def get_gameweek(self, gameweek: int) -> Gameweek | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT gw, deadline_utc, is_finished FROM gameweeks WHERE gw = ?",
                (gameweek,),
            )
            row = cursor.fetchone()
            return self._row_to_gameweek(row) if row else None

    def list_gameweeks(self) -> list[Gameweek]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT gw, deadline_utc, is_finished FROM gameweeks ORDER BY gw")
            return [self._row_to_gameweek(row) for row in cursor.fetchall()]

    def get_next_unfinished_gameweek(self, after_gameweek: int) -> int | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT gw FROM gameweeks
                WHERE gw > ? AND is_finished = 0
                ORDER BY gw ASC
                LIMIT 1
                """,
                (after_gameweek,),
            )
            row = cursor.fetchone()
            return row["gw"] if row else None

    def get_next_open_gameweek(self, now: int) -> int | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT gw FROM gameweeks
                WHERE is_finished = 0 AND deadline_utc > ?
                ORDER BY gw ASC
                LIMIT 1
                """,
                (now,),
            )
            row = cursor.fetchone()
            return row["gw"] if row else None

    def list_teams(self) -> list[Team]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT team_id, name, short_name FROM pl_teams ORDER BY name")
            return [self._row_to_team(row) for row in cursor.fetchall()]

    def get_team(self, team_id: int) -> Team | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT team_id, name, short_name FROM pl_teams WHERE team_id = ?",
                (team_id,),
            )
            row = cursor.fetchone()
            return self._row_to_team(row) if row else None

    def find_team(self, query: str) -> Team | None:
        text = (query or "").strip()
        if not text:
            return None
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT team_id, name, short_name FROM pl_teams
                WHERE LOWER(name) = LOWER(?) OR LOWER(short_name) = LOWER(?)
                LIMIT 1
                """,
                (text, text),
            )
            row = cursor.fetchone()
            return self._row_to_team(row) if row else None

    # --- Feed sync writes ---

    def upsert_team(self, team_id: int, name: str, short_name: str | None = None) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO pl_teams (team_id, name, short_name)
                VALUES (?, ?, ?)
                ON CONFLICT(team_id) DO UPDATE SET
                    name = excluded.name,
                    short_name = excluded.short_name
                """,
                (team_id, name, short_name),
            )

    def upsert_gameweek(self, gameweek: int, deadline: int, is_finished: bool = False) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO gameweeks (gw, deadline_utc, is_finished)
                VALUES (?, ?, ?)
                ON CONFLICT(gw) DO UPDATE SET
                    deadline_utc = excluded.deadline_utc,
                    is_finished = excluded.is_finished
                """,
                (gameweek, deadline, 1 if is_finished else 0),
            )

    def mark_gameweek_finished(self, gameweek: int, is_finished: bool = True) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE gameweeks SET is_finished = ? WHERE gw = ?",
                (1 if is_finished else 0, gameweek),
            )

    def upsert_fixture(
        self,
        fixture_id: int,
        gameweek: int,
        home_team_id: int,
        away_team_id: int,
        home_score: int | None = None,
        away_score: int | None = None,
        status: str = "scheduled",
        kickoff: int | None = None,
    ) -> None:
        FixtureStatus(status)  # validate
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO fixtures
                    (fixture_id, gw, kickoff_utc, home_team_id, away_team_id,
                     home_score, away_score, status)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(fixture_id) DO UPDATE SET
                    gw = excluded.gw,
                    kickoff_utc = excluded.kickoff_utc,
                    home_team_id = excluded.home_team_id,
                    away_team_id = excluded.away_team_id,
                    home_score = excluded.home_score,
                    away_score = excluded.away_score,
                    status = excluded.status
                """,
                (fixture_id, gameweek, kickoff, home_team_id, away_team_id, home_score, away_score, status),
            )
