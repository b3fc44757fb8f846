"""
Schema and migration management for SQLite database.
"""

import logging
import sqlite3

logger = logging.getLogger("survivor_bot.schema")


class SchemaManager:
    """
    Owns schema creation and migrations.

    Call initialize() to ensure schema is present and migrations are applied.
    """

    def __init__(self, db_path: str, use_uri: bool = False):
        self.db_path = db_path
        self.use_uri = use_uri

    def initialize(self) -> None:
        """Create base schema and apply migrations."""
        logger.info(f"Initializing database schema: {self.db_path}")
        with self._connect() as conn:
            cursor = conn.cursor()
            self._create_base_schema(cursor)
            self._create_schema_migrations_table(cursor)
            self._run_migrations(cursor)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, uri=self.use_uri)
        conn.row_factory = sqlite3.Row
        if not self.use_uri:  # Skip WAL for in-memory databases
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
        return conn

    def _create_base_schema(self, cursor) -> None:
        # Upstream feed tables (written by the external sync, read by the core)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS pl_teams (
                team_id INTEGER PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                short_name TEXT
            )
            """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS gameweeks (
                gw INTEGER PRIMARY KEY,
                deadline_utc INTEGER NOT NULL,
                is_finished INTEGER NOT NULL DEFAULT 0
            )
            """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS fixtures (
                fixture_id INTEGER PRIMARY KEY,
                gw INTEGER NOT NULL,
                kickoff_utc INTEGER,
                home_team_id INTEGER NOT NULL,
                away_team_id INTEGER NOT NULL,
                home_score INTEGER,
                away_score INTEGER,
                status TEXT NOT NULL DEFAULT 'scheduled',
                FOREIGN KEY (gw) REFERENCES gameweeks(gw),
                FOREIGN KEY (home_team_id) REFERENCES pl_teams(team_id),
                FOREIGN KEY (away_team_id) REFERENCES pl_teams(team_id)
            )
            """
        )

        # Rooms (aggregate root)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS rooms (
                room_id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                buy_in INTEGER NOT NULL DEFAULT 0,
                max_players INTEGER NOT NULL,
                is_public INTEGER NOT NULL DEFAULT 1,
                invite_code TEXT NOT NULL UNIQUE,
                host_id INTEGER NOT NULL,
                current_gameweek INTEGER NOT NULL,
                current_round INTEGER NOT NULL DEFAULT 1,
                status TEXT NOT NULL DEFAULT 'waiting',
                deal_threshold INTEGER NOT NULL DEFAULT 2,
                no_pick_policy TEXT NOT NULL DEFAULT 'eliminate',
                dgw_rule TEXT NOT NULL DEFAULT 'first_only',
                prize_pot INTEGER NOT NULL DEFAULT 0,
                completed_reason TEXT,
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL
            )
            """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS room_players (
                room_id INTEGER NOT NULL,
                player_id INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending_pick',
                joined_at INTEGER NOT NULL,
                eliminated_at INTEGER,
                eliminated_gameweek INTEGER,
                PRIMARY KEY (room_id, player_id),
                FOREIGN KEY (room_id) REFERENCES rooms(room_id)
            )
            """
        )

        # One pick per (room, player, gameweek); a team once per (room, player)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS picks (
                room_id INTEGER NOT NULL,
                player_id INTEGER NOT NULL,
                gameweek INTEGER NOT NULL,
                team_id INTEGER NOT NULL,
                is_locked INTEGER NOT NULL DEFAULT 0,
                result TEXT NOT NULL DEFAULT 'pending',
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL,
                locked_at INTEGER,
                PRIMARY KEY (room_id, player_id, gameweek),
                UNIQUE (room_id, player_id, team_id),
                FOREIGN KEY (room_id) REFERENCES rooms(room_id)
            )
            """
        )

    # --- Migration helpers ---

    def _add_column_if_not_exists(self, cursor, table: str, column: str, column_type: str) -> None:
        try:
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}")
        except sqlite3.OperationalError:
            pass

    def _create_schema_migrations_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    def _run_migrations(self, cursor) -> None:
        applied = {row["name"] for row in cursor.execute("SELECT name FROM schema_migrations")}
        for name, action in self._get_migrations():
            if name in applied:
                continue
            logger.info(f"Applying migration: {name}")
            action(cursor)
            cursor.execute(
                "INSERT INTO schema_migrations (name) VALUES (?)",
                (name,),
            )

    def _get_migrations(self):
        return [
            ("create_deal_system", self._migration_create_deal_system),
            ("create_rematch_votes_table", self._migration_create_rematch_votes_table),
            ("add_pick_is_auto_column", self._migration_add_pick_is_auto_column),
            ("add_room_attention_columns", self._migration_add_room_attention_columns),
            ("add_recovery_notice_columns", self._migration_add_recovery_notice_columns),
            ("add_room_player_payout_column", self._migration_add_room_player_payout_column),
            ("add_indexes_v1", self._migration_add_indexes_v1),
        ]

    # --- Migrations ---

    def _migration_create_deal_system(self, cursor) -> None:
        """Create tables for pot-split deal negotiation."""
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS deal_requests (
                deal_id INTEGER PRIMARY KEY AUTOINCREMENT,
                room_id INTEGER NOT NULL,
                initiated_by INTEGER NOT NULL,
                gameweek INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                created_at INTEGER NOT NULL,
                expires_at INTEGER NOT NULL,
                resolved_at INTEGER,
                FOREIGN KEY (room_id) REFERENCES rooms(room_id)
            )
            """
        )

        # Snapshot of active players at request time
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS deal_participants (
                deal_id INTEGER NOT NULL,
                player_id INTEGER NOT NULL,
                PRIMARY KEY (deal_id, player_id),
                FOREIGN KEY (deal_id) REFERENCES deal_requests(deal_id)
            )
            """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS deal_votes (
                deal_id INTEGER NOT NULL,
                player_id INTEGER NOT NULL,
                vote TEXT NOT NULL,
                voted_at INTEGER NOT NULL,
                PRIMARY KEY (deal_id, player_id),
                FOREIGN KEY (deal_id) REFERENCES deal_requests(deal_id)
            )
            """
        )

        # At most one pending request per room
        cursor.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_deal_requests_one_pending
            ON deal_requests(room_id) WHERE status = 'pending'
            """
        )

    def _migration_create_rematch_votes_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS rematch_votes (
                room_id INTEGER NOT NULL,
                player_id INTEGER NOT NULL,
                vote TEXT NOT NULL,
                voted_at INTEGER NOT NULL,
                PRIMARY KEY (room_id, player_id),
                FOREIGN KEY (room_id) REFERENCES rooms(room_id)
            )
            """
        )

    def _migration_add_pick_is_auto_column(self, cursor) -> None:
        self._add_column_if_not_exists(cursor, "picks", "is_auto", "INTEGER NOT NULL DEFAULT 0")

    def _migration_add_room_attention_columns(self, cursor) -> None:
        self._add_column_if_not_exists(cursor, "rooms", "needs_attention", "INTEGER NOT NULL DEFAULT 0")
        self._add_column_if_not_exists(cursor, "rooms", "attention_reason", "TEXT")

    def _migration_add_recovery_notice_columns(self, cursor) -> None:
        self._add_column_if_not_exists(cursor, "rooms", "last_recovery_gameweek", "INTEGER")
        self._add_column_if_not_exists(cursor, "room_players", "last_notified_gameweek", "INTEGER")

    def _migration_add_room_player_payout_column(self, cursor) -> None:
        self._add_column_if_not_exists(cursor, "room_players", "payout", "INTEGER")

    def _migration_add_indexes_v1(self, cursor) -> None:
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_fixtures_gw ON fixtures(gw)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_rooms_status ON rooms(status)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_room_players_status ON room_players(room_id, status)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_picks_room_gameweek ON picks(room_id, gameweek)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_deal_requests_room ON deal_requests(room_id, status)"
        )
