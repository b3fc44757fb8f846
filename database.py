"""
Database bootstrap for the survivor pool.

Schema creation and migrations live in infrastructure.schema_manager; this
module only wires a database path to them.
"""

import logging
import sqlite3

from infrastructure.schema_manager import SchemaManager

logger = logging.getLogger("survivor_bot.database")


class Database:
    """
    Owns a SQLite database file and guarantees its schema is current.

    Repositories open their own connections; Database is constructed once per
    path (BaseRepository does this on first use) so migrations run exactly once.
    """

    def __init__(self, db_path: str = "survivor_pool.db"):
        self.db_path = db_path
        self._use_uri = db_path.startswith("file:")
        SchemaManager(db_path, use_uri=self._use_uri).initialize()

    def get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        return conn
