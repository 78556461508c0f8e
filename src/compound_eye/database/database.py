"""
Core database connection and schema management for Compound Eye.

One SQLite database holds every table:
- observations: free-text friction observations and their disposition
- projects: registry of owner/repo names (referenced by name, not by key)
- actions: append-only remediation log
- action_observations: many-to-many links between actions and observations

Location: compound-eye.db in the working directory (or ":memory:" in tests)
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

# Schema version for migrations
SCHEMA_VERSION = "2"  # v2: observations.status renamed to disposition

# Legacy status values and the disposition each one maps to
LEGACY_STATUS_MAP = {
    "observed": "open",
    "pattern_confirmed": "open",
    "solution_designed": "open",
    "automated": "addressed",
}

# SQLite clock expression used for every timestamp column
NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%SZ', 'now')"


def get_default_db_path() -> Path:
    """Get the default database path (compound-eye.db in the working directory)."""
    return Path.cwd() / "compound-eye.db"


SCHEMA = f"""
-- Schema metadata
CREATE TABLE IF NOT EXISTS schema_info (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Observations (tags is reserved, unused)
CREATE TABLE IF NOT EXISTS observations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    tags TEXT,
    source TEXT NOT NULL DEFAULT 'human',
    disposition TEXT NOT NULL DEFAULT 'open',
    project TEXT,
    created_at TEXT NOT NULL DEFAULT ({NOW_SQL}),
    updated_at TEXT NOT NULL DEFAULT ({NOW_SQL})
);

-- Project registry. observations.project and actions.project refer to
-- projects.name by convention only; there is deliberately no foreign key.
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL DEFAULT ({NOW_SQL})
);

-- Append-only action log
CREATE TABLE IF NOT EXISTS actions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    description TEXT NOT NULL,
    source TEXT NOT NULL DEFAULT 'human',
    reference TEXT,
    project TEXT,
    created_at TEXT NOT NULL DEFAULT ({NOW_SQL})
);

-- Action <-> observation links
CREATE TABLE IF NOT EXISTS action_observations (
    action_id INTEGER NOT NULL REFERENCES actions(id) ON DELETE CASCADE,
    observation_id INTEGER NOT NULL REFERENCES observations(id) ON DELETE CASCADE,
    PRIMARY KEY (action_id, observation_id)
);
"""

# Indexes reference post-migration columns, so they are created after migrate()
INDEXES = """
CREATE INDEX IF NOT EXISTS idx_observations_disposition ON observations(disposition);
CREATE INDEX IF NOT EXISTS idx_observations_project ON observations(project);
CREATE INDEX IF NOT EXISTS idx_observations_created_at ON observations(created_at);
CREATE INDEX IF NOT EXISTS idx_actions_project ON actions(project);
CREATE INDEX IF NOT EXISTS idx_actions_created_at ON actions(created_at);
CREATE INDEX IF NOT EXISTS idx_action_observations_observation
    ON action_observations(observation_id);
"""


class CompoundEyeDatabase:
    """Shared SQLite store for observations, projects and actions.

    A single long-lived connection is opened at construction and handed to
    every store component. The connection runs in autocommit mode; callers
    needing more than one statement to succeed together use transaction().
    """

    def __init__(self, db_path: Path | str | None = None):
        """Open the database and bring its schema up to date.

        Args:
            db_path: Path to the database file, or ":memory:".
                Defaults to compound-eye.db in the working directory.

        Raises:
            sqlite3.Error: If the legacy schema migration fails. The legacy
                layout is left untouched and the process should not continue.
        """
        if db_path is None:
            db_path = get_default_db_path()

        if str(db_path) == ":memory:":
            self.db_path: Path | str = ":memory:"
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(
            str(self.db_path),
            timeout=10.0,
            isolation_level=None,
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.execute("PRAGMA journal_mode = WAL")  # Better concurrent access

        try:
            self.initialize()
            if self.migrate():
                logger.info("Migrated observations.status to observations.disposition")
            self._conn.executescript(INDEXES)
            self.execute_update(
                "INSERT OR REPLACE INTO schema_info (key, value) VALUES (?, ?)",
                ("schema_version", SCHEMA_VERSION),
            )
        except Exception:
            self._conn.close()
            raise

    def initialize(self) -> None:
        """Create all tables if they don't exist. Safe on every start."""
        self._conn.executescript(SCHEMA)

    def migrate(self) -> bool:
        """Rename the legacy observations.status column to disposition.

        Legacy values are remapped in the same transaction:
        observed, pattern_confirmed, solution_designed -> open;
        automated -> addressed.

        Returns:
            True if a migration ran, False if the schema was already current.

        Raises:
            sqlite3.Error: Re-raised after a full rollback.
        """
        columns = self.execute("PRAGMA table_info(observations)")
        if not any(col["name"] == "status" for col in columns):
            return False

        logger.info("Legacy observations.status column found, migrating")
        try:
            with self.transaction() as conn:
                conn.execute("ALTER TABLE observations RENAME COLUMN status TO disposition")
                for legacy, disposition in LEGACY_STATUS_MAP.items():
                    conn.execute(
                        "UPDATE observations SET disposition = ? WHERE disposition = ?",
                        (disposition, legacy),
                    )
        except sqlite3.Error as e:
            logger.error(f"Schema migration failed and was rolled back: {e}")
            raise
        return True

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager wrapping statements in BEGIN/COMMIT.

        Yields:
            The shared sqlite3.Connection (row_factory = sqlite3.Row).
            Any exception rolls the transaction back and propagates.
        """
        self._conn.execute("BEGIN")
        try:
            yield self._conn
            self._conn.execute("COMMIT")
        except Exception:
            self._conn.execute("ROLLBACK")
            raise

    def execute(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Execute SQL and return all results."""
        return self._conn.execute(sql, params).fetchall()

    def execute_one(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        """Execute SQL and return first result."""
        return self._conn.execute(sql, params).fetchone()

    def execute_insert(self, sql: str, params: tuple = ()) -> int:
        """Execute INSERT and return last row ID."""
        cursor = self._conn.execute(sql, params)
        return cursor.lastrowid or 0

    def execute_update(self, sql: str, params: tuple = ()) -> int:
        """Execute UPDATE/DELETE and return rows affected."""
        return self._conn.execute(sql, params).rowcount

    def get_schema_version(self) -> str:
        """Get current schema version."""
        result = self.execute_one(
            "SELECT value FROM schema_info WHERE key = ?", ("schema_version",)
        )
        return result["value"] if result else "unknown"

    def get_stats(self) -> dict:
        """Get database statistics for diagnostics."""
        stats: dict = {
            "schema_version": self.get_schema_version(),
            "database_path": str(self.db_path),
        }
        for table in ("observations", "projects", "actions", "action_observations"):
            result = self.execute_one(f"SELECT COUNT(*) as cnt FROM {table}")
            stats[f"{table}_count"] = result["cnt"] if result else 0
        return stats

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()
