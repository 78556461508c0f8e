"""Integration tests for database schema migrations.

Tests that opening a database written with the legacy status column
renames it to disposition and remaps legacy values, atomically.
"""

import sqlite3
from pathlib import Path

import pytest

from compound_eye.database import (
    SCHEMA_VERSION,
    CompoundEyeDatabase,
    ObservationFilters,
    ObservationStore,
)

LEGACY_SCHEMA = """
    CREATE TABLE observations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        text TEXT NOT NULL,
        tags TEXT,
        source TEXT NOT NULL DEFAULT 'human',
        status TEXT NOT NULL DEFAULT 'observed',
        project TEXT,
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
        updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
    );

    INSERT INTO observations (text, status) VALUES ('one', 'observed');
    INSERT INTO observations (text, status) VALUES ('two', 'pattern_confirmed');
    INSERT INTO observations (text, status) VALUES ('three', 'solution_designed');
    INSERT INTO observations (text, status) VALUES ('four', 'automated');
    INSERT INTO observations (text, status) VALUES ('five', 'deferred');
"""


def _write_legacy_db(db_path: Path, script: str = LEGACY_SCHEMA) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.executescript(script)
    conn.commit()
    conn.close()


def _columns(db_path: Path) -> set[str]:
    conn = sqlite3.connect(db_path)
    try:
        return {row[1] for row in conn.execute("PRAGMA table_info(observations)")}
    finally:
        conn.close()


class TestSchemaMigration:
    """Tests for the status -> disposition migration."""

    def test_fresh_install_creates_current_schema(self, db_file: Path):
        """Fresh install should create schema at current version."""
        db = CompoundEyeDatabase(db_file)
        try:
            assert db.get_schema_version() == SCHEMA_VERSION
        finally:
            db.close()
        assert "disposition" in _columns(db_file)

    def test_legacy_column_renamed(self, db_file: Path):
        """Opening a legacy database renames status to disposition."""
        _write_legacy_db(db_file)

        db = CompoundEyeDatabase(db_file)
        db.close()

        columns = _columns(db_file)
        assert "disposition" in columns
        assert "status" not in columns

    def test_legacy_values_remapped(self, db_file: Path):
        """Legacy status values map onto the disposition domain."""
        _write_legacy_db(db_file)

        db = CompoundEyeDatabase(db_file)
        try:
            rows = db.execute("SELECT text, disposition FROM observations ORDER BY id")
            assert {row["text"]: row["disposition"] for row in rows} == {
                "one": "open",
                "two": "open",
                "three": "open",
                "four": "addressed",
                "five": "deferred",
            }
            assert db.get_schema_version() == SCHEMA_VERSION
        finally:
            db.close()

    def test_migrated_rows_usable_by_store(self, db_file: Path):
        """Migrated rows are visible through the observation store."""
        _write_legacy_db(db_file)

        db = CompoundEyeDatabase(db_file)
        try:
            store = ObservationStore(db)
            open_rows = store.list(ObservationFilters(disposition="open"))
            assert sorted(o.text for o in open_rows) == ["one", "three", "two"]
        finally:
            db.close()

    def test_migration_runs_once(self, db_file: Path):
        """Re-opening a migrated database is a no-op."""
        _write_legacy_db(db_file)

        first = CompoundEyeDatabase(db_file)
        first.close()
        second = CompoundEyeDatabase(db_file)
        try:
            assert second.migrate() is False
            assert second.migrate() is False
            count = second.execute_one("SELECT COUNT(*) AS cnt FROM observations")
            assert count["cnt"] == 5
        finally:
            second.close()

    def test_failed_migration_rolls_back(self, db_file: Path):
        """A failing rename leaves the legacy schema and data untouched."""
        # A pre-existing disposition column makes the rename fail
        _write_legacy_db(
            db_file,
            """
            CREATE TABLE observations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                text TEXT NOT NULL,
                tags TEXT,
                source TEXT NOT NULL DEFAULT 'human',
                status TEXT NOT NULL DEFAULT 'observed',
                disposition TEXT,
                project TEXT,
                created_at TEXT,
                updated_at TEXT
            );
            INSERT INTO observations (text, status) VALUES ('legacy', 'automated');
            """,
        )

        with pytest.raises(sqlite3.OperationalError):
            CompoundEyeDatabase(db_file)

        assert "status" in _columns(db_file)
        conn = sqlite3.connect(db_file)
        try:
            status = conn.execute("SELECT status FROM observations").fetchone()[0]
        finally:
            conn.close()
        assert status == "automated"


class TestDataPreservation:
    """Tests that data survives re-opening the database."""

    def test_observations_preserved(self, db_file: Path):
        db = CompoundEyeDatabase(db_file)
        ObservationStore(db).create("flaky CI retries", project="acme/widgets")
        db.close()

        db2 = CompoundEyeDatabase(db_file)
        try:
            rows = ObservationStore(db2).list()
            assert [o.text for o in rows] == ["flaky CI retries"]
        finally:
            db2.close()
