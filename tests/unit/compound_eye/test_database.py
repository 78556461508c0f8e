"""Tests for the database connection and schema manager."""

import sqlite3
from pathlib import Path

import pytest

from compound_eye.database import SCHEMA_VERSION, CompoundEyeDatabase, get_default_db_path


class TestGetDefaultDbPath:
    """Tests for get_default_db_path function."""

    def test_returns_path_in_cwd(self, tmp_path, monkeypatch):
        """Default database lives in the working directory."""
        monkeypatch.chdir(tmp_path)
        assert get_default_db_path() == tmp_path / "compound-eye.db"


class TestCompoundEyeDatabase:
    """Tests for CompoundEyeDatabase class."""

    def test_creates_database_file(self, db_file: Path):
        """Should create the file and any missing parent directories."""
        database = CompoundEyeDatabase(db_file)
        database.close()
        assert db_file.exists()

    def test_creates_schema(self, db):
        """Should create all schema tables."""
        rows = db.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = {row["name"] for row in rows}

        for table in ("observations", "projects", "actions", "action_observations", "schema_info"):
            assert table in tables, f"Missing table: {table}"

    def test_observation_columns(self, db):
        """observations should use the disposition column, not status."""
        columns = {col["name"] for col in db.execute("PRAGMA table_info(observations)")}
        assert columns == {
            "id",
            "text",
            "tags",
            "source",
            "disposition",
            "project",
            "created_at",
            "updated_at",
        }

    def test_schema_version(self, db):
        """Should stamp the current schema version."""
        assert db.get_schema_version() == SCHEMA_VERSION == "2"

    def test_foreign_keys_enabled(self, db):
        """Cascading link deletes depend on foreign key enforcement."""
        assert db.execute_one("PRAGMA foreign_keys")[0] == 1

    def test_wal_enabled_for_file_database(self, db_file: Path):
        """File databases should use write-ahead logging."""
        database = CompoundEyeDatabase(db_file)
        try:
            assert database.execute_one("PRAGMA journal_mode")[0] == "wal"
        finally:
            database.close()

    def test_projects_have_no_foreign_key_from_observations(self, db):
        """The project reference is by name only."""
        assert db.execute("PRAGMA foreign_key_list(observations)") == []
        assert db.execute("PRAGMA foreign_key_list(actions)") == []

    def test_get_stats(self, db):
        """Should return row counts for every table."""
        stats = db.get_stats()
        assert stats["schema_version"] == SCHEMA_VERSION
        assert stats["database_path"] == ":memory:"
        assert stats["observations_count"] == 0
        assert stats["action_observations_count"] == 0

    def test_initialize_is_idempotent(self, db):
        """initialize() may be called on every start."""
        db.initialize()
        db.initialize()
        assert db.get_schema_version() == SCHEMA_VERSION

    def test_migrate_noop_on_current_schema(self, db):
        """migrate() on a current schema does nothing, twice in a row."""
        assert db.migrate() is False
        assert db.migrate() is False


class TestTransaction:
    """Tests for the transaction() context manager."""

    def test_commits_on_success(self, db):
        with db.transaction() as conn:
            conn.execute("INSERT INTO projects (name) VALUES ('acme/widgets')")

        assert db.execute_one("SELECT COUNT(*) AS cnt FROM projects")["cnt"] == 1

    def test_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                conn.execute("INSERT INTO projects (name) VALUES ('acme/widgets')")
                raise RuntimeError("boom")

        assert db.execute_one("SELECT COUNT(*) AS cnt FROM projects")["cnt"] == 0

    def test_rolls_back_on_integrity_error(self, db):
        db.execute_insert("INSERT INTO projects (name) VALUES ('acme/widgets')")

        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute("INSERT INTO projects (name) VALUES ('acme/gadgets')")
                conn.execute("INSERT INTO projects (name) VALUES ('acme/widgets')")

        names = [row["name"] for row in db.execute("SELECT name FROM projects")]
        assert names == ["acme/widgets"]
