"""
Project registry.

A deduplicated set of owner/repo names used as a lookup list by the UI
and the CLI. Observations and actions refer to projects by name only, so
deleting a project never touches them.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable

from .database import CompoundEyeDatabase
from .models import Project

logger = logging.getLogger(__name__)


def ensure_project(conn: sqlite3.Connection, name: str) -> bool:
    """Register name if absent on an open connection.

    Returns:
        True if a new row was inserted, False if the name already existed.
    """
    cursor = conn.execute("INSERT OR IGNORE INTO projects (name) VALUES (?)", (name,))
    if cursor.rowcount == 0:
        logger.debug(f"Project already registered: {name}")
        return False
    return True


class ProjectRegistry:
    """Insert-if-absent registry of project names."""

    def __init__(self, db: CompoundEyeDatabase):
        self.db = db

    def ensure(self, name: str) -> None:
        """Guarantee name is registered. Silent if it already is."""
        with self.db.transaction() as conn:
            ensure_project(conn, name)

    def create(self, name: str) -> Project:
        """Register name, returning the existing row if it was already present."""
        with self.db.transaction() as conn:
            ensure_project(conn, name)
            row = conn.execute("SELECT * FROM projects WHERE name = ?", (name,)).fetchone()
        return Project.from_row(row)

    def create_bulk(self, names: Iterable[str]) -> list[Project]:
        """Register every name, returning only the rows newly inserted by this call.

        Names that were already registered (including repeats within names)
        are skipped from the result rather than re-fetched.
        """
        created: list[Project] = []
        with self.db.transaction() as conn:
            for name in names:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO projects (name) VALUES (?)", (name,)
                )
                if cursor.rowcount == 0:
                    continue
                row = conn.execute(
                    "SELECT * FROM projects WHERE id = ?", (cursor.lastrowid,)
                ).fetchone()
                created.append(Project.from_row(row))

        logger.info(f"Registered {len(created)} new project(s)")
        return created

    def list(self) -> list[Project]:
        """All projects ordered by name (binary collation)."""
        rows = self.db.execute("SELECT * FROM projects ORDER BY name ASC")
        return [Project.from_row(row) for row in rows]

    def get_by_name(self, name: str) -> Project | None:
        row = self.db.execute_one("SELECT * FROM projects WHERE name = ?", (name,))
        return Project.from_row(row) if row else None

    def delete(self, project_id: int) -> bool:
        """Delete a project by id. Returns False if no such id."""
        return self.db.execute_update("DELETE FROM projects WHERE id = ?", (project_id,)) > 0
