"""
Action log.

Actions record remediation work and are never edited after creation. Each
action links to one or more observations through action_observations.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from collections.abc import Sequence

from ..errors import ValidationError
from .database import CompoundEyeDatabase
from .models import (
    DEFAULT_SOURCE,
    Action,
    ActionFilters,
    ActionWithObservations,
)
from .projects import ensure_project
from .query import WhereClause, placeholders

logger = logging.getLogger(__name__)

ORDER_BY = "ORDER BY a.created_at DESC, a.id DESC"


class ActionLog:
    """Append-only action log with many-to-many observation links."""

    def __init__(self, db: CompoundEyeDatabase):
        self.db = db

    def create(
        self,
        description: str,
        observation_ids: Sequence[int],
        source: str | None = None,
        reference: str | None = None,
        project: str | None = None,
    ) -> ActionWithObservations:
        """Record an action and link it to observations.

        The action row and all of its links are written in one transaction:
        if any link fails, no action row is left behind.

        Args:
            description: What was done (must be non-empty)
            observation_ids: Observations this action addresses (non-empty, no repeats)
            source: Originator tag; absent or blank becomes "human"
            reference: Optional free-text pointer (PR URL, commit, ...)
            project: Optional owner/repo name, registered if new

        Returns:
            The stored action with observation_ids echoing the input

        Raises:
            ValidationError: On empty description, empty or repeated ids,
                or an id that names no observation
        """
        if not description:
            raise ValidationError("description is required")
        if not observation_ids:
            raise ValidationError("observation_ids must be a non-empty array")
        repeated = sorted(i for i, n in Counter(observation_ids).items() if n > 1)
        if repeated:
            raise ValidationError(f"Duplicate observation ids: {repeated}")
        if not source:
            source = DEFAULT_SOURCE
        project = project or None

        try:
            with self.db.transaction() as conn:
                missing = self._missing_observations(conn, observation_ids)
                if missing:
                    raise ValidationError(f"Observations not found: {missing}")
                if project:
                    ensure_project(conn, project)
                cursor = conn.execute(
                    """
                    INSERT INTO actions (description, source, reference, project)
                    VALUES (?, ?, ?, ?)
                    """,
                    (description, source, reference, project),
                )
                action_id = cursor.lastrowid
                conn.executemany(
                    "INSERT INTO action_observations (action_id, observation_id) VALUES (?, ?)",
                    [(action_id, obs_id) for obs_id in observation_ids],
                )
                row = conn.execute(
                    "SELECT * FROM actions WHERE id = ?", (action_id,)
                ).fetchone()
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Could not link action to observations: {e}") from e

        logger.info(
            f"Recorded action #{action_id} for observation(s) {list(observation_ids)}"
        )
        return ActionWithObservations.from_action(
            Action.from_row(row), list(observation_ids)
        )

    def list(self, filters: ActionFilters | None = None) -> list[ActionWithObservations]:
        """List actions matching every provided filter, newest first.

        Each action's observation_ids is read back from the link table.
        """
        filters = filters or ActionFilters()
        where = WhereClause().equals("a.project", filters.project or None)
        if filters.observation_id is not None:
            where.add(
                "a.id IN (SELECT action_id FROM action_observations WHERE observation_id = ?)",
                filters.observation_id,
            )
        rows = self.db.execute(
            f"SELECT a.* FROM actions a {where.sql()} {ORDER_BY}", where.bindings()
        )
        return [
            ActionWithObservations.from_action(
                Action.from_row(row), self._linked_observation_ids(row["id"])
            )
            for row in rows
        ]

    def list_for_observation(self, observation_id: int) -> list[Action]:
        """All actions linked to one observation, newest first."""
        rows = self.db.execute(
            f"""
            SELECT a.* FROM actions a
            JOIN action_observations ao ON ao.action_id = a.id
            WHERE ao.observation_id = ?
            {ORDER_BY}
            """,
            (observation_id,),
        )
        return [Action.from_row(row) for row in rows]

    def _linked_observation_ids(self, action_id: int) -> list[int]:
        rows = self.db.execute(
            """
            SELECT observation_id FROM action_observations
            WHERE action_id = ?
            ORDER BY rowid
            """,
            (action_id,),
        )
        return [row["observation_id"] for row in rows]

    @staticmethod
    def _missing_observations(
        conn: sqlite3.Connection, observation_ids: Sequence[int]
    ) -> list[int]:
        rows = conn.execute(
            f"SELECT id FROM observations WHERE id IN ({placeholders(len(observation_ids))})",
            tuple(observation_ids),
        ).fetchall()
        found = {row["id"] for row in rows}
        return [i for i in observation_ids if i not in found]
