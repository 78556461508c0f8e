"""
Observation store.

Observations are short free-text notes about engineering friction. Each
carries a disposition (open, addressed, wont_fix, deferred) recording human
judgment on whether it still needs attention.

Lifecycle: created as "open" -> partially updated any number of times ->
deleted (links to actions are removed by cascade).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..errors import ValidationError
from .database import NOW_SQL, CompoundEyeDatabase
from .models import (
    DEFAULT_SOURCE,
    Disposition,
    Observation,
    ObservationFilters,
    ObservationUpdate,
    is_valid_disposition,
)
from .projects import ensure_project
from .query import WhereClause, placeholders

logger = logging.getLogger(__name__)

# Newest first; rows written within the same second fall back to insertion order
ORDER_BY = "ORDER BY created_at DESC, id DESC"


class ObservationStore:
    """CRUD and filtered listing over the observations table."""

    def __init__(self, db: CompoundEyeDatabase):
        self.db = db

    def create(
        self,
        text: str,
        source: str | None = None,
        project: str | None = None,
    ) -> Observation:
        """Store a new observation.

        The disposition always starts as "open". A named project is
        registered first if it isn't already.

        Args:
            text: Observation text (must be non-empty)
            source: Originator tag; absent or blank becomes "human"
            project: Optional owner/repo name

        Returns:
            The stored observation including id and timestamps

        Raises:
            ValidationError: If text is empty
        """
        if not text:
            raise ValidationError("text is required")
        if not source:
            source = DEFAULT_SOURCE
        # Blank names are stored as NULL, never as an unregistered ""
        project = project or None

        with self.db.transaction() as conn:
            if project:
                ensure_project(conn, project)
            cursor = conn.execute(
                """
                INSERT INTO observations (text, source, project, disposition)
                VALUES (?, ?, ?, ?)
                """,
                (text, source, project, Disposition.OPEN.value),
            )
            row = conn.execute(
                "SELECT * FROM observations WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()

        logger.debug(f"Stored observation #{row['id']} (source={source})")
        return Observation.from_row(row)

    def get(self, observation_id: int) -> Observation | None:
        row = self.db.execute_one(
            "SELECT * FROM observations WHERE id = ?", (observation_id,)
        )
        return Observation.from_row(row) if row else None

    def list(self, filters: ObservationFilters | None = None) -> list[Observation]:
        """List observations matching every provided filter, newest first."""
        filters = filters or ObservationFilters()
        where = (
            WhereClause()
            .equals("disposition", filters.disposition or None)
            .equals("source", filters.source or None)
            .equals("project", filters.project or None)
        )
        rows = self.db.execute(
            f"SELECT * FROM observations {where.sql()} {ORDER_BY}", where.bindings()
        )
        return [Observation.from_row(row) for row in rows]

    def update(
        self, observation_id: int, updates: ObservationUpdate
    ) -> Observation | None:
        """Apply a partial update.

        Fields left as None, and a blank project, are unchanged. Any write
        also stamps updated_at.

        Returns:
            The updated observation, or None if observation_id doesn't exist

        Raises:
            ValidationError: If no field is provided (nothing is written),
                text is empty, or disposition is not a known value
        """
        fields = updates.provided()
        if fields.get("project") == "":
            del fields["project"]
        if not fields:
            raise ValidationError("No fields to update")
        if "text" in fields and not fields["text"]:
            raise ValidationError("text must not be empty")
        if "disposition" in fields and not is_valid_disposition(fields["disposition"]):
            raise ValidationError(f"Invalid disposition: {fields['disposition']}")

        # Column names come from ObservationUpdate's fixed field set
        sets = [f"{column} = ?" for column in fields]
        sets.append(f"updated_at = {NOW_SQL}")
        params = (*fields.values(), observation_id)

        with self.db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE observations SET {', '.join(sets)} WHERE id = ?", params
            )
            if cursor.rowcount == 0:
                return None
            if fields.get("project"):
                ensure_project(conn, fields["project"])
            row = conn.execute(
                "SELECT * FROM observations WHERE id = ?", (observation_id,)
            ).fetchone()

        logger.debug(
            f"Updated observation #{observation_id}: {', '.join(sorted(fields))}"
        )
        return Observation.from_row(row)

    def delete(self, observation_id: int) -> bool:
        """Delete an observation and (by cascade) its action links."""
        return (
            self.db.execute_update(
                "DELETE FROM observations WHERE id = ?", (observation_id,)
            )
            > 0
        )

    def get_by_ids(self, ids: Sequence[int]) -> list[Observation]:
        """Return the observations that exist among ids, newest first."""
        if not ids:
            return []
        rows = self.db.execute(
            f"SELECT * FROM observations WHERE id IN ({placeholders(len(ids))}) {ORDER_BY}",
            tuple(ids),
        )
        return [Observation.from_row(row) for row in rows]
