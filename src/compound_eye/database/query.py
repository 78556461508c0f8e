"""
WHERE clause builder for conditionally filtered queries.

Values are only ever bound as parameters. Column expressions come from
the calling code, never from request data.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class WhereClause:
    """Accumulates AND-ed predicates and their bound parameters."""

    conditions: list[str] = field(default_factory=list)
    params: list[Any] = field(default_factory=list)

    def add(self, predicate: str, *params: Any) -> "WhereClause":
        """Add a predicate with one "?" placeholder per param."""
        if predicate.count("?") != len(params):
            raise ValueError(
                f"Predicate {predicate!r} expects {predicate.count('?')} params, "
                f"got {len(params)}"
            )
        self.conditions.append(predicate)
        self.params.extend(params)
        return self

    def equals(self, column: str, value: Any) -> "WhereClause":
        """Add `column = ?` when value is not None; absent filters are skipped."""
        if value is not None:
            self.add(f"{column} = ?", value)
        return self

    def sql(self) -> str:
        """Render the clause, or an empty string when there are no predicates."""
        if not self.conditions:
            return ""
        return "WHERE " + " AND ".join(self.conditions)

    def bindings(self) -> tuple:
        return tuple(self.params)


def placeholders(count: int) -> str:
    """Return "?, ?, ..." for an IN list of the given size."""
    return ", ".join("?" for _ in range(count))
