"""
Compound Eye Models - Data classes for stored entities.

Rows are returned to callers as these dataclasses; nothing outside the
database package holds a reference into the tables themselves.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum


class Disposition(str, Enum):
    """Human judgment on whether an observation needs attention."""

    OPEN = "open"  # Needs attention (default)
    ADDRESSED = "addressed"  # Remediated
    WONT_FIX = "wont_fix"  # Judged not worth fixing
    DEFERRED = "deferred"  # Intentionally postponed


VALID_DISPOSITIONS = tuple(d.value for d in Disposition)

DEFAULT_SOURCE = "human"


def is_valid_disposition(value: str) -> bool:
    """Return True if value is one of the known dispositions."""
    return value in VALID_DISPOSITIONS


@dataclass
class Observation:
    """A short free-text note about engineering friction."""

    id: int
    text: str
    tags: str | None
    source: str
    disposition: str
    project: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row) -> "Observation":
        """Create Observation from database row."""
        return cls(
            id=row["id"],
            text=row["text"],
            tags=row["tags"],
            source=row["source"],
            disposition=row["disposition"],
            project=row["project"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Project:
    """A registered owner/repo name."""

    id: int
    name: str
    created_at: str

    @classmethod
    def from_row(cls, row) -> "Project":
        """Create Project from database row."""
        return cls(id=row["id"], name=row["name"], created_at=row["created_at"])

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Action:
    """An append-only record of remediation work."""

    id: int
    description: str
    source: str
    reference: str | None
    project: str | None
    created_at: str

    @classmethod
    def from_row(cls, row) -> "Action":
        """Create Action from database row."""
        return cls(
            id=row["id"],
            description=row["description"],
            source=row["source"],
            reference=row["reference"],
            project=row["project"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ActionWithObservations(Action):
    """An action together with the ids of the observations it addresses."""

    observation_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_action(
        cls, action: Action, observation_ids: list[int]
    ) -> "ActionWithObservations":
        return cls(**asdict(action), observation_ids=list(observation_ids))


@dataclass
class ObservationFilters:
    """Optional equality filters for listing observations (combined with AND)."""

    disposition: str | None = None
    source: str | None = None
    project: str | None = None


@dataclass
class ObservationUpdate:
    """Partial update; None means leave the field unchanged."""

    text: str | None = None
    source: str | None = None
    disposition: str | None = None
    project: str | None = None

    def provided(self) -> dict[str, str]:
        """Return only the fields that were explicitly provided."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ActionFilters:
    """Optional filters for listing actions (combined with AND)."""

    project: str | None = None
    observation_id: int | None = None
