"""
Compound Eye Database Module

Provides a single SQLite database for:
- observations: friction notes and their disposition
- projects: owner/repo name registry
- actions / action_observations: remediation log and its links

Database location: compound-eye.db (working directory)
"""

from .actions import ActionLog
from .database import (
    LEGACY_STATUS_MAP,
    SCHEMA_VERSION,
    CompoundEyeDatabase,
    get_default_db_path,
)
from .models import (
    VALID_DISPOSITIONS,
    Action,
    ActionFilters,
    ActionWithObservations,
    Disposition,
    Observation,
    ObservationFilters,
    ObservationUpdate,
    Project,
    is_valid_disposition,
)
from .observations import ObservationStore
from .projects import ProjectRegistry
from .query import WhereClause

__all__ = [
    # Database
    "CompoundEyeDatabase",
    "get_default_db_path",
    "SCHEMA_VERSION",
    "LEGACY_STATUS_MAP",
    # Models
    "Observation",
    "ObservationFilters",
    "ObservationUpdate",
    "Project",
    "Action",
    "ActionFilters",
    "ActionWithObservations",
    "Disposition",
    "VALID_DISPOSITIONS",
    "is_valid_disposition",
    # Stores
    "ObservationStore",
    "ProjectRegistry",
    "ActionLog",
    "WhereClause",
]
