"""Shared pytest fixtures for compound-eye tests.

Store tests run against an in-memory database; scanner tests build
directory trees under tmp_path.
"""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from compound_eye.database import (
    ActionLog,
    CompoundEyeDatabase,
    ObservationStore,
    ProjectRegistry,
)

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db() -> Generator[CompoundEyeDatabase, None, None]:
    """Provide a fresh in-memory database."""
    database = CompoundEyeDatabase(":memory:")
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def observations(db: CompoundEyeDatabase) -> ObservationStore:
    return ObservationStore(db)


@pytest.fixture
def projects(db: CompoundEyeDatabase) -> ProjectRegistry:
    return ProjectRegistry(db)


@pytest.fixture
def actions(db: CompoundEyeDatabase) -> ActionLog:
    return ActionLog(db)


@pytest.fixture
def db_file(tmp_path: Path) -> Path:
    """Path for a file-backed database that does not exist yet."""
    return tmp_path / "data" / "compound-eye.db"


# =============================================================================
# Filesystem Fixtures
# =============================================================================


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Create directories under a scan root.

    Usage:
        root = make_tree("repoA/.git", "repoA/nested/.git", "node_modules/.git")
    """
    root = tmp_path / "scan-root"
    root.mkdir()

    def _make(*relative_dirs: str) -> Path:
        for rel in relative_dirs:
            (root / rel).mkdir(parents=True, exist_ok=True)
        return root

    return _make
