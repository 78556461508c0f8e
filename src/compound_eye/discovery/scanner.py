"""
Repository Scanner - Git Repository Discovery

Walks a directory tree breadth-first, finds git repository roots and reads
each root's origin remote to produce canonical owner/repo project names.
"""

import logging
import os
import re
import subprocess
from collections import deque
from pathlib import Path

from ..errors import ScanError

logger = logging.getLogger(__name__)

GIT_MARKER = ".git"
DEFAULT_HOST = "github.com"
DEFAULT_GIT_TIMEOUT = 10.0

# Directories never descended into (in addition to hidden ones)
PRUNED_DIRS = frozenset({"node_modules"})


def parse_github_repo(url: str, host: str = DEFAULT_HOST) -> str | None:
    """
    Extract owner/repo from a remote URL.

    Accepted shapes (an optional ".git" suffix is stripped):
        git@<host>:owner/repo
        http(s)://<host>/owner/repo

    Returns:
        "owner/repo", or None for any other host or shape
    """
    h = re.escape(host)
    patterns = [
        rf"^git@{h}:([^/]+)/([^/]+?)(?:\.git)?$",
        rf"^https?://{h}/([^/]+)/([^/]+?)(?:\.git)?$",
    ]
    for pattern in patterns:
        match = re.match(pattern, url)
        if match:
            return f"{match.group(1)}/{match.group(2)}"
    return None


def get_origin_url(repo_path: Path, timeout: float = DEFAULT_GIT_TIMEOUT) -> str | None:
    """
    Read the origin remote URL of a repository.

    Runs `git remote get-url origin` non-interactively. A missing remote,
    non-zero exit, missing git binary or timeout all yield None.
    """
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=repo_path,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            stdin=subprocess.DEVNULL,
        )
    except subprocess.TimeoutExpired:
        logger.debug(f"git remote lookup timed out: {repo_path}")
        return None
    except OSError as e:
        logger.debug(f"git remote lookup failed for {repo_path}: {e}")
        return None

    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


class RepositoryScanner:
    """Breadth-first scanner for git repositories under a root directory."""

    def __init__(self, git_timeout: float = DEFAULT_GIT_TIMEOUT, host: str = DEFAULT_HOST):
        """
        Args:
            git_timeout: Seconds allowed for each `git remote` lookup
            host: The only remote host accepted when parsing URLs
        """
        self.git_timeout = git_timeout
        self.host = host

    def scan(self, root: str | Path) -> list[str]:
        """
        Scan root for repositories and return their owner/repo names.

        Args:
            root: Directory to scan; a leading "~" is expanded

        Returns:
            Deduplicated owner/repo names in ascending order

        Raises:
            ScanError: If root does not exist or cannot be resolved
        """
        root_path = self.resolve_root(root)

        git_roots = self.find_git_roots(root_path)
        logger.info(f"Found {len(git_roots)} git repo(s) under {root_path}")

        candidates: set[str] = set()
        for repo in git_roots:
            url = get_origin_url(repo, timeout=self.git_timeout)
            if not url:
                logger.debug(f"Skipping {repo}: no origin remote")
                continue
            name = parse_github_repo(url, host=self.host)
            if name:
                candidates.add(name)
            else:
                logger.debug(f"Skipping {repo}: unrecognized remote {url}")

        return sorted(candidates)

    @staticmethod
    def resolve_root(root: str | Path) -> Path:
        """Expand "~" and resolve root to an absolute path that must exist."""
        try:
            return Path(root).expanduser().resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise ScanError(f"Cannot resolve scan root {root}: {e}") from e

    def find_git_roots(self, root_path: Path) -> list[Path]:
        """
        Find repository roots below root_path (inclusive), breadth-first.

        A directory containing a .git entry is a repository root and is not
        descended into. Hidden directories, node_modules and symlinked
        directories are pruned. Unreadable directories are skipped.
        """
        roots: list[Path] = []
        frontier: deque[Path] = deque([root_path])

        while frontier:
            directory = frontier.popleft()
            try:
                with os.scandir(directory) as it:
                    entries = list(it)
            except OSError:
                continue

            if any(entry.name == GIT_MARKER for entry in entries):
                roots.append(directory)
                continue

            for entry in sorted(entries, key=lambda e: e.name):
                if entry.name.startswith(".") or entry.name in PRUNED_DIRS:
                    continue
                try:
                    if entry.is_dir(follow_symlinks=False):
                        frontier.append(Path(entry.path))
                except OSError:
                    continue

        return roots


def scan_for_git_repos(root: str | Path, git_timeout: float = DEFAULT_GIT_TIMEOUT) -> list[str]:
    """Convenience wrapper: scan root with a default RepositoryScanner."""
    return RepositoryScanner(git_timeout=git_timeout).scan(root)
