"""Discovery - find git repositories on disk and name them owner/repo.

Usage:
    from compound_eye.discovery import RepositoryScanner

    scanner = RepositoryScanner()
    names = scanner.scan("~/code")  # ["acme/widgets", ...]

The scanner never touches the database; callers pass its result to
ProjectRegistry.create_bulk().
"""

from .scanner import (
    RepositoryScanner,
    get_origin_url,
    parse_github_repo,
    scan_for_git_repos,
)

__all__ = [
    "RepositoryScanner",
    "get_origin_url",
    "parse_github_repo",
    "scan_for_git_repos",
]
