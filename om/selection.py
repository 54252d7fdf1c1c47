"""Threshold-based file selection over a git repository."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from om import ignore
from om.git import GitStatus, git_status, ls_files
from om.models import ScoredFile
from om.scorer import score_files, sort_scored

FileLister = Callable[[Path], Sequence[str]]


@dataclass(frozen=True)
class StatusFilter:
    """Which git working-tree states to keep; all False means no filtering."""

    dirty: bool = False
    staged: bool = False
    unstaged: bool = False

    @property
    def active(self) -> bool:
        return self.dirty or self.staged or self.unstaged

    def keeps(self, status: GitStatus, path: str) -> bool:
        return (
            (self.staged and path in status.staged)
            or (self.unstaged and path in status.unstaged)
            or (self.dirty and path in status.dirty)
        )


def path_prefix(root: Path, path: Path) -> str | None:
    """Return path relative to root as a ``/``-joined prefix, or None at the root."""
    try:
        rel = path.resolve().relative_to(root.resolve())
    except ValueError:
        return None
    prefix = rel.as_posix()
    return None if prefix in ("", ".") else prefix


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def candidate_paths(
    root: Path,
    *,
    prefix: str | None = None,
    status_filter: StatusFilter | None = None,
    patterns: ignore.IgnorePatternSet | None = None,
    lister: FileLister | None = None,
) -> list[str]:
    """List repository files that survive the ignore, prefix and status filters.

    Args:
        root: Repository root.
        prefix: Keep only paths at or below this repo-relative directory.
        status_filter: Keep only files in the selected git states.
        patterns: Ignore patterns; loaded from root when omitted.
        lister: Returns repo-relative paths for root; defaults to ``ls_files``.

    Returns:
        Paths in lister order.
    """
    if patterns is None:
        patterns = ignore.load(root)
    status = (
        git_status(root) if status_filter is not None and status_filter.active else None
    )

    kept: list[str] = []
    for path in (lister or ls_files)(root):
        if ignore.is_ignored(patterns, path):
            continue
        if prefix is not None and not _under(path, prefix):
            continue
        if status is not None and not status_filter.keeps(status, path):
            continue
        kept.append(path)
    return kept


def select_files(
    root: Path,
    threshold: int,
    *,
    prefix: str | None = None,
    status_filter: StatusFilter | None = None,
    patterns: ignore.IgnorePatternSet | None = None,
    lister: FileLister | None = None,
) -> list[ScoredFile]:
    """Score candidate files and keep those at or above threshold.

    Takes the same filters as ``candidate_paths``.

    Returns:
        Scored files ordered by score descending, then path ascending.
    """
    paths = candidate_paths(
        root,
        prefix=prefix,
        status_filter=status_filter,
        patterns=patterns,
        lister=lister,
    )
    scored = score_files(paths)
    return sort_scored(f for f in scored if f.score >= threshold)
