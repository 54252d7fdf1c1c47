"""Thin wrappers over the git commands om needs."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from om.errors import GitError, GitNotInstalledError, NotARepositoryError

_TIMEOUT = 10


@dataclass
class GitStatus:
    """Paths reported by ``git status --porcelain``, bucketed by state."""

    dirty: set[str] = field(default_factory=set)
    staged: set[str] = field(default_factory=set)
    unstaged: set[str] = field(default_factory=set)


def _run(args: list[str], cwd: Path) -> str:
    """Run a git subcommand in cwd and return its stdout.

    Raises:
        GitNotInstalledError: If the git binary is missing.
        NotARepositoryError: If cwd is not inside a work tree.
        GitError: On any other failure.
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=_TIMEOUT,
            check=False,
        )
    except FileNotFoundError as exc:
        if not cwd.is_dir():
            raise NotARepositoryError(cwd) from exc
        raise GitNotInstalledError() from exc
    except subprocess.TimeoutExpired as exc:
        raise GitError(f"git {args[0]} timed out after {_TIMEOUT}s") from exc
    except NotADirectoryError as exc:
        raise NotARepositoryError(cwd) from exc
    if result.returncode != 0:
        stderr = result.stderr.strip()
        if "not a git repository" in stderr:
            raise NotARepositoryError(cwd)
        raise GitError(f"git command failed: {stderr}")
    return result.stdout


def repo_root(path: Path) -> Path:
    """Return the top-level directory of the work tree containing path."""
    return Path(_run(["rev-parse", "--show-toplevel"], path).strip())


def ls_files(root: Path) -> list[str]:
    """Return tracked and untracked-but-not-ignored files under root.

    Uses ``git ls-files --cached --others --exclude-standard`` so every
    gitignore (root, nested and global) is respected.

    Returns:
        Repo-relative ``/``-separated paths, in git's order.
    """
    stdout = _run(["ls-files", "--cached", "--others", "--exclude-standard"], root)
    return [line.strip() for line in stdout.splitlines() if line.strip()]


def parse_status(stdout: str) -> GitStatus:
    """Parse ``git status --porcelain`` (v1) output."""
    status = GitStatus()
    for line in stdout.splitlines():
        if len(line) < 4:
            continue
        x, y = line[0], line[1]
        path = line[3:].strip()
        if " -> " in path:
            path = path.split(" -> ", 1)[1]

        is_staged = x not in (" ", "?")
        is_unstaged = y not in (" ", "?")
        is_untracked = x == "?" and y == "?"

        if is_staged:
            status.staged.add(path)
        if is_unstaged:
            status.unstaged.add(path)
        if is_staged or is_unstaged or is_untracked:
            status.dirty.add(path)
    return status


def git_status(root: Path) -> GitStatus:
    """Return the working-tree status of the repository at root."""
    return parse_status(_run(["status", "--porcelain"], root))
