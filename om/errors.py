"""Exceptions raised by om.

Everything the CLI should report to the user derives from ``OmError``;
any other exception is a bug and is allowed to propagate.
"""

from __future__ import annotations


class OmError(Exception):
    """Base class for user-facing om failures."""


class GitError(OmError):
    """A git command could not be run or returned an error."""


class GitNotInstalledError(GitError):
    def __init__(self) -> None:
        super().__init__("git is not installed")


class NotARepositoryError(GitError):
    def __init__(self, path: object) -> None:
        super().__init__(f"not a git repository: {path}")


class HomeDirectoryError(OmError):
    def __init__(self) -> None:
        super().__init__("could not determine home directory")


class SessionError(OmError):
    """Session state could not be read or written."""


class IgnoreFileExistsError(OmError):
    def __init__(self, path: object) -> None:
        super().__init__(f"{path} already exists. Use --force to overwrite.")


class OutputFormatError(OmError):
    def __init__(self, value: str) -> None:
        super().__init__(f"invalid format: {value}. Use text, json, xml, or toon")
