"""Core data structures for om."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScoredFile:
    """A repository path with its importance score and the rule that set it."""

    path: str
    score: int
    reason: str


@dataclass
class Session:
    """Content hashes of every file already emitted under a session id."""

    id: str
    hashes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EmittedFile:
    """A file body selected for output by ``cat``."""

    path: str
    score: int
    content: str
    lines: int
    hash: str
    tokens: int | None = None


@dataclass
class CatResult:
    """Everything ``cat`` decided to print, plus its summary counters."""

    project: str
    session_id: str | None = None
    files: list[EmittedFile] = field(default_factory=list)
    skipped_binary: int = 0
    skipped_session: int = 0

    @property
    def files_shown(self) -> int:
        return len(self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.lines for f in self.files)
