"""The ``cat`` pipeline: choose files, skip what is binary or already seen, emit."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from om import session as sessions
from om.models import CatResult, EmittedFile, ScoredFile, Session
from om.selection import FileLister, StatusFilter, select_files
from om.tokens import count_tokens

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 5
MAX_FILE_SIZE = 100 * 1024
HASH_PREFIX_LEN = 12
RULE = "=" * 80

BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        # images
        "png", "jpg", "jpeg", "gif", "bmp", "ico", "webp", "tiff", "tif", "psd",
        "heic", "avif",
        # audio / video
        "mp3", "wav", "ogg", "flac", "aac", "m4a", "mp4", "mov", "avi", "mkv",
        "webm", "wmv",
        # archives
        "zip", "tar", "gz", "tgz", "bz2", "xz", "7z", "rar", "zst", "jar", "war",
        # compiled / native
        "exe", "dll", "so", "dylib", "a", "o", "obj", "lib", "bin", "class",
        "pyc", "pyo", "wasm",
        # documents
        "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "odt",
        # fonts
        "ttf", "otf", "woff", "woff2", "eot",
        # data stores
        "db", "sqlite", "sqlite3", "parquet", "pkl", "npy", "npz", "h5",
    }
)


def resolve_session_id(
    explicit: str | None, environ: Mapping[str, str] | None = None
) -> str | None:
    """Pick the session for this run: the flag first, then ``$OM_SESSION``.

    Returns:
        The session id, or None when deduplication is off.
    """
    if explicit:
        return explicit
    if environ is None:
        environ = os.environ
    return environ.get(sessions.SESSION_ENV_VAR) or None


def classify(path: Path) -> bool:
    """Return True if path looks like text worth reading.

    Files with a known binary extension, empty files and files larger
    than ``MAX_FILE_SIZE`` are rejected without reading them.
    """
    if path.suffix.lstrip(".").lower() in BINARY_EXTENSIONS:
        return False
    try:
        size = path.stat().st_size
    except OSError:
        return False
    return 0 < size <= MAX_FILE_SIZE


def explicit_targets(root: Path, files: Iterable[str]) -> list[ScoredFile]:
    """Turn user-named files into targets, in the order given, without repeats."""
    seen: set[str] = set()
    targets: list[ScoredFile] = []
    for name in files:
        rel = _relative_to_root(root, name)
        if rel in seen:
            continue
        seen.add(rel)
        targets.append(ScoredFile(path=rel, score=10, reason="explicit"))
    return targets


def _relative_to_root(root: Path, name: str) -> str:
    candidate = Path(name)
    if candidate.is_absolute():
        try:
            return candidate.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            return candidate.as_posix()
    return candidate.as_posix()


def emit_files(
    root: Path,
    targets: Sequence[ScoredFile],
    session: Session | None,
    *,
    with_tokens: bool = False,
) -> CatResult:
    """Read each target in order and decide whether to emit it.

    Marks every emitted file in session but does not save it.
    """
    result = CatResult(
        project=root.name or "project",
        session_id=session.id if session is not None else None,
    )
    for target in targets:
        full_path = root / target.path
        if not full_path.exists():
            logger.debug("Skipping missing file %s", target.path)
            continue
        if not classify(full_path):
            result.skipped_binary += 1
            continue
        try:
            raw = full_path.read_bytes()
            content = raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable file %s: %s", target.path, exc)
            result.skipped_binary += 1
            continue

        content_hash = sessions.compute_hash(raw)
        if session is not None:
            if sessions.was_read(session, target.path, content_hash):
                result.skipped_session += 1
                continue
            sessions.mark_read(session, target.path, content_hash)

        result.files.append(
            EmittedFile(
                path=target.path,
                score=target.score,
                content=content,
                lines=len(content.splitlines()),
                hash=content_hash,
                tokens=count_tokens(content) if with_tokens else None,
            )
        )
    return result


def run_cat(
    root: Path,
    *,
    files: Sequence[str] = (),
    level: int = DEFAULT_LEVEL,
    session_id: str | None = None,
    store: sessions.SessionStore | None = None,
    with_tokens: bool = False,
    prefix: str | None = None,
    status_filter: StatusFilter | None = None,
    lister: FileLister | None = None,
) -> CatResult:
    """Select, deduplicate and read the files to print.

    Args:
        root: Repository root.
        files: Explicit repo-relative paths; when empty, every file scoring
            at least ``level`` is selected instead.
        level: Minimum score in threshold mode.
        session_id: Session to deduplicate against, or None for none.
        store: Where sessions live; defaults to ``~/.om/sessions``.
        with_tokens: Count tokens for each emitted file.
        prefix: Threshold mode only; keep paths under this directory.
        status_filter: Threshold mode only; keep files in these git states.
        lister: Threshold mode only; replaces ``git ls-files``.

    Returns:
        The emitted files and skip counters.

    Raises:
        GitError: If the repository cannot be listed.
        SessionError: If the session cannot be loaded or saved.
    """
    if files:
        targets = explicit_targets(root, files)
    else:
        targets = select_files(
            root, level, prefix=prefix, status_filter=status_filter, lister=lister
        )

    if session_id is None:
        return emit_files(root, targets, None, with_tokens=with_tokens)

    if store is None:
        store = sessions.SessionStore()
    session = store.load(session_id)
    result = emit_files(root, targets, session, with_tokens=with_tokens)
    store.save(session)
    return result


def render_text(result: CatResult, *, headers: bool = True) -> str:
    """Render a CatResult as the plain-text dump: summary, then file blocks."""
    out: list[str] = []
    if headers:
        out.append(f"# Project: {result.project}")
        if result.session_id is not None:
            out.append(f"# Session: {result.session_id}")
        out.append(f"# Files: {result.files_shown} shown")
        if result.skipped_binary:
            out.append(f"# Skipped: {result.skipped_binary} binary/too large")
        if result.skipped_session:
            out.append(
                f"# Skipped: {result.skipped_session} already read in session"
            )
        if result.files:
            out.append(f"# Total lines: {result.total_lines}")

    for f in result.files:
        header = [f"FILE: {f.path}", f"LINES: {f.lines}"]
        if f.tokens is not None:
            header.append(f"TOKENS: {f.tokens}")
        header.append(f"HASH: {f.hash[:HASH_PREFIX_LEN]}")
        out.extend(["", RULE, *header, RULE, f.content.rstrip("\n")])
    return "\n".join(out)
