"""Persistent content-hash sessions.

A session records the SHA-256 of every file body emitted under its id, so
a later ``cat`` with the same id can skip files whose content has not
changed. Each session is one JSON file, replaced whole on every save.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path

from om.errors import HomeDirectoryError, SessionError
from om.models import Session

logger = logging.getLogger(__name__)

SESSION_ENV_VAR = "OM_SESSION"
SESSION_PREFIX = "sess-"
_SUFFIX = ".json"


def default_sessions_dir() -> Path:
    """Return ``~/.om/sessions``.

    Raises:
        HomeDirectoryError: If the home directory cannot be determined.
    """
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise HomeDirectoryError() from exc
    return home / ".om" / "sessions"


def compute_hash(content: bytes) -> str:
    """Return the lowercase hex SHA-256 of content."""
    return hashlib.sha256(content).hexdigest()


def generate_id() -> str:
    """Return a new id of the form ``sess-<unix seconds>``."""
    return f"{SESSION_PREFIX}{int(time.time())}"


def was_read(session: Session, path: str, content_hash: str) -> bool:
    """True iff path was marked with exactly this hash."""
    return session.hashes.get(path) == content_hash


def mark_read(session: Session, path: str, content_hash: str) -> None:
    session.hashes[path] = content_hash


def _validate_id(session_id: str) -> None:
    if (
        not session_id
        or session_id.startswith(".")
        or "/" in session_id
        or "\\" in session_id
        or "\0" in session_id
    ):
        raise SessionError(f"invalid session id: {session_id!r}")


class SessionStore:
    """Loads, saves, lists and clears sessions in one directory."""

    def __init__(self, directory: Path | None = None) -> None:
        self.directory = directory if directory is not None else default_sessions_dir()

    def path_for(self, session_id: str) -> Path:
        _validate_id(session_id)
        return self.directory / f"{session_id}{_SUFFIX}"

    def load(self, session_id: str) -> Session:
        """Read a session, or start an empty one if none is stored.

        Raises:
            SessionError: If the stored file exists but cannot be parsed.
        """
        path = self.path_for(session_id)
        if not path.is_file():
            logger.debug("Starting new session %s", session_id)
            return Session(id=session_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SessionError(f"cannot read session {session_id}: {exc}") from exc
        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, dict):
            raise SessionError(f"cannot read session {session_id}: missing 'files'")
        hashes = {str(k): str(v) for k, v in files.items()}
        logger.debug("Loaded session %s with %d entries", session_id, len(hashes))
        return Session(id=session_id, hashes=hashes)

    def save(self, session: Session) -> None:
        """Atomically replace the stored copy of session.

        Raises:
            SessionError: If the directory or file cannot be written.
        """
        path = self.path_for(session.id)
        payload = json.dumps(
            {"name": session.id, "files": session.hashes}, indent=2, sort_keys=True
        )
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{session.id}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload + "\n")
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SessionError(f"cannot save session {session.id}: {exc}") from exc
        logger.debug("Saved session %s with %d entries", session.id, len(session.hashes))

    def clear(self, session_id: str) -> bool:
        """Delete a stored session.

        Returns:
            True if a file was removed, False if there was nothing to clear.
        """
        path = self.path_for(session_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise SessionError(f"cannot clear session {session_id}: {exc}") from exc
        return True

    def list_all(self) -> list[str]:
        """Return every stored session id, sorted."""
        if not self.directory.is_dir():
            return []
        return sorted(
            p.name[: -len(_SUFFIX)]
            for p in self.directory.iterdir()
            if p.is_file() and p.name.endswith(_SUFFIX) and not p.name.startswith(".")
        )
