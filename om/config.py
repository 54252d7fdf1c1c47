"""User and repository defaults for the ``tree`` and ``cat`` commands.

Two TOML files are merged key by key, the repository file winning:

- ``~/.om/config.toml``
- ``<repo>/.om.toml``

Command-line flags override both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

logger = logging.getLogger(__name__)

GLOBAL_CONFIG = Path(".om") / "config.toml"
REPO_CONFIG = ".om.toml"

_INT_KEYS = {"min_score", "depth", "level"}
_BOOL_KEYS = {"flat", "no_color", "git_root", "no_headers"}


@dataclass
class Config:
    """Optional defaults; ``None`` means "not set, use the built-in default"."""

    min_score: int | None = None
    depth: int | None = None
    flat: bool | None = None
    no_color: bool | None = None
    git_root: bool | None = None
    level: int | None = None
    no_headers: bool | None = None

    def merge(self, other: Config) -> None:
        """Overwrite this config with every value other sets."""
        for f in fields(self):
            value = getattr(other, f.name)
            if value is not None:
                setattr(self, f.name, value)

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> Config:
        """Build a Config, dropping unknown keys and values of the wrong type."""
        kwargs: dict[str, Any] = {}
        for key, value in doc.items():
            if key in _INT_KEYS and isinstance(value, int) and not isinstance(value, bool):
                kwargs[key] = value
            elif key in _BOOL_KEYS and isinstance(value, bool):
                kwargs[key] = value
            else:
                logger.warning("Ignoring config key %s=%r", key, value)
        return cls(**kwargs)


def _read(path: Path) -> Config | None:
    if not path.is_file():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = tomlkit.load(f).unwrap()
    except (OSError, UnicodeDecodeError, TOMLKitError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return None
    return Config.from_dict(data)


def load_config(repo: Path | None = None, *, home: Path | None = None) -> Config:
    """Merge the global and repository config files.

    Args:
        repo: Repository root (or working directory) to look for ``.om.toml``.
        home: Home directory; defaults to the current user's.

    Returns:
        The merged Config. Missing or broken files contribute nothing.
    """
    config = Config()
    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            home = None
    sources = []
    if home is not None:
        sources.append(home / GLOBAL_CONFIG)
    if repo is not None:
        sources.append(repo / REPO_CONFIG)
    for path in sources:
        loaded = _read(path)
        if loaded is not None:
            config.merge(loaded)
    return config
