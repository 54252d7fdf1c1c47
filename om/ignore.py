"""``.omignore`` loading and matching."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import pathspec

from om.errors import IgnoreFileExistsError

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".omignore"

DEFAULT_TEMPLATE = """\
# Lock files
*.lock
package-lock.json
Cargo.lock
yarn.lock
Gemfile.lock
poetry.lock

# Generated files
*.min.js
*.min.css
*.map
*.d.ts
*.pyc
*.generated.*

# Build output
dist/
build/
out/
target/
.next/
.nuxt/
.vuepress/dist/

# Changelogs and history
CHANGELOG.md
HISTORY.md
NEWS.md

# Editor and IDE
.vscode/
.idea/
*.swp
*.swo
*~

# Vendor and dependencies
vendor/
node_modules/
"""


@dataclass(frozen=True)
class IgnorePatternSet:
    """Compiled ignore patterns, global file first, then the local one."""

    specs: tuple[pathspec.PathSpec, ...] = ()

    def __len__(self) -> int:
        return len(self.specs)


def pattern_variants(line: str) -> list[str]:
    """Expand one ignore line into the globs that make it depth-independent.

    Args:
        line: A stripped, non-comment line from an ignore file.

    Returns:
        The literal pattern, its ``**/``-prefixed form and, for directory
        patterns, the ``/**`` subtree forms.
    """
    variants = [line]
    if not line.startswith("**/"):
        variants.append(f"**/{line}")
    if line.endswith("/"):
        stripped = line.rstrip("/")
        if stripped:
            subtree = f"{stripped}/**"
            variants.append(subtree)
            if not subtree.startswith("**/"):
                variants.append(f"**/{subtree}")
    return variants


def _compile(line: str) -> pathspec.PathSpec | None:
    if line.startswith("!"):
        return None
    try:
        return pathspec.PathSpec.from_lines("gitignore", pattern_variants(line))
    except ValueError:
        return None


def parse_lines(lines: Iterable[str]) -> list[pathspec.PathSpec]:
    """Compile every usable line, silently dropping blanks, comments and junk."""
    compiled: list[pathspec.PathSpec] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        spec = _compile(line)
        if spec is None:
            logger.debug("Dropping malformed ignore pattern %r", line)
            continue
        compiled.append(spec)
    return compiled


def _parse_file(path: Path) -> list[pathspec.PathSpec]:
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return []
    return parse_lines(text.splitlines())


def _default_home() -> Path | None:
    try:
        return Path.home()
    except RuntimeError:
        return None


def load(root: Path, *, home: Path | None = None) -> IgnorePatternSet:
    """Load patterns from ``~/.omignore`` and ``<root>/.omignore``.

    Args:
        root: Repository root directory.
        home: Home directory holding the global file. Defaults to the
            current user's home; if that cannot be found the global file
            is skipped.

    Returns:
        The union of both files' patterns.
    """
    if home is None:
        home = _default_home()
    specs: list[pathspec.PathSpec] = []
    if home is not None:
        specs.extend(_parse_file(home / IGNORE_FILENAME))
    specs.extend(_parse_file(root / IGNORE_FILENAME))
    return IgnorePatternSet(specs=tuple(specs))


def is_ignored(patterns: IgnorePatternSet, path: str) -> bool:
    """Return True if any pattern matches the full relative path."""
    return any(spec.match_file(path) for spec in patterns.specs)


def write_template(path: Path, *, force: bool = False) -> Path:
    """Write the default ignore template to path.

    Raises:
        IgnoreFileExistsError: If path exists and force is False.
    """
    if path.exists() and not force:
        raise IgnoreFileExistsError(path)
    path.write_text(DEFAULT_TEMPLATE, encoding="utf-8")
    return path
