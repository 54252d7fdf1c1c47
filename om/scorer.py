"""Static path heuristics that rank files by importance.

``score`` runs an ordered cascade of rules over the path; the first rule
that returns a result wins. Paths that no rule claims fall through to
``_fallback``, which starts at a base score and adjusts it for the
directory the file lives in, its nesting depth and its extension.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import PurePosixPath
from types import MappingProxyType

from om.models import ScoredFile

MIN_SCORE = 1
MAX_SCORE = 10
BASE_SCORE = 7

ENTRY_POINT_NAMES: frozenset[str] = frozenset(
    {"main.rs", "lib.rs", "mod.rs", "__main__.py"}
)
ENTRY_POINT_PREFIXES: tuple[str, ...] = ("main.", "index.", "app.", "server.", "cli.")

README_NAMES: frozenset[str] = frozenset(
    {"README", "README.md", "README.rst", "README.txt"}
)

PROJECT_FILES: MappingProxyType[str, int] = MappingProxyType(
    {
        **dict.fromkeys(README_NAMES, 10),
        "Cargo.toml": 8,
        "package.json": 8,
        "go.mod": 8,
        "pom.xml": 8,
        "build.gradle": 8,
        "build.gradle.kts": 8,
        "Dockerfile": 8,
        "docker-compose.yml": 8,
        "docker-compose.yaml": 8,
        "Makefile": 8,
        "CMakeLists.txt": 8,
        "tsconfig.json": 8,
        "setup.py": 8,
        "pyproject.toml": 8,
        "Gemfile": 7,
        "setup.cfg": 7,
        "requirements.txt": 7,
        "CHANGELOG.md": 5,
        "CONTRIBUTING.md": 5,
        "LICENSE": 4,
        "LICENSE.md": 4,
        "LICENSE.txt": 4,
        ".gitignore": 4,
        ".dockerignore": 4,
        ".omignore": 4,
    }
)
DEMOTED_README_SCORE = 5

CONFIG_PREFIXES: tuple[str, ...] = ("config.", "settings.")

GENERATED_SUFFIXES: tuple[str, ...] = (
    ".lock",
    ".min.js",
    ".min.css",
    ".map",
    ".d.ts",
    ".pyc",
    ".pyo",
    ".backup",
    ".bak",
    ".tmp",
    ".sql",
)
GENERATED_MARKERS: tuple[str, ...] = ("-lock.", ".lock.", ".generated.")
PACKAGE_INIT_NAMES: frozenset[str] = frozenset({"__init__.py"})

TEST_MARKERS: tuple[str, ...] = ("_test.", ".test.", ".spec.", "_spec.")

IMPORTANT_DIRS: frozenset[str] = frozenset(
    {"src", "core", "lib", "app", "pkg", "internal", "cmd"}
)
DOMAIN_DIRS: frozenset[str] = frozenset(
    {
        "api",
        "server",
        "client",
        "models",
        "services",
        "handlers",
        "controllers",
        "routes",
        "middleware",
        "database",
        "db",
        "auth",
        "components",
        "views",
        "utils",
    }
)
TEST_DIRS: frozenset[str] = frozenset({"test", "tests", "spec", "__tests__"})
LOW_PRIORITY_DIRS: frozenset[str] = frozenset(
    {
        "vendor",
        "third_party",
        "fixtures",
        "mocks",
        "docs",
        "examples",
        "scripts",
        "tools",
        "dist",
        "build",
        "out",
        "target",
        "node_modules",
        "archived",
        "legacy",
        "debug",
        "research",
        "tmp",
        "temp",
        "backup",
        "artifacts",
        ".artifacts",
        "drizzle",
        "migrations",
    }
)

# Checked in this order for each ancestor directory.
DIRECTORY_CATEGORIES: tuple[tuple[frozenset[str], int, str], ...] = (
    (IMPORTANT_DIRS, 2, "core"),
    (DOMAIN_DIRS, 1, "domain"),
    (TEST_DIRS, -2, "test"),
    (LOW_PRIORITY_DIRS, -3, "peripheral"),
)

SCHEMA_EXTENSIONS: frozenset[str] = frozenset({"proto", "graphql", "gql", "thrift"})
DOC_EXTENSIONS: frozenset[str] = frozenset({"md", "rst"})


class _PathParts:
    """Pre-split view of a repository-relative path."""

    __slots__ = ("path", "name", "dirs", "extension")

    def __init__(self, path: str) -> None:
        self.path = path
        normalized = path.replace("\\", "/")
        while normalized.startswith("./"):
            normalized = normalized[2:]
        components = [c for c in normalized.split("/") if c]
        self.name = components[-1] if components else ""
        self.dirs: tuple[str, ...] = tuple(components[:-1])
        self.extension = PurePosixPath(self.name).suffix.lstrip(".").lower()

    @property
    def depth(self) -> int:
        return len(self.dirs)


Rule = Callable[[_PathParts], "tuple[int, str] | None"]


def _clamp(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def _entry_point(parts: _PathParts) -> tuple[int, str] | None:
    name = parts.name
    if name in ENTRY_POINT_NAMES or name.startswith(ENTRY_POINT_PREFIXES):
        return 10, "entry point"
    return None


def _project_file(parts: _PathParts) -> tuple[int, str] | None:
    score = PROJECT_FILES.get(parts.name)
    if score is None:
        return None
    if parts.name in README_NAMES and any(
        d in TEST_DIRS or d in LOW_PRIORITY_DIRS for d in parts.dirs
    ):
        score = DEMOTED_README_SCORE
    return score, "project file"


def _config(parts: _PathParts) -> tuple[int, str] | None:
    if parts.name.lower().startswith(CONFIG_PREFIXES):
        return 9, "config"
    return None


def _generated(parts: _PathParts) -> tuple[int, str] | None:
    name = parts.name
    if name in PACKAGE_INIT_NAMES:
        return 3, "generated"
    if name.endswith(GENERATED_SUFFIXES) or any(m in name for m in GENERATED_MARKERS):
        return 2, "generated"
    return None


def _test_name(parts: _PathParts) -> tuple[int, str] | None:
    name = parts.name
    if name.startswith("test_") or any(m in name for m in TEST_MARKERS):
        return 5, "test"
    return None


RULES: tuple[tuple[str, Rule], ...] = (
    ("entry point", _entry_point),
    ("project file", _project_file),
    ("config", _config),
    ("generated", _generated),
    ("test", _test_name),
)


def _directory_modifier(dirs: Iterable[str]) -> tuple[int, str] | None:
    """Return the modifier of the first ancestor directory with a category."""
    for directory in dirs:
        for members, delta, reason in DIRECTORY_CATEGORIES:
            if directory in members:
                return delta, reason
    return None


def _fallback(parts: _PathParts) -> tuple[int, str]:
    score = BASE_SCORE
    reason: str | None = None

    modifier = _directory_modifier(parts.dirs)
    if modifier is not None:
        delta, reason = modifier
        score = _clamp(score + delta)

    depth = parts.depth
    if depth == 0:
        score = _clamp(score + 1)
        reason = reason or "root"
    elif depth > 4:
        score = _clamp(score - 2)
        reason = reason or "deep"
    elif depth > 2:
        score = _clamp(score - 1)

    if parts.extension in SCHEMA_EXTENSIONS:
        score = _clamp(score + 1)
        reason = "schema"
    elif parts.extension in DOC_EXTENSIONS and parts.name not in README_NAMES:
        score = _clamp(score - 1)
        reason = reason or "docs"

    return score, reason or "base"


def score(path: str) -> ScoredFile:
    """Score a repository-relative path.

    Args:
        path: Path relative to the repository root, ``/``-separated.

    Returns:
        A ScoredFile whose score is always within [1, 10].
    """
    parts = _PathParts(path)
    for _name, rule in RULES:
        result = rule(parts)
        if result is not None:
            value, reason = result
            return ScoredFile(path=path, score=_clamp(value), reason=reason)
    value, reason = _fallback(parts)
    return ScoredFile(path=path, score=value, reason=reason)


def score_files(paths: Iterable[str]) -> list[ScoredFile]:
    """Score each path, preserving input order."""
    return [score(p) for p in paths]


def sort_scored(files: Iterable[ScoredFile]) -> list[ScoredFile]:
    """Order by score descending, then path ascending."""
    return sorted(files, key=lambda f: (-f.score, f.path))
