"""Flat and hierarchical text rendering of scored files."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

import typer

from om.models import ScoredFile
from om.scorer import sort_scored

TokenLookup = Callable[[str], "int | None"]


@dataclass
class TreeNode:
    """A directory or file in the rendered tree."""

    name: str
    path: str
    score: int | None = None
    children: dict[str, TreeNode] = field(default_factory=dict)

    @property
    def is_file(self) -> bool:
        return not self.children

    def max_score(self) -> int:
        """Highest score of this node or anything beneath it."""
        best = self.score or 0
        for child in self.children.values():
            best = max(best, child.max_score())
        return best


def path_depth(path: str) -> int:
    return path.count("/")


def filter_depth(files: Iterable[ScoredFile], max_depth: int | None) -> list[ScoredFile]:
    """Drop files nested deeper than max_depth directories (None keeps all)."""
    if max_depth is None:
        return list(files)
    return [f for f in files if path_depth(f.path) <= max_depth]


def build_tree(files: Iterable[ScoredFile]) -> TreeNode:
    """Arrange scored files into a directory tree rooted at ``.``."""
    root = TreeNode(name=".", path=".")
    for f in files:
        current = root
        parts = f.path.split("/")
        for i, part in enumerate(parts):
            child_path = "/".join(parts[: i + 1])
            current = current.children.setdefault(
                part, TreeNode(name=part, path=child_path)
            )
        current.score = f.score
    return root


def _format_score(score: int, color: bool) -> str:
    text = f"{score:2d}"
    if not color:
        return text
    if score >= 8:
        return typer.style(text, fg=typer.colors.GREEN, bold=True)
    if score >= 5:
        return typer.style(text, fg=typer.colors.YELLOW)
    return typer.style(text, dim=True)


def _with_tokens(line: str, path: str, tokens: TokenLookup | None) -> str:
    if tokens is None:
        return line
    count = tokens(path)
    if count is None:
        return line
    return f"{line} ({count} tokens)"


def render_flat(
    files: Sequence[ScoredFile],
    *,
    color: bool = True,
    tokens: TokenLookup | None = None,
) -> str:
    """One ``<score> <path>`` line per file, best first."""
    lines = []
    for f in sort_scored(files):
        line = f"{_format_score(f.score, color)} {f.path}"
        lines.append(_with_tokens(line, f.path, tokens))
    return "\n".join(lines)


def render_tree(
    files: Sequence[ScoredFile],
    *,
    color: bool = True,
    tokens: TokenLookup | None = None,
) -> str:
    """Box-drawing tree; siblings ordered by best score inside, then name."""
    lines: list[str] = []
    _render_children(build_tree(files), "", lines, color, tokens)
    return "\n".join(lines)


def _sorted_children(node: TreeNode) -> list[TreeNode]:
    return sorted(node.children.values(), key=lambda c: (-c.max_score(), c.name))


def _render_children(
    node: TreeNode,
    prefix: str,
    lines: list[str],
    color: bool,
    tokens: TokenLookup | None,
) -> None:
    children = _sorted_children(node)
    for i, child in enumerate(children):
        last = i == len(children) - 1
        connector = "└── " if last else "├── "
        if child.is_file:
            label = f"{_format_score(child.score or 0, color)} {child.name}"
            label = _with_tokens(label, child.path, tokens)
        elif color:
            label = typer.style(child.name, fg=typer.colors.BLUE, bold=True)
        else:
            label = f"{child.name}/"
        lines.append(f"{prefix}{connector}{label}")
        if not child.is_file:
            extension = "    " if last else "│   "
            _render_children(child, prefix + extension, lines, color, tokens)
