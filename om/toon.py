"""Structured encoders for ``tree`` and ``cat`` output: TOON, JSON and XML."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any
from xml.sax.saxutils import escape as xml_escape
from xml.sax.saxutils import quoteattr

from om.models import CatResult, ScoredFile

_NEEDS_QUOTING = re.compile(r'[,:"\\{}\[\]]')
_LOOKS_NUMERIC = re.compile(r"^-?(?:0|[1-9]\d*)(?:\.\d+)?$")
_KEYWORDS = frozenset({"true", "false", "null"})

FORMATS = ("text", "json", "xml", "toon")


def encode_tree(
    project: str,
    files: Sequence[ScoredFile],
    tokens: dict[str, int] | None = None,
) -> str:
    """Encode scored files as TOON.

    Args:
        project: Repository name.
        files: Scored files in display order.
        tokens: Optional token count per path.

    Returns:
        TOON-formatted string (no trailing newline).
    """
    columns = ["path", "score", "reason"]
    if tokens is not None:
        columns.append("tokens")
    rows: list[list[str]] = []
    for f in files:
        row = [f.path, str(f.score), f.reason]
        if tokens is not None:
            row.append(str(tokens.get(f.path, 0)))
        rows.append(row)
    parts = [
        f"project: {_encode_value(project)}",
        _format_tabular("files", columns, rows),
    ]
    return "\n".join(parts)


def encode_cat(result: CatResult) -> str:
    """Encode a CatResult as TOON: summary fields, then one row per file."""
    parts = [f"project: {_encode_value(result.project)}"]
    if result.session_id is not None:
        parts.append(f"session: {_encode_value(result.session_id)}")
    parts.append(f"files_shown: {result.files_shown}")
    parts.append(f"skipped_binary: {result.skipped_binary}")
    parts.append(f"skipped_session: {result.skipped_session}")
    parts.append(f"total_lines: {result.total_lines}")

    with_tokens = any(f.tokens is not None for f in result.files)
    columns = ["path", "score", "lines"]
    if with_tokens:
        columns.append("tokens")
    columns.append("content")
    rows: list[list[str]] = []
    for f in result.files:
        row = [f.path, str(f.score), str(f.lines)]
        if with_tokens:
            row.append(str(f.tokens or 0))
        row.append(f.content)
        rows.append(row)
    parts.append(_format_tabular("files", columns, rows))
    return "\n".join(parts)


def tree_to_json(
    project: str,
    files: Sequence[ScoredFile],
    tokens: dict[str, int] | None = None,
) -> str:
    entries: list[dict[str, Any]] = []
    for f in files:
        entry: dict[str, Any] = {"path": f.path, "score": f.score, "reason": f.reason}
        if tokens is not None:
            entry["tokens"] = tokens.get(f.path, 0)
        entries.append(entry)
    return json.dumps({"project": project, "files": entries}, indent=2)


def cat_to_json(result: CatResult) -> str:
    doc: dict[str, Any] = {"project": result.project}
    if result.session_id is not None:
        doc["session"] = result.session_id
    doc.update(
        files_shown=result.files_shown,
        skipped_binary=result.skipped_binary,
        skipped_session=result.skipped_session,
        total_lines=result.total_lines,
    )
    files: list[dict[str, Any]] = []
    for f in result.files:
        entry: dict[str, Any] = {"path": f.path, "score": f.score, "lines": f.lines}
        if f.tokens is not None:
            entry["tokens"] = f.tokens
        entry["content"] = f.content
        files.append(entry)
    doc["files"] = files
    return json.dumps(doc, indent=2)


XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def tree_to_xml(
    project: str,
    files: Sequence[ScoredFile],
    tokens: dict[str, int] | None = None,
) -> str:
    """Encode scored files as a ``<codebase>`` document, one empty ``<file/>`` each."""
    lines = [XML_DECLARATION, "<codebase>", _xml_element("project", project, 1)]
    lines.append("  <files>")
    for f in files:
        attrs = {"path": f.path, "score": str(f.score), "reason": f.reason}
        if tokens is not None:
            attrs["tokens"] = str(tokens.get(f.path, 0))
        lines.append(f"    <file{_xml_attrs(attrs)}/>")
    lines.extend(["  </files>", "</codebase>"])
    return "\n".join(lines)


def cat_to_xml(result: CatResult) -> str:
    """Encode a CatResult as a ``<codebase>`` document with CDATA file bodies."""
    lines = [XML_DECLARATION, "<codebase>", _xml_element("project", result.project, 1)]
    if result.session_id is not None:
        lines.append(_xml_element("session", result.session_id, 1))
    lines.append(_xml_element("files_shown", str(result.files_shown), 1))
    lines.append(_xml_element("skipped_binary", str(result.skipped_binary), 1))
    lines.append(_xml_element("skipped_session", str(result.skipped_session), 1))
    lines.append(_xml_element("total_lines", str(result.total_lines), 1))
    lines.append("  <files>")
    for f in result.files:
        attrs = {"path": f.path, "score": str(f.score), "lines": str(f.lines)}
        if f.tokens is not None:
            attrs["tokens"] = str(f.tokens)
        lines.append(f"    <file{_xml_attrs(attrs)}>")
        lines.append(f"      <content>{_cdata(f.content)}</content>")
        lines.append("    </file>")
    lines.extend(["  </files>", "</codebase>"])
    return "\n".join(lines)


def _xml_element(name: str, text: str, level: int) -> str:
    return f"{'  ' * level}<{name}>{xml_escape(text)}</{name}>"


def _xml_attrs(attrs: dict[str, str]) -> str:
    return "".join(f" {key}={quoteattr(value)}" for key, value in attrs.items())


def _cdata(text: str) -> str:
    # "]]>" cannot appear inside a CDATA section; split it across two.
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _format_tabular(
    name: str,
    columns: list[str],
    rows: list[list[str]],
) -> str:
    """Format a tabular array in TOON notation.

    Args:
        name: The array field name.
        columns: Column header names.
        rows: List of row data (each row is list of strings).

    Returns:
        TOON tabular array string.
    """
    header = f"{name}[{len(rows)}]{{{','.join(columns)}}}:"
    lines = [header]
    for row in rows:
        encoded = [_encode_value(cell) for cell in row]
        lines.append(f"  {','.join(encoded)}")
    return "\n".join(lines)


def _encode_value(value: str) -> str:
    """Encode a single value, quoting if necessary per TOON rules."""
    if not value:
        return '""'

    if value != value.strip():
        return _quote(value)

    if any(c in value for c in "\n\r\t"):
        return _quote(value)

    if value.lower() in _KEYWORDS:
        return _quote(value)

    if _LOOKS_NUMERIC.match(value):
        return value

    if _NEEDS_QUOTING.search(value):
        return _quote(value)

    if value.startswith("-"):
        return _quote(value)

    return value


def _quote(value: str) -> str:
    """Double-quote a string with TOON escape rules."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return f'"{escaped}"'
