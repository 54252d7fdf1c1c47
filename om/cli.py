"""CLI entry point for om."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Annotated

import typer

from om import ignore
from om import session as sessions
from om.cat import DEFAULT_LEVEL, classify, render_text, resolve_session_id, run_cat
from om.config import load_config
from om.errors import HomeDirectoryError, OmError, OutputFormatError, SessionError
from om.git import repo_root
from om.selection import StatusFilter, path_prefix, select_files
from om.tokens import count_tokens
from om.toon import (
    FORMATS,
    cat_to_json,
    cat_to_xml,
    encode_cat,
    encode_tree,
    tree_to_json,
    tree_to_xml,
)
from om.tree import filter_depth, render_flat, render_tree

app = typer.Typer(
    name="om",
    help="Score project files by importance and print them for an LLM.",
    no_args_is_help=True,
)
session_app = typer.Typer(help="Manage sessions.", invoke_without_command=True)
app.add_typer(session_app, name="session")


def _fail(exc: OmError) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(1)


def _parse_format(value: str | None) -> str:
    fmt = (value or "text").lower()
    if fmt not in FORMATS:
        raise OutputFormatError(value or "")
    return fmt


def _read_tokens(root: Path, rel: str) -> int | None:
    full_path = root / rel
    if not classify(full_path):
        return None
    try:
        return count_tokens(full_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return None


def _home_dir() -> Path:
    try:
        return Path.home()
    except RuntimeError as exc:
        raise HomeDirectoryError() from exc


PathArg = Annotated[
    Path,
    typer.Argument(
        help="Project path (default: current directory).",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
]
GitRootOpt = Annotated[
    bool, typer.Option("--git-root", help="Use the whole repository, not just PATH.")
]
DirtyOpt = Annotated[
    bool,
    typer.Option("--dirty", help="Only dirty files (modified, added, untracked)."),
]
StagedOpt = Annotated[bool, typer.Option("--staged", help="Only staged files.")]
UnstagedOpt = Annotated[bool, typer.Option("--unstaged", help="Only unstaged files.")]
FormatOpt = Annotated[
    str | None,
    typer.Option(
        "--format", help="Output format: text, json, xml or toon (default: text)."
    ),
]
TokensOpt = Annotated[
    bool, typer.Option("--tokens", "-t", help="Show token counts.")
]


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log debug details to stderr.")
    ] = False,
) -> None:
    """om - LLM context tool."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )


@app.command()
def tree(
    path: PathArg = Path("."),
    min_score: Annotated[
        int | None,
        typer.Option("--min-score", "-s", min=1, max=10, help="Minimum score (1-10)."),
    ] = None,
    depth: Annotated[
        int | None, typer.Option("--depth", "-d", min=0, help="Maximum depth.")
    ] = None,
    flat: Annotated[
        bool, typer.Option("--flat", "-f", help="Flat list instead of a tree.")
    ] = False,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable colors.")] = False,
    git_root: GitRootOpt = False,
    dirty: DirtyOpt = False,
    staged: StagedOpt = False,
    unstaged: UnstagedOpt = False,
    output_format: FormatOpt = None,
    tokens: TokensOpt = False,
) -> None:
    """Show project structure with scores."""
    try:
        fmt = _parse_format(output_format)
        root = repo_root(path)
        config = load_config(root)
        git_root = git_root or bool(config.git_root)
        prefix = None if git_root else path_prefix(root, path)
        threshold = min_score if min_score is not None else (config.min_score or 1)
        scored = select_files(
            root,
            threshold,
            prefix=prefix,
            status_filter=StatusFilter(dirty=dirty, staged=staged, unstaged=unstaged),
        )
    except OmError as exc:
        raise _fail(exc) from exc

    scored = filter_depth(scored, depth if depth is not None else config.depth)
    project = root.name or "project"

    if fmt == "text":
        lookup = (lambda rel: _read_tokens(root, rel)) if tokens else None
        color = not (no_color or bool(config.no_color))
        if flat or bool(config.flat):
            output = render_flat(scored, color=color, tokens=lookup)
        else:
            output = render_tree(scored, color=color, tokens=lookup)
    else:
        counts = None
        if tokens:
            counts = {f.path: _read_tokens(root, f.path) or 0 for f in scored}
        encoders = {"json": tree_to_json, "xml": tree_to_xml, "toon": encode_tree}
        output = encoders[fmt](project, scored, counts)
    if output:
        typer.echo(output)


@app.command()
def cat(
    files: Annotated[
        list[str] | None, typer.Argument(help="Specific files to print.")
    ] = None,
    level: Annotated[
        int | None,
        typer.Option(
            "--level", "-l", min=1, max=10, help="Minimum score level (default: 5)."
        ),
    ] = None,
    path: Annotated[
        Path,
        typer.Option(
            "--path",
            "-p",
            help="Project path (default: current directory).",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    no_headers: Annotated[
        bool, typer.Option("--no-headers", help="Disable summary headers.")
    ] = False,
    session: Annotated[
        str | None,
        typer.Option(
            "--session", "-S", help=f"Session id (overrides {sessions.SESSION_ENV_VAR})."
        ),
    ] = None,
    git_root: GitRootOpt = False,
    dirty: DirtyOpt = False,
    staged: StagedOpt = False,
    unstaged: UnstagedOpt = False,
    output_format: FormatOpt = None,
    tokens: TokensOpt = False,
) -> None:
    """Print file contents, skipping files already read in the session."""
    try:
        fmt = _parse_format(output_format)
        root = repo_root(path)
        config = load_config(root)
        git_root = git_root or bool(config.git_root)
        prefix = None if git_root else path_prefix(root, path)
        result = run_cat(
            root,
            files=files or (),
            level=level if level is not None else (config.level or DEFAULT_LEVEL),
            session_id=resolve_session_id(session),
            with_tokens=tokens,
            prefix=prefix,
            status_filter=StatusFilter(dirty=dirty, staged=staged, unstaged=unstaged),
        )
    except OmError as exc:
        raise _fail(exc) from exc

    for name in files or ():
        if not (root / name).exists():
            typer.echo(f"Warning: {name}: not found", err=True)

    if fmt == "json":
        typer.echo(cat_to_json(result))
    elif fmt == "xml":
        typer.echo(cat_to_xml(result))
    elif fmt == "toon":
        typer.echo(encode_cat(result))
    else:
        headers = not (no_headers or bool(config.no_headers))
        output = render_text(result, headers=headers)
        if output:
            typer.echo(output)


@app.command()
def init(
    global_: Annotated[
        bool, typer.Option("--global", "-g", help="Write ~/.omignore instead.")
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite an existing file.")
    ] = False,
) -> None:
    """Create a starter .omignore."""
    try:
        base = _home_dir() if global_ else Path.cwd()
        target = ignore.write_template(base / ignore.IGNORE_FILENAME, force=force)
    except OmError as exc:
        raise _fail(exc) from exc
    location = "global" if global_ else "local"
    typer.echo(f"Created {location} {ignore.IGNORE_FILENAME} at {target}")


def _store() -> sessions.SessionStore:
    return sessions.SessionStore()


def _active_session() -> str | None:
    return os.environ.get(sessions.SESSION_ENV_VAR) or None


@session_app.callback()
def session_main(ctx: typer.Context) -> None:
    """Manage sessions; with no subcommand, behaves like ``session init``."""
    if ctx.invoked_subcommand is None:
        session_init()


@session_app.command("init")
def session_init() -> None:
    """Print a shell snippet that starts a session (use with eval)."""
    active = _active_session()
    if active is not None:
        typer.echo(f"echo 'Session already active: {active}'")
        return
    try:
        store = _store()
        session_id = sessions.generate_id()
        store.save(store.load(session_id))
    except OmError as exc:
        raise _fail(exc) from exc
    typer.echo(
        f"export {sessions.SESSION_ENV_VAR}={session_id}; "
        f"echo 'Session created: {session_id}'"
    )


@session_app.command("list")
def session_list() -> None:
    """List stored sessions."""
    try:
        ids = _store().list_all()
    except OmError as exc:
        raise _fail(exc) from exc
    active = _active_session()
    for session_id in ids:
        marker = " (active)" if session_id == active else ""
        typer.echo(f"{session_id}{marker}")


@session_app.command("show")
def session_show(
    name: Annotated[str, typer.Argument(help="Session id.")],
) -> None:
    """Show the files recorded in a session."""
    try:
        store = _store()
        if not store.path_for(name).is_file():
            raise SessionError(f"no such session: {name}")
        loaded = store.load(name)
    except OmError as exc:
        raise _fail(exc) from exc
    typer.echo(f"Session: {loaded.id}")
    typer.echo(f"Files: {len(loaded.hashes)}")
    for rel in sorted(loaded.hashes):
        typer.echo(f"  {loaded.hashes[rel][:12]}  {rel}")


@session_app.command("clear")
def session_clear(
    name: Annotated[str, typer.Argument(help="Session id.")],
) -> None:
    """Delete a stored session."""
    try:
        _store().clear(name)
    except OmError as exc:
        raise _fail(exc) from exc
    typer.echo(f"Cleared session '{name}'")
    if _active_session() == name:
        typer.echo(
            "Note: This was your active session. "
            f"Run 'unset {sessions.SESSION_ENV_VAR}' to clear the environment variable."
        )
