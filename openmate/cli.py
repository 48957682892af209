"""
CLI interface for openmate.

Usage:
    openmate add myrepo ~/src/myrepo
    openmate list
    openmate open myrepo --ide vs
    openmate collection add team "frontend, backend"
    openmate collection open team --ide ij
    openmate mcp
"""

import os
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import OpenMate, OpenResult
from .errors import OpenMateError
from .logging_config import enable_debug_mode
from .types import EDITORS, StoreData


# -----------------------------------------------------------------------------
# Rendering
#
# Shared by the CLI and the MCP tools so both surfaces print the same text.
# -----------------------------------------------------------------------------

LIST_TYPES = ("all", "repos", "collections")


def render_listing(data: StoreData, type: str = "all") -> str:
    """Numbered listing of repositories and/or collections."""
    output = ""

    if type in ("all", "repos"):
        if data.repos:
            output += "📁 Repositories:\n"
            for i, (name, entry) in enumerate(data.repos.items(), 1):
                output += f"  {i}. {name} -> {entry.path}\n"
            output += "\n"
        else:
            output += "📁 No repositories found\n\n"

    if type in ("all", "collections"):
        if data.collections:
            output += "📚 Collections:\n"
            for i, (key, coll) in enumerate(data.collections.items(), 1):
                output += f"  {i}. {coll.display_name(key)} ({len(coll.repos)} repos)\n"
        else:
            output += "📚 No collections found\n"

    return output or "No repositories or collections found."


def render_collection_names(names: list[str]) -> str:
    if not names:
        return "No collections found"
    return f"Available collections: {', '.join(names)}"


def render_collection(display_name: str, members: list[str]) -> str:
    return f"Collection '{display_name}': {', '.join(members)}"


def render_open_results(name: str, editor: str, results: list[OpenResult]) -> str:
    """One line per member: path on success, reason on failure."""
    if not results:
        return f"Collection '{name}' has no repositories"
    opened = sum(1 for r in results if r.ok)
    lines = [f"Opening collection '{name}' in {editor} ({opened}/{len(results)} opened):"]
    for r in results:
        if r.ok:
            lines.append(f"  ✅ {r.name} -> {r.path}")
        else:
            lines.append(f"  ❌ {r.error}")
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Options
# -----------------------------------------------------------------------------

_store_override: Optional[Path] = None


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"openmate {version('openmate')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


def _store_callback(value: Optional[Path]):
    global _store_override
    _store_override = value


app = typer.Typer(
    name="openmate",
    help="Named repositories and collections, opened in your editor.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

collection_app = typer.Typer(
    help="Manage collections of repositories.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(collection_app, name="collection")


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        envvar="OPENMATE_STORE_FILE",
        help="Path to the store file (default: ~/.openmate/repos.json)",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Named repositories and collections, opened in your editor."""


IdeOption = Annotated[
    str,
    typer.Option(
        "--ide", "-e",
        help=f"Editor to open: {', '.join(f'{k} ({v})' for k, v in EDITORS.items())}",
    )
]


def _get_openmate() -> OpenMate:
    try:
        return OpenMate(store_path=_store_override)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _fail(e: Exception) -> None:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(1)


def _check_ide(ide: str) -> None:
    if ide not in EDITORS:
        _fail(ValueError(f"Unknown editor '{ide}' (expected one of: {', '.join(EDITORS)})"))


# -----------------------------------------------------------------------------
# Repository commands
# -----------------------------------------------------------------------------

@app.command("list")
def list_cmd(
    type: Annotated[str, typer.Option(
        "--type", "-t",
        help="What to list: all, repos, or collections",
    )] = "all",
):
    """List repositories and collections."""
    if type not in LIST_TYPES:
        _fail(ValueError(f"--type must be one of: {', '.join(LIST_TYPES)}"))
    om = _get_openmate()
    typer.echo(render_listing(om.snapshot(), type).rstrip("\n"))


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Name to identify the repository")],
    path: Annotated[str, typer.Argument(help="Directory of the repository")],
):
    """Register a directory as a repository."""
    om = _get_openmate()
    try:
        entry = om.add_repo(name, path)
    except OpenMateError as e:
        _fail(e)
    typer.echo(f"Added repository '{name}' -> '{entry.path}'")


@app.command()
def get(
    name: Annotated[str, typer.Argument(help="Repository name")],
):
    """Print the path of a repository."""
    om = _get_openmate()
    try:
        typer.echo(om.get_repo(name))
    except OpenMateError as e:
        _fail(e)


@app.command()
def remove(
    name: Annotated[str, typer.Argument(help="Repository name")],
):
    """Unregister a repository."""
    om = _get_openmate()
    try:
        om.remove_repo(name)
    except OpenMateError as e:
        _fail(e)
    typer.echo(f"Removed repository '{name}'")


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Name for the current directory")],
):
    """Register the current directory as a repository."""
    om = _get_openmate()
    try:
        entry = om.init_repo(name)
    except OpenMateError as e:
        _fail(e)
    typer.echo(f"Added current directory as '{name}' -> '{entry.path}'")


@app.command("open")
def open_cmd(
    name: Annotated[str, typer.Argument(help="Repository name")],
    ide: IdeOption = "vs",
):
    """Open a repository in an editor."""
    _check_ide(ide)
    om = _get_openmate()
    try:
        result = om.open_repo(name, ide)
    except OpenMateError as e:
        _fail(e)
    typer.echo(f"Opened '{name}' in {result.editor}")


# -----------------------------------------------------------------------------
# Collection commands
# -----------------------------------------------------------------------------

@collection_app.command("add")
def collection_add(
    name: Annotated[str, typer.Argument(help="Collection name")],
    repos: Annotated[str, typer.Argument(help="Comma-separated repository names")],
):
    """Create a collection from registered repositories."""
    om = _get_openmate()
    try:
        entry = om.add_collection(name, repos)
    except OpenMateError as e:
        _fail(e)
    typer.echo(f"Created collection '{name}' with {len(entry.repos)} repos")


@collection_app.command("delete")
def collection_delete(
    name: Annotated[str, typer.Argument(help="Collection name")],
):
    """Delete a collection (its repositories stay registered)."""
    om = _get_openmate()
    try:
        om.delete_collection(name)
    except OpenMateError as e:
        _fail(e)
    typer.echo(f"Deleted collection '{name}'")


@collection_app.command("list")
def collection_list(
    name: Annotated[Optional[str], typer.Argument(help="Collection name (omit to list all)")] = None,
):
    """List collections, or the repositories in one collection."""
    om = _get_openmate()
    if not name:
        typer.echo(render_collection_names(om.list_collections()))
        return
    try:
        display, members = om.get_collection(name)
    except OpenMateError as e:
        _fail(e)
    typer.echo(render_collection(display, members))


@collection_app.command("open")
def collection_open(
    name: Annotated[str, typer.Argument(help="Collection name")],
    ide: IdeOption = "vs",
):
    """Open every repository of a collection in an editor."""
    _check_ide(ide)
    om = _get_openmate()
    try:
        results = om.open_collection(name, ide)
    except OpenMateError as e:
        _fail(e)
    typer.echo(render_open_results(name, EDITORS[ide], results))
    if results and not any(r.ok for r in results):
        raise typer.Exit(1)


# -----------------------------------------------------------------------------
# MCP server
# -----------------------------------------------------------------------------

@app.command()
def mcp():
    """Start MCP stdio server for AI agent integration."""
    if _store_override is not None:
        os.environ["OPENMATE_STORE_FILE"] = str(_store_override)
    from .mcp import main as mcp_main
    mcp_main()


# -----------------------------------------------------------------------------

def main():
    if os.environ.get("OPENMATE_VERBOSE") == "1":
        enable_debug_mode()
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="openmate CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
