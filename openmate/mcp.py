"""
MCP stdio server for openmate — repository bookkeeping tools for AI agents.

Usage:
    openmate mcp                                  # stdio server (via CLI)
    claude mcp add --scope user openmate -- openmate mcp

Argument shapes (required names, editor and list-type enums) are validated
by FastMCP before a tool body runs. All tool bodies are serialized through a
single asyncio.Lock, and each one turns failures into a text result: no
exception reaches the transport.
"""

import asyncio
import logging
from typing import Annotated, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from .api import OpenMate
from .cli import (
    render_collection,
    render_collection_names,
    render_listing,
    render_open_results,
)
from .errors import OpenMateError, log_exception
from .types import EDITORS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "openmate",
    instructions=(
        "Bookkeeping for local repositories. "
        "Register directories under short names, group them into collections, "
        "and open them in VS Code, WebStorm, Cursor, IntelliJ IDEA, or PyCharm."
    ),
)

_openmate: Optional[OpenMate] = None
_lock = asyncio.Lock()

IdeName = Literal["vs", "ws", "cs", "ij", "pc"]

_IDE_DESCRIPTION = "Editor to use: " + ", ".join(f"{k} ({v})" for k, v in EDITORS.items())


def _get_openmate() -> OpenMate:
    """Lazy-init OpenMate with default config (respects OPENMATE_STORE_FILE).

    Must be called inside ``async with _lock``.
    """
    global _openmate
    if _openmate is None:
        _openmate = OpenMate()
    return _openmate


def _error(e: Exception, tool: str) -> str:
    """Text result for a failed tool call."""
    if isinstance(e, OpenMateError):
        return f"❌ {e}"
    logger.error("%s failed: %s", tool, e)
    log_exception(e, context=f"mcp {tool}")
    return f"❌ Error: {e}"


# ---------------------------------------------------------------------------
# Tool annotations
# ---------------------------------------------------------------------------

_READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False)
_ADDITIVE = ToolAnnotations(destructiveHint=False, idempotentHint=False)
_DESTRUCTIVE = ToolAnnotations(destructiveHint=True, idempotentHint=False)
_LAUNCH = ToolAnnotations(readOnlyHint=True, openWorldHint=True)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool(
    name="list-repos",
    description="List all repositories and collections.",
    annotations=_READ_ONLY,
)
async def list_repos(
    type: Annotated[Literal["all", "repos", "collections"], Field(
        description="What to list: all, repos only, or collections only.",
    )] = "all",
) -> str:
    """List repositories and collections."""
    async with _lock:
        try:
            return render_listing(_get_openmate().snapshot(), type)
        except Exception as e:
            return _error(e, "list-repos")


@mcp.tool(
    name="add-repo",
    description="Register a directory as a named repository.",
    annotations=_ADDITIVE,
)
async def add_repo(
    name: Annotated[str, Field(
        min_length=1, description="The name to identify this repository.",
    )],
    path: Annotated[str, Field(
        min_length=1, description="Filesystem path to the repository directory (~ allowed).",
    )],
) -> str:
    """Add a repository."""
    async with _lock:
        try:
            entry = _get_openmate().add_repo(name, path)
        except Exception as e:
            return _error(e, "add-repo")
    return f"✅ Added repository '{name}' -> '{entry.path}'"


@mcp.tool(
    name="get-repo",
    description="Get the path of a repository by name.",
    annotations=_READ_ONLY,
)
async def get_repo(
    name: Annotated[str, Field(
        min_length=1, description="The name of the repository to look up.",
    )],
) -> str:
    """Look up a repository path."""
    async with _lock:
        try:
            return _get_openmate().get_repo(name)
        except Exception as e:
            return _error(e, "get-repo")


@mcp.tool(
    name="remove-repo",
    description="Remove a repository. Collections that reference it keep the name.",
    annotations=_DESTRUCTIVE,
)
async def remove_repo(
    name: Annotated[str, Field(
        min_length=1, description="The name of the repository to remove.",
    )],
) -> str:
    """Remove a repository."""
    async with _lock:
        try:
            _get_openmate().remove_repo(name)
        except Exception as e:
            return _error(e, "remove-repo")
    return f"✅ Removed repository '{name}'"


@mcp.tool(
    name="add-collection",
    description="Create a collection of registered repositories.",
    annotations=_ADDITIVE,
)
async def add_collection(
    name: Annotated[str, Field(
        min_length=1, description="The name of the collection.",
    )],
    repos: Annotated[str, Field(
        min_length=1, description="Comma-separated list of repository names.",
    )],
) -> str:
    """Create a collection."""
    async with _lock:
        try:
            entry = _get_openmate().add_collection(name, repos)
        except Exception as e:
            return _error(e, "add-collection")
    return f"✅ Created collection '{name}' with {len(entry.repos)} repos"


@mcp.tool(
    name="delete-collection",
    description="Delete a collection. Its repositories stay registered.",
    annotations=_DESTRUCTIVE,
)
async def delete_collection(
    name: Annotated[str, Field(
        min_length=1, description="The name of the collection to delete.",
    )],
) -> str:
    """Delete a collection."""
    async with _lock:
        try:
            _get_openmate().delete_collection(name)
        except Exception as e:
            return _error(e, "delete-collection")
    return f"✅ Deleted collection '{name}'"


@mcp.tool(
    name="list-collection",
    description=(
        "List the repositories in a collection. "
        "Call with no name to list available collections."
    ),
    annotations=_READ_ONLY,
)
async def list_collection(
    name: Annotated[Optional[str], Field(
        description="The name of the collection. Omit to list all collections.",
    )] = None,
) -> str:
    """List collections or one collection's members."""
    async with _lock:
        try:
            om = _get_openmate()
            if not name:
                return render_collection_names(om.list_collections())
            display, members = om.get_collection(name)
            return render_collection(display, members)
        except Exception as e:
            return _error(e, "list-collection")


@mcp.tool(
    name="init-repo",
    description="Register the server's current working directory as a repository.",
    annotations=_ADDITIVE,
)
async def init_repo(
    name: Annotated[str, Field(
        min_length=1, description="The name to assign to the current directory.",
    )],
) -> str:
    """Register the current directory."""
    async with _lock:
        try:
            _get_openmate().init_repo(name)
        except Exception as e:
            return _error(e, "init-repo")
    return f"✅ Added current directory as '{name}'"


@mcp.tool(
    name="open-repo",
    description="Open a repository in an editor. The editor is started in the background.",
    annotations=_LAUNCH,
)
async def open_repo(
    name: Annotated[str, Field(
        min_length=1, description="The name of the repository to open.",
    )],
    ide: Annotated[IdeName, Field(description=_IDE_DESCRIPTION)],
) -> str:
    """Open one repository."""
    async with _lock:
        try:
            result = _get_openmate().open_repo(name, ide)
        except Exception as e:
            return _error(e, "open-repo")
    return f"✅ Opened '{name}' in {result.editor} ({result.path})"


@mcp.tool(
    name="open-collection",
    description=(
        "Open every repository of a collection in an editor. "
        "Members that were removed since the collection was created are skipped."
    ),
    annotations=_LAUNCH,
)
async def open_collection(
    name: Annotated[str, Field(
        min_length=1, description="The name of the collection to open.",
    )],
    ide: Annotated[IdeName, Field(description=_IDE_DESCRIPTION)],
) -> str:
    """Open all repositories in a collection."""
    async with _lock:
        try:
            results = _get_openmate().open_collection(name, ide)
        except Exception as e:
            return _error(e, "open-collection")
    return render_open_results(name, EDITORS[ide], results)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    """Run the MCP stdio server."""
    import os
    import signal
    # anyio's stdin reader shields the blocking readline from cancellation,
    # so the first Ctrl+C would otherwise do nothing.
    signal.signal(signal.SIGINT, lambda *_: os._exit(130))

    from .logging_config import configure_ops_log
    from .paths import get_config_dir
    configure_ops_log(get_config_dir())

    logger.info("openmate MCP server running on stdio")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
