"""
openmate — named repositories and collections, opened in your editor.

Usage:
    openmate add myrepo ~/src/myrepo
    openmate open myrepo --ide vs
    openmate mcp                    # stdio server for AI agents
"""

from .api import OpenMate, OpenResult
from .errors import (
    AlreadyExists,
    EditorNotFound,
    InvalidPath,
    MissingRepos,
    NotFound,
    OpenMateError,
)
from .types import EDITORS, CollectionEntry, RepoEntry, StoreData, normalize_name

__all__ = [
    "OpenMate",
    "OpenResult",
    "OpenMateError",
    "AlreadyExists",
    "NotFound",
    "InvalidPath",
    "MissingRepos",
    "EditorNotFound",
    "RepoEntry",
    "CollectionEntry",
    "StoreData",
    "EDITORS",
    "normalize_name",
]
