"""
Repository and collection registries.

Each operation loads the store, reads or changes one map, and saves if it
changed anything. Lookups go through normalize_name so that names are
case- and whitespace-insensitive.
"""

from __future__ import annotations

import logging
import os
import re
import stat
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from .errors import AlreadyExists, InvalidPath, MissingRepos, NotFound
from .store import Store
from .types import CollectionEntry, RepoEntry, normalize_name, utc_now

logger = logging.getLogger(__name__)

# "~" only when it is the whole first path segment ("~", "~/x", "~\x")
_HOME_PREFIX = re.compile(r"^~(?=$|[\\/])")


def expand_home(raw_path: str) -> str:
    """Replace a leading ``~`` segment with the user's home directory.

    Unlike os.path.expanduser, ``~other`` and ``a/~/b`` are left alone.
    """
    return _HOME_PREFIX.sub(lambda _: str(Path.home()), raw_path, count=1)


def resolve_directory(raw_path: str) -> str:
    """Expand and absolutize a path, requiring an existing directory.

    Raises:
        InvalidPath: if the path cannot be stat'ed or is not a directory
    """
    resolved = os.path.abspath(expand_home(raw_path))
    try:
        st = os.stat(resolved)
    except OSError as e:
        raise InvalidPath(resolved, e.strerror or str(e)) from e
    if not stat.S_ISDIR(st.st_mode):
        raise InvalidPath(resolved, "not a directory")
    return resolved


class RepositoryRegistry:
    """Named repositories: normalized name -> absolute directory path."""

    def __init__(self, store: Store, clock: Callable[[], str] = utc_now):
        self._store = store
        self._clock = clock

    def list(self) -> list[tuple[str, str]]:
        """(name, path) pairs in document order."""
        data = self._store.load()
        return [(key, entry.path) for key, entry in data.repos.items()]

    def _insert(self, name: str, path_for: Callable[[], str]) -> RepoEntry:
        data = self._store.load()
        key = normalize_name(name)
        if key in data.repos:
            raise AlreadyExists("Repository", name)
        entry = RepoEntry(path=path_for(), added_at=self._clock())
        data.repos[key] = entry
        self._store.save(data)
        logger.info("Added repository %s -> %s", key, entry.path)
        return entry

    def add(self, name: str, raw_path: str) -> RepoEntry:
        """Register a directory under ``name``.

        Raises:
            AlreadyExists: if the normalized name is taken
            InvalidPath: if the path is missing or not a directory
        """
        return self._insert(name, lambda: resolve_directory(raw_path))

    def init_current_directory(self, name: str, cwd: Union[str, Path]) -> RepoEntry:
        """Register the caller's working directory. The path is trusted as-is."""
        return self._insert(name, lambda: str(cwd))

    def lookup(self, name: str) -> Optional[str]:
        """Stored path for ``name``, or None."""
        entry = self._store.load().repos.get(normalize_name(name))
        return entry.path if entry is not None else None

    def get(self, name: str) -> str:
        """Stored path for ``name``. Raises NotFound."""
        path = self.lookup(name)
        if path is None:
            raise NotFound("Repository", name)
        return path

    def remove(self, name: str) -> None:
        """Unregister ``name``. Collections referring to it are left as they are."""
        data = self._store.load()
        key = normalize_name(name)
        if key not in data.repos:
            raise NotFound("Repository", name)
        del data.repos[key]
        self._store.save(data)
        logger.info("Removed repository %s", key)


def split_repo_names(repos: Union[str, Iterable[str]]) -> list[str]:
    """Normalize a comma-separated string (or a sequence) of repository names."""
    if isinstance(repos, str):
        repos = repos.split(",")
    return [normalize_name(r.strip() if isinstance(r, str) else r) for r in repos]


class CollectionRegistry:
    """Named, ordered groups of repository names."""

    def __init__(self, store: Store, clock: Callable[[], str] = utc_now):
        self._store = store
        self._clock = clock

    def add(self, name: str, repos: Union[str, Iterable[str]]) -> CollectionEntry:
        """Create (or replace) a collection.

        Every member must be a registered repository at this moment; if any
        is not, nothing is written. Duplicates are kept as given.

        Raises:
            MissingRepos: listing exactly the unregistered names
        """
        data = self._store.load()
        members = split_repo_names(repos)
        missing = [r for r in members if r not in data.repos]
        if missing:
            raise MissingRepos(missing)
        entry = CollectionEntry(repos=members, name=name, created_at=self._clock())
        data.collections[normalize_name(name)] = entry
        self._store.save(data)
        logger.info("Saved collection %s with %d repos", normalize_name(name), len(members))
        return entry

    def delete(self, name: str) -> None:
        data = self._store.load()
        key = normalize_name(name)
        if key not in data.collections:
            raise NotFound("Collection", name)
        del data.collections[key]
        self._store.save(data)
        logger.info("Deleted collection %s", key)

    def list(self) -> list[str]:
        """Collection keys in document order."""
        return list(self._store.load().collections)

    def get(self, name: str) -> tuple[str, list[str]]:
        """(display name, member names) for ``name``. Raises NotFound."""
        key = normalize_name(name)
        entry = self._store.load().collections.get(key)
        if entry is None:
            raise NotFound("Collection", name)
        return entry.display_name(key), list(entry.repos)
