"""
Core API for openmate.

OpenMate wires one store handle into the repository and collection
registries and the editor launcher. It holds no store data between calls:
every method goes back to disk.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from .config import OpenMateConfig, load_or_create_config
from .errors import EditorNotFound, NotFound
from .launcher import EditorLauncher
from .paths import get_config_dir
from .registry import CollectionRegistry, RepositoryRegistry
from .store import Store
from .types import EDITORS, CollectionEntry, RepoEntry, StoreData, utc_now

logger = logging.getLogger(__name__)


@dataclass
class OpenResult:
    """Outcome of opening one repository."""
    name: str
    editor: str
    path: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class OpenMate:
    """
    Repository bookkeeping: register directories, group them, open them.
    """

    def __init__(
        self,
        store_path: Optional[Union[str, Path]] = None,
        config: Optional[OpenMateConfig] = None,
        store: Optional[Store] = None,
        launcher: Optional[EditorLauncher] = None,
        clock: Callable[[], str] = utc_now,
        cwd: Callable[[], Path] = Path.cwd,
    ) -> None:
        """
        Args:
            store_path: Store JSON file. Overrides config and environment.
            config: Pre-loaded config (skips filesystem config discovery).
            store: Injected store handle (tests, custom setups).
            launcher: Injected editor launcher.
            clock: Timestamp source for new entries.
            cwd: Working directory source for init_repo.
        """
        if config is None:
            config = load_or_create_config(get_config_dir())
        self._config = config

        if store is None:
            path = Path(store_path) if store_path is not None else config.resolved_store_file
            store = Store(path)
        self._store = store

        if launcher is None:
            launcher = EditorLauncher(extra_candidates=config.editors)
        self._launcher = launcher

        self._cwd = cwd
        self.repos = RepositoryRegistry(store, clock=clock)
        self.collections = CollectionRegistry(store, clock=clock)

    @property
    def config(self) -> OpenMateConfig:
        return self._config

    @property
    def store(self) -> Store:
        return self._store

    # -- Repositories -------------------------------------------------------

    def snapshot(self) -> StoreData:
        """The whole store, read fresh."""
        return self._store.load()

    def list_repos(self) -> list[tuple[str, str]]:
        return self.repos.list()

    def add_repo(self, name: str, path: str) -> RepoEntry:
        return self.repos.add(name, path)

    def get_repo(self, name: str) -> str:
        return self.repos.get(name)

    def remove_repo(self, name: str) -> None:
        self.repos.remove(name)

    def init_repo(self, name: str) -> RepoEntry:
        """Register the current working directory as ``name``."""
        return self.repos.init_current_directory(name, self._cwd())

    # -- Collections --------------------------------------------------------

    def add_collection(self, name: str, repos: Union[str, Iterable[str]]) -> CollectionEntry:
        return self.collections.add(name, repos)

    def delete_collection(self, name: str) -> None:
        self.collections.delete(name)

    def list_collections(self) -> list[str]:
        return self.collections.list()

    def get_collection(self, name: str) -> tuple[str, list[str]]:
        return self.collections.get(name)

    # -- Opening ------------------------------------------------------------

    def _check_editor(self, ide: str) -> None:
        if ide not in EDITORS:
            raise ValueError(f"Unknown editor '{ide}' (expected one of: {', '.join(EDITORS)})")

    def open_repo(self, name: str, ide: str) -> OpenResult:
        """Launch ``ide`` on repository ``name``.

        Raises:
            NotFound: unknown repository
            EditorNotFound: no launch candidate could be started
        """
        self._check_editor(ide)
        path = self.repos.get(name)
        self._launcher.open(path, ide)
        return OpenResult(name=name, editor=EDITORS[ide], path=path)

    def open_collection(self, name: str, ide: str) -> list[OpenResult]:
        """Launch ``ide`` on every member of collection ``name``, in order.

        Members that no longer exist, or that the editor failed to launch
        for, are reported in their OpenResult and the rest still open.

        Raises:
            NotFound: unknown collection
        """
        self._check_editor(ide)
        _, members = self.collections.get(name)
        results = []
        for member in members:
            path = self.repos.lookup(member)
            if path is None:
                logger.info("Collection %s: repository %s no longer exists", name, member)
                results.append(OpenResult(
                    name=member, editor=EDITORS[ide],
                    error=str(NotFound("Repository", member)),
                ))
                continue
            try:
                self._launcher.open(path, ide)
            except EditorNotFound as e:
                results.append(OpenResult(name=member, editor=EDITORS[ide], path=path, error=str(e)))
                continue
            results.append(OpenResult(name=member, editor=EDITORS[ide], path=path))
        return results
