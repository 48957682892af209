"""
Shared pytest fixtures for openmate tests.

Every test gets its own config directory and store file under tmp_path, and
editor launches go to a recording fake instead of spawning processes.
"""

from pathlib import Path

import pytest

from openmate.api import OpenMate
from openmate.config import OpenMateConfig
from openmate.launcher import EditorLauncher
from openmate.store import Store

FIXED_NOW = "2026-01-15T09:30:00.000Z"


class FakeSpawner:
    """Records launch commands; raises FileNotFoundError for listed executables.

    Set ``fail_all`` to make every spawn fail.
    """

    def __init__(self, failing=(), fail_all: bool = False):
        self.failing = set(failing)
        self.fail_all = fail_all
        self.calls: list[list[str]] = []

    def __call__(self, command: list[str]) -> None:
        self.calls.append(command)
        if self.fail_all or command[0] in self.failing:
            raise FileNotFoundError(2, "No such file or directory", command[0])

    @property
    def executables(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point OPENMATE_HOME at a temp dir so nothing touches ~/.openmate."""
    home = tmp_path / "openmate-home"
    monkeypatch.setenv("OPENMATE_HOME", str(home))
    monkeypatch.delenv("OPENMATE_STORE_FILE", raising=False)
    return home


@pytest.fixture
def store_file(tmp_path) -> Path:
    return tmp_path / "state" / "repos.json"


@pytest.fixture
def store(store_file) -> Store:
    return Store(store_file)


@pytest.fixture
def spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture
def launcher(spawner) -> EditorLauncher:
    return EditorLauncher(spawn=spawner, platform="linux", environ={})


@pytest.fixture
def work_dir(tmp_path) -> Path:
    """Directory returned as the current working directory."""
    d = tmp_path / "cwd-project"
    d.mkdir()
    return d


@pytest.fixture
def om(tmp_path, store, launcher, work_dir) -> OpenMate:
    """OpenMate on a temp store with a fixed clock and fake launcher."""
    return OpenMate(
        config=OpenMateConfig(path=tmp_path / "config"),
        store=store,
        launcher=launcher,
        clock=lambda: FIXED_NOW,
        cwd=lambda: work_dir,
    )


@pytest.fixture
def repo_dirs(tmp_path) -> dict[str, Path]:
    """A few real directories to register."""
    dirs = {}
    for name in ("frontend", "backend", "docs"):
        d = tmp_path / "src" / name
        d.mkdir(parents=True)
        dirs[name] = d
    return dirs


@pytest.fixture
def make_launcher():
    """Factory: (launcher, spawner) for a platform with chosen failures."""
    def _make(platform="linux", failing=(), fail_all=False, **kwargs):
        spawner = FakeSpawner(failing=failing, fail_all=fail_all)
        launcher = EditorLauncher(spawn=spawner, platform=platform, environ={}, **kwargs)
        return launcher, spawner
    return _make
