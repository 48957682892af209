"""
Launch editors on a directory as detached processes.

Each editor has an ordered list of candidate command lines for the current
platform. They are tried one after another; the first one the OS accepts
wins. Only spawn errors (executable missing, permission denied) count as
failure. The launched editor is never waited on and its exit status is
never observed.

    macOS:    open -a "<Application Name>" <path>
    Windows:  CLI launcher names, then install locations under
              %LOCALAPPDATA% / %ProgramFiles% (version folders globbed)
    Linux:    CLI launcher names, then JetBrains Toolbox scripts and /opt
"""

import glob
import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

from .errors import EditorNotFound
from .types import EDITORS

logger = logging.getLogger(__name__)


# Application names for `open -a`
_MAC_APPS = {
    "vs": "Visual Studio Code",
    "ws": "WebStorm",
    "cs": "Cursor",
    "ij": "IntelliJ IDEA",
    "pc": "PyCharm",
}

# CLI launchers found on PATH, in preference order
_COMMANDS = {
    "vs": ["code", "code-insiders", "codium"],
    "ws": ["webstorm", "webstorm.sh"],
    "cs": ["cursor"],
    "ij": ["idea", "idea.sh", "intellij-idea-ultimate", "intellij-idea-community"],
    "pc": ["pycharm", "pycharm.sh", "charm", "pycharm-professional", "pycharm-community"],
}

# Windows install locations as (environment variable, relative pattern)
_WINDOWS_PATHS = {
    "vs": [
        ("LOCALAPPDATA", r"Programs\Microsoft VS Code\Code.exe"),
        ("ProgramFiles", r"Microsoft VS Code\Code.exe"),
    ],
    "ws": [("ProgramFiles", r"JetBrains\WebStorm*\bin\webstorm64.exe")],
    "cs": [("LOCALAPPDATA", r"Programs\cursor\Cursor.exe")],
    "ij": [("ProgramFiles", r"JetBrains\IntelliJ IDEA*\bin\idea64.exe")],
    "pc": [("ProgramFiles", r"JetBrains\PyCharm*\bin\pycharm64.exe")],
}

# Linux install locations, same shape; HOME-relative entries cover Toolbox
_LINUX_PATHS = {
    "vs": [("HOME", ".local/share/code/bin/code")],
    "ws": [
        ("HOME", ".local/share/JetBrains/Toolbox/scripts/webstorm"),
        (None, "/opt/webstorm*/bin/webstorm.sh"),
    ],
    "cs": [("HOME", "Applications/cursor*.AppImage")],
    "ij": [
        ("HOME", ".local/share/JetBrains/Toolbox/scripts/idea"),
        (None, "/opt/idea*/bin/idea.sh"),
    ],
    "pc": [
        ("HOME", ".local/share/JetBrains/Toolbox/scripts/pycharm"),
        (None, "/opt/pycharm*/bin/pycharm.sh"),
    ],
}


@dataclass(frozen=True)
class LaunchCandidate:
    """One way of starting an editor: ``argv + [path]``."""
    argv: tuple[str, ...]

    def command(self, path: str) -> list[str]:
        return [*self.argv, path]

    @property
    def label(self) -> str:
        return " ".join(self.argv)


def _expand_install_paths(
    entries: Sequence[tuple[Optional[str], str]],
    environ: Mapping[str, str],
    sep: str,
) -> list[str]:
    """Join patterns onto environment base dirs and glob version folders.

    Newest-looking version folders (reverse lexical order) come first.
    Entries whose base variable is unset are skipped.
    """
    found: list[str] = []
    for var, pattern in entries:
        if var is None:
            full = pattern
        else:
            base = environ.get(var)
            if not base:
                continue
            full = base.rstrip("\\/") + sep + pattern
        if any(c in full for c in "*?["):
            found.extend(sorted(glob.glob(full), reverse=True))
        else:
            found.append(full)
    return found


def candidates_for(
    editor: str,
    platform: str,
    environ: Mapping[str, str],
    extra: Sequence[str] = (),
) -> list[LaunchCandidate]:
    """Ordered launch candidates for ``editor`` on ``platform``.

    ``extra`` (from config) is tried first on every platform.
    """
    if editor not in EDITORS:
        raise ValueError(f"Unknown editor '{editor}' (expected one of: {', '.join(EDITORS)})")

    candidates = [LaunchCandidate((cmd,)) for cmd in extra]

    if platform == "darwin":
        candidates.append(LaunchCandidate(("open", "-a", _MAC_APPS[editor])))
        return candidates

    candidates.extend(LaunchCandidate((cmd,)) for cmd in _COMMANDS[editor])
    if platform == "win32":
        installs = _expand_install_paths(_WINDOWS_PATHS[editor], environ, "\\")
    else:
        installs = _expand_install_paths(_LINUX_PATHS[editor], environ, "/")
    candidates.extend(LaunchCandidate((exe,)) for exe in installs)
    return candidates


def spawn_detached(command: list[str]) -> None:
    """Start ``command`` without waiting, with stdio sent to devnull.

    Raises OSError if the process cannot be created.
    """
    kwargs: dict = {
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "stdin": subprocess.DEVNULL,
    }
    if sys.platform != "win32":
        # Unix: start new session to fully detach
        kwargs["start_new_session"] = True
    else:
        kwargs["creationflags"] = (
            subprocess.CREATE_NEW_PROCESS_GROUP | subprocess.DETACHED_PROCESS
        )
    subprocess.Popen(command, **kwargs)


class EditorLauncher:
    """Opens paths in editors by walking the candidate list."""

    def __init__(
        self,
        spawn: Callable[[list[str]], None] = spawn_detached,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        extra_candidates: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        """
        Args:
            spawn: Starts a command, raising OSError when it cannot
            platform: sys.platform value to plan for (default: current)
            environ: Environment used for install locations (default: os.environ)
            extra_candidates: Editor id -> commands tried before the built-ins
        """
        self._spawn = spawn
        self._platform = platform or sys.platform
        self._environ = environ if environ is not None else os.environ
        self._extra = dict(extra_candidates or {})

    def candidates(self, editor: str) -> list[LaunchCandidate]:
        return candidates_for(
            editor, self._platform, self._environ, self._extra.get(editor, ()),
        )

    def open(self, path: str, editor: str) -> LaunchCandidate:
        """Start ``editor`` on ``path``; return the candidate that launched.

        Raises:
            EditorNotFound: if every candidate failed to spawn
        """
        tried: list[str] = []
        for candidate in self.candidates(editor):
            command = candidate.command(path)
            logger.debug("Trying %s", command)
            try:
                self._spawn(command)
            except OSError as e:
                logger.debug("Launch failed for %s: %s", candidate.label, e)
                tried.append(candidate.label)
                continue
            logger.info("Opened %s in %s via %s", path, EDITORS[editor], candidate.label)
            return candidate

        logger.warning("No launcher worked for %s (tried %d)", EDITORS[editor], len(tried))
        raise EditorNotFound(EDITORS[editor], tried)
