"""
Error types and error logging for openmate.

Every failure a caller can see is an OpenMateError with a message meant for
people. Full stack traces for anything unexpected go to a log file instead.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable


class OpenMateError(ValueError):
    """Base class for expected, user-facing failures."""


class AlreadyExists(OpenMateError):
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' already exists")


class NotFound(OpenMateError):
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' not found")


class InvalidPath(OpenMateError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path '{path}': {reason}")


class MissingRepos(OpenMateError):
    """Collection creation referenced repositories that are not registered."""

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        super().__init__(f"Repositories not found: {', '.join(self.names)}")


class EditorNotFound(OpenMateError):
    """Every launch candidate for an editor failed to spawn."""

    def __init__(self, editor: str, tried: Iterable[str] = ()):
        self.editor = editor
        self.tried = list(tried)
        msg = f"Could not launch {editor}"
        if self.tried:
            msg += f" (tried: {', '.join(self.tried)})"
        super().__init__(msg)


class StoreCorrupt(Exception):
    """Raised while parsing an unreadable store. Handled inside Store.load."""


def _error_log_path() -> Path:
    from .paths import get_config_dir
    return get_config_dir() / "openmate-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., tool name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # Can't write error log — don't crash over it
    return log_path
