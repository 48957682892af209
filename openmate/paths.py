"""
Filesystem locations for openmate.

    $OPENMATE_HOME              config directory (default ~/.openmate)
    $OPENMATE_STORE_FILE        store document (default <config dir>/repos.json)
"""

import os
from pathlib import Path
from typing import Optional

STORE_FILENAME = "repos.json"


def get_config_dir() -> Path:
    """Directory holding openmate.toml, logs, and (by default) the store."""
    home = os.environ.get("OPENMATE_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / ".openmate"


def get_store_file(configured: Optional[Path] = None) -> Path:
    """Resolve the store document path.

    Priority: OPENMATE_STORE_FILE, then the path from config, then the
    default inside the config directory.
    """
    env = os.environ.get("OPENMATE_STORE_FILE")
    if env:
        return Path(env).expanduser()
    if configured is not None:
        return Path(configured).expanduser()
    return get_config_dir() / STORE_FILENAME
