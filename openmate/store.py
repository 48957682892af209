"""
JSON document store for repositories and collections.

The whole store is one small JSON file. Every operation loads it fresh,
changes one map, and writes the whole document back. There is no locking:
openmate is a single-user tool and concurrent writers can lose updates.

A file that is not valid JSON, or whose top level is not an object, is
replaced with an empty store. Availability wins over keeping corrupt data
around. Individual entries of an unknown shape are kept as they are.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from .errors import StoreCorrupt
from .types import StoreData

logger = logging.getLogger(__name__)

# Owner read/write only
FILE_MODE = 0o600


class Store:
    """Handle on the store document. ``load`` and ``save`` are the only I/O."""

    def __init__(self, path: Path):
        """
        Args:
            path: Path to the JSON store file
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, data: StoreData) -> None:
        """Write the document via a temp file and atomic rename."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data.to_dict(), indent=2, ensure_ascii=False)
        fd, tmp = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(tmp, FILE_MODE)
            os.replace(tmp, self._path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise

    def ensure(self) -> None:
        """Create the directory and an empty store document if missing."""
        if not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self._write(StoreData())
            logger.info("Created store at %s", self._path)

    def load(self) -> StoreData:
        """Read the store, recovering from a corrupt file.

        Creates the file on first use. If the content cannot be decoded as
        JSON or is not an object, it is overwritten with an empty store, which
        is returned.
        """
        self.ensure()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return StoreData.from_dict(raw)
        except (ValueError, StoreCorrupt) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.warning("Store %s unreadable (%s), recreating empty store", self._path, e)
            fresh = StoreData()
            self._write(fresh)
            return fresh

    def save(self, data: StoreData) -> None:
        """Overwrite the store with ``data``."""
        self._write(data)
        logger.debug(
            "Saved store %s (%d repos, %d collections)",
            self._path, len(data.repos), len(data.collections),
        )
