"""
Data types for the repository store.

The on-disk document has gone through two shapes. Older stores keep a
repository as a bare path string and a collection as a bare list of names;
current stores use objects with timestamps. Both are parsed into the same
records here, so nothing past ``Store.load`` ever sees the legacy forms.

The file is shared with other tools, so parsing is lossless: keys openmate
does not know are carried in ``extra``, and entries it cannot read at all are
kept raw. Both are written back unchanged on save.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import StoreCorrupt

logger = logging.getLogger(__name__)


# Schema tag written into every store document. Not used for migrations.
STORE_VERSION = 2

# Editor identifiers accepted by the launcher, with display names.
EDITORS: dict[str, str] = {
    "vs": "VS Code",
    "ws": "WebStorm",
    "cs": "Cursor",
    "ij": "IntelliJ IDEA",
    "pc": "PyCharm",
}


def utc_now() -> str:
    """Current UTC timestamp, ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_name(raw: Any) -> str:
    """Canonical lookup key for a user-supplied name.

    Non-string or empty input maps to the empty string; anything else is
    trimmed and lower-cased. Idempotent.
    """
    if not raw or not isinstance(raw, str):
        return ""
    return raw.strip().lower()


def _merge_extra(known: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    """Known keys first, then extra keys that the known ones don't shadow."""
    d = dict(known)
    for k, v in extra.items():
        d.setdefault(k, v)
    return d


@dataclass
class RepoEntry:
    """A registered repository."""
    path: str
    added_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"path": self.path}
        if self.added_at is not None:
            d["addedAt"] = self.added_at
        return _merge_extra(d, self.extra)


@dataclass
class CollectionEntry:
    """A named group of repository keys.

    ``repos`` holds normalized names, in the order given at creation,
    duplicates included. They are references, checked only when the
    collection was created.
    """
    repos: list[str] = field(default_factory=list)
    name: Optional[str] = None
    created_at: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def display_name(self, key: str) -> str:
        """Name as originally typed, falling back to the store key."""
        return self.name or key

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.name is not None:
            d["name"] = self.name
        d["repos"] = list(self.repos)
        if self.created_at is not None:
            d["createdAt"] = self.created_at
        return _merge_extra(d, self.extra)


def _split_known(raw: dict[str, Any], typed: dict[str, type]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split ``raw`` into known keys of the expected type and everything else.

    A known key holding a value of the wrong type goes to the extras, so it
    is still written back as it was.
    """
    known: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for k, v in raw.items():
        if k in typed and isinstance(v, typed[k]):
            known[k] = v
        else:
            extra[k] = v
    return known, extra


def parse_repo_entry(raw: Any) -> RepoEntry:
    """Parse a stored repository in either the object or bare-string shape.

    Raises StoreCorrupt for anything without a string path.
    """
    if isinstance(raw, str):
        return RepoEntry(path=raw)
    if isinstance(raw, dict) and isinstance(raw.get("path"), str):
        known, extra = _split_known(raw, {"path": str, "addedAt": str})
        return RepoEntry(path=known["path"], added_at=known.get("addedAt"), extra=extra)
    raise StoreCorrupt(f"unrecognised repository entry: {raw!r}")


def parse_collection_entry(raw: Any) -> CollectionEntry:
    """Parse a stored collection in either the object or bare-list shape.

    Raises StoreCorrupt for anything else, or a ``repos`` that is not a list.
    """
    if isinstance(raw, list):
        return CollectionEntry(repos=[str(r) for r in raw])
    if isinstance(raw, dict):
        repos = raw.get("repos", [])
        if not isinstance(repos, list):
            raise StoreCorrupt(f"collection repos is not a list: {repos!r}")
        known, extra = _split_known(raw, {"repos": list, "name": str, "createdAt": str})
        return CollectionEntry(
            repos=[str(r) for r in repos],
            name=known.get("name"),
            created_at=known.get("createdAt"),
            extra=extra,
        )
    raise StoreCorrupt(f"unrecognised collection entry: {raw!r}")


def _entry_map(data: dict[str, Any], key: str) -> dict[str, Any]:
    """The ``repos``/``collections`` map, empty when missing or not an object."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Store %s is not an object (%r), treating as empty", key, value)
        return {}
    return value


@dataclass
class StoreData:
    """The whole persisted document, in canonical form.

    ``unparsed_repos`` and ``unparsed_collections`` hold entries of an
    unrecognised shape, which are invisible to lookups but saved as they
    were. ``extra`` holds unknown top-level keys.
    """
    version: Any = STORE_VERSION
    repos: dict[str, RepoEntry] = field(default_factory=dict)
    collections: dict[str, CollectionEntry] = field(default_factory=dict)
    unparsed_repos: dict[str, Any] = field(default_factory=dict)
    unparsed_collections: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "StoreData":
        """Build from a decoded JSON document.

        Missing or non-object ``repos``/``collections`` maps are back-filled
        as empty. Raises StoreCorrupt only when the document is not an object.
        """
        if not isinstance(data, dict):
            raise StoreCorrupt("store document is not an object")

        store = cls(
            version=data.get("version", STORE_VERSION),
            extra={k: v for k, v in data.items() if k not in ("version", "repos", "collections")},
        )
        for k, v in _entry_map(data, "repos").items():
            try:
                store.repos[k] = parse_repo_entry(v)
            except StoreCorrupt as e:
                logger.warning("Skipping repository %r: %s", k, e)
                store.unparsed_repos[k] = v
        for k, v in _entry_map(data, "collections").items():
            try:
                store.collections[k] = parse_collection_entry(v)
            except StoreCorrupt as e:
                logger.warning("Skipping collection %r: %s", k, e)
                store.unparsed_collections[k] = v
        return store

    def to_dict(self) -> dict[str, Any]:
        repos = {k: v.to_dict() for k, v in self.repos.items()}
        collections = {k: v.to_dict() for k, v in self.collections.items()}
        return _merge_extra(
            {
                "version": self.version,
                "repos": _merge_extra(repos, self.unparsed_repos),
                "collections": _merge_extra(collections, self.unparsed_collections),
            },
            self.extra,
        )
