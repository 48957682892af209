"""
Configuration management for openmate.

The configuration is a TOML file in the config directory. It can relocate
the store document and add launch candidates for each editor, which are
tried before the built-in ones.
"""

import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import tomli_w

from .paths import get_store_file
from .types import EDITORS


CONFIG_FILENAME = "openmate.toml"
CONFIG_VERSION = 1


@dataclass
class OpenMateConfig:
    """Complete openmate configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    store_file: Optional[Path] = None

    # Extra launch candidates per editor id, tried before the built-in list
    editors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def resolved_store_file(self) -> Path:
        """Store document location, after environment overrides."""
        return get_store_file(self.store_file)


def _parse_editors(section: dict) -> dict[str, list[str]]:
    editors: dict[str, list[str]] = {}
    for key, value in section.items():
        if key not in EDITORS:
            raise ValueError(
                f"Unknown editor '{key}' in [editors] (expected one of: {', '.join(EDITORS)})"
            )
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"[editors] {key} must be a list of strings")
        editors[key] = list(value)
    return editors


def load_config(config_dir: Path) -> OpenMateConfig:
    """
    Load configuration from a config directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = config_dir / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    header = data.get("openmate", {})
    version = header.get("version", CONFIG_VERSION)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    store_file = data.get("store", {}).get("file")

    return OpenMateConfig(
        path=config_dir,
        version=version,
        created=header.get("created", ""),
        store_file=Path(store_file) if store_file else None,
        editors=_parse_editors(data.get("editors", {})),
    )


def save_config(config: OpenMateConfig) -> None:
    """
    Save configuration to the config directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data: dict = {
        "openmate": {
            "version": config.version,
            "created": config.created,
        },
    }
    if config.store_file is not None:
        data["store"] = {"file": str(config.store_file)}
    if config.editors:
        data["editors"] = {k: list(v) for k, v in config.editors.items()}

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(config_dir: Path) -> OpenMateConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_path = config_dir / CONFIG_FILENAME

    if config_path.exists():
        return load_config(config_dir)
    else:
        config = OpenMateConfig(path=config_dir)
        save_config(config)
        return config
