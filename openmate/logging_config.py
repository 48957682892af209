"""
Logging configuration for openmate.

Nothing is ever logged to stdout: under ``openmate mcp`` stdout is the
protocol channel.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("openmate").setLevel(logging.DEBUG)


def configure_ops_log(config_dir):
    """Configure a persistent operations log in the config directory.

    Writes to {config_dir}/openmate-ops.log using a rotating file handler
    (1MB max, 3 backups). Returns the handler so it can be removed later.
    """
    log_dir = Path(config_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        str(log_dir / "openmate-ops.log"),
        maxBytes=1_000_000,
        backupCount=3,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    om_logger = logging.getLogger("openmate")
    om_logger.addHandler(handler)
    # Let INFO through even when the root logger is quieter
    if om_logger.level == logging.NOTSET or om_logger.level > logging.INFO:
        om_logger.setLevel(logging.INFO)

    return handler
