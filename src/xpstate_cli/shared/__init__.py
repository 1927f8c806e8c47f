"""Shared modules for xpstate-cli."""

from .logging import configure_logging, get_logger, level_for_verbosity
from .paths import DEFAULT_OUTPUT_ARCHIVE, default_kubeconfig_path, xpstate_dir

__all__ = [
    # Paths
    "DEFAULT_OUTPUT_ARCHIVE",
    "default_kubeconfig_path",
    "xpstate_dir",
    # Logging
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]
