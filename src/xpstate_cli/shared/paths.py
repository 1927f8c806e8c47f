"""Path management for xpstate-cli.

Paths are resolved on each call so that a changed HOME or KUBECONFIG is
picked up.
"""

import os
from pathlib import Path

# Default name of the produced archive (relative to the working directory)
DEFAULT_OUTPUT_ARCHIVE = "xpstate-export.tar.gz"


def xpstate_dir() -> Path:
    """Base directory for all xpstate data (~/.xpstate)."""
    return Path.home() / ".xpstate"


def default_kubeconfig_path() -> Path:
    """Get the kubeconfig file kubectl would use.

    The first entry of $KUBECONFIG wins, otherwise ~/.kube/config.

    Returns:
        Path to the kubeconfig file (it may not exist yet)
    """
    env = os.environ.get("KUBECONFIG", "")
    for entry in env.split(os.pathsep):
        if entry:
            return Path(entry).expanduser()
    return Path.home() / ".kube" / "config"
