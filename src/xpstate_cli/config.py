"""CLI configuration management.

Handles persistent CLI configuration stored in ~/.xpstate/config.yaml.
Supports environment variable overrides and CLI flag precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .export.fetcher import DEFAULT_PAGE_SIZE
from .shared.paths import DEFAULT_OUTPUT_ARCHIVE, xpstate_dir

# Default values
DEFAULT_LOG_LEVEL = "warning"

# Environment variable mappings
ENV_VARS = {
    "kubeconfig": "XPSTATE_KUBECONFIG",
    "context": "XPSTATE_CONTEXT",
    "output_archive": "XPSTATE_OUTPUT",
    "page_size": "XPSTATE_PAGE_SIZE",
    "log_level": "XPSTATE_LOG_LEVEL",
}

# Keys that hold integers
INT_KEYS = {"page_size"}

CONFIG_KEYS = tuple(ENV_VARS)


@dataclass
class CLIConfig:
    """CLI configuration."""

    kubeconfig: str | None = None
    context: str | None = None
    output_archive: str = DEFAULT_OUTPUT_ARCHIVE
    page_size: int = DEFAULT_PAGE_SIZE
    log_level: str = DEFAULT_LOG_LEVEL

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def override(self, key: str, value: Any, source: str = "flag") -> None:
        """Set a value if given, recording where it came from."""
        if value is None:
            return
        setattr(self, key, _coerce(key, value))
        self._sources[key] = source

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in CONFIG_KEYS}


def _coerce(key: str, value: Any) -> Any:
    if key in INT_KEYS:
        number = int(value)
        if number <= 0:
            raise ValueError(f"{key} must be a positive integer, got {value!r}")
        return number
    return str(value)


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.xpstate/config.yaml
    """
    return xpstate_dir() / "config.yaml"


def _read_config_file(config_path: Path) -> dict[str, Any]:
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping")
    return data


def load_config() -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. CLI flags (applied by the caller through CLIConfig.override)
    2. Environment variables
    3. Config file (~/.xpstate/config.yaml)
    4. Defaults

    Returns:
        CLIConfig with values and sources

    Raises:
        ValueError: If the config file or an environment variable holds an invalid value.
    """
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_KEYS}
    config._sources = sources

    # Load from config file
    config_path = get_config_path()
    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

        for key in CONFIG_KEYS:
            if file_config.get(key) is not None:
                try:
                    config.override(key, file_config[key], "config file")
                except ValueError as e:
                    raise ValueError(f"Invalid {key} in {config_path}: {e}") from e

    # Override with environment variables
    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            try:
                config.override(key, os.environ[env_var], "environment")
            except ValueError as e:
                raise ValueError(f"Invalid {env_var}: {e}") from e

    return config


def save_config(key: str, value: Any) -> None:
    """Save a config value to the config file.

    Args:
        key: Config key (one of CONFIG_KEYS)
        value: Value to save

    Raises:
        KeyError: If the key is unknown.
        ValueError: If the value is invalid for the key.
    """
    if key not in CONFIG_KEYS:
        raise KeyError(key)
    value = _coerce(key, value)

    config_path = get_config_path()

    existing: dict[str, Any] = {}
    if config_path.exists():
        existing = _read_config_file(config_path)

    existing[key] = value

    config_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)


def unset_config(key: str) -> bool:
    """Remove a config value from the config file.

    Args:
        key: Config key to remove

    Returns:
        True if key was removed, False if not found
    """
    config_path = get_config_path()
    if not config_path.exists():
        return False

    existing = _read_config_file(config_path)

    if key not in existing:
        return False

    del existing[key]

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)

    return True
