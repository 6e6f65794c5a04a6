"""YAML configuration loading for aspmailer.

The configuration file ``aspmailer.conf.yml`` supplies default values for
``Mailer`` properties and for logging. It is only ever read; settings are
never written back.

Search order:
    1. The path passed to :func:`load_config`.
    2. The ``ASPMAILER_CONFIG`` environment variable.
    3. ``aspmailer.conf.yml`` in the current working directory.

When no file is found the built-in defaults are used.

Examples:
    >>> config = load_config()  # doctest: +SKIP
    >>> config.mailer.remote_host  # doctest: +SKIP
    'smtp1.example.com;smtp2.example.com:2525'
"""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from box import Box

from aspmailer.exceptions import ConfigFileNotFoundError, ConfigFormatError, ConfigNotLoadedError

log = logging.getLogger(__name__)

CONFIG_FILENAME = "aspmailer.conf.yml"
CONFIG_ENV_VAR = "ASPMAILER_CONFIG"

DEFAULT_CONFIG: dict[str, Any] = {
    "mailer": {},
    "logging": {"preset": None, "console": {}},
}

_config_cache: Box | None = None


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_file(path: str | os.PathLike[str] | None) -> Path | None:
    if path is not None:
        explicit = Path(path)
        if not explicit.is_file():
            raise ConfigFileNotFoundError(f"Configuration file not found: {explicit}")
        return explicit

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidate = Path(env_path)
        if not candidate.is_file():
            raise ConfigFileNotFoundError(f"{CONFIG_ENV_VAR} points to a missing file: {candidate}")
        return candidate

    candidate = Path.cwd() / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_from_file(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Parse one YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        The parsed mapping (empty for an empty file).

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
        ConfigFormatError: If the file is not valid YAML or not a mapping.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigFileNotFoundError(f"Configuration file not found: {file_path}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigFormatError(f"Invalid YAML in {file_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigFormatError(f"{file_path} must contain a mapping, got {type(data).__name__}")
    return dict(data)


def load_config(path: str | os.PathLike[str] | None = None) -> Box:
    """Load the configuration and cache it for :func:`get_config`.

    Args:
        path: Explicit configuration file. When omitted the search order
            described in the module docstring applies.

    Returns:
        The merged configuration as a ``Box``.

    Raises:
        ConfigFileNotFoundError: If an explicitly requested file is missing.
        ConfigFormatError: If the file cannot be parsed.
    """
    global _config_cache  # pylint: disable=global-statement

    config_file = _find_config_file(path)
    data: dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
    if config_file is None:
        log.debug("No %s found, using built-in defaults", CONFIG_FILENAME)
    else:
        log.debug("Loading configuration from %s", config_file)
        data = _deep_merge(data, load_from_file(config_file))

    for section in ("mailer", "logging"):
        if data.get(section) is None:
            data[section] = {}
        if not isinstance(data[section], Mapping):
            raise ConfigFormatError(f"'{section}' section must be a mapping")

    _config_cache = Box(data)
    return _config_cache


def get_config() -> Box:
    """Return the configuration loaded by :func:`load_config`.

    Raises:
        ConfigNotLoadedError: If nothing has been loaded yet.
    """
    if _config_cache is None:
        raise ConfigNotLoadedError("Configuration not loaded, call load_config() first")
    return _config_cache


def clear_config() -> None:
    """Forget the cached configuration."""
    global _config_cache  # pylint: disable=global-statement
    _config_cache = None


__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "clear_config",
    "get_config",
    "load_config",
    "load_from_file",
]
