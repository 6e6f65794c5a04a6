"""Read-only YAML configuration for aspmailer."""

from aspmailer.config.loader import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    clear_config,
    get_config,
    load_config,
    load_from_file,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "clear_config",
    "get_config",
    "load_config",
    "load_from_file",
]
