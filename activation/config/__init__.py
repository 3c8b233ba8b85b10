"""Config subsystem public API.

Provides:
    get_config() -> AggregatedConfig (schema_version + section models)
    as_dict()    -> dict representation
    ConfigError  -> raised on validation / unknown key
    configure_logging(cfg) -> install handler for the `activation` logger
"""

from .loader import (  # noqa: F401
    AggregatedConfig,
    get_config,
    as_dict,
    ConfigError,
    clear_config_cache,
)
from .logging_setup import configure_logging  # noqa: F401


def reset_for_tests() -> None:
    """Drop the cached config so the next get_config() re-reads files/env."""
    clear_config_cache()


__all__ = [
    "AggregatedConfig",
    "get_config",
    "as_dict",
    "ConfigError",
    "clear_config_cache",
    "configure_logging",
    "reset_for_tests",
]
