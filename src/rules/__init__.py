"""Configuration rules for monobuild."""

from rules.config import (
    BuildDefaults,
    ConfigError,
    MonobuildConfig,
    load_config,
    resolve_output_dir,
)

__all__ = [
    "BuildDefaults",
    "ConfigError",
    "MonobuildConfig",
    "load_config",
    "resolve_output_dir",
]
