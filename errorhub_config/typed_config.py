# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Typed configuration wrapper for services."""

from typing import Any, Dict, Optional

from .base import ConfigProvider
from .schema_loader import _load_config
from .static_provider import StaticConfigProvider


class TypedConfig:
    """Typed configuration wrapper that provides attribute-only access to config values.

    Dictionary-style access is intentionally NOT supported so that every key
    read by a service is visible to static analysis and verifiably declared
    in the schema.

    Example:
        >>> config = load_typed_config("error-reporting")
        >>> config.http_port
        8081
        >>> config["http_port"]
        TypeError: TypedConfig does not support dict-style access
    """

    def __init__(self, config_dict: Dict[str, Any], schema_version: Optional[str] = None):
        object.__setattr__(self, '_config', config_dict)
        object.__setattr__(self, '_schema_version', schema_version)

    def get_schema_version(self) -> Optional[str]:
        """Get the schema version.

        Returns:
            Schema version string or None
        """
        return object.__getattribute__(self, '_schema_version')

    def __getattr__(self, name: str) -> Any:
        """Get configuration value by attribute name only.

        Raises:
            AttributeError: If configuration key does not exist
        """
        if name.startswith('_'):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

        config = object.__getattribute__(self, '_config')
        if name not in config:
            raise AttributeError(
                f"Configuration key '{name}' not found. "
                f"Available keys: {sorted(config.keys())}"
            )

        return config[name]

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification of configuration at runtime."""
        raise AttributeError(
            f"Cannot modify configuration. '{name}' is read-only. "
            "Configuration is immutable after loading."
        )

    def __getitem__(self, key: str) -> Any:
        raise TypeError(
            f"TypedConfig does not support dict-style access (config['{key}']). "
            f"Use attribute-style instead: config.{key}"
        )

    def __repr__(self) -> str:
        config = object.__getattribute__(self, '_config')
        return f"TypedConfig({config!r})"

    def __dir__(self) -> list:
        config = object.__getattribute__(self, '_config')
        return sorted(config.keys())


def load_typed_config(
    service_name: str,
    schema_dir: Optional[str] = None,
    env_provider: Optional[ConfigProvider] = None,
    static_provider: Optional[StaticConfigProvider] = None,
) -> TypedConfig:
    """Load and validate configuration, returning a typed config object.

    This is the ONLY recommended way to load configuration in services.

    Args:
        service_name: Name of the service; selects ``<service_name>.json``
        schema_dir: Directory containing schema files (defaults to SCHEMA_DIR,
            then the schemas bundled with this package)
        env_provider: Optional environment provider override (tests)
        static_provider: Optional static provider for ``"static"`` fields

    Returns:
        TypedConfig instance with validated configuration

    Raises:
        ConfigSchemaError: If schema is missing or invalid
        ConfigValidationError: If configuration validation fails
    """
    schema, config_dict = _load_config(
        service_name,
        schema_dir=schema_dir,
        env_provider=env_provider,
        static_provider=static_provider,
    )
    return TypedConfig(config_dict, schema_version=schema.schema_version)
