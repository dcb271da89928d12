# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Schema-driven configuration loader with validation."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .base import ConfigProvider
from .env_provider import EnvConfigProvider
from .static_provider import StaticConfigProvider

BUNDLED_SCHEMA_DIR = str(Path(__file__).parent / "schemas")


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


class ConfigSchemaError(Exception):
    """Exception raised when schema is invalid or missing."""
    pass


@dataclass
class FieldSpec:
    """Specification for a single configuration field."""
    name: str
    field_type: str  # "string", "int", "bool", "float"
    required: bool = False
    default: Any = None
    source: str = "env"  # "env", "static"
    env_var: Optional[str] = None
    choices: Optional[List[Any]] = None
    minimum: Optional[float] = None
    description: Optional[str] = None


@dataclass
class ConfigSchema:
    """Configuration schema for a service."""
    service_name: str
    fields: Dict[str, FieldSpec] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    schema_version: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigSchema':
        """Create ConfigSchema from dictionary.

        Args:
            data: Schema data as dictionary

        Returns:
            ConfigSchema instance
        """
        fields = {
            field_name: cls._parse_field_spec(field_name, field_data)
            for field_name, field_data in data.get("fields", {}).items()
        }

        return cls(
            service_name=data.get("service_name", "unknown"),
            fields=fields,
            metadata=data.get("metadata", {}),
            schema_version=data.get("schema_version"),
        )

    @classmethod
    def _parse_field_spec(cls, name: str, data: Dict[str, Any]) -> FieldSpec:
        return FieldSpec(
            name=name,
            field_type=data.get("type", "string"),
            required=data.get("required", False),
            default=data.get("default"),
            source=data.get("source", "env"),
            env_var=data.get("env_var"),
            choices=data.get("choices"),
            minimum=data.get("minimum"),
            description=data.get("description"),
        )

    @classmethod
    def from_json_file(cls, filepath: str) -> 'ConfigSchema':
        """Load schema from JSON file.

        Args:
            filepath: Path to JSON schema file

        Returns:
            ConfigSchema instance

        Raises:
            ConfigSchemaError: If schema file is invalid or missing
        """
        if not os.path.exists(filepath):
            raise ConfigSchemaError(f"Schema file not found: {filepath}")

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigSchemaError(f"Invalid JSON in schema file {filepath}: {e}") from e
        return cls.from_dict(data)


class SchemaConfigLoader:
    """Loads and validates configuration based on schema."""

    def __init__(
        self,
        schema: ConfigSchema,
        env_provider: Optional[ConfigProvider] = None,
        static_provider: Optional[StaticConfigProvider] = None,
    ):
        """Initialize the schema config loader.

        Args:
            schema: Configuration schema
            env_provider: Environment variable provider
            static_provider: Static/hardcoded provider
        """
        self.schema = schema
        self.env_provider = env_provider or EnvConfigProvider()
        self.static_provider = static_provider

    def load(self) -> Dict[str, Any]:
        """Load and validate configuration based on schema.

        Returns:
            Validated configuration dictionary

        Raises:
            ConfigValidationError: If required fields are missing or validation fails
        """
        config = {}
        errors = []

        for field_name, field_spec in self.schema.fields.items():
            try:
                config[field_name] = self._load_field(field_spec)
            except ConfigValidationError as e:
                errors.append(f"{field_name}: {e}")

        if errors:
            raise ConfigValidationError(
                f"Configuration validation failed for {self.schema.service_name}:\n" +
                "\n".join(f"  - {err}" for err in errors)
            )

        return config

    def _load_field(self, field_spec: FieldSpec) -> Any:
        """Load a single field value based on its specification.

        Raises:
            ConfigValidationError: If the value is missing or out of range
        """
        provider = self._get_provider(field_spec.source)

        if provider is None:
            if field_spec.required:
                raise ConfigValidationError(
                    f"Provider '{field_spec.source}' not available for required field '{field_spec.name}'"
                )
            return field_spec.default

        key = self._get_key_for_source(field_spec)

        if field_spec.field_type == "bool":
            value = provider.get_bool(key, bool(field_spec.default))
        elif field_spec.field_type == "int":
            raw_value = provider.get(key)
            if raw_value is None:
                value = field_spec.default
            else:
                try:
                    value = int(raw_value)
                except (ValueError, TypeError) as e:
                    raise ConfigValidationError(f"expected an integer, got {raw_value!r}") from e
        elif field_spec.field_type == "float":
            raw_value = provider.get(key)
            if raw_value is None:
                value = field_spec.default
            else:
                try:
                    value = float(raw_value)
                except (ValueError, TypeError) as e:
                    raise ConfigValidationError(f"expected a number, got {raw_value!r}") from e
        else:
            value = provider.get(key, field_spec.default)

        if field_spec.required and value is None:
            raise ConfigValidationError(
                f"Required field '{field_spec.name}' is missing (source: {field_spec.source}, key: {key})"
            )

        if value is not None and field_spec.choices and value not in field_spec.choices:
            raise ConfigValidationError(
                f"value {value!r} must be one of: {', '.join(str(c) for c in field_spec.choices)}"
            )

        if value is not None and field_spec.minimum is not None and value < field_spec.minimum:
            raise ConfigValidationError(f"value {value!r} is below minimum {field_spec.minimum}")

        return value

    def _get_provider(self, source: str) -> Optional[ConfigProvider]:
        if source == "env":
            return self.env_provider
        elif source == "static":
            return self.static_provider
        return None

    def _get_key_for_source(self, field_spec: FieldSpec) -> str:
        if field_spec.source == "env":
            return field_spec.env_var or field_spec.name.upper()
        return field_spec.name


def resolve_schema_dir(schema_dir: Optional[str] = None) -> str:
    """Pick the schema directory: explicit argument, then SCHEMA_DIR, then the bundled schemas."""
    return schema_dir or os.environ.get("SCHEMA_DIR") or BUNDLED_SCHEMA_DIR


def _load_config(
    service_name: str,
    schema_dir: Optional[str] = None,
    env_provider: Optional[ConfigProvider] = None,
    static_provider: Optional[StaticConfigProvider] = None,
) -> tuple[ConfigSchema, Dict[str, Any]]:
    """Load and validate configuration for a service (internal function).

    INTERNAL API: Use load_typed_config() instead.

    Args:
        service_name: Name of the service (e.g., "error-reporting")
        schema_dir: Directory containing schema files
        env_provider: Optional custom environment provider
        static_provider: Optional static provider

    Returns:
        Tuple of the loaded schema and the validated configuration dictionary

    Raises:
        ConfigSchemaError: If schema is missing or invalid
        ConfigValidationError: If configuration validation fails
    """
    schema_path = os.path.join(resolve_schema_dir(schema_dir), f"{service_name}.json")
    schema = ConfigSchema.from_json_file(schema_path)

    loader = SchemaConfigLoader(
        schema=schema,
        env_provider=env_provider,
        static_provider=static_provider,
    )
    return schema, loader.load()
