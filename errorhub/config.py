# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Configuration loading for the error reporting service."""

from errorhub_config import ConfigValidationError, TypedConfig, load_typed_config

SERVICE_NAME = "error-reporting"


def load_service_config(**kwargs) -> TypedConfig:
    """Load the ``error-reporting`` schema and check cross-field requirements.

    Keyword arguments are passed through to ``load_typed_config`` (for example
    ``env_provider`` in tests).

    Raises:
        ConfigValidationError: If a driver is selected without its settings
    """
    config = load_typed_config(SERVICE_NAME, **kwargs)

    problems = []
    if config.error_reporter_type == "sentry" and not config.sentry_dsn:
        problems.append("error_reporter_type 'sentry' requires SENTRY_DSN")
    if config.jwt_algorithm == "RS256" and not config.jwt_public_key_path:
        problems.append("jwt_algorithm 'RS256' requires JWT_PUBLIC_KEY_PATH")
    if "redis" in (config.cache_type, config.rate_limiter_type) and not config.redis_url:
        problems.append("redis drivers require REDIS_URL")

    if problems:
        raise ConfigValidationError(
            f"Configuration validation failed for {SERVICE_NAME}:\n" +
            "\n".join(f"  - {problem}" for problem in problems)
        )
    return config
