# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Validation of raw error report payloads."""

from dataclasses import dataclass, field
from typing import Any

import pydantic

from .models import DEFAULT_MAX_STACK_LENGTH, ErrorReport


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a payload.

    Exactly one of ``report`` (on success) or ``errors`` (on failure) is populated.
    """
    success: bool
    report: ErrorReport | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)


def _issue(field_path: str, message: str, code: str) -> dict[str, Any]:
    return {"field": field_path, "message": message, "code": code}


def validate_report(data: Any, max_stack_length: int = DEFAULT_MAX_STACK_LENGTH) -> ValidationResult:
    """Validate a decoded JSON payload against the error report schema.

    Args:
        data: Decoded request body
        max_stack_length: Maximum accepted length of ``stack``

    Returns:
        ValidationResult; never raises for bad input
    """
    if not isinstance(data, dict):
        return ValidationResult(
            success=False,
            errors=[_issue("", "Request body must be a JSON object", "type_error")],
        )

    try:
        report = ErrorReport.model_validate(data)
    except pydantic.ValidationError as e:
        errors = [
            _issue(".".join(str(part) for part in err["loc"]), err["msg"], err["type"])
            for err in e.errors()
        ]
        return ValidationResult(success=False, errors=errors)

    if report.stack is not None and len(report.stack) > max_stack_length:
        return ValidationResult(
            success=False,
            errors=[_issue(
                "stack",
                f"String should have at most {max_stack_length} characters",
                "string_too_long",
            )],
        )

    return ValidationResult(success=True, report=report)
