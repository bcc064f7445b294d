"""
Schema validation utilities for adaptive requests and interaction records.

Provides JSON Schema validation with clear error messages and optional
repair of common payload problems:
- Deep copy to prevent mutations
- Type coercion (numeric strings to numbers)
- Removal of unknown keys
- Transparent repair tracking
"""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError

try:
    from ..config import config
    from ..models.adaptive_response import AdaptiveRequest
    from ..models.development_level import DevelopmentLevel
except ImportError:
    from src.config import config
    from src.models.adaptive_response import AdaptiveRequest
    from src.models.development_level import DevelopmentLevel


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data (may be modified if repair was attempted)
        repairs: List of repairs applied (for transparency)
    """

    def __init__(
        self,
        valid: bool,
        errors: list[str],
        data: Any = None,
        repairs: Optional[list[str]] = None,
    ):
        self.valid = valid
        self.errors = errors
        self.data = data
        self.repairs = repairs or []

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.valid:
            msg = "Validation passed"
            if self.repairs:
                msg += f" (with {len(self.repairs)} repair(s))"
            return msg
        return f"Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator with auto-repair capabilities.

    Usage:
        validator = SchemaValidator("schemas/interaction.schema.json")
        result = validator.validate(data)
        if not result:
            print(result.errors)
    """

    # Integer fields that payloads commonly send as strings
    INTEGER_FIELDS: tuple[str, ...] = ()
    NUMBER_FIELDS: tuple[str, ...] = ()

    def __init__(self, schema_path: Path | str):
        """
        Initialize validator with a schema file.

        Args:
            schema_path: Path to JSON Schema file
        """
        self.schema_path = Path(schema_path)
        with open(self.schema_path, "r", encoding="utf-8") as f:
            self.schema = json.load(f)
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: dict, auto_repair: bool = False) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate
            auto_repair: If True, attempt to fix common validation errors

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [self._format_error(error) for error in self.validator.iter_errors(data)]

        if errors:
            if auto_repair and isinstance(data, dict):
                repaired_data, repairs = self._attempt_repair(data)
                result = self.validate(repaired_data, auto_repair=False)
                result.repairs = repairs
                return result
            return ValidationResult(valid=False, errors=errors, data=data)

        return ValidationResult(valid=True, errors=[], data=data)

    def _format_error(self, error: ValidationError) -> str:
        """Convert ValidationError to a human-readable message."""
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        schema_path = "/".join(str(p) for p in error.schema_path)
        return (
            f"At '{path}': {error.message} "
            f"[validator={validator_name}, schema_path=/{schema_path}]"
        )

    def _attempt_repair(self, data: dict) -> tuple[dict, list[str]]:
        """
        Attempt to automatically fix common validation errors.

        Returns:
            Tuple of (repaired data, list of repairs applied)
        """
        repaired = deepcopy(data)
        repairs: list[str] = []

        if self.schema.get("additionalProperties") is False:
            allowed = set(self.schema.get("properties", {}))
            for key in [k for k in repaired if k not in allowed]:
                repaired.pop(key)
                repairs.append(f"Removed unknown key '{key}'")

        for key in self.INTEGER_FIELDS:
            value = repaired.get(key)
            if isinstance(value, str):
                try:
                    coerced = int(float(value))
                except ValueError:
                    continue
                repaired[key] = coerced
                repairs.append(f"Coerced {key}: '{value}' → {coerced}")

        for key in self.NUMBER_FIELDS:
            value = repaired.get(key)
            if isinstance(value, str):
                try:
                    coerced = float(value)
                except ValueError:
                    continue
                repaired[key] = coerced
                repairs.append(f"Coerced {key}: '{value}' → {coerced}")

        return repaired, repairs


class AdaptiveRequestValidator(SchemaValidator):
    """
    Validator for adaptive response requests.

    Accepts camelCase payloads (studentId, originalPrompt, ...) by
    normalizing keys before schema validation.
    """

    INTEGER_FIELDS = ("student_age",)

    def __init__(self, schema_path: Optional[Path] = None):
        super().__init__(schema_path or config.paths.request_schema)

    def validate(self, data: Mapping, auto_repair: bool = True) -> ValidationResult:
        if not isinstance(data, Mapping):
            return ValidationResult(
                valid=False,
                errors=[f"Request must be a mapping, got {type(data).__name__}"],
                data=data,
            )
        normalized = AdaptiveRequest.normalize(data)
        # Whole-number floats ("8.0" in some JSON encoders) count as integers
        age = normalized.get("student_age")
        if isinstance(age, float) and age.is_integer():
            normalized["student_age"] = int(age)
        # Level names match case-insensitively; unknown names are left for the schema
        level = normalized.get("development_level")
        if isinstance(level, str):
            try:
                normalized["development_level"] = DevelopmentLevel.parse(level).value
            except ValueError:
                pass
        return super().validate(normalized, auto_repair=auto_repair)


class InteractionValidator(SchemaValidator):
    """Validator for recorded interactions."""

    NUMBER_FIELDS = ("accuracy",)

    def __init__(self, schema_path: Optional[Path] = None):
        super().__init__(schema_path or config.paths.interaction_schema)


# Convenience functions for quick validation
def validate_adaptive_request(data: Mapping, auto_repair: bool = True) -> ValidationResult:
    """
    Quick validation of an adaptive request payload.

    Example:
        result = validate_adaptive_request({"studentId": "s1", "originalPrompt": "Hi"})
        if result:
            request = AdaptiveRequest.from_dict(result.data)
    """
    return AdaptiveRequestValidator().validate(data, auto_repair=auto_repair)


def validate_interaction(data: dict, auto_repair: bool = False) -> ValidationResult:
    """Quick validation of an interaction record."""
    return InteractionValidator().validate(data, auto_repair=auto_repair)
