"""
Custom exceptions for the order data generator.

This module contains specialized exception classes for configuration,
scenario validation, safety gating, generation and backing-store failures.
"""

from typing import Any


class OrderDataGenException(Exception):
    """Base exception for all order data generator errors."""

    pass


class ConfigError(OrderDataGenException):
    """Exception raised when a generator configuration is unusable.

    Covers invalid date ranges and unknown scenario names. Raised before
    any entity is generated or any write is attempted.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
    ):
        self.field = field
        self.value = value

        error_parts = [message]

        if field:
            error_parts.append(f"Field: {field}")

        if value is not None:
            error_parts.append(f"Value: {value}")

        super().__init__(" | ".join(error_parts))


class ScenarioValidationError(OrderDataGenException):
    """Exception raised when a scenario profile fails schema validation."""

    def __init__(
        self,
        message: str,
        scenario_name: str | None = None,
        validation_errors: list[str] | None = None,
    ):
        self.scenario_name = scenario_name
        self.validation_errors = validation_errors or []

        error_parts = [message]

        if scenario_name:
            error_parts.append(f"Scenario: {scenario_name}")

        if validation_errors:
            error_parts.extend(
                [f"Validation error: {error}" for error in validation_errors]
            )

        super().__init__(" | ".join(error_parts))


class SafetyViolation(OrderDataGenException):
    """Exception raised when a pre-flight safety check blocks execution."""

    def __init__(self, message: str, failures: list[Any] | None = None):
        self.failures = failures or []

        if self.failures:
            reasons = "; ".join(
                getattr(failure, "reason", str(failure)) for failure in self.failures
            )
            message = f"{message}: {reasons}"

        super().__init__(message)


class GenerationError(OrderDataGenException):
    """Exception raised when an entity generator fails."""

    def __init__(
        self,
        entity: str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.entity = entity
        self.original_error = original_error

        message = f"Generation of '{entity}' failed: {message}"

        if original_error:
            message = f"{message} (Original error: {original_error})"

        super().__init__(message)


class WriteError(OrderDataGenException):
    """Exception raised when a backing-store insert fails."""

    def __init__(
        self,
        table: str,
        cause: Any,
        batch_start: int | None = None,
    ):
        self.table = table
        self.cause = cause
        self.batch_start = batch_start

        message = f"Insert into '{table}' failed: {cause}"

        if batch_start is not None:
            message = f"{message} (batch starting at row {batch_start})"

        super().__init__(message)


class GenerationCancelled(OrderDataGenException):
    """Exception raised when a run is cancelled through its cancellation token."""

    def __init__(self, stage: str | None = None):
        self.stage = stage

        message = "Generation cancelled"

        if stage:
            message = f"{message} before '{stage}'"

        super().__init__(message)
