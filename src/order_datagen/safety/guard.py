"""
Safety guard for generated data.

Three independent checks must pass before anything is generated or written:
the execution environment is allowed, the target schema is isolated from
the protected namespace, and no entity exceeds the record ceiling. Any
failure blocks the run.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Literal, TypeVar

from pydantic import BaseModel, Field

from order_datagen.config.models import SafetyConfig
from order_datagen.config.settings import ENV_ENABLED, get_environment, is_generation_enabled
from order_datagen.shared.exceptions import SafetyViolation

logger = logging.getLogger(__name__)

ClientT = TypeVar("ClientT")

PRODUCTION_ENVIRONMENT = "production"


class SafetyFailure(BaseModel):
    check: str
    reason: str
    severity: Literal["error", "warning"] = "error"


class SafetyCheckResult(BaseModel):
    """Outcome of :meth:`SafetyGuard.run_all_checks`."""

    passed: bool
    failures: list[SafetyFailure] = Field(default_factory=list)
    environment: str
    target_schema: str


class SafetyGuard:
    """Gate that keeps generated data out of protected environments and schemas."""

    def __init__(
        self,
        config: SafetyConfig | None = None,
        target_schema: str | None = None,
    ):
        """
        Args:
            config: Safety settings, defaults to :class:`SafetyConfig` defaults
            target_schema: Schema the run will write to; defaults to the
                configured mock schema
        """
        self.config = config or SafetyConfig()
        self.target_schema = target_schema or self.config.target_schema

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def check_environment(self) -> list[SafetyFailure]:
        """
        Check the execution environment.

        ``production`` is always rejected. With ``block_production_writes``
        any environment whose name contains "prod" is rejected as well.
        """
        environment = get_environment()
        failures = []

        if environment == PRODUCTION_ENVIRONMENT or (
            self.config.block_production_writes and "prod" in environment
        ):
            failures.append(
                SafetyFailure(
                    check="environment",
                    reason=f"Data generation is blocked in production (environment={environment})",
                )
            )

        if environment not in self.config.allowed_environments:
            allowed = ", ".join(self.config.allowed_environments)
            failures.append(
                SafetyFailure(
                    check="allowed_environments",
                    reason=f'Environment "{environment}" is not in allowed list: [{allowed}]',
                )
            )

        if self.config.require_explicit_enable and not is_generation_enabled():
            failures.append(
                SafetyFailure(
                    check="explicit_enable",
                    reason=f'{ENV_ENABLED} environment variable is not set to "true"',
                )
            )

        return failures

    def validate_schema_isolation(self, target_schema: str | None = None) -> list[SafetyFailure]:
        schema = target_schema or self.target_schema
        failures = []

        if schema.lower() == self.config.protected_schema.lower():
            failures.append(
                SafetyFailure(
                    check="schema_isolation",
                    reason=f'Target schema "{schema}" is the protected schema',
                )
            )
        elif schema != self.config.target_schema:
            failures.append(
                SafetyFailure(
                    check="schema_isolation",
                    reason=(
                        f'Target schema "{schema}" does not match required mock data '
                        f'schema "{self.config.target_schema}"'
                    ),
                )
            )
        return failures

    def validate_record_limit(self, entity: str, count: int) -> list[SafetyFailure]:
        if count > self.config.max_records_per_entity:
            return [
                SafetyFailure(
                    check="record_limit",
                    reason=(
                        f'Record count for "{entity}" ({count}) exceeds maximum allowed '
                        f"({self.config.max_records_per_entity})"
                    ),
                )
            ]
        return []

    def validate_record_counts(self, target_counts: Mapping[str, int]) -> list[SafetyFailure]:
        failures = []
        for entity, count in target_counts.items():
            failures.extend(self.validate_record_limit(entity, count))
        return failures

    def prevent_production_writes(self) -> None:
        """
        Raise before any write when running in production.

        Raises:
            SafetyViolation: If the environment check reports a production failure
        """
        failures = [f for f in self.check_environment() if f.check == "environment"]
        if failures:
            logger.error(
                f"Attempted to write generated data in environment '{get_environment()}', blocked"
            )
            raise SafetyViolation("Writes blocked in production", failures)

    # ------------------------------------------------------------------
    # Combined gate
    # ------------------------------------------------------------------

    def run_all_checks(self, target_counts: Mapping[str, int] | None = None) -> SafetyCheckResult:
        """
        Run every check and collect the failures.

        Args:
            target_counts: Planned records per entity, checked against the
                ceiling when given

        Returns:
            SafetyCheckResult; ``passed`` is False when any check fails
        """
        failures = self.check_environment()
        failures.extend(self.validate_schema_isolation())
        if target_counts:
            failures.extend(self.validate_record_counts(target_counts))

        result = SafetyCheckResult(
            passed=not failures,
            failures=failures,
            environment=get_environment(),
            target_schema=self.target_schema,
        )

        if result.passed:
            logger.info(
                f"All safety checks passed (environment={result.environment}, "
                f"schema={result.target_schema})"
            )
        else:
            logger.error(
                f"Safety checks failed: {'; '.join(f.reason for f in failures)}"
            )
        return result

    def get_safe_client(self, factory: Callable[[str], ClientT]) -> ClientT:
        """
        Re-run the checks, then build a client bound to the target schema.

        Args:
            factory: Called with the target schema name to build the client

        Raises:
            SafetyViolation: If any check fails
        """
        result = self.run_all_checks()
        if not result.passed:
            raise SafetyViolation("Safety checks failed", result.failures)

        self.prevent_production_writes()
        client = factory(self.target_schema)
        logger.info(f"Created backing-store client for schema '{self.target_schema}'")
        return client
