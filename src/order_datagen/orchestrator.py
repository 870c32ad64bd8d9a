"""
Data generation orchestrator.

Runs one generation job end to end: safety gate, entity generation in
dependency order, referential integrity validation, batched writes to the
backing store and rollback of this run's rows when anything fails.

Key concepts:
- Every stage is wrapped the same way (progress, timing, metrics, error
  capture) and cancellation is checked between stages and write batches
- Generators receive the job's resolved root seed, so a fixed seed always
  produces the same dataset regardless of the progress listeners attached
- Only rows inserted by this run are deleted on rollback
"""

import asyncio
import logging
import math
import threading
import time
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from order_datagen.config.models import GeneratorConfig, ScenarioProfile
from order_datagen.config.settings import get_duckdb_path
from order_datagen.generators.distributions import Sampler, resolve_seed
from order_datagen.generators.entities import (
    AddressGenerator,
    AuditLogGenerator,
    CompanyGenerator,
    DiscountGenerator,
    InventoryGenerator,
    MaintenanceGenerator,
    OrderGenerator,
    PaymentGenerator,
    ProductGenerator,
    RefundGenerator,
    ShipmentGenerator,
    UserGenerator,
)
from order_datagen.generators.progress_tracker import (
    ENTITY_ORDER,
    GenerationStatus,
    ProgressTracker,
    create_logging_progress_listener,
    empty_counts,
)
from order_datagen.generators.time_series import TimeSeriesEngine
from order_datagen.safety.guard import SafetyGuard
from order_datagen.scenarios.manager import ScenarioManager
from order_datagen.shared.exceptions import (
    ConfigError,
    GenerationCancelled,
    GenerationError,
    OrderDataGenException,
    SafetyViolation,
    WriteError,
)
from order_datagen.shared.logging_utils import get_structured_logger
from order_datagen.shared.metrics import MetricsCollector
from order_datagen.shared.validators import ReferentialIntegrityValidator
from order_datagen.storage.client import BackingStoreClient, Row
from order_datagen.storage.duckdb_store import DuckDBStore

logger = logging.getLogger(__name__)
structured_logger = get_structured_logger(__name__)

DISCOUNT_SHARE = 0.2
REFUND_SHARE = 0.05
INVENTORY_MOVEMENTS_PER_ORDER = 3

# Write order; rollback walks it backwards
WRITE_TABLES = [
    "users",
    "companies",
    "baristas",
    "addresses",
    "products",
    "orders",
    "order_items",
    "maintenance",
    "inventory_movements",
    "shipments",
    "delivery_attempts",
    "payments",
    "discounts",
    "returns",
    "refunds",
    "audit_logs",
]


# ================================
# RESULT TYPES
# ================================


class GenerationErrorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity: str
    message: str
    recovered: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GenerationTiming(BaseModel):
    model_config = ConfigDict(frozen=True)

    started_at: datetime
    completed_at: datetime
    duration_ms: float
    entity_timing: dict[str, float] = Field(default_factory=dict)


class GenerationResult(BaseModel):
    """Immutable summary of one generation job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    success: bool
    status: GenerationStatus
    scenario: str
    config: GeneratorConfig
    record_counts: dict[str, int]
    errors: list[GenerationErrorRecord] = Field(default_factory=list)
    timing: GenerationTiming
    dry_run: bool
    seed: int
    rolled_back: bool | None = Field(
        None, description="Rollback outcome; None when no rollback was attempted"
    )
    integrity_warnings: list[str] = Field(default_factory=list)


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a running job."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str | None = None) -> None:
        if self.cancelled:
            raise GenerationCancelled(stage)


def _error_entity(error: OrderDataGenException) -> str:
    """Entity or table an error is attributed to in the result."""
    if isinstance(error, GenerationError):
        return error.entity
    if isinstance(error, WriteError):
        return error.table
    return "safety"


# ================================
# ORCHESTRATOR
# ================================


class DataGenerationOrchestrator:
    """
    Runs a single generation job.

    The scenario is resolved and the configuration validated on
    construction, so an unknown scenario or a bad date range fails before
    any generator or store is touched.
    """

    def __init__(
        self,
        config: GeneratorConfig | Mapping[str, Any],
        scenario_manager: ScenarioManager | None = None,
        safety_guard: SafetyGuard | None = None,
        store: BackingStoreClient | None = None,
        enable_writes: bool | None = None,
        cancellation_token: CancellationToken | None = None,
        enable_progress_logging: bool = False,
    ):
        """
        Args:
            config: Generator configuration or a mapping to validate into one
            scenario_manager: Scenario registry; a fresh one holding the
                built-in scenarios by default
            safety_guard: Pre-flight gate; default settings when omitted
            store: Backing store; a DuckDB file store is opened on demand
                when writes are enabled and no store is given
            enable_writes: Write to the store; defaults to ``not config.dry_run``
            cancellation_token: Token checked between stages and batches
            enable_progress_logging: Attach a listener that logs progress events

        Raises:
            ConfigError: If the configuration or scenario name is invalid, or
                the range covers less than one day
        """
        if not isinstance(config, GeneratorConfig):
            config = GeneratorConfig.from_mapping(dict(config))
        if config.days < 1:
            # Orders are placed per whole day
            raise ConfigError(
                "End date must be at least one day after start date",
                field="end_date",
                value=config.end_date.isoformat(),
            )
        self.config = config
        self.scenario_manager = scenario_manager or ScenarioManager()
        self.scenario: ScenarioProfile = self.scenario_manager.load_scenario(config.scenario)

        self.safety_guard = safety_guard or SafetyGuard()
        self.store = store
        self.enable_writes = (not config.dry_run) if enable_writes is None else enable_writes
        self.cancellation_token = cancellation_token or CancellationToken()

        self.job_id = f"job_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"
        self.seed = resolve_seed(config.seed)
        self.progress_tracker = ProgressTracker(self.job_id, self.calculate_target_counts())
        self.metrics = MetricsCollector(self.job_id, self.scenario.name)
        self.time_series = TimeSeriesEngine(
            config.start_date,
            config.end_date,
            Sampler.for_entity(self.seed, "timeSeries"),
        )
        if enable_progress_logging:
            self.progress_tracker.add_listener(create_logging_progress_listener())

        self.dataset: dict[str, list[Any]] = {name: [] for name in ENTITY_ORDER}
        self.errors: list[GenerationErrorRecord] = []
        self.integrity_warnings: list[str] = []
        self._entity_timing: dict[str, float] = {}
        self._inserted: list[tuple[str, list[Any]]] = []

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def calculate_target_counts(self) -> dict[str, int]:
        """Expected records per entity for this configuration and scenario."""
        rates = self.scenario.entity_rates
        multiplier = self.config.volume_multiplier
        days = self.config.days
        orders = math.floor(rates.orders_per_day * multiplier * days)
        weeks = math.ceil(days / 7)
        visits = math.floor(weeks * rates.maintenance_visits_per_week * multiplier)
        users = math.floor(rates.users * multiplier)
        companies = math.floor(rates.companies * multiplier)

        counts = empty_counts()
        counts.update(
            users=users,
            companies=companies,
            branches=math.floor(companies * rates.branch_ratio),
            products=math.floor(rates.products * multiplier),
            orders=orders,
            inventory=orders * INVENTORY_MOVEMENTS_PER_ORDER,
            shipments=orders,
            payments=orders,
            discounts=math.floor(orders * DISCOUNT_SHARE),
            refunds=math.floor(orders * REFUND_SHARE),
            maintenanceVisits=visits,
            auditLogs=users + companies + orders * 3 + visits * 2,
        )
        return counts

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self) -> GenerationResult:
        """
        Run the job.

        Returns:
            GenerationResult; ``success`` is False on safety, generation,
            write, cancellation or unexpected failures, with every collected
            error
        """
        started_at = datetime.now(UTC)
        start = time.perf_counter()
        structured_logger.set_correlation_id(self.job_id)
        structured_logger.info(
            "Starting generation",
            scenario=self.scenario.name,
            seed=self.seed,
            start_date=self.config.start_date.isoformat(),
            end_date=self.config.end_date.isoformat(),
            writes=self.enable_writes,
        )

        safety = self.safety_guard.run_all_checks(self.progress_tracker.get_target_counts())
        if not safety.passed:
            violation = SafetyViolation("Safety checks failed", safety.failures)
            self._record_error("safety", violation)
            self.progress_tracker.fail(violation)
            return self._build_result(False, started_at, start)

        rolled_back = None
        success = False
        try:
            self.progress_tracker.start()
            await self._generate_all()

            self.cancellation_token.raise_if_cancelled("validation")
            self.progress_tracker.start_validation()
            self._validate_integrity()

            if self.enable_writes:
                await self._write_all()

            self.progress_tracker.complete()
            self.metrics.complete()
            success = True
            structured_logger.info(
                "Generation complete",
                records=sum(self.progress_tracker.get_progress().records_generated.values()),
            )
        except GenerationCancelled as e:
            logger.warning(f"Job {self.job_id} cancelled: {e}")
            self._record_error(e.stage or "cancellation", e)
            if self._inserted:
                rolled_back = await self._rollback()
            self.progress_tracker.cancel()
        except (GenerationError, WriteError, SafetyViolation) as e:
            logger.error(f"Job {self.job_id} failed: {e}")
            self._record_error(_error_entity(e), e)
            if self.enable_writes:
                rolled_back = await self._rollback()
            self.progress_tracker.fail(e)
        except Exception as e:
            # Anything outside a stage wrapper still ends as a failed result
            progress = self.progress_tracker.get_progress()
            if progress.status == GenerationStatus.GENERATING and progress.current_entity:
                entity = progress.current_entity
            else:
                entity = progress.status.value
            logger.exception(f"Job {self.job_id} failed unexpectedly: {e}")
            self.metrics.record_error(entity, e)
            self._record_error(entity, e)
            if self.enable_writes:
                rolled_back = await self._rollback()
            self.progress_tracker.fail(e)
        finally:
            structured_logger.clear_correlation_id()

        return self._build_result(success, started_at, start, rolled_back)

    async def _generate_all(self) -> None:
        rates = self.scenario.entity_rates
        multiplier = self.config.volume_multiplier
        data = self.dataset
        company_generator = CompanyGenerator(self.config, self.scenario, self.seed)

        await self._run_stage(
            "users",
            lambda: UserGenerator(self.config, self.scenario, self.seed).generate(
                math.floor(rates.users * multiplier)
            ),
        )
        await self._run_stage(
            "companies",
            lambda: company_generator.generate(math.floor(rates.companies * multiplier)),
        )
        await self._run_stage(
            "branches",
            lambda: company_generator.generate_branches(data["companies"], rates.branch_ratio),
        )
        await self._run_stage(
            "addresses",
            lambda: AddressGenerator(self.config, self.scenario, self.seed).generate_for_entities(
                data["companies"], data["branches"]
            ),
        )
        await self._run_stage(
            "products",
            lambda: ProductGenerator(self.config, self.scenario, self.seed).generate(
                math.floor(rates.products * multiplier)
            ),
        )
        await self._run_stage(
            "orders",
            lambda: OrderGenerator(
                self.config,
                self.scenario,
                data["companies"],
                data["branches"],
                data["products"],
                self.time_series,
                self.seed,
            ).generate_for_date_range(rates.orders_per_day * multiplier),
        )
        await self._run_stage(
            "orderItems", lambda: [item for order in data["orders"] for item in order.items]
        )

        order_count = len(data["orders"])
        inventory_generator = InventoryGenerator(
            self.config, self.scenario, data["products"], data["orders"], self.seed
        )
        await self._run_stage(
            "inventory",
            lambda: inventory_generator.generate(order_count * INVENTORY_MOVEMENTS_PER_ORDER),
        )
        await self._run_stage(
            "shipments",
            lambda: ShipmentGenerator(self.config, self.scenario, data["orders"], self.seed).generate(
                order_count
            ),
        )
        await self._run_stage(
            "payments",
            lambda: PaymentGenerator(self.config, self.scenario, data["orders"], self.seed).generate(
                order_count
            ),
        )
        await self._run_stage(
            "discounts",
            lambda: DiscountGenerator(
                self.config, self.scenario, data["orders"], self.seed
            ).generate(math.floor(order_count * DISCOUNT_SHARE)),
        )

        refund_generator = RefundGenerator(self.config, self.scenario, data["orders"], self.seed)
        await self._run_stage(
            "refunds",
            lambda: refund_generator.generate(math.floor(order_count * REFUND_SHARE)),
        )
        await self._run_stage("returns", lambda: refund_generator.returns)
        if refund_generator.returns:
            # Returned goods go back into the stock ledger
            movements = inventory_generator.add_return_movements(refund_generator.returns)
            data["inventory"].extend(movements)
            self.progress_tracker.complete_batch("inventory", len(movements))
            self.metrics.record_generation("inventory", len(movements), 0.0)

        weeks = math.ceil(self.config.days / 7)
        await self._run_stage(
            "maintenanceVisits",
            lambda: MaintenanceGenerator(
                self.config, self.scenario, data["companies"], data["branches"], self.seed
            ).generate(math.floor(weeks * rates.maintenance_visits_per_week * multiplier)),
        )
        await self._run_stage(
            "auditLogs",
            lambda: AuditLogGenerator(
                self.config,
                self.scenario,
                data["users"],
                data["companies"],
                data["orders"],
                data["products"],
                data["maintenanceVisits"],
                self.seed,
                payments=data["payments"],
            ).generate(
                len(data["users"])
                + len(data["companies"])
                + order_count * 3
                + len(data["maintenanceVisits"]) * 2
            ),
        )

    async def _run_stage(self, entity: str, produce: Callable[[], list[Any]]) -> None:
        """
        Run one generation stage.

        Raises:
            GenerationCancelled: If the token was cancelled before the stage
            GenerationError: If the generator raised
        """
        self.cancellation_token.raise_if_cancelled(entity)
        batch_size = self.config.batch_size
        stage_start = time.perf_counter()

        target = self.progress_tracker.get_target_counts().get(entity, 0)
        self.progress_tracker.start_entity(entity, max(1, math.ceil(target / batch_size)))

        try:
            records = list(produce())
        except OrderDataGenException:
            raise
        except Exception as e:
            error = GenerationError(entity, str(e), e)
            self.metrics.record_error(entity, e)
            self.progress_tracker.record_error(entity, e)
            raise error from e

        # The estimate from the target counts is replaced by the real batch count
        total_batches = max(1, math.ceil(len(records) / batch_size))
        for offset in range(0, max(len(records), 1), batch_size):
            self.progress_tracker.complete_batch(
                entity, len(records[offset : offset + batch_size]), total_batches
            )
        self.progress_tracker.complete_entity(entity)

        duration_ms = (time.perf_counter() - stage_start) * 1000
        self.dataset[entity] = records
        self._entity_timing[entity] = round(duration_ms, 3)
        self.metrics.record_generation(entity, len(records), duration_ms)
        logger.info(f"Generated {len(records):,} {entity}")

        # Let other tasks (and cancellation requests) run between stages
        await asyncio.sleep(0)

    def _validate_integrity(self) -> None:
        logger.info("Validating referential integrity")
        validator = ReferentialIntegrityValidator()
        self.integrity_warnings = validator.validate_dataset(self.dataset)
        logger.info(
            f"Integrity validation complete with {len(self.integrity_warnings)} warning(s)"
        )

    # ------------------------------------------------------------------
    # Writes and rollback
    # ------------------------------------------------------------------

    def _open_store(self) -> BackingStoreClient:
        """Hand out the store only after the safety checks pass again."""
        if self.store is not None:
            store = self.store
            return self.safety_guard.get_safe_client(lambda schema: store)
        self.store = self.safety_guard.get_safe_client(
            lambda schema: DuckDBStore(get_duckdb_path(), schema)
        )
        return self.store

    def build_table_rows(self) -> dict[str, list[Row]]:
        """Flatten the generated dataset into rows per store table."""
        data = self.dataset

        def dump(records: Sequence[BaseModel], **kwargs) -> list[Row]:
            return [record.model_dump(mode="json", **kwargs) for record in records]

        companies = dump(data["companies"])
        for row in companies:
            row["is_branch"] = False
        for branch in data["branches"]:
            row = branch.model_dump(mode="json", exclude={"baristas"})
            row["parent_company_id"] = row.pop("company_id")
            row["is_branch"] = True
            companies.append(row)

        return {
            "users": dump(data["users"]),
            "companies": companies,
            "baristas": dump([b for branch in data["branches"] for b in branch.baristas]),
            "addresses": dump(data["addresses"]),
            "products": dump(data["products"]),
            "orders": dump(data["orders"], exclude={"items"}),
            "order_items": dump(data["orderItems"]),
            "maintenance": dump(data["maintenanceVisits"]),
            "inventory_movements": dump(data["inventory"]),
            "shipments": dump(data["shipments"], exclude={"attempts"}),
            "delivery_attempts": dump([a for s in data["shipments"] for a in s.attempts]),
            "payments": dump(data["payments"]),
            "discounts": dump(data["discounts"]),
            "returns": dump(data["returns"]),
            "refunds": dump(data["refunds"]),
            "audit_logs": dump(data["auditLogs"]),
        }

    async def _write_all(self) -> None:
        """
        Insert every table in batches of ``config.batch_size``.

        Raises:
            WriteError: On the first failed batch
            GenerationCancelled: If cancelled between batches
        """
        self.progress_tracker.start_writing()
        client = self._open_store()
        tables = self.build_table_rows()
        batch_size = self.config.batch_size

        for table in WRITE_TABLES:
            rows = tables[table]
            for offset in range(0, len(rows), batch_size):
                self.cancellation_token.raise_if_cancelled(f"write:{table}")
                batch = rows[offset : offset + batch_size]
                try:
                    response = await client.from_(table).insert(batch)
                except Exception as e:
                    raise WriteError(table, e, batch_start=offset) from e
                if response.error:
                    logger.error(
                        f"Failed to insert {table} batch at row {offset}: {response.error}"
                    )
                    raise WriteError(table, response.error, batch_start=offset)
                self._inserted.append((table, [row["id"] for row in batch]))
            if rows:
                logger.info(f"Inserted {len(rows):,} records into {table}")

    async def _rollback(self) -> bool:
        """
        Delete every row inserted by this run, newest tables first.

        Returns:
            True when every delete succeeded
        """
        self.progress_tracker.start_rollback()
        if not self._inserted or self.store is None:
            logger.info("Rollback complete, nothing was written")
            self.progress_tracker.complete_rollback()
            return True

        ok = True
        for table, ids in reversed(self._inserted):
            try:
                response = await self.store.from_(table).delete("id", ids)
            except Exception as e:
                ok = False
                logger.error(f"Rollback of {len(ids)} rows in {table} raised: {e}")
                continue
            if response.error:
                ok = False
                logger.error(f"Rollback of {len(ids)} rows in {table} failed: {response.error}")
        self._inserted.clear()

        if ok:
            logger.info("Rollback complete")
        self.progress_tracker.complete_rollback()
        return ok

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _record_error(self, entity: str, error: BaseException) -> None:
        self.errors.append(GenerationErrorRecord(entity=entity, message=str(error)))

    def _build_result(
        self,
        success: bool,
        started_at: datetime,
        start: float,
        rolled_back: bool | None = None,
    ) -> GenerationResult:
        progress = self.progress_tracker.get_progress()
        return GenerationResult(
            job_id=self.job_id,
            success=success,
            status=progress.status,
            scenario=self.scenario.name,
            config=self.config,
            record_counts=dict(progress.records_generated),
            errors=list(self.errors),
            timing=GenerationTiming(
                started_at=started_at,
                completed_at=datetime.now(UTC),
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
                entity_timing=dict(self._entity_timing),
            ),
            dry_run=self.config.dry_run,
            seed=self.seed,
            rolled_back=rolled_back,
            integrity_warnings=list(self.integrity_warnings),
        )

    def get_progress(self):
        return self.progress_tracker.get_progress()


async def run_generation(
    config: GeneratorConfig | Mapping[str, Any], **kwargs: Any
) -> GenerationResult:
    """
    Build an orchestrator for ``config`` and run it.

    Keyword arguments are passed to :class:`DataGenerationOrchestrator`;
    progress logging is on unless ``enable_progress_logging=False``.
    """
    kwargs.setdefault("enable_progress_logging", True)
    orchestrator = DataGenerationOrchestrator(config, **kwargs)
    return await orchestrator.execute()
