"""
Progress tracking for data generation runs.

ProgressTracker owns the GenerationProgress snapshot of one job. It counts
records per entity, derives throughput, percent complete and ETA, and fans
typed events out to registered listeners. Readers only ever receive copies
of the snapshot.

Key concept: progress percent is monotonically non-decreasing and is held
below 100 until complete() is called, so a progress bar never reports a
finished run while writes are still outstanding.
"""

import logging
import threading
import time
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENTITY_ORDER = [
    "users",
    "companies",
    "branches",
    "addresses",
    "products",
    "orders",
    "orderItems",
    "inventory",
    "shipments",
    "payments",
    "discounts",
    "returns",
    "refunds",
    "maintenanceVisits",
    "auditLogs",
]


def empty_counts() -> dict[str, int]:
    """EntityRecordCounts with every entity at zero."""
    return dict.fromkeys(ENTITY_ORDER, 0)


class GenerationStatus(str, Enum):
    INITIALIZING = "initializing"
    GENERATING = "generating"
    VALIDATING = "validating"
    WRITING = "writing"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLING_BACK = "rolling_back"
    CANCELLED = "cancelled"


class ProgressEventType(str, Enum):
    STARTED = "started"
    ENTITY_STARTED = "entity_started"
    BATCH_COMPLETED = "batch_completed"
    ENTITY_COMPLETED = "entity_completed"
    COMPLETED = "completed"
    ERROR = "error"
    STATUS_CHANGED = "status_changed"
    ROLLED_BACK = "rolled_back"
    CANCELLED = "cancelled"


class GenerationProgress(BaseModel):
    """Point-in-time progress of one generation job."""

    job_id: str
    status: GenerationStatus = GenerationStatus.INITIALIZING
    current_entity: str | None = None
    current_batch: int = 0
    total_batches: int = 0
    records_generated: dict[str, int] = Field(default_factory=empty_counts)
    progress_percent: int = Field(0, ge=0, le=100)
    estimated_time_remaining: float | None = Field(
        None, description="Seconds until completion, None before the first batch"
    )
    throughput: float = Field(0.0, description="Records per second")
    error_count: int = 0
    updated_at: datetime


class ProgressEvent(BaseModel):
    type: ProgressEventType
    timestamp: datetime
    status: GenerationStatus | None = None
    entity: str | None = None
    batch_number: int | None = None
    total_batches: int | None = None
    records_generated: int | None = None
    error: str | None = None


ProgressListener = Callable[[GenerationProgress, ProgressEvent], None]


def _now() -> datetime:
    return datetime.now(UTC)


def _error_text(error: BaseException | str) -> str:
    return str(error) if isinstance(error, BaseException) else error


class ProgressTracker:
    """
    Thread-safe progress bookkeeping for one generation job.

    State Transitions:
        initializing → generating (start)
        generating → validating (start_validation) → writing (start_writing)
        any → completed | failed | rolling_back | cancelled

    Thread Safety:
        Snapshot mutations happen under an internal lock. Listeners are
        invoked outside the lock with a copy of the snapshot.
    """

    def __init__(self, job_id: str, target_counts: Mapping[str, int] | None = None):
        """
        Initialize tracker for one job.

        Args:
            job_id: Identifier of the generation job
            target_counts: Expected records per entity; missing entities count
                as zero and unknown entities are ignored
        """
        self._lock = threading.Lock()
        self._listeners: list[ProgressListener] = []
        self._start_time = time.monotonic()
        self._entity_start_time = self._start_time
        self._target_counts = empty_counts()
        self._merge_targets(target_counts or {})
        self._progress = GenerationProgress(job_id=job_id, updated_at=_now())

        logger.debug(f"Initialized ProgressTracker for job {job_id}")

    @property
    def job_id(self) -> str:
        return self._progress.job_id

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: ProgressListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event_type: ProgressEventType, **fields) -> None:
        with self._lock:
            self._progress.updated_at = _now()
            snapshot = self._progress.model_copy(deep=True)
            listeners = list(self._listeners)

        event = ProgressEvent(type=event_type, timestamp=snapshot.updated_at, **fields)
        for listener in listeners:
            try:
                listener(snapshot.model_copy(deep=True), event)
            except Exception as e:
                logger.error(f"Progress listener failed on {event_type.value}: {e}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            self._start_time = time.monotonic()
            self._progress.status = GenerationStatus.GENERATING
        self._emit(ProgressEventType.STARTED)

    def start_entity(self, entity: str, total_batches: int) -> None:
        """Mark ``entity`` as the one currently being produced."""
        self._check_entity(entity)
        with self._lock:
            self._entity_start_time = time.monotonic()
            self._progress.current_entity = entity
            self._progress.current_batch = 0
            self._progress.total_batches = total_batches
        self._emit(
            ProgressEventType.ENTITY_STARTED, entity=entity, total_batches=total_batches
        )

    def complete_batch(
        self, entity: str, records_in_batch: int, total_batches: int | None = None
    ) -> None:
        """
        Record a finished batch and refresh the derived metrics.

        Args:
            entity: Entity the batch belongs to
            records_in_batch: Records produced by the batch (>= 0)
            total_batches: Corrected batch count for the entity, when the
                estimate given to start_entity turned out wrong

        Raises:
            ValueError: If records_in_batch is negative
            KeyError: If entity is not a tracked entity
        """
        if records_in_batch < 0:
            raise ValueError(
                f"records_in_batch must be non-negative, got {records_in_batch}"
            )
        self._check_entity(entity)

        with self._lock:
            if total_batches is not None:
                self._progress.total_batches = total_batches
            self._progress.current_batch += 1
            self._progress.records_generated[entity] += records_in_batch

            elapsed = max(time.monotonic() - self._start_time, 1e-9)
            generated = self._total_generated()
            self._progress.throughput = generated / elapsed
            self._progress.progress_percent = max(
                self._progress.progress_percent, self._calculate_percent(generated)
            )
            self._progress.estimated_time_remaining = self._estimate_remaining(
                generated, elapsed
            )
            batch_number = self._progress.current_batch
            total_batches = self._progress.total_batches
            entity_total = self._progress.records_generated[entity]

        self._emit(
            ProgressEventType.BATCH_COMPLETED,
            entity=entity,
            batch_number=batch_number,
            total_batches=total_batches,
            records_generated=entity_total,
        )

    def complete_entity(self, entity: str) -> None:
        self._check_entity(entity)
        with self._lock:
            duration = time.monotonic() - self._entity_start_time
            records = self._progress.records_generated[entity]
        logger.debug(f"Entity '{entity}' finished in {duration:.3f}s ({records} records)")
        self._emit(
            ProgressEventType.ENTITY_COMPLETED, entity=entity, records_generated=records
        )

    def record_error(self, entity: str | None, error: BaseException | str) -> None:
        with self._lock:
            self._progress.error_count += 1
        self._emit(ProgressEventType.ERROR, entity=entity, error=_error_text(error))

    def start_validation(self) -> None:
        with self._lock:
            self._progress.status = GenerationStatus.VALIDATING
            self._progress.current_entity = None
        self._emit(ProgressEventType.STATUS_CHANGED, status=GenerationStatus.VALIDATING)

    def start_writing(self) -> None:
        with self._lock:
            self._progress.status = GenerationStatus.WRITING
        self._emit(ProgressEventType.STATUS_CHANGED, status=GenerationStatus.WRITING)

    def complete(self) -> None:
        """Finish the run; the only transition that reports 100 percent."""
        with self._lock:
            self._progress.status = GenerationStatus.COMPLETED
            self._progress.current_entity = None
            self._progress.progress_percent = 100
            self._progress.estimated_time_remaining = 0
        self._emit(ProgressEventType.COMPLETED)

    def fail(self, error: BaseException | str) -> None:
        with self._lock:
            self._progress.status = GenerationStatus.FAILED
        self._emit(ProgressEventType.ERROR, error=_error_text(error))

    def cancel(self) -> None:
        with self._lock:
            self._progress.status = GenerationStatus.CANCELLED
            self._progress.estimated_time_remaining = None
        self._emit(ProgressEventType.CANCELLED)

    def start_rollback(self) -> None:
        with self._lock:
            self._progress.status = GenerationStatus.ROLLING_BACK
        self._emit(ProgressEventType.STATUS_CHANGED, status=GenerationStatus.ROLLING_BACK)

    def complete_rollback(self) -> None:
        self._emit(ProgressEventType.ROLLED_BACK)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_progress(self) -> GenerationProgress:
        """Copy of the current progress snapshot."""
        with self._lock:
            return self._progress.model_copy(deep=True)

    def get_elapsed_seconds(self) -> float:
        return time.monotonic() - self._start_time

    def get_metrics_summary(self) -> dict[str, float | int]:
        with self._lock:
            return {
                "total_records": self._total_generated(),
                "elapsed_seconds": round(time.monotonic() - self._start_time, 3),
                "throughput": self._progress.throughput,
                "error_count": self._progress.error_count,
            }

    def update_target_counts(self, counts: Mapping[str, int]) -> None:
        with self._lock:
            self._merge_targets(counts)

    def get_target_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._target_counts)

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _merge_targets(self, counts: Mapping[str, int]) -> None:
        for entity, count in counts.items():
            if entity in self._target_counts:
                self._target_counts[entity] = max(0, int(count))

    def _check_entity(self, entity: str) -> None:
        if entity not in self._target_counts:
            raise KeyError(f"Entity '{entity}' is not being tracked")

    def _total_generated(self) -> int:
        return sum(self._progress.records_generated.values())

    def _calculate_percent(self, generated: int) -> int:
        total = sum(self._target_counts.values())
        if total == 0:
            return 0
        # 100 is reserved for complete()
        return min(99, round(generated / total * 100))

    def _estimate_remaining(self, generated: int, elapsed: float) -> float | None:
        if generated == 0:
            return None
        remaining = max(0, sum(self._target_counts.values()) - generated)
        return round(remaining / (generated / elapsed), 3)


def create_logging_progress_listener(
    progress_logger: logging.Logger | None = None,
) -> ProgressListener:
    """Listener that writes one log line per progress event."""
    log = progress_logger or logger

    def listener(progress: GenerationProgress, event: ProgressEvent) -> None:
        prefix = f"[{progress.job_id}]"
        if event.type == ProgressEventType.STARTED:
            log.info(f"{prefix} Generation started")
        elif event.type == ProgressEventType.ENTITY_STARTED:
            log.info(f"{prefix} Starting {event.entity} ({event.total_batches} batches)")
        elif event.type == ProgressEventType.BATCH_COMPLETED:
            log.debug(
                f"{prefix}   Batch {event.batch_number}/{event.total_batches} "
                f"- {event.records_generated} records"
            )
        elif event.type == ProgressEventType.ENTITY_COMPLETED:
            log.info(f"{prefix} {event.entity}: {event.records_generated} records")
        elif event.type == ProgressEventType.COMPLETED:
            log.info(f"{prefix} Generation completed - {progress.progress_percent}%")
        elif event.type == ProgressEventType.ERROR:
            log.error(f"{prefix} Error in {event.entity or 'run'}: {event.error}")
        elif event.type == ProgressEventType.STATUS_CHANGED:
            log.info(f"{prefix} Status: {event.status.value}")
        elif event.type == ProgressEventType.ROLLED_BACK:
            log.info(f"{prefix} Rollback completed")
        elif event.type == ProgressEventType.CANCELLED:
            log.warning(f"{prefix} Generation cancelled")

    return listener
