"""Prometheus metrics for generation runs."""
import json
import os
import time
from datetime import UTC, datetime
from typing import Any

import psutil
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from order_datagen.generators.progress_tracker import empty_counts


class MetricsCollector:
    """
    Per-run metrics: records per entity, time per entity, errors and peak memory.

    Each collector owns a private ``CollectorRegistry`` so concurrent runs
    and repeated test runs never collide on metric names.
    """

    def __init__(self, run_id: str, scenario: str):
        self._process = psutil.Process(os.getpid())
        self.reset(run_id, scenario)

    def reset(self, run_id: str, scenario: str) -> None:
        """Start over for a new run."""
        self.run_id = run_id
        self.scenario = scenario
        self.start_time = time.time()
        self.end_time: float | None = None
        self._records = empty_counts()
        self._timings: dict[str, float] = {}
        self._errors: dict[str, int] = {}
        self._peak_memory_mb = 0.0

    def record_generation(self, entity: str, count: int, duration_ms: float) -> None:
        """Add ``count`` records and ``duration_ms`` of work for ``entity``."""
        self._records[entity] = self._records.get(entity, 0) + count
        self._timings[entity] = self._timings.get(entity, 0.0) + duration_ms

        rss_mb = self._process.memory_info().rss / (1024 * 1024)
        self._peak_memory_mb = max(self._peak_memory_mb, rss_mb)

    def record_error(self, entity: str, error: BaseException) -> None:
        key = f"{entity}:{type(error).__name__}"
        self._errors[key] = self._errors.get(key, 0) + 1

    def complete(self) -> None:
        self.end_time = time.time()

    def get_metrics(self) -> dict[str, Any]:
        end_time = self.end_time or time.time()
        duration_ms = (end_time - self.start_time) * 1000
        total_records = sum(self._records.values())
        total_errors = sum(self._errors.values())

        return {
            "run_id": self.run_id,
            "scenario": self.scenario,
            "total_records": total_records,
            "records_per_second": total_records / duration_ms * 1000 if duration_ms > 0 else 0.0,
            "error_rate": total_errors / total_records if total_records > 0 else 0.0,
            "entity_timings": dict(self._timings),
            "peak_memory_mb": round(self._peak_memory_mb, 2),
            "started_at": datetime.fromtimestamp(self.start_time, UTC).isoformat(),
            "completed_at": datetime.fromtimestamp(end_time, UTC).isoformat(),
        }

    def export_metrics(self, format: str = "json") -> str:
        """
        Render the metrics as JSON or in the Prometheus text format.

        Args:
            format: ``"json"`` or ``"prometheus"``

        Raises:
            ValueError: For any other format
        """
        metrics = self.get_metrics()
        if format == "json":
            return json.dumps(metrics, indent=2)
        if format != "prometheus":
            raise ValueError(f"Unsupported metrics format: {format}")

        registry = CollectorRegistry()
        Gauge(
            "mock_data_total_records",
            "Total records generated",
            ["run_id", "scenario"],
            registry=registry,
        ).labels(run_id=self.run_id, scenario=self.scenario).set(metrics["total_records"])
        Gauge(
            "mock_data_records_per_second",
            "Generation throughput",
            ["run_id"],
            registry=registry,
        ).labels(run_id=self.run_id).set(metrics["records_per_second"])
        Gauge(
            "mock_data_error_rate", "Error rate", ["run_id"], registry=registry
        ).labels(run_id=self.run_id).set(metrics["error_rate"])
        Gauge(
            "mock_data_peak_memory_mb",
            "Peak memory usage in MB",
            ["run_id"],
            registry=registry,
        ).labels(run_id=self.run_id).set(metrics["peak_memory_mb"])

        entity_records = Gauge(
            "mock_data_entity_records",
            "Records per entity type",
            ["run_id", "entity"],
            registry=registry,
        )
        for entity, count in self._records.items():
            entity_records.labels(run_id=self.run_id, entity=entity).set(count)

        entity_duration = Gauge(
            "mock_data_entity_duration_ms",
            "Duration per entity in ms",
            ["run_id", "entity"],
            registry=registry,
        )
        for entity, duration in self._timings.items():
            entity_duration.labels(run_id=self.run_id, entity=entity).set(duration)

        return generate_latest(registry).decode("utf-8")

    def get_record_counts(self) -> dict[str, int]:
        return dict(self._records)

    def get_error_summary(self) -> dict[str, int]:
        return dict(self._errors)
