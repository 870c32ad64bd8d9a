"""
Generators module for order data generation.

This module contains the sampling primitives, temporal placement engines,
progress tracking and the per-entity generators.
"""

from .date_distributor import DateDistributor
from .distributions import Sampler, derive_seed, resolve_seed
from .progress_tracker import (
    GenerationProgress,
    GenerationStatus,
    ProgressEvent,
    ProgressEventType,
    ProgressTracker,
    create_logging_progress_listener,
)
from .time_series import TimeSeriesEngine

__all__ = [
    # Sampling
    "Sampler",
    "derive_seed",
    "resolve_seed",
    # Time
    "TimeSeriesEngine",
    "DateDistributor",
    # Progress
    "ProgressTracker",
    "GenerationProgress",
    "GenerationStatus",
    "ProgressEvent",
    "ProgressEventType",
    "create_logging_progress_listener",
]
