"""
Order Data Generator

A deterministic synthetic data generator for an order-management domain:
- Scenario-driven entity volumes and categorical distributions
- Temporally weighted order placement with anomaly injection
- Safety-gated batched writes with rollback on failure
"""

__version__ = "1.0.0"
__author__ = "Order DataGen"

from .config.models import GeneratorConfig, ScenarioProfile
from .orchestrator import (
    CancellationToken,
    DataGenerationOrchestrator,
    GenerationResult,
    run_generation,
)
from .scenarios.manager import ScenarioManager
from .shared.logging_config import configure_structured_logging

__all__ = [
    "GeneratorConfig",
    "ScenarioProfile",
    "ScenarioManager",
    "DataGenerationOrchestrator",
    "GenerationResult",
    "CancellationToken",
    "run_generation",
    "configure_structured_logging",
]
