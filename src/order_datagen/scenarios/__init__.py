"""Scenario profiles and the scenario registry."""

from .manager import ScenarioManager, ScenarioValidationResult

__all__ = ["ScenarioManager", "ScenarioValidationResult"]
