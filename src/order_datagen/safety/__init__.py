"""Pre-flight safety gate for generation and writes."""

from .guard import SafetyCheckResult, SafetyFailure, SafetyGuard

__all__ = ["SafetyGuard", "SafetyCheckResult", "SafetyFailure"]
