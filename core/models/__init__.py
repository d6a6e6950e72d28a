# ============================================================================
# CLAUDE CONTEXT - MODELS MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Model exports
# PURPOSE: Central export point for orchestrator models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

- Pydantic models for declarative input (ServiceSpec and its parts, policies)
- Frozen dataclasses for derived, read-only output (StartupPlan, results)
"""

from core.models.policy import BackoffPolicy, RetryPolicy
from core.models.service import ServiceSpec, StartAction, HealthCheckDefinition
from core.models.plan import PlanEntry, StartupPlan
from core.models.result import ServiceOutcome, OrchestrationResult

__all__ = [
    # Policies
    "BackoffPolicy",
    "RetryPolicy",
    # Specs
    "ServiceSpec",
    "StartAction",
    "HealthCheckDefinition",
    # Plan
    "PlanEntry",
    "StartupPlan",
    # Results
    "ServiceOutcome",
    "OrchestrationResult",
]
