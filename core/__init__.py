# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.contracts import HealthStatus, ServicePhase
from core.errors import (
    StackgateError,
    DuplicateServiceError,
    UnknownServiceError,
    CyclicDependencyError,
    StackConfigError,
    RetryConfigError,
    ProbeTimeoutError,
    StartActionError,
    DependencyFailedError,
)
from core.models import (
    BackoffPolicy,
    RetryPolicy,
    ServiceSpec,
    StartAction,
    HealthCheckDefinition,
    PlanEntry,
    StartupPlan,
    ServiceOutcome,
    OrchestrationResult,
)

__all__ = [
    # Enums
    "HealthStatus",
    "ServicePhase",
    # Errors
    "StackgateError",
    "DuplicateServiceError",
    "UnknownServiceError",
    "CyclicDependencyError",
    "StackConfigError",
    "RetryConfigError",
    "ProbeTimeoutError",
    "StartActionError",
    "DependencyFailedError",
    # Models
    "BackoffPolicy",
    "RetryPolicy",
    "ServiceSpec",
    "StartAction",
    "HealthCheckDefinition",
    "PlanEntry",
    "StartupPlan",
    "ServiceOutcome",
    "OrchestrationResult",
]
