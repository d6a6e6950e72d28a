# ============================================================================
# CLAUDE CONTEXT - BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Foundation - Core status enums
# PURPOSE: Define health and lifecycle states for orchestrated services
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: HealthStatus, ServicePhase
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the startup orchestrator.

Two state machines live here:
- HealthStatus: what a service's readiness looks like from the outside
- ServicePhase: where the orchestrator loop is with a service
"""

from enum import Enum
from typing import Dict, Set


# ============================================================================
# STATUS ENUMS
# ============================================================================

class HealthStatus(str, Enum):
    """
    Readiness of a service.

    State transitions:
        UNKNOWN -> PENDING -> READY
                           -> FAILED
    """
    UNKNOWN = "unknown"          # Never probed
    PENDING = "pending"          # Probing, not ready yet
    READY = "ready"              # Probe succeeded
    FAILED = "failed"            # Retries exhausted or dependency failed

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (HealthStatus.READY, HealthStatus.FAILED)


class ServicePhase(str, Enum):
    """
    Orchestrator loop state for one service.

    State transitions:
        UNKNOWN -> STARTING -> PROBING -> READY
                                       -> STARTING (after backoff)
                                       -> FAILED (max attempts exceeded)
                -> FAILED (dependency failed, never started)
    """
    UNKNOWN = "unknown"          # Waiting on dependencies
    STARTING = "starting"        # Start action issued / backing off
    PROBING = "probing"          # Health probe in flight
    READY = "ready"              # Probe succeeded
    FAILED = "failed"            # Terminal failure

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self in (ServicePhase.READY, ServicePhase.FAILED)

    def can_transition_to(self, new_phase: "ServicePhase") -> bool:
        """
        Validate a phase transition.

        FAILED is reachable from every non-terminal phase: from UNKNOWN
        when a dependency fails, from STARTING when the start action
        raises, from PROBING when attempts run out.
        """
        if self == new_phase:
            return True
        return new_phase in _PHASE_TRANSITIONS[self]

    def to_health(self) -> HealthStatus:
        """Project a loop phase onto the public health status."""
        if self == ServicePhase.READY:
            return HealthStatus.READY
        if self == ServicePhase.FAILED:
            return HealthStatus.FAILED
        if self == ServicePhase.UNKNOWN:
            return HealthStatus.UNKNOWN
        return HealthStatus.PENDING


_PHASE_TRANSITIONS: Dict[ServicePhase, Set[ServicePhase]] = {
    ServicePhase.UNKNOWN: {ServicePhase.STARTING, ServicePhase.FAILED},
    ServicePhase.STARTING: {ServicePhase.PROBING, ServicePhase.FAILED},
    ServicePhase.PROBING: {ServicePhase.READY, ServicePhase.STARTING, ServicePhase.FAILED},
    ServicePhase.READY: set(),
    ServicePhase.FAILED: set(),
}


__all__ = [
    "HealthStatus",
    "ServicePhase",
]
