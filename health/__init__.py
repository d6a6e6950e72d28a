# ============================================================================
# HEALTH MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - Readiness probe plugin system
# PURPOSE: Probe services for readiness; expose stack status over HTTP
# CREATED: 18 OCT 2026
# ============================================================================
"""
Health Module

Plugin-based readiness probing for the startup orchestrator:
- ProbePlugin: Base class for probe types (tcp, http, sql, command, ...)
- ProbeRegistry: Probe type discovery and registration
- HealthProber: One timeout-bounded probe attempt per call
- health_router: /livez, /readyz, /status endpoints

Usage:
    from health import ProbePlugin, ProbeOutcome, register_probe

    @register_probe("redis")
    class RedisProbe(ProbePlugin):
        required_fields = ("url",)

        async def check(self, definition) -> ProbeOutcome:
            ...
"""

from health.core import ProbeOutcome, ProbePlugin
from health.registry import (
    ProbeRegistry,
    UnknownProbeTypeError,
    get_registry,
    register_probe,
)
from health.prober import HealthProber
from health.router import health_router, set_orchestrator

__all__ = [
    # Core types
    "ProbeOutcome",
    "ProbePlugin",
    # Registry
    "ProbeRegistry",
    "UnknownProbeTypeError",
    "get_registry",
    "register_probe",
    # Prober
    "HealthProber",
    # Router
    "health_router",
    "set_orchestrator",
]
