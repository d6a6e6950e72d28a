# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Startup orchestration
# PURPOSE: Bring a stack up in dependency order, gated on health
# CREATED: 18 OCT 2026
# ============================================================================
"""
Orchestrator Module

Usage:
    from orchestrator import Orchestrator, resolve

    plan = resolve(registry)
    result = await Orchestrator().run(plan, max_attempts=5)
    if not result.all_ready:
        print(result.names_with(HealthStatus.FAILED))
"""

from orchestrator.collector import ResultCollector
from orchestrator.engine import DependencyResolver, resolve
from orchestrator.loop import Orchestrator, resolve_retry_settings

__all__ = [
    "Orchestrator",
    "ResultCollector",
    "DependencyResolver",
    "resolve",
    "resolve_retry_settings",
]
