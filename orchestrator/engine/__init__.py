# ============================================================================
# ORCHESTRATOR ENGINE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Engine components
# PURPOSE: Dependency graph construction and ordering
# CREATED: 18 OCT 2026
# ============================================================================
"""
Orchestrator Engine Components

- resolver: dependency graph, Kahn ordering, cycle naming
"""

from orchestrator.engine.resolver import (
    DependencyGraph,
    DependencyResolver,
    GraphBuilder,
    TopologicalSorter,
    resolve,
)

__all__ = [
    "DependencyGraph",
    "DependencyResolver",
    "GraphBuilder",
    "TopologicalSorter",
    "resolve",
]
