# ============================================================================
# PROBE PLUGINS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - Probe implementations
# PURPOSE: Stock readiness probes for orchestrated services
# CREATED: 18 OCT 2026
# ============================================================================
"""
Probe Plugins

Network:
- tcp: host:port accepts a connection
- http: GET url returns an accepted status

Database:
- sql: PostgreSQL answers SELECT 1

Process:
- command: shell command exits 0
- callable: Python callable returns truthy
- always: no check

Import this module to register all probes:
    import health.probes
"""

# Import all probe modules to trigger registration
from health.probes.network import TcpProbe, HttpProbe
from health.probes.database import SqlProbe
from health.probes.process import CommandProbe, CallableProbe, AlwaysProbe

__all__ = [
    # Network
    "TcpProbe",
    "HttpProbe",
    # Database
    "SqlProbe",
    # Process
    "CommandProbe",
    "CallableProbe",
    "AlwaysProbe",
]
