# ============================================================================
# VERSION - STARTUP ORCHESTRATOR
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# ============================================================================
"""
Version information for stackgate.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch
# Criteria for 0.2 - compose demo stack comes up end to end
__version__ = "0.1.3"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-18"

EPOCH = 1
CODENAME = "Startup Orchestrator"
