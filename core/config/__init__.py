# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the startup orchestrator.
"""

from core.config.defaults import (
    RetryDefaults,
    BackoffDefaults,
    ProbeDefaults,
    OrchestratorDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "RetryDefaults",
    "BackoffDefaults",
    "ProbeDefaults",
    "OrchestratorDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
