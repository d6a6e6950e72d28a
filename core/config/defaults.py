# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for retries, backoff, probes, concurrency
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Defaults

Run-wide defaults for the orchestrator. Every value can be overridden
via environment variables; stack files and CLI flags override these
in turn, and a service's own retry block wins over everything.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class RetryDefaults:
    """
    Defaults for probe retries.

    The reference compose stack retried its database connection
    5 times; that is the default attempt budget.
    """
    max_attempts: int = 5

    @classmethod
    def from_env(cls) -> "RetryDefaults":
        """Create from environment variables."""
        return cls(
            max_attempts=int(os.getenv("STACKGATE_MAX_ATTEMPTS", 5)),
        )


@dataclass(frozen=True)
class BackoffDefaults:
    """
    Defaults for the delay between probe attempts.

    delay(n) = min(base * multiplier ** (n - 1), max)
    """
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    multiplier: float = 2.0

    @classmethod
    def from_env(cls) -> "BackoffDefaults":
        """Create from environment variables."""
        return cls(
            base_delay_seconds=float(os.getenv("STACKGATE_BACKOFF_BASE_SECONDS", 1.0)),
            max_delay_seconds=float(os.getenv("STACKGATE_BACKOFF_MAX_SECONDS", 30.0)),
            multiplier=float(os.getenv("STACKGATE_BACKOFF_MULTIPLIER", 2.0)),
        )


@dataclass(frozen=True)
class ProbeDefaults:
    """Timeouts applied when a stack file does not set its own."""
    probe_timeout_seconds: float = 5.0
    start_timeout_seconds: float = 120.0

    @classmethod
    def from_env(cls) -> "ProbeDefaults":
        """Create from environment variables."""
        return cls(
            probe_timeout_seconds=float(os.getenv("STACKGATE_PROBE_TIMEOUT_SECONDS", 5.0)),
            start_timeout_seconds=float(os.getenv("STACKGATE_START_TIMEOUT_SECONDS", 120.0)),
        )


@dataclass(frozen=True)
class OrchestratorDefaults:
    """Concurrency and entry point settings."""
    max_parallel: int = 10
    stack_file: str = "stacks/compose_demo.yaml"

    @classmethod
    def from_env(cls) -> "OrchestratorDefaults":
        """Create from environment variables."""
        return cls(
            max_parallel=int(os.getenv("STACKGATE_MAX_PARALLEL", 10)),
            stack_file=os.getenv("STACKGATE_STACK_FILE", "stacks/compose_demo.yaml"),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    retry: RetryDefaults = field(default_factory=RetryDefaults)
    backoff: BackoffDefaults = field(default_factory=BackoffDefaults)
    probes: ProbeDefaults = field(default_factory=ProbeDefaults)
    orchestrator: OrchestratorDefaults = field(default_factory=OrchestratorDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            retry=RetryDefaults.from_env(),
            backoff=BackoffDefaults.from_env(),
            probes=ProbeDefaults.from_env(),
            orchestrator=OrchestratorDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "RetryDefaults",
    "BackoffDefaults",
    "ProbeDefaults",
    "OrchestratorDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
