# ============================================================================
# CLAUDE CONTEXT - ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Configuration-time and run-time errors for the orchestrator
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Orchestrator exceptions.

Configuration-time (fatal, raised before any start action runs):
    DuplicateServiceError, UnknownServiceError, CyclicDependencyError,
    StackConfigError, RetryConfigError

Run-time (recorded on the service outcome, never raised out of a run):
    ProbeTimeoutError, StartActionError, DependencyFailedError
"""

from typing import List, Optional


class StackgateError(Exception):
    """Base exception for all orchestrator errors."""
    pass


# ============================================================================
# CONFIGURATION-TIME
# ============================================================================

class DuplicateServiceError(StackgateError):
    """Raised when a service name is registered twice."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Service already registered: {name}")


class UnknownServiceError(StackgateError):
    """Raised when a service name does not resolve."""
    def __init__(self, name: str, referenced_by: Optional[str] = None):
        self.name = name
        self.referenced_by = referenced_by
        if referenced_by:
            message = f"Service '{referenced_by}' depends on unknown service '{name}'"
        else:
            message = f"Unknown service: {name}"
        super().__init__(message)


class CyclicDependencyError(StackgateError):
    """
    Raised when service dependencies form a cycle.

    `cycle` lists the services along the loop, with the first name
    repeated at the end (["a", "b", "a"]). A self-loop is ["a", "a"].
    """
    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency: {' -> '.join(self.cycle)}")


class StackConfigError(StackgateError):
    """Raised when a stack file is structurally invalid."""
    def __init__(self, source: str, errors: List[str]):
        self.source = source
        self.errors = list(errors)
        super().__init__(f"Invalid stack '{source}': {'; '.join(self.errors)}")


class RetryConfigError(StackgateError):
    """Raised when per-service retry overrides do not merge onto the run settings."""
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid retry settings: {'; '.join(self.errors)}")


# ============================================================================
# RUN-TIME
# ============================================================================

class ProbeTimeoutError(StackgateError):
    """A single probe attempt exceeded its timeout."""
    def __init__(self, service: str, timeout_seconds: float):
        self.service = service
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Probe for '{service}' timed out after {timeout_seconds}s")


class StartActionError(StackgateError):
    """A service's start action failed."""
    def __init__(self, service: str, reason: str):
        self.service = service
        self.reason = reason
        super().__init__(f"Start action for '{service}' failed: {reason}")


class DependencyFailedError(StackgateError):
    """A dependency reached FAILED, so the dependent is never started."""
    def __init__(self, service: str, failed_dependencies: List[str]):
        self.service = service
        self.failed_dependencies = list(failed_dependencies)
        super().__init__(
            f"Service '{service}' not started: dependency failed "
            f"({', '.join(self.failed_dependencies)})"
        )


__all__ = [
    "StackgateError",
    "DuplicateServiceError",
    "UnknownServiceError",
    "CyclicDependencyError",
    "StackConfigError",
    "RetryConfigError",
    "ProbeTimeoutError",
    "StartActionError",
    "DependencyFailedError",
]
