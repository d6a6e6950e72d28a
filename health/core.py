# ============================================================================
# HEALTH PROBE CORE TYPES
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - Base classes for readiness probes
# PURPOSE: Probe plugin interface and single-attempt result type
# CREATED: 18 OCT 2026
# ============================================================================
"""
Health Probe Core Types

Defines the plugin interface and result type for readiness probes.

One probe attempt ends in one of:
- ready:   the check succeeded
- pending: the check ran and the service is not ready yet
- failed:  the attempt timed out or the check itself errored

Neither pending nor failed is fatal: the orchestrator retries both
until its attempt budget runs out.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.contracts import HealthStatus
from core.models import HealthCheckDefinition


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ProbeOutcome:
    """Result of a single probe attempt."""
    status: HealthStatus
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0
    attempt: int = 1
    timed_out: bool = False
    checked_at: datetime = field(default_factory=_utc_now)

    @property
    def is_ready(self) -> bool:
        return self.status == HealthStatus.READY

    @classmethod
    def ready(cls, message: str = None, **details) -> "ProbeOutcome":
        """Create ready result."""
        return cls(status=HealthStatus.READY, message=message, details=details)

    @classmethod
    def pending(cls, message: str, **details) -> "ProbeOutcome":
        """Create not-ready-yet result."""
        return cls(status=HealthStatus.PENDING, message=message, details=details)

    @classmethod
    def failed(cls, message: str, **details) -> "ProbeOutcome":
        """Create failed-attempt result."""
        return cls(status=HealthStatus.FAILED, message=message, details=details)

    @classmethod
    def from_exception(cls, e: Exception) -> "ProbeOutcome":
        """Create failed-attempt result from exception."""
        return cls(
            status=HealthStatus.FAILED,
            message=str(e) or type(e).__name__,
            details={"exception_type": type(e).__name__},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result = {
            "status": self.status.value,
            "attempt": self.attempt,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.timed_out:
            result["timed_out"] = True
        if self.message:
            result["message"] = self.message
        if self.details:
            result["details"] = self.details
        return result


class ProbePlugin(ABC):
    """
    Base class for probe plugins.

    One plugin instance serves every service whose health check names
    its `probe_type`. Plugins are stateless: all targeting information
    comes from the HealthCheckDefinition passed in.

    Attributes:
        probe_type: Value of `health_check.type` this plugin handles
        required_fields: Definition fields that must be set

    Example:
        @register_probe("redis")
        class RedisProbe(ProbePlugin):
            required_fields = ("url",)

            async def check(self, definition) -> ProbeOutcome:
                ...
    """

    probe_type: str = "unnamed"
    required_fields: tuple = ()

    @abstractmethod
    async def check(self, definition: HealthCheckDefinition) -> ProbeOutcome:
        """
        Execute one readiness check.

        Must be safe to repeat. Timeouts are enforced by the caller.
        """
        pass

    def validate(self, definition: HealthCheckDefinition) -> List[str]:
        """Return a list of configuration problems (empty if valid)."""
        return [
            f"'{self.probe_type}' probe requires '{name}'"
            for name in self.required_fields
            if getattr(definition, name, None) in (None, "")
        ]


__all__ = [
    "ProbeOutcome",
    "ProbePlugin",
]
