# ============================================================================
# CLAUDE CONTEXT - ORCHESTRATION RESULT MODEL
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core model - Per-run outcome
# PURPOSE: Final status, attempts and timing per service
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: ServiceOutcome, OrchestrationResult
# DEPENDENCIES: dataclasses
# ============================================================================
"""
Orchestration Result

Produced once per run and read-only afterwards. Every service in the
plan has exactly one ServiceOutcome.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.contracts import HealthStatus, ServicePhase


@dataclass(frozen=True)
class ServiceOutcome:
    """Terminal state of one service after a run."""
    name: str
    status: HealthStatus
    phase: ServicePhase
    attempts: int = 0
    elapsed_seconds: float = 0.0
    start_invoked: bool = False
    error: Optional[str] = None
    backoff_delays: Tuple[float, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status.value,
            "phase": self.phase.value,
            "attempts": self.attempts,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "start_invoked": self.start_invoked,
        }
        if self.error:
            result["error"] = self.error
        if self.backoff_delays:
            result["backoff_delays"] = list(self.backoff_delays)
        return result


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrchestrationResult:
    """Mapping from service name to outcome, plus run-level facts."""
    run_id: str
    outcomes: Mapping[str, ServiceOutcome]
    order: Tuple[str, ...]
    elapsed_seconds: float
    cancelled: bool = False
    stack: Optional[str] = None
    completed_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self):
        # Freeze the mapping so callers can't rewrite history
        object.__setattr__(self, "outcomes", MappingProxyType(dict(self.outcomes)))

    def __getitem__(self, name: str) -> ServiceOutcome:
        return self.outcomes[name]

    def __contains__(self, name: str) -> bool:
        return name in self.outcomes

    def __len__(self) -> int:
        return len(self.outcomes)

    def status_of(self, name: str) -> HealthStatus:
        return self.outcomes[name].status

    def names_with(self, status: HealthStatus) -> List[str]:
        """Service names with a given status, in plan order."""
        return [n for n in self.order if self.outcomes[n].status == status]

    @property
    def ready_count(self) -> int:
        return len(self.names_with(HealthStatus.READY))

    @property
    def failed_count(self) -> int:
        return len(self.names_with(HealthStatus.FAILED))

    @property
    def all_ready(self) -> bool:
        return not self.cancelled and self.ready_count == len(self.outcomes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "run_id": self.run_id,
            "stack": self.stack,
            "all_ready": self.all_ready,
            "cancelled": self.cancelled,
            "ready": self.ready_count,
            "failed": self.failed_count,
            "total": len(self.outcomes),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "completed_at": self.completed_at.isoformat(),
            "order": list(self.order),
            "services": {
                name: self.outcomes[name].to_dict() for name in self.order
            },
        }


__all__ = [
    "ServiceOutcome",
    "OrchestrationResult",
]
