# ============================================================================
# RESULT COLLECTOR
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Per-run outcome collection
# PURPOSE: Single point of write for service outcomes during a run
# CREATED: 18 OCT 2026
# ============================================================================
"""
Result Collector

The only state shared between the per-service tasks of a run. Each
service has exactly one writer (its own task, or the run itself when
the task was cancelled before finishing), and a second write for the
same service is a bug, so it raises.
"""

from typing import Dict, List, Optional

from core.contracts import HealthStatus
from core.models import OrchestrationResult, ServiceOutcome


class ResultCollector:
    """Collects exactly one ServiceOutcome per planned service."""

    def __init__(self, names: List[str]):
        self._order = list(names)
        self._outcomes: Dict[str, ServiceOutcome] = {}

    def record(self, outcome: ServiceOutcome) -> None:
        """
        Record a service's terminal outcome.

        Raises:
            KeyError: service is not part of this run
            ValueError: service already has an outcome
        """
        if outcome.name not in self._order:
            raise KeyError(f"Service not in plan: {outcome.name}")
        if outcome.name in self._outcomes:
            raise ValueError(f"Outcome already recorded for {outcome.name}")
        self._outcomes[outcome.name] = outcome

    def get(self, name: str) -> Optional[ServiceOutcome]:
        return self._outcomes.get(name)

    def status_of(self, name: str) -> HealthStatus:
        outcome = self._outcomes.get(name)
        return outcome.status if outcome else HealthStatus.UNKNOWN

    def missing(self) -> List[str]:
        """Planned services with no outcome yet, in plan order."""
        return [n for n in self._order if n not in self._outcomes]

    def build(
        self,
        run_id: str,
        elapsed_seconds: float,
        cancelled: bool = False,
        stack: Optional[str] = None,
    ) -> OrchestrationResult:
        """
        Freeze the collected outcomes into a result.

        Raises:
            ValueError: if any planned service has no outcome
        """
        missing = self.missing()
        if missing:
            raise ValueError(f"No outcome recorded for: {', '.join(missing)}")
        return OrchestrationResult(
            run_id=run_id,
            outcomes=dict(self._outcomes),
            order=tuple(self._order),
            elapsed_seconds=elapsed_seconds,
            cancelled=cancelled,
            stack=stack,
        )


__all__ = [
    "ResultCollector",
]
