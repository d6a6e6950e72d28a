# ============================================================================
# HEALTH PROBER
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - Timeout-bounded probe execution
# PURPOSE: Run one readiness check for one service
# CREATED: 18 OCT 2026
# ============================================================================
"""
Health Prober

Executes a service's declared readiness check once, with:
- Per-attempt timeout (the check's own, else the run default)
- Timeouts and exceptions folded into a FAILED outcome, never raised
- Timing on every outcome

Also offers probe_all() for a one-shot readiness sweep of many services
without starting anything (used by `stackgate --check`).
"""

import asyncio
import time
from typing import Dict, Iterable, Optional

from core.config import get_defaults
from core.contracts import HealthStatus
from core.errors import ProbeTimeoutError
from core.logging import ComponentType, get_logger
from core.models import ServiceSpec
from health.core import ProbeOutcome
from health.registry import ProbeRegistry, UnknownProbeTypeError, get_registry

logger = get_logger(__name__, ComponentType.PROBER)


class HealthProber:
    """
    Runs readiness probes with timeouts.

    The probe itself is a black box from the registry; the prober only
    bounds it in time and normalizes whatever comes back.
    """

    def __init__(
        self,
        registry: Optional[ProbeRegistry] = None,
        default_timeout: Optional[float] = None,
        max_parallel: int = 10,
    ):
        """
        Initialize prober.

        Args:
            registry: Probe registry (uses global if None)
            default_timeout: Timeout for checks that don't set one
            max_parallel: Max concurrent probes in probe_all()
        """
        if registry is None:
            # Importing the stock probes registers them on the global registry
            import health.probes  # noqa: F401
            registry = get_registry()
        self.registry = registry
        self.default_timeout = (
            default_timeout
            if default_timeout is not None
            else get_defaults().probes.probe_timeout_seconds
        )
        self.max_parallel = max_parallel

    def timeout_for(self, spec: ServiceSpec) -> float:
        return spec.health_check.timeout_seconds or self.default_timeout

    async def probe(self, spec: ServiceSpec, attempt: int = 1) -> ProbeOutcome:
        """
        Run the declared check once.

        Returns READY, PENDING or FAILED. Never blocks longer than the
        check's timeout; a timeout is a FAILED attempt, not an error.
        """
        definition = spec.health_check
        timeout = self.timeout_for(spec)
        start_time = time.monotonic()

        try:
            plugin = self.registry.get_or_raise(definition.type)
            outcome = await asyncio.wait_for(plugin.check(definition), timeout=timeout)

        except asyncio.TimeoutError:
            error = ProbeTimeoutError(spec.name, timeout)
            logger.warning(str(error))
            outcome = ProbeOutcome.failed(str(error), timeout_seconds=timeout)
            outcome.timed_out = True

        except UnknownProbeTypeError as e:
            logger.error(f"Probe for {spec.name} misconfigured: {e}")
            outcome = ProbeOutcome.from_exception(e)

        except Exception as e:
            logger.error(f"Probe for {spec.name} failed: {e}")
            outcome = ProbeOutcome.from_exception(e)

        if outcome.status == HealthStatus.UNKNOWN:
            # A plugin can't report "never probed" for a probe that just ran
            outcome.status = HealthStatus.PENDING

        outcome.attempt = attempt
        outcome.duration_ms = (time.monotonic() - start_time) * 1000

        logger.debug(
            f"Probe {spec.name} ({definition.type}) attempt {attempt}: "
            f"{outcome.status.value} ({outcome.duration_ms:.1f}ms)"
        )
        return outcome

    async def probe_all(self, specs: Iterable[ServiceSpec]) -> Dict[str, ProbeOutcome]:
        """Probe every service once, concurrently."""
        specs = list(specs)
        if not specs:
            return {}

        semaphore = asyncio.Semaphore(self.max_parallel)

        async def run_with_semaphore(spec: ServiceSpec):
            async with semaphore:
                return spec.name, await self.probe(spec)

        results = await asyncio.gather(*(run_with_semaphore(s) for s in specs))
        return dict(results)


__all__ = [
    "HealthProber",
]
