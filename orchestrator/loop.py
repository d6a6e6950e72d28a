# ============================================================================
# ORCHESTRATION LOOP
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Dependency-gated startup loop
# PURPOSE: Start services in plan order, gate on health, retry with backoff
# CREATED: 18 OCT 2026
# ============================================================================
"""
Orchestration Loop

Drives one startup run over a StartupPlan:

1. One asyncio task per service, all created up front
2. Each task waits until its dependencies settle
3. Any dependency FAILED -> service FAILED, start action never invoked
4. All dependencies READY -> invoke the start action exactly once
5. Probe until READY or the attempt budget runs out, sleeping
   min(base * multiplier ** (n - 1), ceiling) between attempts
6. Record one outcome per service; the run ends when all are terminal

Independent services start and probe concurrently; a dependency chain
is serialized by the waits in step 2. A cancel event abandons in-flight
probes and sleeps: READY services stay as they are, services never
started report UNKNOWN, services mid-startup report FAILED.

Per-service phases (UNKNOWN -> STARTING -> PROBING -> READY, with
PROBING -> STARTING while backing off) are exposed through snapshot()
for live status reporting. Backing off does not re-run the start action.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from core.config import get_defaults
from core.contracts import HealthStatus, ServicePhase
from core.errors import DependencyFailedError, RetryConfigError, StartActionError
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import (
    BackoffPolicy,
    OrchestrationResult,
    PlanEntry,
    ServiceOutcome,
    StartupPlan,
)
from handlers import execute_start
from health.prober import HealthProber
from orchestrator.collector import ResultCollector

logger = get_logger(__name__, ComponentType.ORCHESTRATOR)

SleepFunc = Callable[[float], Awaitable[Any]]
RetrySettings = Tuple[int, BackoffPolicy]


def resolve_retry_settings(
    plan: StartupPlan,
    max_attempts: int,
    backoff: BackoffPolicy,
) -> Dict[str, RetrySettings]:
    """
    Merge each service's retry override onto the run-wide settings.

    Raises:
        RetryConfigError: listing every service whose merged backoff is invalid
    """
    settings: Dict[str, RetrySettings] = {}
    problems: List[str] = []
    for entry in plan:
        spec = entry.spec
        if spec.retry is None:
            settings[spec.name] = (max_attempts, backoff)
            continue
        try:
            settings[spec.name] = spec.retry.resolve(max_attempts, backoff)
        except ValidationError as e:
            problems.extend(f"{spec.name}.retry: {item['msg']}" for item in e.errors())

    if problems:
        raise RetryConfigError(problems)
    return settings


@dataclass
class _RunState:
    """Everything one run shares between its service tasks."""
    run_id: str
    plan: StartupPlan
    collector: ResultCollector
    settings: Dict[str, RetrySettings]
    semaphore: asyncio.Semaphore
    settled: asyncio.Condition
    phases: Dict[str, ServicePhase] = field(default_factory=dict)
    attempts: Dict[str, int] = field(default_factory=dict)
    started: Dict[str, bool] = field(default_factory=dict)
    stack: Optional[str] = None


class Orchestrator:
    """
    Dependency-gated startup orchestrator.

    One instance can run many plans, one at a time. Nothing about a
    run lives outside the OrchestrationResult it returns, except the
    live snapshot kept for status endpoints.
    """

    def __init__(
        self,
        prober: Optional[HealthProber] = None,
        start_timeout: Optional[float] = None,
        max_parallel: Optional[int] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            prober: Health prober (default uses the global probe registry)
            start_timeout: Default start action timeout in seconds
            max_parallel: Max services starting/probing at once
            sleep: Backoff sleep, injectable for tests
        """
        defaults = get_defaults()
        self.prober = prober or HealthProber()
        self.start_timeout = (
            start_timeout
            if start_timeout is not None
            else defaults.probes.start_timeout_seconds
        )
        self.max_parallel = max_parallel or defaults.orchestrator.max_parallel
        self._sleep = sleep or asyncio.sleep

        self._state: Optional[_RunState] = None
        self._cancel_event: Optional[asyncio.Event] = None
        self._last_result: Optional[OrchestrationResult] = None

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    @property
    def is_running(self) -> bool:
        return self._state is not None

    @property
    def last_result(self) -> Optional[OrchestrationResult]:
        return self._last_result

    def cancel(self) -> bool:
        """Signal the current run to stop. Returns False if nothing is running."""
        if self._cancel_event is None:
            return False
        self._cancel_event.set()
        return True

    def snapshot(self) -> Dict[str, Any]:
        """Live view of the current run (or the last one, once finished)."""
        state = self._state
        if state is None:
            if self._last_result is None:
                return {"running": False, "run_id": None, "services": {}}
            return {"running": False, **self._last_result.to_dict()}

        services = {}
        for entry in state.plan:
            name = entry.name
            outcome = state.collector.get(name)
            if outcome is not None:
                services[name] = outcome.to_dict()
            else:
                phase = state.phases[name]
                services[name] = {
                    "status": phase.to_health().value,
                    "phase": phase.value,
                    "attempts": state.attempts.get(name, 0),
                }
        return {
            "running": True,
            "run_id": state.run_id,
            "stack": state.stack,
            "order": state.plan.names(),
            "services": services,
        }

    async def run(
        self,
        plan: StartupPlan,
        max_attempts: Optional[int] = None,
        backoff: Optional[BackoffPolicy] = None,
        cancel_event: Optional[asyncio.Event] = None,
        stack: Optional[str] = None,
    ) -> OrchestrationResult:
        """
        Bring up every service in the plan.

        Args:
            plan: Resolved startup plan
            max_attempts: Probe attempts per service (run default)
            backoff: Delay policy between attempts (run default)
            cancel_event: Set it to abandon the run
            stack: Stack name for logs and the result

        Returns:
            OrchestrationResult with exactly one outcome per service.
            Run-time failures are reported there, never raised.

        Raises:
            RetryConfigError: a retry override is invalid for this run;
                raised before any start action is invoked
        """
        if self._state is not None:
            raise RuntimeError("Orchestrator is already running a plan")

        defaults = get_defaults()
        if max_attempts is None:
            max_attempts = defaults.retry.max_attempts
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if backoff is None:
            backoff = BackoffPolicy.from_defaults(defaults.backoff)
        settings = resolve_retry_settings(plan, max_attempts, backoff)

        run_id = uuid.uuid4().hex[:12]
        state = _RunState(
            run_id=run_id,
            plan=plan,
            collector=ResultCollector(plan.names()),
            settings=settings,
            semaphore=asyncio.Semaphore(self.max_parallel),
            settled=asyncio.Condition(),
            phases={name: ServicePhase.UNKNOWN for name in plan.names()},
            stack=stack,
        )
        self._state = state
        self._cancel_event = cancel_event or asyncio.Event()
        started_at = time.monotonic()

        with log_context(run_id=run_id, stack=stack):
            log_checkpoint("run_started", {
                "order": plan.names(),
                "max_attempts": max_attempts,
                "backoff": backoff.model_dump(),
            })
            try:
                cancelled = await self._drive(state, self._cancel_event)
                if cancelled:
                    self._record_abandoned(state)

                result = state.collector.build(
                    run_id=run_id,
                    elapsed_seconds=time.monotonic() - started_at,
                    cancelled=cancelled,
                    stack=stack,
                )
            finally:
                self._state = None
                self._cancel_event = None

            self._last_result = result
            log_checkpoint("run_completed", {
                "ready": result.ready_count,
                "failed": result.failed_count,
                "cancelled": result.cancelled,
                "elapsed_seconds": round(result.elapsed_seconds, 3),
            })
            return result

    def run_sync(
        self,
        plan: StartupPlan,
        max_attempts: Optional[int] = None,
        backoff: Optional[BackoffPolicy] = None,
        stack: Optional[str] = None,
    ) -> OrchestrationResult:
        """Blocking wrapper around run() for scripts."""
        return asyncio.run(
            self.run(plan, max_attempts=max_attempts, backoff=backoff, stack=stack)
        )

    # ========================================================================
    # RUN DRIVER
    # ========================================================================

    async def _drive(self, state: _RunState, cancel_event: asyncio.Event) -> bool:
        """
        Run all service tasks to completion or cancellation.

        Returns:
            True if the run was cancelled before every service settled
        """
        tasks = [
            asyncio.create_task(
                self._run_service(entry, state),
                name=f"stackgate-{state.run_id}-{entry.name}",
            )
            for entry in state.plan
        ]
        if not tasks:
            return False

        all_done = asyncio.gather(*tasks)
        cancel_waiter = asyncio.create_task(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {all_done, cancel_waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if all_done in done:
                # Surfaces bugs in the loop itself; service failures never raise
                all_done.result()
                return False

            logger.warning("Cancellation requested; abandoning unresolved services")
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            return True
        finally:
            cancel_waiter.cancel()
            for task in tasks:
                if not task.done():
                    task.cancel()

    def _record_abandoned(self, state: _RunState) -> None:
        """Give every service left without an outcome its cancellation outcome."""
        for name in state.collector.missing():
            phase = state.phases[name]
            if phase == ServicePhase.UNKNOWN:
                outcome = ServiceOutcome(
                    name=name,
                    status=HealthStatus.UNKNOWN,
                    phase=ServicePhase.UNKNOWN,
                    error="Cancelled before start",
                )
            else:
                outcome = ServiceOutcome(
                    name=name,
                    status=HealthStatus.FAILED,
                    phase=ServicePhase.FAILED,
                    attempts=state.attempts.get(name, 0),
                    start_invoked=state.started.get(name, False),
                    error=f"Cancelled while {phase.value}",
                )
            state.collector.record(outcome)

    # ========================================================================
    # PER-SERVICE UNIT
    # ========================================================================

    async def _run_service(self, entry: PlanEntry, state: _RunState) -> None:
        name = entry.name
        with log_context(service=name):
            failed_deps = await self._await_dependencies(entry, state)

            if failed_deps:
                error = DependencyFailedError(name, failed_deps)
                logger.warning(str(error))
                self._set_phase(state, name, ServicePhase.FAILED)
                outcome = ServiceOutcome(
                    name=name,
                    status=HealthStatus.FAILED,
                    phase=ServicePhase.FAILED,
                    error=str(error),
                )
            else:
                async with state.semaphore:
                    outcome = await self._start_and_probe(entry, state)

            await self._finish(state, outcome)

    async def _await_dependencies(self, entry: PlanEntry, state: _RunState) -> List[str]:
        """
        Wait until every dependency is READY or any one is FAILED.

        Returns:
            Names of dependencies that did not reach READY
        """
        deps = [state.plan[i].name for i in entry.dependency_indices]
        if not deps:
            return []

        def settled() -> bool:
            statuses = [state.collector.status_of(d) for d in deps]
            return (
                HealthStatus.FAILED in statuses
                or all(s == HealthStatus.READY for s in statuses)
            )

        async with state.settled:
            await state.settled.wait_for(settled)

        return [d for d in deps if state.collector.status_of(d) != HealthStatus.READY]

    async def _finish(self, state: _RunState, outcome: ServiceOutcome) -> None:
        state.collector.record(outcome)
        if outcome.status == HealthStatus.READY:
            log_checkpoint("service_ready", {"attempts": outcome.attempts})
        else:
            log_checkpoint("service_failed", {"attempts": outcome.attempts, "error": outcome.error})

        async with state.settled:
            state.settled.notify_all()

    async def _start_and_probe(self, entry: PlanEntry, state: _RunState) -> ServiceOutcome:
        spec = entry.spec
        name = spec.name

        max_attempts, backoff = state.settings[name]

        started_at = time.monotonic()
        self._set_phase(state, name, ServicePhase.STARTING)
        state.started[name] = True
        logger.info(f"Starting {name} ({spec.start.describe()})")

        try:
            await execute_start(spec, self.start_timeout, run_id=state.run_id)
        except StartActionError as e:
            logger.error(str(e))
            self._set_phase(state, name, ServicePhase.FAILED)
            return ServiceOutcome(
                name=name,
                status=HealthStatus.FAILED,
                phase=ServicePhase.FAILED,
                elapsed_seconds=time.monotonic() - started_at,
                start_invoked=True,
                error=str(e),
            )

        delays: List[float] = []
        attempt = 0
        while True:
            attempt += 1
            state.attempts[name] = attempt
            self._set_phase(state, name, ServicePhase.PROBING)

            with log_context(attempt=attempt):
                probe = await self.prober.probe(spec, attempt=attempt)

            if probe.is_ready:
                self._set_phase(state, name, ServicePhase.READY)
                logger.info(f"{name} ready after {attempt} attempt(s)")
                return ServiceOutcome(
                    name=name,
                    status=HealthStatus.READY,
                    phase=ServicePhase.READY,
                    attempts=attempt,
                    elapsed_seconds=time.monotonic() - started_at,
                    start_invoked=True,
                    backoff_delays=tuple(delays),
                )

            if attempt >= max_attempts:
                self._set_phase(state, name, ServicePhase.FAILED)
                logger.error(f"{name} not ready after {attempt} attempt(s): {probe.message}")
                return ServiceOutcome(
                    name=name,
                    status=HealthStatus.FAILED,
                    phase=ServicePhase.FAILED,
                    attempts=attempt,
                    elapsed_seconds=time.monotonic() - started_at,
                    start_invoked=True,
                    error=f"Not ready after {attempt} attempt(s): {probe.message}",
                    backoff_delays=tuple(delays),
                )

            delay = backoff.delay_for(attempt)
            delays.append(delay)
            self._set_phase(state, name, ServicePhase.STARTING)
            logger.info(
                f"{name} {probe.status.value} ({probe.message}); "
                f"retry {attempt + 1}/{max_attempts} in {delay:.2f}s"
            )
            await self._sleep(delay)

    def _set_phase(self, state: _RunState, name: str, phase: ServicePhase) -> None:
        current = state.phases[name]
        if not current.can_transition_to(phase):
            raise ValueError(f"Cannot transition {name} from {current.value} to {phase.value}")
        state.phases[name] = phase


__all__ = [
    "Orchestrator",
    "resolve_retry_settings",
]
