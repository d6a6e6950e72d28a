#!/usr/bin/env python3
# ============================================================================
# CLI STACK RUNNER
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Tool - Bring a stack up from the command line
# PURPOSE: Load a stack file, resolve the plan, run it, report per service
# CREATED: 18 OCT 2026
# ============================================================================
"""
Bring a stack up in dependency order, gated on health checks.

Usage:
    # Start everything, print a status table
    python tools/run_stack.py stacks/compose_demo.yaml

    # Show the startup order without starting anything
    python tools/run_stack.py stacks/compose_demo.yaml --plan-only

    # Probe every service once, start nothing
    python tools/run_stack.py stacks/compose_demo.yaml --check

    # Machine-readable result, tighter retry budget
    stackgate stacks/compose_demo.yaml --json --max-attempts 3 --max-delay 5

Exit codes:
    0    every service READY
    1    at least one service not READY
    2    stack file invalid (nothing was started)
    130  interrupted (Ctrl-C); READY services are left running
"""

import argparse
import asyncio
import json
import os
import signal
import sys
from typing import List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.contracts import HealthStatus
from core.errors import (
    CyclicDependencyError,
    RetryConfigError,
    StackConfigError,
    UnknownServiceError,
)
from core.logging import ComponentType, configure_logging, get_logger
from core.models import BackoffPolicy, OrchestrationResult, StartupPlan
from health.prober import HealthProber
from orchestrator import DependencyResolver, Orchestrator, resolve_retry_settings
from services import LoadedStack, StackLoader

EXIT_OK = 0
EXIT_NOT_READY = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130

logger = get_logger("stackgate.cli", ComponentType.CLI)


def print_plan(stack: LoadedStack, plan: StartupPlan) -> None:
    print(f"Startup plan for '{stack.name}' ({len(plan)} services):")
    for entry in plan:
        deps = ", ".join(plan.dependencies_of(entry.name)) or "-"
        check = entry.spec.health_check
        print(
            f"  {entry.index + 1:2d}. {entry.name:<20} "
            f"after: {deps:<24} probe: {check.type} {check.target() or ''}"
        )


def print_result(result: OrchestrationResult) -> None:
    print()
    print(f"{'SERVICE':<20} {'STATUS':<8} {'ATTEMPTS':>8} {'ELAPSED':>9}  DETAIL")
    for name in result.order:
        outcome = result[name]
        print(
            f"{name:<20} {outcome.status.value:<8} {outcome.attempts:>8} "
            f"{outcome.elapsed_seconds:>8.2f}s  {outcome.error or ''}"
        )
    print()
    summary = f"{result.ready_count}/{len(result)} ready in {result.elapsed_seconds:.2f}s"
    if result.cancelled:
        summary += " (interrupted)"
    print(summary)


def _request_cancel(sig: signal.Signals, cancel_event: asyncio.Event) -> None:
    logger.warning(f"Received {sig.name}; cancelling startup")
    cancel_event.set()


async def run_plan(
    plan: StartupPlan,
    max_attempts: int,
    backoff: BackoffPolicy,
    stack: str,
    max_parallel: Optional[int] = None,
) -> OrchestrationResult:
    """Run the plan, turning SIGINT/SIGTERM into a clean cancellation."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_cancel, sig, cancel_event)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # No loop signal handlers on this platform; Ctrl-C raises instead
            pass

    try:
        orchestrator = Orchestrator(max_parallel=max_parallel)
        return await orchestrator.run(
            plan,
            max_attempts=max_attempts,
            backoff=backoff,
            cancel_event=cancel_event,
            stack=stack,
        )
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def check_stack(stack: LoadedStack) -> dict:
    """Probe every service once without starting anything."""
    prober = HealthProber()
    outcomes = await prober.probe_all(stack.registry)
    return {name: outcome.to_dict() for name, outcome in outcomes.items()}


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="stackgate",
        description="Start a stack in dependency order, gated on health checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s stacks/compose_demo.yaml
  %(prog)s stacks/compose_demo.yaml --plan-only
  %(prog)s stacks/compose_demo.yaml --json --max-attempts 3
        """,
    )
    parser.add_argument("stack_file", help="YAML stack file")
    parser.add_argument(
        "--plan-only",
        action="store_true",
        help="Print the startup order and exit",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Probe every service once, start nothing",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    parser.add_argument(
        "--max-attempts", "-n",
        type=int,
        help="Probe attempts per service (overrides stack defaults)",
    )
    parser.add_argument(
        "--base-delay",
        type=float,
        help="First backoff delay in seconds",
    )
    parser.add_argument(
        "--max-delay",
        type=float,
        help="Backoff ceiling in seconds",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        help="Max services starting or probing at once",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Log level (default: INFO, or LOG_LEVEL)",
    )

    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)

    # Configuration problems are fatal before anything starts
    try:
        stack = StackLoader().load(args.stack_file)
        plan = DependencyResolver().resolve(stack.registry)
        max_attempts, backoff = stack.run_settings(
            max_attempts=args.max_attempts,
            base_delay_seconds=args.base_delay,
            max_delay_seconds=args.max_delay,
        )
        resolve_retry_settings(plan, max_attempts, backoff)
    except StackConfigError as e:
        print(f"ERROR: Invalid stack file {e.source}:", file=sys.stderr)
        for problem in e.errors:
            print(f"  - {problem}", file=sys.stderr)
        return EXIT_CONFIG
    except RetryConfigError as e:
        print("ERROR: Invalid retry settings:", file=sys.stderr)
        for problem in e.errors:
            print(f"  - {problem}", file=sys.stderr)
        return EXIT_CONFIG
    except (CyclicDependencyError, UnknownServiceError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG

    if args.plan_only:
        if args.json:
            print(json.dumps(plan.to_dict(), indent=2))
        else:
            print_plan(stack, plan)
        return EXIT_OK

    if args.check:
        outcomes = asyncio.run(check_stack(stack))
        if args.json:
            print(json.dumps(outcomes, indent=2, default=str))
        else:
            for name in plan.names():
                item = outcomes[name]
                print(f"  {name:<20} {item['status']:<8} {item.get('message', '')}")
        all_ready = all(o["status"] == HealthStatus.READY.value for o in outcomes.values())
        return EXIT_OK if all_ready else EXIT_NOT_READY

    if not args.json:
        print_plan(stack, plan)

    try:
        result = asyncio.run(
            run_plan(plan, max_attempts, backoff, stack.name, args.max_parallel)
        )
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_INTERRUPTED

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print_result(result)

    if result.cancelled:
        return EXIT_INTERRUPTED
    return EXIT_OK if result.all_ready else EXIT_NOT_READY


if __name__ == "__main__":
    sys.exit(main())
