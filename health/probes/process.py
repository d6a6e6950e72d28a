# ============================================================================
# PROCESS PROBES
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - Command, callable and trivial probes
# PURPOSE: Readiness checks that run local code
# CREATED: 18 OCT 2026
# ============================================================================
"""
Process Probes

- CommandProbe (command): shell command exits 0
  (e.g., `pg_isready -h db`, `docker compose exec nginx nginx -t`)
- CallableProbe (callable): Python callable returns truthy
- AlwaysProbe (always): ready without checking anything
"""

import asyncio
import inspect
import logging

from core.models import HealthCheckDefinition
from health.core import ProbePlugin, ProbeOutcome
from health.registry import register_probe

logger = logging.getLogger(__name__)


@register_probe("command")
class CommandProbe(ProbePlugin):
    """Shell command check: exit code 0 means ready."""

    required_fields = ("command",)

    async def check(self, definition: HealthCheckDefinition) -> ProbeOutcome:
        process = await asyncio.create_subprocess_shell(
            definition.command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
            raise

        if process.returncode == 0:
            return ProbeOutcome.ready(message="Command exited 0")

        return ProbeOutcome.pending(
            message=f"Command exited {process.returncode}",
            returncode=process.returncode,
            stderr=stderr.decode("utf-8", errors="replace").strip()[-200:],
        )


@register_probe("callable")
class CallableProbe(ProbePlugin):
    """
    Python callable check.

    The callable takes no arguments and returns a bool or a
    ProbeOutcome; it may be sync or async. Sync callables run in the
    default executor so a blocking check can't stall other services.
    """

    required_fields = ("func",)

    async def check(self, definition: HealthCheckDefinition) -> ProbeOutcome:
        func = definition.func
        if inspect.iscoroutinefunction(func):
            value = await func()
        else:
            loop = asyncio.get_running_loop()
            value = await loop.run_in_executor(None, func)
            if inspect.isawaitable(value):
                value = await value

        if isinstance(value, ProbeOutcome):
            return value
        if value:
            return ProbeOutcome.ready()
        return ProbeOutcome.pending(message="Check returned False")


@register_probe("always")
class AlwaysProbe(ProbePlugin):
    """No-op check for services with nothing meaningful to probe."""

    async def check(self, definition: HealthCheckDefinition) -> ProbeOutcome:
        return ProbeOutcome.ready(message="No health check configured")


__all__ = [
    "CommandProbe",
    "CallableProbe",
    "AlwaysProbe",
]
