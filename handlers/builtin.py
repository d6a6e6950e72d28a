# ============================================================================
# BUILT-IN START HANDLERS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Stock start actions
# PURPOSE: noop, shell command and docker compose start actions
# CREATED: 18 OCT 2026
# ============================================================================
"""
Built-in Start Handlers

- noop: service is started elsewhere (already running, managed by
  another supervisor); the orchestrator only gates on its health.
- command: run a shell command. With wait=true (default) the command
  must exit 0; with wait=false it is spawned detached and left running.
- compose_up: `docker compose up -d <service>` for one compose service.
"""

import asyncio
import os
import shlex
import subprocess
import threading
from typing import Any, Dict, Optional

from core.logging import ComponentType, get_logger
from handlers.registry import (
    register_handler,
    StartContext,
    StartResult,
)

logger = get_logger(__name__, ComponentType.HANDLER)

# Keep error messages short enough for a status table
_OUTPUT_TAIL_CHARS = 500


def _tail(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace").strip()
    return text[-_OUTPUT_TAIL_CHARS:]


def _build_env(extra: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    if not extra:
        return None
    env = dict(os.environ)
    env.update({str(k): str(v) for k, v in extra.items()})
    return env


async def run_shell(
    command: str,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, Any]] = None,
) -> StartResult:
    """Run a shell command to completion and map its exit code to a result."""
    process = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        env=_build_env(env),
    )
    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        # Timed out or run cancelled: don't leave the child behind
        if process.returncode is None:
            process.kill()
        raise

    if process.returncode != 0:
        return StartResult.failure_result(
            f"exit code {process.returncode}: {_tail(stderr) or _tail(stdout)}",
            output={"returncode": process.returncode},
        )

    return StartResult.success_result(
        output={"returncode": 0, "stdout": _tail(stdout)},
    )


# Detached children still running, by pid; each has a reaper thread
_detached: Dict[int, subprocess.Popen] = {}
_detached_lock = threading.Lock()


def _reap(process: subprocess.Popen, command: str) -> None:
    returncode = process.wait()
    with _detached_lock:
        _detached.pop(process.pid, None)
    logger.info(f"Detached process pid={process.pid} exited ({returncode}): {command}")


def detached_processes() -> Dict[int, subprocess.Popen]:
    """Detached children that have not exited yet."""
    with _detached_lock:
        return dict(_detached)


def spawn_detached(
    command: str,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, Any]] = None,
) -> StartResult:
    """
    Spawn a long-running command in its own session and return at once.

    The child outlives this process if it has to; while we run, a daemon
    thread waits on it so an exited child is reaped immediately.
    """
    process = subprocess.Popen(
        command,
        shell=True,
        cwd=cwd,
        env=_build_env(env),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    with _detached_lock:
        _detached[process.pid] = process
    threading.Thread(
        target=_reap,
        args=(process, command),
        name=f"stackgate-reap-{process.pid}",
        daemon=True,
    ).start()

    logger.info(f"Spawned detached process pid={process.pid}: {command}")
    return StartResult.success_result(output={"pid": process.pid})


# ============================================================================
# HANDLERS
# ============================================================================

@register_handler(
    "noop",
    description="Service is started externally; only gate on its health check",
)
async def noop_handler(ctx: StartContext) -> StartResult:
    logger.debug(f"noop start for {ctx.service}")
    return StartResult.success_result()


@register_handler(
    "command",
    description="Run a shell command (wait=false spawns it detached)",
    required_params=["command"],
)
async def command_handler(ctx: StartContext) -> StartResult:
    """
    Params:
        command: Shell command line
        wait: Wait for exit (default true)
        cwd: Working directory
        env: Extra environment variables
    """
    command = str(ctx.params["command"])
    wait = ctx.params.get("wait", True)
    if isinstance(wait, str):
        wait = wait.strip().lower() not in ("false", "0", "no")

    cwd = ctx.params.get("cwd")
    env = ctx.params.get("env")

    logger.info(f"Starting {ctx.service}: {command}")
    if not wait:
        return spawn_detached(command, cwd=cwd, env=env)
    return await run_shell(command, cwd=cwd, env=env)


@register_handler(
    "compose_up",
    description="docker compose up -d for a single compose service",
    required_params=["service"],
)
async def compose_up_handler(ctx: StartContext) -> StartResult:
    """
    Params:
        service: Compose service name
        file: Compose file (optional)
        project_dir: Directory to run in (optional)
    """
    parts = ["docker", "compose"]
    if ctx.params.get("file"):
        parts += ["-f", str(ctx.params["file"])]
    parts += ["up", "-d", str(ctx.params["service"])]
    command = " ".join(shlex.quote(p) for p in parts)

    logger.info(f"Starting {ctx.service}: {command}")
    return await run_shell(command, cwd=ctx.params.get("project_dir"))


__all__ = [
    "run_shell",
    "spawn_detached",
    "detached_processes",
    "noop_handler",
    "command_handler",
    "compose_up_handler",
]
