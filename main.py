# ============================================================================
# STACKGATE - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - FastAPI application entry point
# PURPOSE: Bring a stack up in the background and serve its status
# CREATED: 18 OCT 2026
# ============================================================================
"""
Stackgate Main Application

FastAPI application that:
1. Loads the stack file named by STACKGATE_STACK_FILE
2. Runs one orchestration in the background
3. Serves /livez, /readyz and /status while it runs and afterwards

Usage:
    STACKGATE_STACK_FILE=stacks/compose_demo.yaml uvicorn main:app --port 8000
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import get_defaults
from core.logging import ComponentType, configure_logging, get_logger
from health import health_router, set_orchestrator
from orchestrator import DependencyResolver, Orchestrator, resolve_retry_settings
from services import StackLoader

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__, ComponentType.API)

# Global instances
_orchestrator: Optional[Orchestrator] = None
_run_task: Optional[asyncio.Task] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    A broken stack file (invalid, dangling dependency, cycle, bad retry
    override) fails application startup; nothing has been started at
    that point.
    """
    global _orchestrator, _run_task

    logger.info(f"Starting Stackgate v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    stack_file = get_defaults().orchestrator.stack_file
    stack = StackLoader().load(stack_file)
    plan = DependencyResolver().resolve(stack.registry)
    max_attempts, backoff = stack.run_settings()
    resolve_retry_settings(plan, max_attempts, backoff)
    logger.info(f"Startup plan for '{stack.name}': {' -> '.join(plan.names())}")

    _orchestrator = Orchestrator()
    set_orchestrator(_orchestrator)

    _run_task = asyncio.create_task(
        _orchestrator.run(plan, max_attempts=max_attempts, backoff=backoff, stack=stack.name),
        name="stackgate-run",
    )
    _run_task.add_done_callback(_log_run_exit)

    yield

    # Shutdown
    logger.info("Shutting down Stackgate...")
    if not _run_task.done():
        _orchestrator.cancel()
        await asyncio.gather(_run_task, return_exceptions=True)
    logger.info("Stackgate stopped")


def _log_run_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.warning("Orchestration task cancelled")
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Orchestration task crashed: {error}", exc_info=error)
        return
    result = task.result()
    logger.info(
        f"Stack '{result.stack}' run finished: {result.ready_count} ready, "
        f"{result.failed_count} failed{' (cancelled)' if result.cancelled else ''}"
    )


# Create FastAPI app
app = FastAPI(
    title="Stackgate",
    description=f"Epoch {EPOCH} dependency-gated startup orchestrator",
    version=__version__,
    lifespan=lifespan,
)

# Status routes (no prefix - /livez, /readyz, /status)
app.include_router(health_router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Stackgate",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "running": _orchestrator.is_running if _orchestrator else False,
    }
