# ============================================================================
# STATUS ROUTER
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - FastAPI status endpoints
# PURPOSE: Liveness, stack readiness and per-service startup status
# CREATED: 18 OCT 2026
# ============================================================================
"""
Status Router

FastAPI router exposing the orchestrator's view of the stack:

Endpoints:
    GET /livez          - Liveness probe (process is alive). Always 200.

    GET /readyz         - Stack readiness. 200 when the last run finished
                          with every service READY, 503 otherwise
                          (still starting, failed, cancelled, never run).

    GET /status         - Full result of the last run, or live phases
                          while a run is in progress.

    GET /status/{name}  - One service's outcome or live phase.
                          404 if the service is not in the stack.

Usage:
    from health import health_router, set_orchestrator

    set_orchestrator(orchestrator)
    app.include_router(health_router)
"""

import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from __version__ import __version__, BUILD_DATE
from core.contracts import HealthStatus

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

# Set by the application lifespan
_orchestrator = None


def set_orchestrator(orchestrator) -> None:
    """Attach the orchestrator whose runs these endpoints report on."""
    global _orchestrator
    _orchestrator = orchestrator


def get_orchestrator():
    return _orchestrator


# ============================================================================
# LIVENESS PROBE
# ============================================================================

@health_router.get("/livez")
async def liveness_probe():
    """
    Liveness probe.

    No checks against the stack: a failed service must not get the
    orchestrator itself restarted.
    """
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


# ============================================================================
# READINESS PROBE
# ============================================================================

@health_router.get("/readyz")
async def readiness_probe():
    """
    Stack readiness.

    Returns 200 only once a run has finished with every service READY.
    """
    orchestrator = get_orchestrator()
    if orchestrator is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "message": "Orchestrator not initialized"},
        )

    if orchestrator.is_running:
        return JSONResponse(
            status_code=503,
            content={"status": "starting", "run_id": orchestrator.snapshot().get("run_id")},
        )

    result = orchestrator.last_result
    if result is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "message": "No run completed"},
        )

    if not result.all_ready:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "run_id": result.run_id,
                "cancelled": result.cancelled,
                "not_ready": [
                    name for name in result.order
                    if result.status_of(name) != HealthStatus.READY
                ],
            },
        )

    return {
        "status": "ready",
        "run_id": result.run_id,
        "services": result.ready_count,
        "elapsed_seconds": round(result.elapsed_seconds, 3),
    }


# ============================================================================
# STATUS
# ============================================================================

@health_router.get("/status")
async def stack_status():
    """Last run result, or live phases while a run is in progress."""
    orchestrator = get_orchestrator()
    if orchestrator is None:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "message": "Orchestrator not initialized"},
        )

    body = orchestrator.snapshot()
    body["version"] = __version__
    return body


@health_router.get("/status/{name}")
async def service_status(name: str):
    """One service's outcome (finished run) or phase (run in progress)."""
    orchestrator = get_orchestrator()
    if orchestrator is None:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "message": "Orchestrator not initialized"},
        )

    services = orchestrator.snapshot().get("services", {})
    if name not in services:
        return JSONResponse(
            status_code=404,
            content={"error": f"Unknown service: {name}"},
        )

    return {"name": name, **services[name]}


__all__ = [
    "health_router",
    "set_orchestrator",
    "get_orchestrator",
]
