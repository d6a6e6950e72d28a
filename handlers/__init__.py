# ============================================================================
# START HANDLERS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Start handler registration and lookup
# PURPOSE: Register and discover start actions
# CREATED: 18 OCT 2026
# ============================================================================
"""
Start Handlers

Provides a decorator-based registration system for start actions.

Usage:
    from handlers import register_handler, StartContext, StartResult

    @register_handler("my_start")
    async def my_start(ctx: StartContext) -> StartResult:
        ...
        return StartResult.success_result({"pid": 1234})
"""

from handlers.registry import (
    register_handler,
    get_handler,
    get_handler_or_raise,
    list_handlers,
    clear_handlers,
    validate_start_action,
    execute_start,
    StartFunc,
    StartContext,
    StartResult,
    HandlerError,
    HandlerNotFoundError,
    DuplicateHandlerError,
)

# Import handler modules to trigger registration
import handlers.builtin  # noqa: F401 - import for side effects (noop, command, compose_up)

__all__ = [
    "register_handler",
    "get_handler",
    "get_handler_or_raise",
    "list_handlers",
    "clear_handlers",
    "validate_start_action",
    "execute_start",
    "StartFunc",
    "StartContext",
    "StartResult",
    "HandlerError",
    "HandlerNotFoundError",
    "DuplicateHandlerError",
]
