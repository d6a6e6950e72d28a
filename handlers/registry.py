# ============================================================================
# START HANDLER REGISTRY
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Start action registration and execution
# PURPOSE: Register start handlers by name and run a service's start action
# CREATED: 18 OCT 2026
# ============================================================================
"""
Start Handler Registry

Central registry for start handlers. A stack file names a handler
("command", "noop", ...) and the orchestrator looks it up here.

Design:
- Handlers are registered at import time via decorator
- Registry is a simple dict (handler_name -> handler_func)
- Fail-fast on duplicate registration
- Supports both sync and async handlers
- Start actions given as Python callables bypass the registry
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from core.errors import StackgateError, StartActionError
from core.logging import ComponentType, get_logger
from core.models import ServiceSpec

logger = get_logger(__name__, ComponentType.HANDLER)


# ============================================================================
# HANDLER TYPES
# ============================================================================

@dataclass
class StartContext:
    """Context passed to start handlers."""
    service: str
    handler: str
    params: Dict[str, Any]
    timeout_seconds: float
    run_id: Optional[str] = None


@dataclass
class StartResult:
    """
    Result returned by start handlers.

    Handlers may also return None (treated as success) or raise.
    """
    success: bool = True
    output: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None

    @classmethod
    def success_result(cls, output: Optional[Dict[str, Any]] = None) -> "StartResult":
        """Create a success result."""
        return cls(success=True, output=output or {})

    @classmethod
    def failure_result(
        cls,
        error_message: str,
        output: Optional[Dict[str, Any]] = None,
    ) -> "StartResult":
        """Create a failure result."""
        return cls(success=False, error_message=error_message, output=output or {})


StartFunc = Callable[[StartContext], Union[Optional[StartResult], Awaitable[Optional[StartResult]]]]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class HandlerError(StackgateError):
    """Base exception for start handler errors."""
    pass


class HandlerNotFoundError(HandlerError):
    """Raised when a handler is not found in the registry."""
    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        super().__init__(f"Start handler not found: {handler_name}")


class DuplicateHandlerError(HandlerError):
    """Raised when a handler name is already registered."""
    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        super().__init__(f"Start handler already registered: {handler_name}")


# ============================================================================
# REGISTRY
# ============================================================================

_handlers: Dict[str, StartFunc] = {}
_handler_metadata: Dict[str, Dict[str, Any]] = {}


def register_handler(
    name: str,
    *,
    description: str = "",
    required_params: Optional[List[str]] = None,
) -> Callable[[StartFunc], StartFunc]:
    """
    Decorator to register a start handler.

    Args:
        name: Handler name (must be unique)
        description: Human-readable description
        required_params: Param keys a stack file must supply

    Example:
        @register_handler("compose_up", required_params=["service"])
        async def compose_up(ctx: StartContext) -> StartResult:
            ...
    """
    def decorator(func: StartFunc) -> StartFunc:
        if name in _handlers:
            raise DuplicateHandlerError(name)

        _handlers[name] = func
        _handler_metadata[name] = {
            "name": name,
            "description": description,
            "required_params": list(required_params or []),
            "function": func.__name__,
            "module": func.__module__,
            "is_async": inspect.iscoroutinefunction(func),
            "registered_at": datetime.now(timezone.utc).isoformat(),
        }

        logger.debug(f"Registered start handler: {name} ({func.__module__}.{func.__name__})")
        return func

    return decorator


def get_handler(name: str) -> Optional[StartFunc]:
    """Get a handler by name, or None."""
    return _handlers.get(name)


def get_handler_or_raise(name: str) -> StartFunc:
    """
    Get a handler by name, raising if not found.

    Raises:
        HandlerNotFoundError if handler not found
    """
    handler = _handlers.get(name)
    if handler is None:
        raise HandlerNotFoundError(name)
    return handler


def list_handlers() -> List[Dict[str, Any]]:
    """List all registered handlers with metadata."""
    return list(_handler_metadata.values())


def get_handler_metadata(name: str) -> Optional[Dict[str, Any]]:
    return _handler_metadata.get(name)


def clear_handlers() -> None:
    """
    Clear all registered handlers.

    Primarily for testing.
    """
    _handlers.clear()
    _handler_metadata.clear()
    logger.debug("Cleared all start handlers")


def validate_start_action(spec: ServiceSpec) -> List[str]:
    """
    Check a spec's start action against the registry.

    Returns:
        List of problems (empty if valid)
    """
    start = spec.start
    if start.func is not None:
        return []

    metadata = _handler_metadata.get(start.handler)
    if metadata is None:
        return [f"Service '{spec.name}' uses unknown start handler '{start.handler}'"]

    return [
        f"Service '{spec.name}': start handler '{start.handler}' requires param '{param}'"
        for param in metadata["required_params"]
        if param not in start.params
    ]


# ============================================================================
# START ACTION EXECUTION
# ============================================================================

async def _call(func: Callable[..., Any], context: StartContext) -> Any:
    if inspect.iscoroutinefunction(func):
        return await func(context)
    # Sync start actions may block (subprocess.run, SDK calls)
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, func, context)
    if inspect.isawaitable(result):
        result = await result
    return result


async def execute_start(
    spec: ServiceSpec,
    default_timeout: float,
    run_id: Optional[str] = None,
) -> StartResult:
    """
    Run a service's start action once.

    Args:
        spec: Service to start
        default_timeout: Used when the start action sets no timeout
        run_id: Orchestration run identifier (for handler logging)

    Returns:
        StartResult on success

    Raises:
        StartActionError: on failure result, exception or timeout
    """
    start = spec.start
    timeout = start.timeout_seconds or default_timeout
    context = StartContext(
        service=spec.name,
        handler=start.describe(),
        params=dict(start.params),
        timeout_seconds=timeout,
        run_id=run_id,
    )

    func = start.func
    if func is None:
        try:
            func = get_handler_or_raise(start.handler)
        except HandlerNotFoundError as e:
            raise StartActionError(spec.name, str(e)) from e

    try:
        result = await asyncio.wait_for(_call(func, context), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise StartActionError(spec.name, f"timed out after {timeout}s") from e
    except StartActionError:
        raise
    except Exception as e:
        logger.exception(f"Start action for {spec.name} raised: {e}")
        raise StartActionError(spec.name, f"{type(e).__name__}: {e}") from e

    if result is None:
        return StartResult.success_result()
    if isinstance(result, StartResult):
        if not result.success:
            raise StartActionError(spec.name, result.error_message or "handler reported failure")
        return result
    if result is False:
        raise StartActionError(spec.name, "start action returned False")
    return StartResult.success_result({"value": result} if result is not True else None)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "register_handler",
    "get_handler",
    "get_handler_or_raise",
    "list_handlers",
    "get_handler_metadata",
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
