# ============================================================================
# START HANDLER TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Tests - Start handler registry and execution
# PURPOSE: Verify start action dispatch, failures and timeouts
# CREATED: 18 OCT 2026
# ============================================================================
"""
Start Handler Tests

Covers:
1. Built-in handlers are registered (noop, command, compose_up)
2. validate_start_action() reports unknown handlers and missing params
3. execute_start() with callables (sync/async), handler names, failures
4. Start action timeouts raise StartActionError
5. command / compose_up handlers build and run the right shell commands
6. Detached commands are reaped once they exit

Run with:
    pytest tests/test_handlers.py -v
"""

import asyncio
import os
import sys
import time
from unittest.mock import AsyncMock, patch

import pytest

from core.errors import StartActionError
from core.models import ServiceSpec, StartAction
from handlers import (
    DuplicateHandlerError,
    StartContext,
    StartResult,
    execute_start,
    get_handler,
    list_handlers,
    register_handler,
    validate_start_action,
)
from handlers.builtin import detached_processes
from handlers.registry import get_handler_metadata


def spec_with(start: StartAction, name: str = "svc") -> ServiceSpec:
    return ServiceSpec(name=name, start=start)


# ============================================================================
# REGISTRY
# ============================================================================

class TestHandlerRegistry:
    """Test start handler registration."""

    def test_builtins_registered(self):
        names = {h["name"] for h in list_handlers()}
        assert {"noop", "command", "compose_up"} <= names

    def test_metadata(self):
        metadata = get_handler_metadata("command")
        assert metadata["required_params"] == ["command"]
        assert metadata["is_async"] is True

    def test_duplicate_registration_rejected(self):
        with pytest.raises(DuplicateHandlerError):
            @register_handler("noop")
            async def another_noop(ctx):
                return None

        assert get_handler("noop").__name__ == "noop_handler"

    def test_validate_unknown_handler(self):
        errors = validate_start_action(spec_with(StartAction(handler="helm_install")))
        assert errors == ["Service 'svc' uses unknown start handler 'helm_install'"]

    def test_validate_missing_param(self):
        errors = validate_start_action(spec_with(StartAction(handler="compose_up")))
        assert len(errors) == 1
        assert "requires param 'service'" in errors[0]

    def test_validate_callable_skips_registry(self):
        start = StartAction(handler="does_not_exist", func=lambda ctx: None)
        assert validate_start_action(spec_with(start)) == []


# ============================================================================
# EXECUTION
# ============================================================================

class TestExecuteStart:
    """Test execute_start() dispatch and error folding."""

    def test_noop(self):
        result = asyncio.run(execute_start(spec_with(StartAction()), default_timeout=5))
        assert result.success is True

    def test_sync_callable_receives_context(self):
        seen = []

        def start(ctx: StartContext):
            seen.append(ctx)

        spec = spec_with(StartAction(func=start, params={"port": 5432}), name="db")
        result = asyncio.run(execute_start(spec, default_timeout=5, run_id="run-1"))

        assert result.success is True
        assert len(seen) == 1
        assert seen[0].service == "db"
        assert seen[0].params == {"port": 5432}
        assert seen[0].run_id == "run-1"
        assert seen[0].handler == "start"

    def test_async_callable_result_passed_through(self):
        async def start(ctx):
            return StartResult.success_result({"pid": 42})

        result = asyncio.run(execute_start(spec_with(StartAction(func=start)), default_timeout=5))
        assert result.output == {"pid": 42}

    def test_func_wins_over_handler(self):
        start = AsyncMock(return_value=None)
        spec = spec_with(StartAction(handler="compose_up", func=start))

        asyncio.run(execute_start(spec, default_timeout=5))
        start.assert_awaited_once()

    def test_exception_raises_start_action_error(self):
        def start(ctx):
            raise OSError("docker daemon not running")

        with pytest.raises(StartActionError) as exc_info:
            asyncio.run(execute_start(spec_with(StartAction(func=start)), default_timeout=5))

        assert exc_info.value.service == "svc"
        assert "docker daemon not running" in str(exc_info.value)

    def test_failure_result_raises(self):
        async def start(ctx):
            return StartResult.failure_result("port already in use")

        with pytest.raises(StartActionError, match="port already in use"):
            asyncio.run(execute_start(spec_with(StartAction(func=start)), default_timeout=5))

    def test_false_raises(self):
        with pytest.raises(StartActionError):
            asyncio.run(
                execute_start(spec_with(StartAction(func=lambda ctx: False)), default_timeout=5)
            )

    def test_unknown_handler_raises(self):
        with pytest.raises(StartActionError, match="not found"):
            asyncio.run(
                execute_start(spec_with(StartAction(handler="helm_install")), default_timeout=5)
            )

    def test_timeout(self):
        async def start(ctx):
            await asyncio.sleep(10)

        spec = spec_with(StartAction(func=start, timeout_seconds=0.05))
        with pytest.raises(StartActionError, match="timed out"):
            asyncio.run(execute_start(spec, default_timeout=60))


# ============================================================================
# BUILT-IN HANDLERS
# ============================================================================

class TestBuiltinHandlers:
    """Test command and compose_up handlers."""

    def test_command_success(self):
        command = f'"{sys.executable}" -c "print(1)"'
        spec = spec_with(StartAction(handler="command", params={"command": command}))

        result = asyncio.run(execute_start(spec, default_timeout=30))
        assert result.success is True

    def test_command_nonzero_exit(self):
        command = f'"{sys.executable}" -c "import sys; sys.exit(4)"'
        spec = spec_with(StartAction(handler="command", params={"command": command}))

        with pytest.raises(StartActionError):
            asyncio.run(execute_start(spec, default_timeout=30))

    def test_compose_up_command_line(self):
        run_shell = AsyncMock(return_value=StartResult.success_result())
        spec = spec_with(StartAction(
            handler="compose_up",
            params={"service": "db", "file": "docker-compose.yml"},
        ))

        with patch("handlers.builtin.run_shell", run_shell):
            asyncio.run(execute_start(spec, default_timeout=30))

        command = run_shell.call_args.args[0]
        assert command == "docker compose -f docker-compose.yml up -d db"

    def test_detached_command_reaped_after_exit(self):
        command = f'"{sys.executable}" -c "pass"'
        spec = spec_with(StartAction(
            handler="command",
            params={"command": command, "wait": False},
        ))

        result = asyncio.run(execute_start(spec, default_timeout=30))
        pid = result.output["pid"]

        deadline = time.monotonic() + 10
        while pid in detached_processes():
            assert time.monotonic() < deadline, "detached child never reaped"
            time.sleep(0.05)

        # Reaped: no zombie left under this pid
        with pytest.raises(ChildProcessError):
            os.waitpid(pid, os.WNOHANG)
