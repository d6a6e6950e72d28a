# ============================================================================
# LOGGING TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Tests - Structured logging and run checkpoints
# PURPOSE: Verify context propagation, formatters and lifecycle checkpoints
# CREATED: 18 OCT 2026
# ============================================================================
"""
Logging Tests

Covers:
1. log_context() nesting and reset
2. Context isolation between concurrent asyncio tasks
3. ContextLogger attaches context to records
4. StructuredFormatter emits JSON with context
5. A run emits run_started / service_ready / service_failed / run_completed
6. Each layer's logger tags records with its component

Run with:
    pytest tests/test_logging.py -v
"""

import asyncio
import importlib
import json
import logging

import pytest

from core.logging import (
    ComponentType,
    HumanFormatter,
    StructuredFormatter,
    get_current_context,
    get_logger,
    log_checkpoint,
    log_context,
)
from core.models import HealthCheckDefinition, ServiceSpec
from health.prober import HealthProber
from health.probes.process import AlwaysProbe, CallableProbe
from health.registry import ProbeRegistry
from orchestrator import Orchestrator, resolve
from services.spec_registry import ServiceSpecRegistry


def make_record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="stackgate.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestLogContext:
    """Test context fields."""

    def test_nesting_and_reset(self):
        assert get_current_context().run_id is None

        with log_context(run_id="r1", stack="demo"):
            with log_context(service="db", attempt=2):
                ctx = get_current_context()
                assert ctx.run_id == "r1"
                assert ctx.service == "db"
                assert ctx.attempt == 2
                assert ctx.to_dict() == {
                    "run_id": "r1", "stack": "demo", "service": "db", "attempt": 2,
                }
            assert get_current_context().service is None

        assert get_current_context().run_id is None

    def test_tasks_keep_separate_context(self):
        async def worker(name):
            with log_context(service=name):
                await asyncio.sleep(0.01)
                return get_current_context().service

        async def scenario():
            return await asyncio.gather(worker("db"), worker("app"), worker("proxy"))

        assert asyncio.run(scenario()) == ["db", "app", "proxy"]


class TestFormatters:
    """Test JSON and human formatters."""

    def test_structured_formatter(self):
        with log_context(run_id="r1", service="db"):
            output = StructuredFormatter().format(make_record("probing"))

        data = json.loads(output)
        assert data["message"] == "probing"
        assert data["level"] == "INFO"
        assert data["context"] == {"run_id": "r1", "service": "db"}

    def test_human_formatter(self):
        with log_context(run_id="r1", service="db", attempt=3):
            output = HumanFormatter().format(make_record("probing"))

        assert "[run=r1, service=db, attempt=3]" in output
        assert output.endswith("probing")


class TestContextLogger:
    """Test the context-aware logger adapter."""

    def test_context_attached_to_record(self, caplog):
        logger = get_logger("stackgate.test", ComponentType.PROBER)

        with caplog.at_level(logging.INFO, logger="stackgate.test"):
            with log_context(run_id="r9", service="cache"):
                logger.info("checking")

        record = caplog.records[-1]
        assert record.extra["run_id"] == "r9"
        assert record.extra["service"] == "cache"
        assert record.extra["component"] == "prober"

    def test_checkpoint(self, caplog):
        with caplog.at_level(logging.INFO, logger="stackgate.checkpoint"):
            with log_context(run_id="r2"):
                log_checkpoint("run_started", {"order": ["db"]})

        record = caplog.records[-1]
        assert record.getMessage() == "CHECKPOINT: run_started"
        assert record.extra["checkpoint"] == "run_started"
        assert record.extra["run_id"] == "r2"
        assert record.extra["data"] == {"order": ["db"]}


class TestRunCheckpoints:
    """Test lifecycle checkpoints emitted by a run."""

    def test_run_emits_checkpoints(self, caplog):
        registry = ProbeRegistry()
        registry.register_class(CallableProbe)
        registry.register_class(AlwaysProbe)

        async def no_sleep(delay):
            return None

        orchestrator = Orchestrator(prober=HealthProber(registry=registry), sleep=no_sleep)
        plan = resolve([
            ServiceSpec(name="db"),
            ServiceSpec(
                name="app",
                depends_on=["db"],
                health_check=HealthCheckDefinition(type="callable", func=lambda: False),
            ),
        ])

        with caplog.at_level(logging.INFO, logger="stackgate.checkpoint"):
            result = orchestrator.run_sync(plan, max_attempts=2, stack="demo")

        checkpoints = [
            (r.extra["checkpoint"], r.extra.get("service"))
            for r in caplog.records
            if r.name == "stackgate.checkpoint"
        ]
        assert checkpoints[0] == ("run_started", None)
        assert ("service_ready", "db") in checkpoints
        assert ("service_failed", "app") in checkpoints
        assert checkpoints[-1] == ("run_completed", None)

        run_ids = {
            r.extra["run_id"] for r in caplog.records if r.name == "stackgate.checkpoint"
        }
        assert run_ids == {result.run_id}


class TestComponentLoggers:
    """Test that each layer tags its records with its component."""

    @pytest.mark.parametrize("module, component", [
        ("orchestrator.loop", "orchestrator"),
        ("orchestrator.engine.resolver", "resolver"),
        ("services.spec_registry", "registry"),
        ("handlers.registry", "handler"),
        ("handlers.builtin", "handler"),
        ("health.prober", "prober"),
        ("tools.run_stack", "cli"),
    ])
    def test_module_component(self, module, component):
        logger = importlib.import_module(module).logger
        assert logger.extra["component"] == component

    def test_registration_logged_as_registry(self, caplog):
        registry = ServiceSpecRegistry()

        with caplog.at_level(logging.DEBUG, logger="services.spec_registry"):
            registry.register(ServiceSpec(name="db"))

        assert caplog.records
        assert caplog.records[-1].extra["component"] == "registry"
