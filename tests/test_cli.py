# ============================================================================
# CLI TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Tests - stackgate command line
# PURPOSE: Verify plan output, exit codes and JSON results
# CREATED: 18 OCT 2026
# ============================================================================
"""
CLI Tests

Covers:
1. --plan-only prints the startup order without starting anything
2. Exit 0 when every service is READY, 1 when any is not
3. Exit 2 for invalid stack files and dependency cycles
4. --json result output
5. --check one-shot probe sweep

Run with:
    pytest tests/test_cli.py -v
"""

import json
import sys

import pytest

from core.config import reset_defaults
from tools.run_stack import EXIT_CONFIG, EXIT_NOT_READY, EXIT_OK, main


@pytest.fixture(autouse=True)
def fresh_defaults():
    reset_defaults()
    yield
    reset_defaults()


@pytest.fixture
def write_stack(tmp_path):
    def _write(text: str, name: str = "stack.yaml") -> str:
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write


READY_STACK = """
name: local
services:
  web: {depends_on: [db]}
  db: {}
"""


def exit_command(code: int) -> str:
    return f'"{sys.executable}" -c "import sys; sys.exit({code})"'


class TestPlanOnly:

    def test_prints_order(self, write_stack, capsys):
        code = main([write_stack(READY_STACK), "--plan-only"])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Startup plan for 'local'" in out
        assert out.index("db") < out.index("web")

    def test_json_plan(self, write_stack, capsys):
        code = main([write_stack(READY_STACK), "--plan-only", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert code == EXIT_OK
        assert data["order"] == ["db", "web"]
        assert data["dependencies"]["web"] == ["db"]


class TestExitCodes:

    def test_all_ready(self, write_stack, capsys):
        code = main([write_stack(READY_STACK), "--log-level", "WARNING"])

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "2/2 ready" in out

    def test_not_ready(self, write_stack, capsys):
        stack = write_stack(f"""
services:
  db:
    health_check: {{type: command, command: '{exit_command(1)}'}}
  web: {{depends_on: [db]}}
""")

        code = main([stack, "--max-attempts", "2", "--base-delay", "0", "--max-delay", "0", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert code == EXIT_NOT_READY
        assert data["services"]["db"]["status"] == "failed"
        assert data["services"]["db"]["attempts"] == 2
        assert data["services"]["web"]["status"] == "failed"
        assert data["services"]["web"]["start_invoked"] is False

    def test_invalid_stack(self, write_stack, capsys):
        stack = write_stack("services:\n  db: {health_check: {type: redis}}\n")

        code = main([stack])

        assert code == EXIT_CONFIG
        assert "unknown probe type 'redis'" in capsys.readouterr().err

    def test_cycle(self, write_stack, capsys):
        stack = write_stack("services:\n  a: {depends_on: [b]}\n  b: {depends_on: [a]}\n")

        code = main([stack])

        assert code == EXIT_CONFIG
        assert "Cyclic dependency" in capsys.readouterr().err

    def test_retry_override_conflicts_with_flags(self, write_stack, capsys, tmp_path):
        marker = tmp_path / "started"
        stack = write_stack(f"""
services:
  db:
    start: {{handler: command, params: {{command: 'touch {marker}'}}}}
  app:
    retry: {{base_delay_seconds: 5}}
""")

        code = main([stack, "--max-delay", "2"])

        assert code == EXIT_CONFIG
        assert "app.retry" in capsys.readouterr().err
        assert not marker.exists()

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.yaml")]) == EXIT_CONFIG


class TestCheck:

    def test_check_reports_without_starting(self, write_stack, capsys, tmp_path):
        marker = tmp_path / "started"
        stack = write_stack(f"""
services:
  db:
    start: {{handler: command, params: {{command: 'touch {marker}'}}}}
    health_check: {{type: command, command: '{exit_command(0)}'}}
  web:
    depends_on: [db]
    health_check: {{type: command, command: '{exit_command(1)}'}}
""")

        code = main([stack, "--check", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert code == EXIT_NOT_READY
        assert data["db"]["status"] == "ready"
        assert data["web"]["status"] == "pending"
        assert not marker.exists()
