# ============================================================================
# DATABASE PROBE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - PostgreSQL readiness probe
# PURPOSE: SELECT 1 against a DSN
# CREATED: 18 OCT 2026
# ============================================================================
"""
Database Probe

SqlProbe (sql): connects with psycopg and runs SELECT 1.

A port can be open while PostgreSQL is still replaying WAL or running
init scripts; SELECT 1 is the check the app itself depends on.
"""

import logging

from core.models import HealthCheckDefinition
from health.core import ProbePlugin, ProbeOutcome
from health.registry import register_probe

logger = logging.getLogger(__name__)


@register_probe("sql")
class SqlProbe(ProbePlugin):
    """PostgreSQL SELECT 1 check."""

    required_fields = ("dsn",)

    async def check(self, definition: HealthCheckDefinition) -> ProbeOutcome:
        try:
            import psycopg
        except ImportError:
            return ProbeOutcome.failed(message="psycopg not installed")

        target = definition.target()
        connect_kwargs = {}
        if definition.timeout_seconds:
            # libpq wants whole seconds, minimum 2
            connect_kwargs["connect_timeout"] = max(2, int(definition.timeout_seconds))

        try:
            async with await psycopg.AsyncConnection.connect(
                definition.dsn, autocommit=True, **connect_kwargs
            ) as conn:
                cursor = await conn.execute("SELECT 1 AS health_check")
                row = await cursor.fetchone()

        except psycopg.OperationalError as e:
            # Server not accepting connections yet
            return ProbeOutcome.pending(
                message=f"PostgreSQL not ready: {str(e).strip()}",
                target=target,
            )

        if row and row[0] == 1:
            return ProbeOutcome.ready(message="PostgreSQL answered SELECT 1", target=target)

        return ProbeOutcome.failed(
            message="PostgreSQL query returned unexpected result",
            target=target,
        )


__all__ = [
    "SqlProbe",
]
