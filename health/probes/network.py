# ============================================================================
# NETWORK PROBES
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - TCP and HTTP readiness probes
# PURPOSE: Port-open and HTTP status checks for networked services
# CREATED: 18 OCT 2026
# ============================================================================
"""
Network Probes

- TcpProbe (tcp): a TCP connect to host:port succeeds
- HttpProbe (http): GET url returns an accepted status code

A refused or unreachable connection is PENDING, not FAILED: during
startup that is exactly what a not-yet-listening service looks like.
"""

import asyncio
import logging

import httpx

from core.models import HealthCheckDefinition
from health.core import ProbePlugin, ProbeOutcome
from health.registry import register_probe

logger = logging.getLogger(__name__)


@register_probe("tcp")
class TcpProbe(ProbePlugin):
    """TCP connect check (e.g., PostgreSQL on 5432 before it takes queries)."""

    required_fields = ("host", "port")

    async def check(self, definition: HealthCheckDefinition) -> ProbeOutcome:
        host, port = definition.host, definition.port
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except (ConnectionRefusedError, ConnectionResetError) as e:
            return ProbeOutcome.pending(
                message=f"Connection refused: {host}:{port}",
                error=str(e),
            )
        except OSError as e:
            return ProbeOutcome.pending(
                message=f"Cannot connect to {host}:{port}: {e}",
            )

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            # Peer reset during close; the connect already proved readiness
            pass

        return ProbeOutcome.ready(message=f"Port open: {host}:{port}")


@register_probe("http")
class HttpProbe(ProbePlugin):
    """
    HTTP GET check.

    Ready when the status code is in `expect_status`, or 200-399 when
    `expect_status` is not set. Redirects are not followed so a proxy
    answering 301 still counts as up.
    """

    required_fields = ("url",)

    def _accepts(self, definition: HealthCheckDefinition, status_code: int) -> bool:
        if definition.expect_status:
            return status_code in definition.expect_status
        return 200 <= status_code < 400

    async def check(self, definition: HealthCheckDefinition) -> ProbeOutcome:
        url = definition.url
        try:
            async with httpx.AsyncClient(
                timeout=definition.timeout_seconds,
                follow_redirects=False,
            ) as client:
                response = await client.get(url)

        except httpx.ConnectError as e:
            return ProbeOutcome.pending(
                message=f"Cannot connect to {url}: {e}",
                url=url,
            )

        except httpx.TimeoutException:
            outcome = ProbeOutcome.failed(message=f"HTTP probe timed out: {url}", url=url)
            outcome.timed_out = True
            return outcome

        if self._accepts(definition, response.status_code):
            return ProbeOutcome.ready(
                message=f"HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        return ProbeOutcome.pending(
            message=f"HTTP {response.status_code} not accepted",
            url=url,
            status_code=response.status_code,
        )


__all__ = [
    "TcpProbe",
    "HttpProbe",
]
