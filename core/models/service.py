# ============================================================================
# CLAUDE CONTEXT - SERVICE SPEC MODEL
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core model - Declarative service definition
# PURPOSE: Describe a startable, health-checkable unit and its dependencies
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: ServiceSpec, StartAction, HealthCheckDefinition
# DEPENDENCIES: pydantic
# ============================================================================
"""
Service Spec Models

A ServiceSpec is the TEMPLATE for one service in a stack:
- How to start it (StartAction)
- How to tell it is ready (HealthCheckDefinition)
- Which services must be ready first (depends_on, by name)
- Optional retry override

Dependencies are names, not object references. The resolver turns
them into plan indices once, so specs never point at each other.

The orchestrator treats start actions and health checks as opaque:
they name a registered handler / probe type, or carry a Python
callable directly when specs are built in code.
"""

from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models.policy import RetryPolicy


class StartAction(BaseModel):
    """
    How to start a service.

    Either `func` (a sync or async callable taking a StartContext) or
    a registered handler name plus params. `func` wins when both are set.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handler: str = Field(
        default="noop",
        max_length=64,
        description="Registered start handler name (e.g., 'command', 'noop')"
    )
    params: Dict[str, Any] = Field(default_factory=dict)
    func: Optional[Callable[..., Any]] = Field(default=None, exclude=True)
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Max time for the start action; falls back to run defaults"
    )

    def describe(self) -> str:
        if self.func is not None:
            return getattr(self.func, "__name__", repr(self.func))
        return self.handler


class HealthCheckDefinition(BaseModel):
    """
    How to tell a service is ready.

    `type` selects a registered probe plugin; which target fields are
    required depends on the type:
        tcp      -> host, port
        http     -> url (expect_status optional)
        sql      -> dsn
        command  -> command
        callable -> func
        always   -> nothing
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: str = Field(default="always", max_length=32)
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-attempt timeout; falls back to run defaults"
    )

    # Targets
    host: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    url: Optional[str] = None
    dsn: Optional[str] = None
    command: Optional[str] = None
    func: Optional[Callable[..., Any]] = Field(default=None, exclude=True)

    # HTTP only
    expect_status: Optional[List[int]] = Field(
        default=None,
        description="Accepted HTTP status codes (default 200-399)"
    )

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def target(self) -> Optional[str]:
        """Human-readable probe target for logs and status output."""
        if self.url:
            return self.url
        if self.host and self.port:
            return f"{self.host}:{self.port}"
        if self.command:
            return self.command
        if self.dsn:
            # Never echo credentials
            return self.dsn.split("@")[-1]
        if self.func is not None:
            return getattr(self.func, "__name__", "callable")
        return None


class ServiceSpec(BaseModel):
    """
    Declarative definition of one service.

    Immutable once built. The registry owns these; the orchestrator
    only reads them during a run.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_.\-]+$")
    start: StartAction = Field(default_factory=StartAction)
    health_check: HealthCheckDefinition = Field(default_factory=HealthCheckDefinition)
    depends_on: List[str] = Field(default_factory=list)
    retry: Optional[RetryPolicy] = None
    description: Optional[str] = None

    @field_validator("depends_on", mode="before")
    @classmethod
    def handle_string_input(cls, v):
        """Allow single string as shorthand for single-item list; drop repeats."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        seen = []
        for dep in v:
            if dep not in seen:
                seen.append(dep)
        return seen


__all__ = [
    "StartAction",
    "HealthCheckDefinition",
    "ServiceSpec",
]
