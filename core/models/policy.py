# ============================================================================
# CLAUDE CONTEXT - RETRY & BACKOFF POLICY MODELS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core model - Probe retry configuration
# PURPOSE: Bounded attempts with capped exponential backoff
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: BackoffPolicy, RetryPolicy
# DEPENDENCIES: pydantic
# ============================================================================
"""
Retry and Backoff Policies

BackoffPolicy is the run-wide delay rule passed to Orchestrator.run().
RetryPolicy is the optional per-service override declared on a
ServiceSpec or in a stack file's defaults block; any field it leaves
unset falls through to the run-wide value.
"""

from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.config import BackoffDefaults


class BackoffPolicy(BaseModel):
    """
    Exponential backoff capped at a ceiling.

    The delay after failed attempt n (1-based) is
    min(base_delay_seconds * multiplier ** (n - 1), max_delay_seconds).
    With multiplier >= 1 the sequence is non-decreasing and never
    exceeds the ceiling.
    """
    model_config = ConfigDict(frozen=True)

    base_delay_seconds: float = Field(default=1.0, ge=0)
    max_delay_seconds: float = Field(default=30.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1.0)

    @model_validator(mode="after")
    def check_ceiling(self) -> "BackoffPolicy":
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError(
                f"max_delay_seconds ({self.max_delay_seconds}) must be >= "
                f"base_delay_seconds ({self.base_delay_seconds})"
            )
        return self

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt `attempt` (1-based)."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        delay = self.base_delay_seconds
        # Stop multiplying once capped so huge attempt numbers can't overflow
        for _ in range(attempt - 1):
            delay *= self.multiplier
            if delay >= self.max_delay_seconds:
                return self.max_delay_seconds
        return min(delay, self.max_delay_seconds)

    def delays(self, max_attempts: int) -> List[float]:
        """All delays a service can wait through with `max_attempts` probes."""
        return [self.delay_for(n) for n in range(1, max_attempts)]

    @classmethod
    def from_defaults(cls, defaults: BackoffDefaults) -> "BackoffPolicy":
        return cls(
            base_delay_seconds=defaults.base_delay_seconds,
            max_delay_seconds=defaults.max_delay_seconds,
            multiplier=defaults.multiplier,
        )


class RetryPolicy(BaseModel):
    """Per-service (or per-stack) override of attempts and backoff shape."""
    model_config = ConfigDict(frozen=True)

    max_attempts: Optional[int] = Field(default=None, ge=1, le=100)
    base_delay_seconds: Optional[float] = Field(default=None, ge=0)
    max_delay_seconds: Optional[float] = Field(default=None, ge=0)
    multiplier: Optional[float] = Field(default=None, ge=1.0)

    def resolve(
        self,
        max_attempts: int,
        backoff: BackoffPolicy,
    ) -> Tuple[int, BackoffPolicy]:
        """
        Overlay this policy on run-wide settings.

        Raises:
            ValueError: if the merged backoff has a ceiling below its base
        """
        merged = BackoffPolicy(
            base_delay_seconds=(
                self.base_delay_seconds
                if self.base_delay_seconds is not None
                else backoff.base_delay_seconds
            ),
            max_delay_seconds=(
                self.max_delay_seconds
                if self.max_delay_seconds is not None
                else backoff.max_delay_seconds
            ),
            multiplier=(
                self.multiplier if self.multiplier is not None else backoff.multiplier
            ),
        )
        attempts = self.max_attempts if self.max_attempts is not None else max_attempts
        return attempts, merged

    def merged_over(self, other: Optional["RetryPolicy"]) -> "RetryPolicy":
        """Return a policy where this policy's set fields win over `other`."""
        if other is None:
            return self
        values = other.model_dump()
        values.update(self.model_dump(exclude_none=True))
        return RetryPolicy(**values)


__all__ = [
    "BackoffPolicy",
    "RetryPolicy",
]
