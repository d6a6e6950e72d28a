# ============================================================================
# PROBE REGISTRY
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Infrastructure - Probe plugin registration
# PURPOSE: Register and discover probe plugins by probe type
# CREATED: 18 OCT 2026
# ============================================================================
"""
Probe Registry

Maps `health_check.type` values to probe plugin instances.

Usage:
    # Decorator registration
    @register_probe("tcp")
    class TcpProbe(ProbePlugin):
        ...

    # Manual registration
    registry = get_registry()
    registry.register(TcpProbe())

    # Lookup
    plugin = registry.get_or_raise("tcp")
"""

import logging
from typing import Dict, List, Optional, Type

from core.errors import StackgateError
from core.models import HealthCheckDefinition
from health.core import ProbePlugin

logger = logging.getLogger(__name__)


class UnknownProbeTypeError(StackgateError):
    """Raised when a health check names an unregistered probe type."""
    def __init__(self, probe_type: str):
        self.probe_type = probe_type
        super().__init__(f"Unknown probe type: {probe_type}")


class ProbeRegistry:
    """Registry of probe plugins keyed by probe type."""

    def __init__(self):
        self._probes: Dict[str, ProbePlugin] = {}

    def register(self, probe: ProbePlugin) -> None:
        """
        Register a probe plugin instance.

        A later registration for the same type replaces the earlier one,
        which lets tests and embedders swap in their own implementation.
        """
        if probe.probe_type in self._probes:
            logger.warning(f"Overwriting probe type: {probe.probe_type}")

        self._probes[probe.probe_type] = probe
        logger.debug(f"Registered probe type: {probe.probe_type}")

    def register_class(self, probe_class: Type[ProbePlugin], **kwargs) -> ProbePlugin:
        """Instantiate and register a probe class."""
        instance = probe_class(**kwargs)
        self.register(instance)
        return instance

    def unregister(self, probe_type: str) -> bool:
        if probe_type in self._probes:
            del self._probes[probe_type]
            return True
        return False

    def get(self, probe_type: str) -> Optional[ProbePlugin]:
        return self._probes.get(probe_type)

    def get_or_raise(self, probe_type: str) -> ProbePlugin:
        probe = self._probes.get(probe_type)
        if probe is None:
            raise UnknownProbeTypeError(probe_type)
        return probe

    def types(self) -> List[str]:
        return sorted(self._probes)

    def validate(self, definition: HealthCheckDefinition) -> List[str]:
        """Validate a health check definition against its plugin."""
        probe = self._probes.get(definition.type)
        if probe is None:
            return [
                f"unknown probe type '{definition.type}' "
                f"(known: {', '.join(self.types())})"
            ]
        return probe.validate(definition)

    def clear(self) -> None:
        self._probes.clear()

    def __len__(self) -> int:
        return len(self._probes)

    def __contains__(self, probe_type: str) -> bool:
        return probe_type in self._probes


# ============================================================================
# GLOBAL REGISTRY & DECORATOR
# ============================================================================

_registry: Optional[ProbeRegistry] = None


def get_registry() -> ProbeRegistry:
    """Get the global probe registry."""
    global _registry
    if _registry is None:
        _registry = ProbeRegistry()
    return _registry


def register_probe(probe_type: str):
    """
    Decorator to register a probe class under a probe type.

    Example:
        @register_probe("tcp")
        class TcpProbe(ProbePlugin):
            async def check(self, definition) -> ProbeOutcome:
                ...
    """
    def decorator(cls: Type[ProbePlugin]) -> Type[ProbePlugin]:
        cls.probe_type = probe_type
        get_registry().register_class(cls)
        return cls

    return decorator


__all__ = [
    "ProbeRegistry",
    "UnknownProbeTypeError",
    "get_registry",
    "register_probe",
]
