# ============================================================================
# SERVICE SPEC REGISTRY
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Service - Declarative service definitions
# PURPOSE: Hold ServiceSpecs by name, in registration order
# CREATED: 18 OCT 2026
# ============================================================================
"""
Service Spec Registry

Owns the ServiceSpec definitions of one stack. Read-only while a run
is in progress; the orchestrator never mutates it.

Registration order matters: the resolver uses it to break ties, so
the same stack always starts in the same order.

`revision` increments on every mutation so a cached StartupPlan can
tell whether it is stale.
"""

from typing import Dict, Iterator, List

from core.errors import DuplicateServiceError, UnknownServiceError
from core.logging import ComponentType, get_logger
from core.models import ServiceSpec

logger = get_logger(__name__, ComponentType.REGISTRY)


class ServiceSpecRegistry:
    """In-memory registry of service specs."""

    def __init__(self):
        # dicts keep insertion order, which is registration order
        self._specs: Dict[str, ServiceSpec] = {}
        self._revision = 0

    def register(self, spec: ServiceSpec) -> None:
        """
        Register a service spec.

        Raises:
            DuplicateServiceError: if the name is already registered
        """
        if spec.name in self._specs:
            raise DuplicateServiceError(spec.name)

        self._specs[spec.name] = spec
        self._revision += 1
        logger.debug(
            f"Registered service: {spec.name} "
            f"(depends_on={spec.depends_on}, probe={spec.health_check.type})"
        )

    def get(self, name: str) -> ServiceSpec:
        """
        Get a spec by name.

        Raises:
            UnknownServiceError: if no such service is registered
        """
        spec = self._specs.get(name)
        if spec is None:
            raise UnknownServiceError(name)
        return spec

    def all(self) -> List[ServiceSpec]:
        """All specs in registration order."""
        return list(self._specs.values())

    def names(self) -> List[str]:
        return list(self._specs)

    def unregister(self, name: str) -> ServiceSpec:
        """
        Remove a spec.

        Raises:
            UnknownServiceError: if no such service is registered
        """
        spec = self.get(name)
        del self._specs[name]
        self._revision += 1
        return spec

    def validate(self) -> List[str]:
        """
        Check that every dependency resolves to a registered service.

        Returns every dangling reference at once (empty if valid).
        Cycles are left to the resolver, which can name them.
        """
        errors = []
        for spec in self._specs.values():
            for dep in spec.depends_on:
                if dep not in self._specs:
                    errors.append(f"Service '{spec.name}' depends on unknown service '{dep}'")
        return errors

    def clear(self) -> None:
        self._specs.clear()
        self._revision += 1

    @property
    def revision(self) -> int:
        """Incremented on every change to the spec set."""
        return self._revision

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ServiceSpec]:
        return iter(self.all())


__all__ = [
    "ServiceSpecRegistry",
]
