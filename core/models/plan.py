# ============================================================================
# CLAUDE CONTEXT - STARTUP PLAN MODEL
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core model - Resolved startup order
# PURPOSE: Immutable, index-based topological order of services
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: PlanEntry, StartupPlan
# DEPENDENCIES: dataclasses
# ============================================================================
"""
Startup Plan

The resolver's output. Each entry holds its spec plus the plan
positions of its dependencies, so the orchestrator never follows
names or object references at run time.

Every dependency index of an entry is strictly lower than the entry's
own index.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from core.errors import UnknownServiceError
from core.models.service import ServiceSpec


@dataclass(frozen=True)
class PlanEntry:
    """One service at its position in the plan."""
    index: int
    spec: ServiceSpec
    dependency_indices: Tuple[int, ...] = ()

    @property
    def name(self) -> str:
        return self.spec.name


@dataclass(frozen=True)
class StartupPlan:
    """
    Ordered, immutable startup sequence.

    `revision` records the registry revision the plan was computed
    from (None when resolved from a bare list of specs).
    """
    entries: Tuple[PlanEntry, ...]
    revision: Optional[int] = None

    def __post_init__(self):
        positions = {entry.name: entry.index for entry in self.entries}
        object.__setattr__(self, "_positions", positions)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> PlanEntry:
        return self.entries[index]

    def __contains__(self, name: str) -> bool:
        return name in self._positions

    def names(self) -> List[str]:
        """Service names in startup order."""
        return [entry.name for entry in self.entries]

    def position(self, name: str) -> int:
        """Plan index of a service."""
        if name not in self._positions:
            raise UnknownServiceError(name)
        return self._positions[name]

    def entry(self, name: str) -> PlanEntry:
        return self.entries[self.position(name)]

    def dependencies_of(self, name: str) -> List[str]:
        """Dependency names of a service, in declaration order."""
        return [self.entries[i].name for i in self.entry(name).dependency_indices]

    def dependents_of(self, name: str) -> List[str]:
        """Services that declare `name` as a direct dependency."""
        index = self.position(name)
        return [
            entry.name for entry in self.entries
            if index in entry.dependency_indices
        ]

    def to_dict(self) -> Dict[str, object]:
        return {
            "order": self.names(),
            "revision": self.revision,
            "dependencies": {
                entry.name: self.dependencies_of(entry.name)
                for entry in self.entries
            },
        }


__all__ = [
    "PlanEntry",
    "StartupPlan",
]
