# ============================================================================
# DEPENDENCY RESOLVER
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Dependency graph and topological ordering
# PURPOSE: Turn service specs into an index-based startup plan
# CREATED: 18 OCT 2026
# ============================================================================
"""
Dependency Resolver

Core logic for ordering services.

Features:
- Dependency graph construction from depends_on names
- Kahn's algorithm with registration-order tie breaking
- Cycle detection that names the cycle (self-loops included)
- Plan caching keyed on registry revision

The resolver is stateless apart from its cache - it takes specs and
returns a StartupPlan.
"""

import heapq
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Union

from core.errors import CyclicDependencyError, DuplicateServiceError, UnknownServiceError
from core.logging import ComponentType, get_logger
from core.models import PlanEntry, ServiceSpec, StartupPlan

if TYPE_CHECKING:
    from services.spec_registry import ServiceSpecRegistry

logger = get_logger(__name__, ComponentType.RESOLVER)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class DependencyGraph:
    """
    Dependency graph for a set of services.

    A -> B means "B depends on A" (A must be ready before B starts).
    `order` keeps registration order; it is the tie-breaker.
    """
    # Service -> services that depend on it
    forward_edges: Dict[str, List[str]] = field(default_factory=lambda: defaultdict(list))

    # Service -> services it depends on
    backward_edges: Dict[str, List[str]] = field(default_factory=lambda: defaultdict(list))

    # Registration order
    order: List[str] = field(default_factory=list)

    def add_node(self, name: str) -> None:
        if name not in self.backward_edges:
            self.order.append(name)
            self.backward_edges[name] = []

    def add_edge(self, from_node: str, to_node: str) -> None:
        """Add a dependency edge: to_node depends on from_node."""
        self.forward_edges[from_node].append(to_node)
        self.backward_edges[to_node].append(from_node)

    def get_dependencies(self, name: str) -> List[str]:
        """Services this service depends on."""
        return self.backward_edges.get(name, [])

    def get_dependents(self, name: str) -> List[str]:
        """Services that depend on this service."""
        return self.forward_edges.get(name, [])

    def __len__(self) -> int:
        return len(self.order)


# ============================================================================
# GRAPH BUILDER
# ============================================================================

class GraphBuilder:
    """Builds a dependency graph from service specs."""

    def build(self, specs: Sequence[ServiceSpec]) -> DependencyGraph:
        """
        Build dependency graph.

        Raises:
            DuplicateServiceError: two specs share a name
            UnknownServiceError: a dependency names no listed service
        """
        graph = DependencyGraph()
        names = {spec.name for spec in specs}

        for spec in specs:
            if spec.name in graph.backward_edges:
                raise DuplicateServiceError(spec.name)
            graph.add_node(spec.name)

        for spec in specs:
            for dep in spec.depends_on:
                if dep not in names:
                    raise UnknownServiceError(dep, referenced_by=spec.name)
                graph.add_edge(dep, spec.name)

        return graph


# ============================================================================
# TOPOLOGICAL SORT / CYCLE DETECTION
# ============================================================================

class TopologicalSorter:
    """Orders a graph with Kahn's algorithm."""

    def sort(self, graph: DependencyGraph) -> List[str]:
        """
        Topologically sort the graph.

        Among services whose dependencies are all placed, the one
        registered first goes next, so the same input always yields
        the same plan.

        Raises:
            CyclicDependencyError: naming one cycle in the graph
        """
        rank = {name: i for i, name in enumerate(graph.order)}
        in_degree = {name: len(graph.get_dependencies(name)) for name in graph.order}

        ready = [rank[name] for name, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)
        sorted_nodes: List[str] = []

        while ready:
            name = graph.order[heapq.heappop(ready)]
            sorted_nodes.append(name)

            for dependent in graph.get_dependents(name):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, rank[dependent])

        if len(sorted_nodes) != len(graph):
            placed = set(sorted_nodes)
            remaining = [n for n in graph.order if n not in placed]
            raise CyclicDependencyError(self.find_cycle(graph, remaining))

        return sorted_nodes

    def find_cycle(self, graph: DependencyGraph, remaining: List[str]) -> List[str]:
        """
        Walk dependency edges among unplaced services until one repeats.

        Every unplaced service still has an unplaced dependency, so the
        walk can't dead-end and must close a loop.
        """
        unplaced = set(remaining)
        path: List[str] = []
        seen: Dict[str, int] = {}
        node = remaining[0]

        while node not in seen:
            seen[node] = len(path)
            path.append(node)
            node = next(d for d in graph.get_dependencies(node) if d in unplaced)

        return path[seen[node]:] + [node]


# ============================================================================
# RESOLVER
# ============================================================================

class DependencyResolver:
    """
    Resolves service specs into a StartupPlan.

    When given a registry, the plan is cached against the registry's
    revision and recomputed only after the spec set changes.
    """

    def __init__(self):
        self.builder = GraphBuilder()
        self.sorter = TopologicalSorter()
        self._cached_plan: Optional[StartupPlan] = None
        self._cached_registry_id: Optional[int] = None

    def resolve(self, specs: Union[Iterable[ServiceSpec], "ServiceSpecRegistry"]) -> StartupPlan:
        """
        Resolve specs into a startup plan.

        Args:
            specs: ServiceSpecs in registration order, or a registry

        Raises:
            CyclicDependencyError: dependencies form a cycle
            UnknownServiceError: a dependency is not among the specs
        """
        revision = getattr(specs, "revision", None)
        if revision is not None:
            if (
                self._cached_plan is not None
                and self._cached_registry_id == id(specs)
                and self._cached_plan.revision == revision
            ):
                return self._cached_plan
            spec_list = list(specs.all())
        else:
            spec_list = list(specs)

        graph = self.builder.build(spec_list)
        ordered = self.sorter.sort(graph)

        by_name = {spec.name: spec for spec in spec_list}
        position = {name: i for i, name in enumerate(ordered)}
        entries = tuple(
            PlanEntry(
                index=i,
                spec=by_name[name],
                dependency_indices=tuple(position[d] for d in by_name[name].depends_on),
            )
            for i, name in enumerate(ordered)
        )
        plan = StartupPlan(entries=entries, revision=revision)

        logger.debug(f"Resolved startup plan: {' -> '.join(ordered)}")

        if revision is not None:
            self._cached_plan = plan
            self._cached_registry_id = id(specs)
        return plan


def resolve(specs) -> StartupPlan:
    """Resolve specs (or a registry) into a StartupPlan without caching."""
    return DependencyResolver().resolve(specs)


__all__ = [
    "DependencyGraph",
    "GraphBuilder",
    "TopologicalSorter",
    "DependencyResolver",
    "resolve",
]
