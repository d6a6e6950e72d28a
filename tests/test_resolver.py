# ============================================================================
# DEPENDENCY RESOLVER TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Tests - Spec registry and startup plan resolution
# PURPOSE: Verify ordering, tie-breaking, cycle naming and plan caching
# CREATED: 18 OCT 2026
# ============================================================================
"""
Dependency Resolver Tests

Covers:
1. ServiceSpecRegistry registration, lookup and dangling-dependency checks
2. Every service placed after all of its dependencies
3. Registration order breaks ties between independent services
4. Cycles (including self-dependency) raise CyclicDependencyError naming them
5. Unknown dependencies raise UnknownServiceError
6. Plan caching keyed on registry revision

Run with:
    pytest tests/test_resolver.py -v
"""

import pytest

from core.errors import CyclicDependencyError, DuplicateServiceError, UnknownServiceError
from core.models import ServiceSpec
from orchestrator.engine import DependencyResolver, GraphBuilder, TopologicalSorter, resolve
from services.spec_registry import ServiceSpecRegistry


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def make_spec():
    """Factory for ServiceSpecs with only a name and dependencies."""
    def _make(name: str, *depends_on: str) -> ServiceSpec:
        return ServiceSpec(name=name, depends_on=list(depends_on))
    return _make


@pytest.fixture
def compose_registry(make_spec):
    """db <- app <- proxy, registered in reverse order."""
    registry = ServiceSpecRegistry()
    registry.register(make_spec("proxy", "app"))
    registry.register(make_spec("app", "db"))
    registry.register(make_spec("db"))
    return registry


def assert_respects_dependencies(plan):
    for entry in plan:
        for dep_index in entry.dependency_indices:
            assert dep_index < entry.index, (
                f"{entry.name} placed before dependency {plan[dep_index].name}"
            )


# ============================================================================
# SPEC REGISTRY
# ============================================================================

class TestServiceSpecRegistry:
    """Test ServiceSpecRegistry."""

    def test_register_and_get(self, make_spec):
        registry = ServiceSpecRegistry()
        registry.register(make_spec("db"))

        assert "db" in registry
        assert registry.get("db").name == "db"
        assert len(registry) == 1

    def test_duplicate_name_rejected(self, make_spec):
        registry = ServiceSpecRegistry()
        registry.register(make_spec("db"))

        with pytest.raises(DuplicateServiceError) as exc_info:
            registry.register(make_spec("db"))
        assert exc_info.value.name == "db"
        assert len(registry) == 1

    def test_get_unknown_raises(self):
        with pytest.raises(UnknownServiceError):
            ServiceSpecRegistry().get("missing")

    def test_keeps_registration_order(self, make_spec):
        registry = ServiceSpecRegistry()
        for name in ("c", "a", "b"):
            registry.register(make_spec(name))

        assert registry.names() == ["c", "a", "b"]
        assert [s.name for s in registry] == ["c", "a", "b"]

    def test_revision_bumps_on_change(self, make_spec):
        registry = ServiceSpecRegistry()
        assert registry.revision == 0
        registry.register(make_spec("a"))
        registry.register(make_spec("b"))
        assert registry.revision == 2
        registry.unregister("a")
        assert registry.revision == 3
        assert registry.names() == ["b"]

    def test_validate_reports_every_dangling_dependency(self, make_spec):
        registry = ServiceSpecRegistry()
        registry.register(make_spec("app", "db", "cache"))
        registry.register(make_spec("worker", "queue"))

        errors = registry.validate()
        assert len(errors) == 3
        assert any("'db'" in e for e in errors)
        assert any("'cache'" in e for e in errors)
        assert any("'queue'" in e for e in errors)

    def test_validate_clean_registry(self, compose_registry):
        assert compose_registry.validate() == []


# ============================================================================
# ORDERING
# ============================================================================

class TestOrdering:
    """Test topological ordering of startup plans."""

    def test_chain_order(self, compose_registry):
        plan = resolve(compose_registry)

        assert plan.names() == ["db", "app", "proxy"]
        assert_respects_dependencies(plan)

    def test_dependency_indices(self, compose_registry):
        plan = resolve(compose_registry)

        assert plan.entry("db").dependency_indices == ()
        assert plan.entry("app").dependency_indices == (plan.position("db"),)
        assert plan.dependencies_of("proxy") == ["app"]
        assert plan.dependents_of("db") == ["app"]

    def test_independent_services_keep_registration_order(self, make_spec):
        specs = [make_spec("redis"), make_spec("db"), make_spec("queue")]

        plan = resolve(specs)
        assert plan.names() == ["redis", "db", "queue"]

    def test_tie_break_after_dependency_is_placed(self, make_spec):
        """
        Once 'base' is placed, 'early' and 'late' were registered before
        'aaa', so they go ahead of it.
        """
        specs = [
            make_spec("early", "base"),
            make_spec("late", "base"),
            make_spec("base"),
            make_spec("aaa"),
        ]

        plan = resolve(specs)
        assert plan.names() == ["base", "early", "late", "aaa"]
        assert_respects_dependencies(plan)

    def test_same_input_same_plan(self, make_spec):
        specs = [
            make_spec("web", "api", "cache"),
            make_spec("api", "db"),
            make_spec("cache"),
            make_spec("db"),
            make_spec("worker", "db", "cache"),
        ]

        first = resolve(specs).names()
        for _ in range(5):
            assert resolve(specs).names() == first

    def test_diamond(self, make_spec):
        specs = [
            make_spec("top", "left", "right"),
            make_spec("left", "bottom"),
            make_spec("right", "bottom"),
            make_spec("bottom"),
        ]

        plan = resolve(specs)
        assert plan.names()[0] == "bottom"
        assert plan.names()[-1] == "top"
        assert_respects_dependencies(plan)

    def test_empty(self):
        plan = resolve([])
        assert len(plan) == 0
        assert plan.names() == []

    def test_plan_to_dict(self, compose_registry):
        data = resolve(compose_registry).to_dict()
        assert data["order"] == ["db", "app", "proxy"]
        assert data["dependencies"]["app"] == ["db"]


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class TestResolutionErrors:
    """Test cycles and unknown dependencies."""

    def test_two_service_cycle(self, make_spec):
        with pytest.raises(CyclicDependencyError) as exc_info:
            resolve([make_spec("a", "b"), make_spec("b", "a")])

        cycle = exc_info.value.cycle
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b"}
        assert "->" in str(exc_info.value)

    def test_self_dependency(self, make_spec):
        with pytest.raises(CyclicDependencyError) as exc_info:
            resolve([make_spec("a", "a")])

        assert exc_info.value.cycle == ["a", "a"]

    def test_cycle_named_among_healthy_services(self, make_spec):
        specs = [
            make_spec("db"),
            make_spec("app", "db", "worker"),
            make_spec("worker", "scheduler"),
            make_spec("scheduler", "app"),
            make_spec("proxy", "app"),
        ]

        with pytest.raises(CyclicDependencyError) as exc_info:
            resolve(specs)

        cycle = exc_info.value.cycle
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"app", "worker", "scheduler"}
        assert "db" not in cycle
        assert "proxy" not in cycle

    def test_unknown_dependency(self, make_spec):
        with pytest.raises(UnknownServiceError) as exc_info:
            resolve([make_spec("app", "db")])

        assert exc_info.value.name == "db"
        assert exc_info.value.referenced_by == "app"

    def test_duplicate_in_spec_list(self, make_spec):
        with pytest.raises(DuplicateServiceError):
            resolve([make_spec("db"), make_spec("db")])


# ============================================================================
# GRAPH / SORTER UNITS
# ============================================================================

class TestGraphBuilder:
    """Test graph construction."""

    def test_edges(self, make_spec):
        graph = GraphBuilder().build([make_spec("db"), make_spec("app", "db")])

        assert graph.get_dependencies("app") == ["db"]
        assert graph.get_dependents("db") == ["app"]
        assert graph.get_dependents("app") == []
        assert len(graph) == 2

    def test_sorter_direct(self, make_spec):
        graph = GraphBuilder().build([make_spec("b", "a"), make_spec("a")])
        assert TopologicalSorter().sort(graph) == ["a", "b"]


# ============================================================================
# CACHING
# ============================================================================

class TestPlanCaching:
    """Test revision-keyed plan caching."""

    def test_unchanged_registry_reuses_plan(self, compose_registry):
        resolver = DependencyResolver()

        first = resolver.resolve(compose_registry)
        second = resolver.resolve(compose_registry)

        assert first is second
        assert first.revision == compose_registry.revision

    def test_changed_registry_recomputes(self, compose_registry, make_spec):
        resolver = DependencyResolver()
        first = resolver.resolve(compose_registry)

        compose_registry.register(make_spec("cache"))
        second = resolver.resolve(compose_registry)

        assert second is not first
        assert "cache" in second
        assert "cache" not in first

    def test_plain_list_not_cached(self, make_spec):
        resolver = DependencyResolver()
        specs = [make_spec("a")]

        assert resolver.resolve(specs) is not resolver.resolve(specs)
