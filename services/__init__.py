# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Core - Service definition layer
# PURPOSE: Service spec registry and stack file loading
# CREATED: 18 OCT 2026
# ============================================================================
"""
Services Module

Usage:
    from services import ServiceSpecRegistry, StackLoader

    stack = StackLoader().load("stacks/compose_demo.yaml")
    for spec in stack.registry:
        print(spec.name, spec.depends_on)
"""

from services.spec_registry import ServiceSpecRegistry
from services.stack_loader import LoadedStack, StackLoader, load_stack

__all__ = [
    "ServiceSpecRegistry",
    "LoadedStack",
    "StackLoader",
    "load_stack",
]
