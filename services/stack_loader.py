# ============================================================================
# STACK LOADER
# ============================================================================
# EPOCH: 1 - DEPENDENCY-GATED STARTUP
# STATUS: Service - Stack file loading
# PURPOSE: Build a ServiceSpecRegistry from a YAML stack file
# CREATED: 18 OCT 2026
# ============================================================================
"""
Stack Loader

Loads stack definitions from YAML files:

    name: compose-demo
    defaults:
      retry: {max_attempts: 5, base_delay_seconds: 1, max_delay_seconds: 10}
    services:
      db:
        health_check: {type: tcp, host: localhost, port: 5432}
      app:
        depends_on: [db]
        start: {handler: command, params: {command: "flask run"}}
        health_check: {type: http, url: "http://localhost:5000/"}

Service order in the file is registration order. Every problem found
(bad fields, unknown probe types, unknown start handlers, dangling
dependencies, retry blocks whose backoff ceiling ends up below its base)
is collected and raised together as one StackConfigError, so a broken
file is fixed in one pass. Cycles are reported by the resolver, which
can name them.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.config import get_defaults
from core.errors import DuplicateServiceError, StackConfigError
from core.models import BackoffPolicy, RetryPolicy, ServiceSpec
from handlers import validate_start_action
from health.registry import ProbeRegistry, get_registry
from services.spec_registry import ServiceSpecRegistry

logger = logging.getLogger(__name__)


class StackDefaults(BaseModel):
    """Stack-wide overrides of the environment defaults."""
    model_config = ConfigDict(extra="forbid")

    retry: Optional[RetryPolicy] = None


class StackDocument(BaseModel):
    """Top-level shape of a stack file (services validated one by one)."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    defaults: StackDefaults = Field(default_factory=StackDefaults)
    services: Dict[str, Optional[Dict[str, Any]]] = Field(default_factory=dict)


@dataclass
class LoadedStack:
    """A validated stack: its registry plus stack-wide retry settings."""
    name: str
    source: str
    registry: ServiceSpecRegistry
    retry: Optional[RetryPolicy] = None

    def run_settings(
        self,
        max_attempts: Optional[int] = None,
        base_delay_seconds: Optional[float] = None,
        max_delay_seconds: Optional[float] = None,
    ) -> Tuple[int, BackoffPolicy]:
        """
        Run-wide attempts and backoff.

        Precedence (lowest first): environment defaults, the stack's
        defaults block, explicit arguments (CLI flags). Per-service
        retry blocks are applied later by the orchestrator.
        """
        defaults = get_defaults()
        explicit = RetryPolicy(
            max_attempts=max_attempts,
            base_delay_seconds=base_delay_seconds,
            max_delay_seconds=max_delay_seconds,
        )
        policy = explicit.merged_over(self.retry)
        return policy.resolve(
            defaults.retry.max_attempts,
            BackoffPolicy.from_defaults(defaults.backoff),
        )


class StackLoader:
    """Loads and validates stack files."""

    def __init__(self, probe_registry: Optional[ProbeRegistry] = None):
        """
        Initialize stack loader.

        Args:
            probe_registry: Registry used to validate probe types
                            (uses global, with stock probes, if None)
        """
        if probe_registry is None:
            import health.probes  # noqa: F401
            probe_registry = get_registry()
        self.probe_registry = probe_registry

    def load(self, path: Union[str, Path]) -> LoadedStack:
        """
        Load a stack from a YAML file.

        Raises:
            StackConfigError: file missing, unparseable or invalid
        """
        path = Path(path)
        if not path.exists():
            raise StackConfigError(str(path), ["file not found"])

        with open(path) as f:
            text = f.read()

        return self.load_string(text, source=str(path), default_name=path.stem)

    def load_string(
        self,
        text: str,
        source: str = "<string>",
        default_name: str = "stack",
    ) -> LoadedStack:
        """
        Load a stack from YAML text.

        Raises:
            StackConfigError: text unparseable or invalid
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise StackConfigError(source, [f"invalid YAML: {e}"]) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise StackConfigError(source, ["top level must be a mapping"])

        return self.load_dict(data, source=source, default_name=default_name)

    def load_dict(
        self,
        data: Dict[str, Any],
        source: str = "<dict>",
        default_name: str = "stack",
    ) -> LoadedStack:
        """
        Build a stack from an already-parsed document.

        Raises:
            StackConfigError: listing every problem found
        """
        try:
            document = StackDocument(**data)
        except ValidationError as e:
            raise StackConfigError(source, _format_errors(e)) from e

        errors: List[str] = []
        if not document.services:
            errors.append("stack defines no services")

        registry = ServiceSpecRegistry()
        for name, service_data in document.services.items():
            spec = self._build_spec(name, service_data or {}, errors)
            if spec is None:
                continue
            try:
                registry.register(spec)
            except DuplicateServiceError as e:
                errors.append(str(e))

        errors.extend(registry.validate())
        errors.extend(self._check_retry(registry, document.defaults.retry))

        if errors:
            raise StackConfigError(source, errors)

        stack = LoadedStack(
            name=document.name or default_name,
            source=source,
            registry=registry,
            retry=document.defaults.retry,
        )
        logger.info(
            f"Loaded stack '{stack.name}' from {source}: "
            f"{len(registry)} services ({', '.join(registry.names())})"
        )
        return stack

    def _build_spec(
        self,
        name: str,
        service_data: Dict[str, Any],
        errors: List[str],
    ) -> Optional[ServiceSpec]:
        """Validate one service entry, appending problems to `errors`."""
        if not isinstance(service_data, dict):
            errors.append(f"services.{name}: must be a mapping")
            return None

        declared = service_data.get("name")
        if declared is not None and declared != name:
            errors.append(f"services.{name}: name '{declared}' does not match key")
            return None

        try:
            spec = ServiceSpec(**{**service_data, "name": name})
        except ValidationError as e:
            errors.extend(_format_errors(e, prefix=f"services.{name}"))
            return None

        for problem in self.probe_registry.validate(spec.health_check):
            errors.append(f"services.{name}.health_check: {problem}")
        errors.extend(validate_start_action(spec))

        return spec

    def _check_retry(
        self,
        registry: ServiceSpecRegistry,
        stack_retry: Optional[RetryPolicy],
    ) -> List[str]:
        """Merge retry blocks over the environment defaults the way a run will."""
        defaults = get_defaults()
        env_attempts = defaults.retry.max_attempts
        env_backoff = BackoffPolicy.from_defaults(defaults.backoff)

        errors: List[str] = []
        if stack_retry is not None:
            try:
                stack_retry.resolve(env_attempts, env_backoff)
            except ValidationError as e:
                errors.extend(_format_errors(e, prefix="defaults.retry"))

        for spec in registry:
            if spec.retry is None:
                continue
            try:
                spec.retry.merged_over(stack_retry).resolve(env_attempts, env_backoff)
            except ValidationError as e:
                errors.extend(_format_errors(e, prefix=f"services.{spec.name}.retry"))
        return errors


def _format_errors(error: ValidationError, prefix: str = "") -> List[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        if prefix:
            location = f"{prefix}.{location}" if location else prefix
        messages.append(f"{location}: {item['msg']}")
    return messages


def load_stack(path: Union[str, Path]) -> LoadedStack:
    """Load a stack file with the global probe registry."""
    return StackLoader().load(path)


__all__ = [
    "StackDefaults",
    "StackDocument",
    "LoadedStack",
    "StackLoader",
    "load_stack",
]
