"""
Tool registry and dispatcher for the Context Engine.

This module provides the catalogue of named tools and executes one by name.
The table is guarded by a single lock; tool execution itself runs outside it.
"""

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Any

from .base import BaseTool
from .types import Tool, ToolContext, ToolResult, ToolStats
from .exceptions import ToolNotFoundError, ToolRegistrationError
from ..utils.error_handling import ContextEngineError, ValidationError
from ..utils.logging import get_logger


@dataclass
class ToolRegistration:
    """Information about a registered tool."""
    tool: Tool
    capability: BaseTool
    stats: ToolStats = field(default_factory=ToolStats)


def _popularity(stats: ToolStats) -> float:
    """Blend of reliability and usage; 0.5 for a tool that was never run."""
    usage_weight = 1.0 - 1.0 / (1.0 + stats.usage_count / 5.0)
    return 0.5 * stats.success_rate + 0.5 * usage_weight


class ToolRegistry:
    """
    Registry for managing and dispatching tools.

    Registration order is preserved for listings. Disabled tools stay
    registered but are invisible to ``list`` and ``execute``.
    """

    def __init__(self):
        """Initialize the tool registry."""
        self.logger = get_logger(__name__)
        self._tools: Dict[str, ToolRegistration] = {}
        self._lock = threading.Lock()

    def register(self, tool: Tool, capability: BaseTool) -> None:
        """Register a tool descriptor together with the capability that runs it.

        Raises:
            ToolRegistrationError: If the name is already taken (registry unchanged)
            ValidationError: If the descriptor has no name
        """
        if not tool.name or not tool.name.strip():
            raise ValidationError("Tool name is required", details={"field": "name"})

        with self._lock:
            if tool.name in self._tools:
                raise ToolRegistrationError(tool.name)
            self._tools[tool.name] = ToolRegistration(tool=replace(tool), capability=capability)

        self.logger.info(f"Registered tool: {tool.name} ({tool.category})")

    def register_tool(self, capability: BaseTool) -> Tool:
        """Register a capability under the descriptor it declares."""
        tool = capability.get_schema()
        self.register(tool, capability)
        return tool

    def unregister(self, name: str) -> bool:
        """Remove a tool. Returns False if it was not registered."""
        with self._lock:
            if name not in self._tools:
                return False
            del self._tools[name]

        self.logger.info(f"Unregistered tool: {name}")
        return True

    def enable(self, name: str) -> None:
        self._set_enabled(name, True)

    def disable(self, name: str) -> None:
        self._set_enabled(name, False)

    def _set_enabled(self, name: str, enabled: bool) -> None:
        with self._lock:
            registration = self._tools.get(name)
            if registration is None:
                raise ToolNotFoundError(name, list(self._tools.keys()))
            registration.tool.enabled = enabled

        self.logger.info(f"{'Enabled' if enabled else 'Disabled'} tool: {name}")

    def _snapshot(self, registration: ToolRegistration) -> Tool:
        return replace(
            registration.tool,
            input_schema=list(registration.tool.input_schema),
            popularity=_popularity(registration.stats),
        )

    def get(self, name: str) -> Optional[Tool]:
        """Descriptor of a registered tool (enabled or not), or None."""
        with self._lock:
            registration = self._tools.get(name)
            return self._snapshot(registration) if registration else None

    def list(self, category: Optional[str] = None) -> List[Tool]:
        """Enabled tools in registration order, optionally for one category."""
        with self._lock:
            return [
                self._snapshot(registration)
                for registration in self._tools.values()
                if registration.tool.enabled and (category is None or registration.tool.category == category)
            ]

    def list_names(self) -> List[str]:
        with self._lock:
            return [name for name, registration in self._tools.items() if registration.tool.enabled]

    def categories(self) -> List[str]:
        with self._lock:
            seen: List[str] = []
            for registration in self._tools.values():
                if registration.tool.enabled and registration.tool.category not in seen:
                    seen.append(registration.tool.category)
            return seen

    @property
    def size(self) -> int:
        """Number of enabled tools, i.e. the length of an unfiltered ``list()``."""
        with self._lock:
            return sum(1 for registration in self._tools.values() if registration.tool.enabled)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._tools

    def execute(self, name: str, parameters: Optional[Dict[str, Any]], context: ToolContext) -> ToolResult:
        """Execute a tool by name.

        Raises:
            ToolNotFoundError: If the tool is absent or disabled
            ToolValidationError: If the parameters violate the tool's schema
            ToolExecutionError: If the tool ran and failed
            ExternalServiceError: If a model call made by the tool failed
        """
        with self._lock:
            registration = self._tools.get(name)
            if registration is None or not registration.tool.enabled:
                available = [n for n, r in self._tools.items() if r.tool.enabled]
                raise ToolNotFoundError(name, available)
            capability = registration.capability

        self.logger.debug(f"Executing tool {name} for tenant {context.tenant_id}")
        start_time = time.perf_counter()
        failed = False

        try:
            return capability.safe_run(parameters, context)
        except ContextEngineError:
            failed = True
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self._record_execution(name, elapsed_ms, failed)

    def _record_execution(self, name: str, elapsed_ms: float, failed: bool) -> None:
        with self._lock:
            registration = self._tools.get(name)
            if registration is None:
                return
            stats = registration.stats
            stats.usage_count += 1
            stats.total_time_ms += elapsed_ms
            stats.last_used = time.time()
            if failed:
                stats.error_count += 1

    def get_stats(self, name: Optional[str] = None) -> Dict[str, Any]:
        """Execution statistics for one tool, or for the whole registry."""
        with self._lock:
            if name is not None:
                registration = self._tools.get(name)
                if registration is None:
                    raise ToolNotFoundError(name, list(self._tools.keys()))
                return registration.stats.to_dict()

            return {
                "total_tools": len(self._tools),
                "enabled_tools": sum(1 for r in self._tools.values() if r.tool.enabled),
                "total_executions": sum(r.stats.usage_count for r in self._tools.values()),
                "total_errors": sum(r.stats.error_count for r in self._tools.values()),
                "tools": {n: r.stats.to_dict() for n, r in self._tools.items()},
            }
