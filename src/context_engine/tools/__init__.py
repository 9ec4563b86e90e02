"""
Tools package for the Context Engine.

This package contains the tool system foundation and the built-in catalogue.

Usage:
    from context_engine.tools import ToolRegistry, ToolContext, register_builtin_tools

    registry = ToolRegistry()
    register_builtin_tools(registry)

    result = registry.execute("calculator", {"expression": "15% of 1200"}, ToolContext(tenant_id="acme"))
"""

from typing import Iterable, List, Optional

from .base import BaseTool
from .registry import ToolRegistry, ToolRegistration
from .types import (
    Tool,
    ToolContext,
    ToolResult,
    ToolStats,
    ParameterSpec,
    ParamType,
    ToolCategory,
)
from .exceptions import (
    ToolValidationError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistrationError,
    handle_tool_exception,
)
from .calculation import CalculatorTool, PercentageCalculatorTool
from .code_tools import CodeAnalyzerTool, DependencyDetectorTool
from .data_tools import DataTransformerTool, DataValidatorTool
from .workflow_tools import WorkflowCreatorTool, WorkflowExecutorTool
from ..utils.logging import get_logger


BUILTIN_TOOL_CLASSES = [
    CalculatorTool,
    PercentageCalculatorTool,
    CodeAnalyzerTool,
    DependencyDetectorTool,
    DataTransformerTool,
    DataValidatorTool,
    WorkflowCreatorTool,
    WorkflowExecutorTool,
]


def create_builtin_tools() -> List[BaseTool]:
    """Instantiate the built-in catalogue in listing order."""
    return [tool_class() for tool_class in BUILTIN_TOOL_CLASSES]


def register_builtin_tools(registry: ToolRegistry, disabled: Optional[Iterable[str]] = None) -> List[Tool]:
    """Register every built-in tool, then disable the names in ``disabled``.

    Returns:
        Descriptors of the registered tools
    """
    logger = get_logger(__name__)
    registered = [registry.register_tool(tool) for tool in create_builtin_tools()]

    for name in disabled or []:
        if name in registry:
            registry.disable(name)
        else:
            logger.warning(f"Cannot disable unknown tool: {name}")

    return registered


__all__ = [
    # Base classes
    "BaseTool",

    # Registry
    "ToolRegistry",
    "ToolRegistration",

    # Core types
    "Tool",
    "ToolContext",
    "ToolResult",
    "ToolStats",
    "ParameterSpec",
    "ParamType",
    "ToolCategory",

    # Exceptions
    "ToolValidationError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolRegistrationError",
    "handle_tool_exception",

    # Built-in tools
    "CalculatorTool",
    "PercentageCalculatorTool",
    "CodeAnalyzerTool",
    "DependencyDetectorTool",
    "DataTransformerTool",
    "DataValidatorTool",
    "WorkflowCreatorTool",
    "WorkflowExecutorTool",
    "BUILTIN_TOOL_CLASSES",
    "create_builtin_tools",
    "register_builtin_tools",
]
