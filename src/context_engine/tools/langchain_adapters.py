"""
LangChain tool adapters for Context Engine tools.

This module exposes registered tools as LangChain ``StructuredTool`` objects,
so agent frameworks built on LangChain can call them. Calls still go through
the registry, which keeps schema validation and statistics in one place.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Type

from langchain_core.tools import StructuredTool, ToolException
from pydantic import BaseModel, Field, create_model

from .registry import ToolRegistry
from .types import Tool, ToolContext, ParamType
from ..utils.error_handling import ContextEngineError
from ..utils.logging import get_logger


logger = get_logger(__name__)

_PYTHON_TYPES: Dict[ParamType, type] = {
    ParamType.STRING: str,
    ParamType.NUMBER: float,
    ParamType.INTEGER: int,
    ParamType.BOOLEAN: bool,
    ParamType.ARRAY: list,
    ParamType.OBJECT: dict,
}


def build_args_schema(tool: Tool) -> Type[BaseModel]:
    """Create a pydantic model mirroring a tool's parameter list."""
    fields: Dict[str, Any] = {}
    for spec in tool.input_schema:
        python_type = _PYTHON_TYPES[spec.type]
        if spec.required:
            fields[spec.name] = (python_type, Field(description=spec.description))
        else:
            fields[spec.name] = (Optional[python_type], Field(default=None, description=spec.description))

    model_name = "".join(part.capitalize() for part in tool.name.split("_")) + "Args"
    return create_model(model_name, **fields)


def _make_runner(
    registry: ToolRegistry,
    tool_name: str,
    context_factory: Callable[[], ToolContext],
) -> Callable[..., str]:
    def run_tool(**kwargs: Any) -> str:
        parameters = {key: value for key, value in kwargs.items() if value is not None}
        # pydantic hands integral numbers back as floats
        parameters = {
            key: int(value) if isinstance(value, float) and value.is_integer() else value
            for key, value in parameters.items()
        }
        try:
            result = registry.execute(tool_name, parameters, context_factory())
        except ContextEngineError as e:
            logger.warning(f"LangChain call to {tool_name} failed: {e.message}")
            raise ToolException(f"{e.error_type}: {e.message}") from e
        return json.dumps(result.output, default=str)

    return run_tool


def create_langchain_tool(
    registry: ToolRegistry,
    tool: Tool,
    context_factory: Callable[[], ToolContext],
) -> StructuredTool:
    """Wrap one registered tool as a LangChain ``StructuredTool``."""
    return StructuredTool.from_function(
        func=_make_runner(registry, tool.name, context_factory),
        name=tool.name,
        description=tool.description,
        args_schema=build_args_schema(tool),
        handle_tool_error=True,
    )


def create_langchain_tools(
    registry: ToolRegistry,
    context_factory: Callable[[], ToolContext],
    category: Optional[str] = None,
) -> List[StructuredTool]:
    """
    Create LangChain-compatible tools from the enabled tools of a registry.

    Args:
        registry: Registry holding the tools
        context_factory: Builds the execution context for each call
        category: Optional category filter

    Returns:
        List of LangChain StructuredTool objects
    """
    return [create_langchain_tool(registry, tool, context_factory) for tool in registry.list(category)]
