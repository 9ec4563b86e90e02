"""
Tool-specific exceptions for the Context Engine.

These refine the shared error taxonomy with the name of the tool involved, so
dispatch failures (unknown tool, bad parameters) stay distinguishable from a
tool that ran and failed.
"""

from typing import Optional, Dict, Any, List

from ..utils.error_handling import (
    ContextEngineError,
    DuplicateNameError,
    ExecutionError,
    NotFoundError,
    ValidationError,
)


class ToolNotFoundError(NotFoundError):
    """Raised when a tool is not registered or is disabled."""

    def __init__(self, tool_name: str, available_tools: Optional[List[str]] = None):
        super().__init__(
            f"Tool not found: {tool_name}",
            details={"tool_name": tool_name, "available_tools": available_tools or []}
        )
        self.tool_name = tool_name
        self.available_tools = available_tools or []


class ToolRegistrationError(DuplicateNameError):
    """Raised when a tool name is already taken."""

    def __init__(self, tool_name: str):
        super().__init__(
            f"Tool with name '{tool_name}' is already registered",
            details={"tool_name": tool_name}
        )
        self.tool_name = tool_name


class ToolValidationError(ValidationError):
    """Raised when tool parameters do not match the tool's schema."""

    def __init__(
        self,
        message: str,
        tool_name: str,
        validation_errors: Optional[List[str]] = None,
    ):
        super().__init__(
            message,
            details={"tool_name": tool_name, "validation_errors": validation_errors or []}
        )
        self.tool_name = tool_name
        self.validation_errors = validation_errors or []


class ToolExecutionError(ExecutionError):
    """Raised when a tool ran and reported a failure."""

    def __init__(
        self,
        message: str,
        tool_name: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        details = {"tool_name": tool_name}
        details.update(context or {})
        super().__init__(message, details=details)
        self.tool_name = tool_name


def handle_tool_exception(error: Exception, tool_name: str) -> ContextEngineError:
    """Map an exception raised inside a tool onto the taxonomy.

    Taxonomy errors (including model failures) keep their type; ``ValueError``
    and ``TypeError`` become validation errors and anything else becomes a
    ``ToolExecutionError``.
    """
    if isinstance(error, ContextEngineError):
        return error

    if isinstance(error, (ValueError, TypeError)):
        return ToolValidationError(str(error), tool_name)

    return ToolExecutionError(
        f"Tool '{tool_name}' failed: {error}",
        tool_name,
        context={"original_error": type(error).__name__}
    )
