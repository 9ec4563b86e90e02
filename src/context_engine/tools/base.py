"""
Abstract base class for all tools in the Context Engine.

Every tool is a capability object implementing ``run(parameters, context)``.
The registry keeps a name -> capability table and dispatches through
``safe_run``, which validates parameters and maps failures onto the error
taxonomy.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .types import Tool, ToolContext, ToolResult, ParameterSpec
from .exceptions import ToolExecutionError, ToolValidationError, handle_tool_exception
from ..utils.logging import get_logger


class BaseTool(ABC):
    """
    Abstract base class for all tools.

    Subclasses describe themselves through ``get_schema`` and do their work in
    ``run``. ``run`` returns the tool output; failures are raised, never
    encoded in the output.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize the base tool.

        Args:
            config: Optional configuration dictionary for the tool
        """
        self.config = config or {}
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def get_schema(self) -> Tool:
        """Get the tool descriptor.

        Returns:
            Tool describing name, category and parameters
        """

    @abstractmethod
    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Any:
        """Execute the tool.

        Args:
            parameters: Parameters already validated against the schema
            context: Execution context with tenant, model gateway and registry

        Returns:
            Tool output (JSON-like)

        Raises:
            ToolExecutionError: If the tool fails
            ExternalServiceError: If a model call made by the tool fails
        """

    def get_name(self) -> str:
        return self.get_schema().name

    def get_description(self) -> str:
        return self.get_schema().description

    def get_category(self) -> str:
        return self.get_schema().category

    def get_parameters(self) -> List[ParameterSpec]:
        return self.get_schema().input_schema

    def validate_parameters(self, parameters: Any) -> Dict[str, Any]:
        """Validate parameters against the tool's input schema.

        Raises:
            ToolValidationError: If validation fails
        """
        if parameters is None:
            parameters = {}

        if not isinstance(parameters, dict):
            raise ToolValidationError(
                f"Parameters for tool '{self.get_name()}' must be an object, got {type(parameters).__name__}",
                self.get_name()
            )

        errors = self.get_schema().validate_parameters(parameters)
        if errors:
            raise ToolValidationError(
                f"Input validation failed for tool '{self.get_name()}': {'; '.join(errors)}",
                self.get_name(),
                validation_errors=errors
            )

        return parameters

    def safe_run(self, parameters: Any, context: ToolContext) -> ToolResult:
        """Validate, execute and time the tool.

        Returns:
            ToolResult wrapping the tool output

        Raises:
            ToolValidationError, ToolExecutionError or ExternalServiceError
        """
        name = self.get_name()
        validated = self.validate_parameters(parameters)
        start_time = time.perf_counter()

        try:
            output = self.run(validated, context)
        except Exception as e:
            execution_time = (time.perf_counter() - start_time) * 1000
            error = handle_tool_exception(e, name)
            self.logger.error(f"Tool '{name}' failed after {execution_time:.1f}ms: {error.message}")
            if error is e:
                raise
            raise error from e

        execution_time = (time.perf_counter() - start_time) * 1000
        self.logger.info(f"Tool '{name}' executed successfully in {execution_time:.1f}ms")

        return ToolResult.success_result(name, output, execution_time_ms=execution_time)

    def _require_string(self, parameters: Dict[str, Any], key: str) -> str:
        """Fetch a required string parameter that must not be blank."""
        value = parameters.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ToolExecutionError(f"No {key} provided", self.get_name())
        return value

    def _generate(self, context: ToolContext, prompt: str, model: Optional[str] = None) -> str:
        """Ask the model collaborator through the gateway on the context."""
        if context.gateway is None:
            raise ToolExecutionError(
                f"Tool '{self.get_name()}' needs a model backend but none is configured",
                self.get_name()
            )
        return context.gateway.generate(prompt, model=model, deadline=context.deadline)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.get_name()}')"

    def __repr__(self) -> str:
        schema = self.get_schema()
        return (
            f"{self.__class__.__name__}("
            f"name='{schema.name}', "
            f"category='{schema.category}', "
            f"parameters={[p.name for p in schema.input_schema]}"
            f")"
        )
