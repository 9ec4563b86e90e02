"""
Tool type definitions and schemas for the Context Engine.

This module defines the core types used throughout the tool system: the typed
parameter schema validated at dispatch time, the tool descriptor listed to
clients, and the execution context and result records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional, TYPE_CHECKING
import time

if TYPE_CHECKING:
    from ..core.model_gateway import ModelGateway, Deadline
    from .registry import ToolRegistry


class ParamType(Enum):
    """JSON Schema types a tool parameter can declare."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ToolCategory(str, Enum):
    """Categories of the built-in catalogue."""
    CALCULATION = "calculation"
    CODE = "code"
    DATA = "data"
    WORKFLOW = "workflow"


def _matches_type(value: Any, param_type: ParamType) -> bool:
    # bool is an int subclass; keep it out of the numeric types
    if param_type == ParamType.STRING:
        return isinstance(value, str)
    if param_type == ParamType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if param_type == ParamType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if param_type == ParamType.BOOLEAN:
        return isinstance(value, bool)
    if param_type == ParamType.ARRAY:
        return isinstance(value, (list, tuple))
    if param_type == ParamType.OBJECT:
        return isinstance(value, dict)
    return False


@dataclass
class ParameterSpec:
    """Schema of a single tool parameter."""
    name: str
    type: ParamType = ParamType.STRING
    required: bool = True
    description: str = ""

    def validate(self, parameters: Dict[str, Any]) -> Optional[str]:
        """Return an error message if ``parameters`` violates this spec."""
        if self.name not in parameters or parameters[self.name] is None:
            if self.required:
                return f"Missing required field: {self.name}"
            return None

        value = parameters[self.name]
        if not _matches_type(value, self.type):
            return f"Field '{self.name}' must be of type {self.type.value}, got {type(value).__name__}"
        return None

    def to_json_schema(self) -> Dict[str, Any]:
        schema = {"type": self.type.value}
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass
class Tool:
    """Descriptor of a registered tool, as listed to clients."""
    name: str
    description: str
    category: str
    input_schema: List[ParameterSpec] = field(default_factory=list)
    popularity: float = 0.5
    enabled: bool = True

    def validate_parameters(self, parameters: Dict[str, Any]) -> List[str]:
        """Check parameters against the schema. Unknown parameters are tolerated."""
        errors = []
        for spec in self.input_schema:
            error = spec.validate(parameters)
            if error:
                errors.append(error)
        return errors

    def to_json_schema(self) -> Dict[str, Any]:
        """Render the parameter list as a JSON Schema object."""
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {spec.name: spec.to_json_schema() for spec in self.input_schema},
        }
        required = [spec.name for spec in self.input_schema if spec.required]
        if required:
            schema["required"] = required
        return schema

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "inputSchema": self.to_json_schema(),
            "popularity": round(self.popularity, 4),
            "enabled": self.enabled,
        }


@dataclass
class ToolContext:
    """Context information provided to tools during execution."""
    tenant_id: str
    gateway: Optional["ModelGateway"] = None
    registry: Optional["ToolRegistry"] = None
    deadline: Optional["Deadline"] = None
    analysis_model: Optional[str] = None
    call_depth: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def child(self) -> "ToolContext":
        """Context for a tool invoked by another tool."""
        return ToolContext(
            tenant_id=self.tenant_id,
            gateway=self.gateway,
            registry=self.registry,
            deadline=self.deadline,
            analysis_model=self.analysis_model,
            call_depth=self.call_depth + 1,
            metadata=dict(self.metadata),
        )


@dataclass
class ToolResult:
    """Result of a successful tool execution."""
    tool_name: str
    output: Any
    message: str = "Operation completed successfully"
    success: bool = True
    execution_time_ms: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "tool": self.tool_name,
            "output": self.output,
            "message": self.message,
            "execution_time_ms": self.execution_time_ms,
            "metadata": self.metadata,
        }

    @classmethod
    def success_result(
        cls,
        tool_name: str,
        output: Any,
        message: str = "Operation completed successfully",
        **kwargs
    ) -> 'ToolResult':
        """Create a successful result."""
        return cls(tool_name=tool_name, output=output, message=message, success=True, **kwargs)


@dataclass
class ToolStats:
    """Execution statistics of one registered tool."""
    registered_at: float = field(default_factory=time.time)
    usage_count: int = 0
    error_count: int = 0
    total_time_ms: float = 0.0
    last_used: Optional[float] = None

    @property
    def success_rate(self) -> float:
        if self.usage_count == 0:
            return 1.0
        return (self.usage_count - self.error_count) / self.usage_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "usage_count": self.usage_count,
            "error_count": self.error_count,
            "success_rate": round(self.success_rate, 4),
            "average_time_ms": round(self.total_time_ms / self.usage_count, 3) if self.usage_count else None,
            "last_used": self.last_used,
        }
