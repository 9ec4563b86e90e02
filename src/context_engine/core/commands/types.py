"""
Shared types for command processing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ...utils.error_handling import ContextEngineError


class IntentAction(Enum):
    """Backend operations a command can be routed to."""

    STORE_CONTEXT = "store_context"
    RETRIEVE_CONTEXT = "retrieve_context"
    LIST_TOOLS = "list_tools"
    EXECUTE_TOOL = "execute_tool"
    SEARCH = "search"
    WORKFLOW = "workflow"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "IntentAction":
        """Map free-form action names onto the enum, defaulting to OTHER."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass
class Intent:
    """Classified action plus extracted parameters."""

    action: IntentAction
    parameters: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    source: str = "heuristic"  # "heuristic", "model" or "default"
    reasoning: str = ""


@dataclass
class CommandResult:
    """Uniform response of the command processor."""

    action: str
    success: bool
    payload: Any = None
    error: Optional[ContextEngineError] = None
    confidence: float = 0.0
    command: str = ""
    execution_time_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "success": self.success,
            "command": self.command,
            "action": self.action,
            "confidence": self.confidence,
        }
        if self.success:
            data["result"] = self.payload
        else:
            data["error"] = self.error.to_dict() if self.error else None
        return data
