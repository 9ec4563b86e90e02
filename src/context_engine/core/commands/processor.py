"""
Command processor for the Context Engine.

This module turns a raw command into a ``CommandResult``: it classifies the
command with the intent router, dispatches to the context store, the tool
registry, the similarity index or the model, and converts every failure into
an unsuccessful result. ``process`` never raises.
"""

import json
import re
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .llm_classifier import parse_model_json
from .router import IntentRouter
from .types import CommandResult, Intent, IntentAction
from ..context_store import ContextStore, MISSING
from ..model_gateway import Deadline
from ..similarity_index import SimilarityIndex
from ...tools.registry import ToolRegistry
from ...tools.types import ToolContext
from ...utils.error_handling import (
    ContextEngineError,
    ExternalServiceError,
    InternalError,
    ValidationError,
    validate_input,
)
from ...utils.logging import get_logger


EXTRACTION_PROMPT = (
    'Extract the key and value from this store context command. '
    'Return JSON: {"key": "...", "value": "..."}\n'
    'Command: %s'
)

_KEY_VALUE_PATTERNS = (
    re.compile(r"([A-Za-z_][\w.-]*)\s*=\s*(.+?)\s*$", re.DOTALL),
    re.compile(r"([A-Za-z_][\w.-]*)\s*:\s*(.+?)\s*$", re.DOTALL),
)
_STORE_PREFIX = re.compile(r"^\s*(?:please\s+)?store\b.*?\bcontext\b\s*[:-]?\s*", re.IGNORECASE | re.DOTALL)
_RETRIEVE_TRIGGER = re.compile(r"\b(?:retrieve|get)\b\s*(.*)$", re.IGNORECASE | re.DOTALL)
_KEY_STOPWORDS = {
    "the", "my", "a", "an", "me", "context", "value", "values", "of", "for", "key", "stored", "from",
}

Handler = Callable[[Intent, str, str, Optional[Deadline]], Any]


def coerce_value(text: str) -> Any:
    """Interpret JSON literals (numbers, booleans, objects); keep anything else as text."""
    stripped = text.strip()
    if stripped[:1] in ('{', '[', '"') or stripped in ("true", "false", "null") \
            or re.fullmatch(r"-?\d+(?:\.\d+)?", stripped):
        try:
            return json.loads(stripped)
        except ValueError:
            pass
    return stripped


def parse_key_value(command: str) -> Tuple[Optional[str], Optional[str]]:
    """Find ``key=value`` or ``key: value`` in free text."""
    remainder = _STORE_PREFIX.sub("", command, count=1)
    text = remainder if remainder.strip() else command
    for pattern in _KEY_VALUE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1), match.group(2)
    return None, None


def parse_retrieve_key(command: str) -> Optional[str]:
    """The first meaningful word after ``retrieve``/``get``."""
    match = _RETRIEVE_TRIGGER.search(command)
    if not match:
        return None
    for word in re.findall(r"[\w.-]+", match.group(1)):
        if word.lower() not in _KEY_STOPWORDS:
            return word
    return None


class CommandProcessor:
    """Failure boundary between raw commands and the engine components."""

    def __init__(
        self,
        context_store: ContextStore,
        registry: ToolRegistry,
        index: SimilarityIndex,
        gateway: Any = None,
        router: Optional[IntentRouter] = None,
        default_timeout: Optional[float] = None,
        search_limit: int = 10,
        default_search_type: Optional[str] = None,
    ):
        self.context_store = context_store
        self.registry = registry
        self.index = index
        self.gateway = gateway
        self.router = router or IntentRouter()
        self.default_timeout = default_timeout
        self.search_limit = search_limit
        self.default_search_type = default_search_type
        self.logger = get_logger(__name__)

        self._handlers: Dict[IntentAction, Handler] = {
            IntentAction.STORE_CONTEXT: self._handle_store,
            IntentAction.RETRIEVE_CONTEXT: self._handle_retrieve,
            IntentAction.LIST_TOOLS: self._handle_list_tools,
            IntentAction.EXECUTE_TOOL: self._handle_execute_tool,
            IntentAction.SEARCH: self._handle_search,
            IntentAction.WORKFLOW: self._handle_workflow,
            IntentAction.OTHER: self._handle_other,
        }

    def process(self, raw_command: str, tenant: str, timeout: Optional[float] = None) -> CommandResult:
        """Classify and execute one command.

        Args:
            raw_command: Free-text command
            tenant: Tenant the command operates on
            timeout: Seconds the whole command may take; the configured default when None

        Returns:
            CommandResult; failures are reported in ``error``, never raised
        """
        start_time = time.perf_counter()
        deadline = Deadline.from_timeout(timeout if timeout is not None else self.default_timeout)
        intent: Optional[Intent] = None

        try:
            validate_input(raw_command, "command", str)
            validate_input(tenant, "tenant", str)
            self.logger.info(f"Processing command for tenant {tenant}: {raw_command[:50]}")

            intent = self.router.classify(raw_command, deadline=deadline)
            payload = self._handlers[intent.action](intent, raw_command, tenant, deadline)
            return self._result(raw_command, intent, start_time, payload=payload)

        except ContextEngineError as e:
            self.logger.warning(f"Command failed with {e.error_type}: {e.message}")
            return self._result(raw_command, intent, start_time, error=e)

        except Exception as e:
            self.logger.error(f"Unexpected error processing command: {e}", exc_info=True)
            error = InternalError(f"Unexpected error: {e}", details={"original_error": type(e).__name__})
            return self._result(raw_command, intent, start_time, error=error)

    def _result(self, command: Any, intent: Optional[Intent], start_time: float,
                payload: Any = None, error: Optional[ContextEngineError] = None) -> CommandResult:
        return CommandResult(
            action=intent.action.value if intent else IntentAction.OTHER.value,
            success=error is None,
            payload=payload,
            error=error,
            confidence=intent.confidence if intent else 0.0,
            command=command if isinstance(command, str) else "",
            execution_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    # Context store

    def _extract_key_value(self, intent: Intent, command: str, deadline: Optional[Deadline],
                           retrieving: bool = False) -> Tuple[Optional[str], Any]:
        params = intent.parameters
        key, value = params.get("key"), params.get("value")
        if key:
            return str(key), value

        if retrieving:
            key = parse_retrieve_key(command)
            if key:
                return key, None

        key, raw_value = parse_key_value(command)
        if key:
            return key, coerce_value(raw_value)

        return self._model_extract(command, deadline)

    def _model_extract(self, command: str, deadline: Optional[Deadline]) -> Tuple[Optional[str], Any]:
        if self.gateway is None:
            return None, None

        response = self.gateway.generate(EXTRACTION_PROMPT % command, deadline=deadline)
        try:
            data = parse_model_json(response)
        except ValueError as e:
            raise ExternalServiceError(
                f"Model returned an unusable key/value extraction: {e}",
                details={"reason": "unparseable"}
            ) from e

        key = data.get("key")
        return (str(key).strip() or None) if key else None, data.get("value")

    def _handle_store(self, intent: Intent, command: str, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        key, value = self._extract_key_value(intent, command, deadline)
        if not key:
            raise ValidationError("Could not determine a context key from the command")
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"Could not determine a value for context key '{key}'",
                                  details={"key": key})

        entry = self.context_store.store(tenant, key, value)
        return {
            "tenant": tenant,
            "key": entry.key,
            "value": value,
            "message": f"Context stored for {entry.key}",
        }

    def _handle_retrieve(self, intent: Intent, command: str, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        key, _ = self._extract_key_value(intent, command, deadline, retrieving=True)
        if not key:
            raise ValidationError("Could not determine a context key from the command")

        value = self.context_store.retrieve(tenant, key)
        found = value is not MISSING
        return {
            "tenant": tenant,
            "key": key,
            "found": found,
            "value": value if found else None,
        }

    # Tools

    def _tool_context(self, tenant: str, deadline: Optional[Deadline]) -> ToolContext:
        return ToolContext(
            tenant_id=tenant,
            gateway=self.gateway,
            registry=self.registry,
            deadline=deadline,
            analysis_model=getattr(self.gateway, "analysis_model", None),
        )

    def _handle_list_tools(self, intent: Intent, command: str, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        tools = self.registry.list(intent.parameters.get("category"))
        return {"tools": [tool.to_dict() for tool in tools], "count": len(tools)}

    def _run_tool(self, name: Any, parameters: Any, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        if not name or not isinstance(name, str):
            raise ValidationError("No tool name given", details={"field": "tool"})
        if parameters is None:
            parameters = {}

        result = self.registry.execute(name, parameters, self._tool_context(tenant, deadline))
        return {"tool": name, "result": result.output, "execution_time_ms": result.execution_time_ms}

    def _handle_execute_tool(self, intent: Intent, command: str, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        params = intent.parameters
        return self._run_tool(params.get("tool") or params.get("name"), params.get("parameters"), tenant, deadline)

    def _handle_workflow(self, intent: Intent, command: str, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        params = intent.parameters
        if params.get("steps"):
            return self._run_tool("workflow_executor", {"steps": params["steps"]}, tenant, deadline)
        description = params.get("description") or command
        return self._run_tool("workflow_creator", {"description": description}, tenant, deadline)

    # Search

    def _handle_search(self, intent: Intent, command: str, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        if self.gateway is None:
            raise ExternalServiceError("No embedding collaborator configured", details={"reason": "unconfigured"})

        params = intent.parameters
        query = params.get("query") or command
        doc_type = params.get("type") or self.default_search_type
        limit = params.get("limit") or self.search_limit
        if not isinstance(limit, int) or isinstance(limit, bool):
            raise ValidationError("Search limit must be an integer", details={"field": "limit"})

        embedding = self.gateway.embed(query, deadline=deadline)
        matches = self.index.find_similar(embedding, tenant, type_filter=doc_type, limit=limit)
        return {
            "query": query,
            "type": doc_type,
            "results": [match.document_id for match in matches],
            "scores": [match.score for match in matches],
            "count": len(matches),
        }

    # Model

    def _handle_other(self, intent: Intent, command: str, tenant: str, deadline: Optional[Deadline]) -> Dict[str, Any]:
        if self.gateway is None:
            raise ExternalServiceError("No model collaborator configured", details={"reason": "unconfigured"})
        return {"response": self.gateway.generate(command, deadline=deadline)}
