"""
MCP service facade for the Context Engine.

``MCPService`` wires the context store, tool registry, similarity index,
model gateway and command processor together from configuration and exposes
the request/response operations of the command surface. Every operation
returns a plain dictionary with a ``success`` flag; failures carry a tagged
``error`` and are never raised.
"""

import functools
import uuid
from typing import Any, Callable, Dict, List, Optional

from .commands import CommandProcessor, IntentRouter, LLMIntentClassifier
from .context_store import ContextStore, MISSING
from .model_gateway import Deadline, ModelGateway
from .providers import create_embedding_provider, create_llm_provider
from .similarity_index import BruteForceSimilarityIndex, SimilarityIndex, VectorDocument
from ..config.models import ContextEngineConfig
from ..tools import ToolContext, ToolRegistry, register_builtin_tools
from ..utils.error_handling import (
    ContextEngineError,
    DuplicateNameError,
    ExternalServiceError,
    ValidationError,
    as_engine_error,
    validate_input,
)
from ..utils.logging import get_logger


RESOURCES: List[Dict[str, str]] = [
    {"name": "inventory", "description": "Current inventory levels", "type": "database"},
    {"name": "sales_data", "description": "Historical sales data", "type": "database"},
    {"name": "product_catalog", "description": "Product information", "type": "database"},
    {"name": "customer_data", "description": "Customer information", "type": "database"},
]


def service_operation(operation_name: str):
    """Convert any failure of a service operation into a tagged result."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs) -> Dict[str, Any]:
            try:
                return func(self, *args, **kwargs)
            except ContextEngineError as e:
                self.logger.warning(f"{operation_name} failed with {e.error_type}: {e.message}")
                return {"success": False, "error": e.to_dict()}
            except Exception as e:
                self.logger.error(f"{operation_name} failed unexpectedly: {e}", exc_info=True)
                return {"success": False, "error": as_engine_error(e).to_dict()}
        return wrapper
    return decorator


class MCPService:
    """
    Request/response surface of the Context Engine.

    Args:
        config: Engine configuration
        llm_provider: Generation provider; created from config when None
        embedding_provider: Embedding provider; created from config when None
        index: Similarity index implementation; brute force when None
    """

    def __init__(
        self,
        config: Optional[ContextEngineConfig] = None,
        llm_provider: Any = None,
        embedding_provider: Any = None,
        index: Optional[SimilarityIndex] = None,
    ):
        self.config = config or ContextEngineConfig()
        self.logger = get_logger(__name__)

        self.provider_errors: Dict[str, Dict[str, Any]] = {}
        if llm_provider is None:
            llm_provider = self._create_collaborator("llm", create_llm_provider)
        if embedding_provider is None:
            embedding_provider = self._create_collaborator("embeddings", create_embedding_provider)

        self.llm_provider = llm_provider
        self.embedding_provider = embedding_provider
        self.gateway = ModelGateway(llm_provider, embedding_provider, self.config.llm)

        self.context_store = ContextStore()
        self.index = index or BruteForceSimilarityIndex()
        self.registry = ToolRegistry()
        if self.config.tools.register_builtin:
            register_builtin_tools(self.registry, self.config.tools.disabled)

        fallback = LLMIntentClassifier(self.gateway) if llm_provider is not None else None
        self.processor = CommandProcessor(
            self.context_store,
            self.registry,
            self.index,
            gateway=self.gateway,
            router=IntentRouter(fallback=fallback),
            default_timeout=self.config.performance.command_timeout_seconds,
            search_limit=self.config.search.default_limit,
            default_search_type=self.config.search.default_type,
        )

        self.logger.info(f"MCP service ready with {self.registry.size} tools")

    def _create_collaborator(self, name: str, factory: Callable[[ContextEngineConfig], Any]) -> Any:
        # Missing credentials only disable the model-backed operations
        try:
            return factory(self.config)
        except ContextEngineError as e:
            self.logger.warning(f"{name} provider unavailable: {e.message}")
            self.provider_errors[name] = e.to_dict()
            return None

    # Context

    @service_operation("store_context")
    def store_context(self, tenant: str, key: str, value: Any) -> Dict[str, Any]:
        entry = self.context_store.store(tenant, key, value)
        return {
            "success": True,
            "tenant": tenant,
            "key": key,
            "message": f"Context stored for {entry.key}",
        }

    @service_operation("retrieve_context")
    def retrieve_context(self, tenant: str, key: str) -> Dict[str, Any]:
        validate_input(tenant, "tenant", str)
        validate_input(key, "key", str)

        value = self.context_store.retrieve(tenant, key)
        return {
            "success": True,
            "tenant": tenant,
            "key": key,
            "value": None if value is MISSING else value,
            "found": value is not MISSING,
        }

    @service_operation("clear_context")
    def clear_context(self, tenant: str) -> Dict[str, Any]:
        validate_input(tenant, "tenant", str)
        cleared = self.context_store.clear(tenant)
        return {
            "success": True,
            "tenant": tenant,
            "cleared": cleared,
            "message": f"Cleared {cleared} context entries for {tenant}",
        }

    # Tools

    @service_operation("list_tools")
    def list_tools(self, category: Optional[str] = None) -> Dict[str, Any]:
        tools = self.registry.list(category)
        return {"success": True, "tools": [tool.to_dict() for tool in tools], "count": len(tools)}

    @service_operation("execute_tool")
    def execute_tool(self, name: str, parameters: Optional[Dict[str, Any]] = None,
                     tenant: Optional[str] = None) -> Dict[str, Any]:
        validate_input(name, "tool name", str)
        tenant = tenant or self.config.context.default_tenant

        context = ToolContext(
            tenant_id=tenant,
            gateway=self.gateway,
            registry=self.registry,
            deadline=Deadline(self.config.tools.timeout_seconds),
            analysis_model=self.config.llm.analysis_model,
        )
        try:
            result = self.registry.execute(name, parameters or {}, context)
        except ContextEngineError as e:
            return {"success": False, "tool": name, "error": e.to_dict()}

        return {
            "success": True,
            "tool": name,
            "result": result.output,
            "execution_time_ms": result.execution_time_ms,
        }

    # Search

    @service_operation("index_document")
    def index_document(self, tenant: str, content: str, type: Optional[str] = None,
                       metadata: Optional[Dict[str, Any]] = None,
                       document_id: Optional[str] = None) -> Dict[str, Any]:
        validate_input(tenant, "tenant", str)
        validate_input(content, "content", str)
        if metadata is not None and not isinstance(metadata, dict):
            raise ValidationError("metadata must be a mapping", details={"field": "metadata"})

        document_metadata = dict(metadata or {})
        if type:
            document_metadata["type"] = type

        document = VectorDocument(
            id=document_id or uuid.uuid4().hex,
            content=content,
            embedding=self.gateway.embed(content),
            tenant_id=tenant,
            metadata=document_metadata,
        )
        if not self.index.insert(document):
            error = DuplicateNameError(f"Document {document.id} already exists for tenant {tenant}",
                                       details={"id": document.id, "tenant": tenant})
            return {"success": False, "tenant": tenant, "id": document.id, "error": error.to_dict()}

        return {"success": True, "tenant": tenant, "id": document.id}

    @service_operation("find_similar")
    def find_similar(self, query: str, type: Optional[str] = None, tenant: Optional[str] = None,
                     limit: Optional[int] = None) -> Dict[str, Any]:
        validate_input(query, "query", str)
        tenant = tenant or self.config.context.default_tenant
        doc_type = type or self.config.search.default_type
        limit = self.config.search.default_limit if limit is None else limit

        embedding = self.gateway.embed(query)
        matches = self.index.find_similar(embedding, tenant, type_filter=doc_type, limit=limit)
        return {
            "success": True,
            "query": query,
            "type": doc_type,
            "results": [match.document_id for match in matches],
            "scores": [match.score for match in matches],
            "count": len(matches),
        }

    # Commands

    def process_command(self, command: str, tenant: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Classify and execute a free-text command (never raises)."""
        return self.processor.process(command, tenant, timeout=timeout).to_dict()

    # Introspection

    def list_resources(self) -> Dict[str, Any]:
        resources = [dict(resource) for resource in RESOURCES]
        return {"success": True, "resources": resources, "count": len(resources)}

    def health(self) -> Dict[str, Any]:
        report = {
            "success": True,
            "provider": getattr(self.llm_provider, "provider_name", None),
            "model": self.gateway.model,
            "embeddings": getattr(self.embedding_provider, "provider_name", None),
            "tools": self.registry.size,
            "tenants": len(self.context_store.tenants()),
        }
        if self.provider_errors:
            report["provider_errors"] = dict(self.provider_errors)
        return report

    def shutdown(self) -> None:
        self.gateway.shutdown()

    def __enter__(self) -> "MCPService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
