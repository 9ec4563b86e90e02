"""
Tests for the command processor: dispatch, extraction and failure handling.
"""

import json
import time
from unittest.mock import Mock

import pytest

from context_engine.config.models import LLMConfig
from context_engine.core.commands import (
    CommandProcessor,
    Intent,
    IntentAction,
    IntentRouter,
    LLMIntentClassifier,
)
from context_engine.core.commands.processor import coerce_value, parse_key_value, parse_retrieve_key
from context_engine.core.context_store import ContextStore
from context_engine.core.model_gateway import ModelGateway
from context_engine.core.providers import MockLLMProvider
from context_engine.core.similarity_index import BruteForceSimilarityIndex, VectorDocument


@pytest.mark.unit
class TestParsingHelpers:

    @pytest.mark.parametrize("command,expected", [
        ("store context theme=dark", ("theme", "dark")),
        ("store context: user: alice", ("user", "alice")),
        ("please store this context - limit = 10", ("limit", "10")),
        ("theme: light", ("theme", "light")),
        ("store context for my favourite colour blue", (None, None)),
    ])
    def test_parse_key_value(self, command, expected):
        assert parse_key_value(command) == expected

    @pytest.mark.parametrize("command,expected", [
        ("retrieve theme", "theme"),
        ("get my stored theme", "theme"),
        ("retrieve the context", None),
        ("show me everything", None),
    ])
    def test_parse_retrieve_key(self, command, expected):
        assert parse_retrieve_key(command) == expected

    @pytest.mark.parametrize("text,expected", [
        ("10", 10),
        ("2.5", 2.5),
        ("true", True),
        ('{"a": 1}', {"a": 1}),
        ("dark", "dark"),
        ("{not json", "{not json"),
    ])
    def test_coerce_value(self, text, expected):
        assert coerce_value(text) == expected


@pytest.mark.unit
class TestCommandProcessor:

    @pytest.fixture(autouse=True)
    def setup_processor(self, gateway, builtin_registry, mock_provider):
        self.store = ContextStore()
        self.index = BruteForceSimilarityIndex()
        self.registry = builtin_registry
        self.gateway = gateway
        self.provider = mock_provider
        self.processor = CommandProcessor(
            self.store, self.registry, self.index,
            gateway=gateway,
            router=IntentRouter(fallback=LLMIntentClassifier(gateway)),
        )

    def test_store_then_retrieve(self):
        stored = self.processor.process("store context theme=dark", "acme")

        assert stored.success is True
        assert stored.action == "store_context"
        assert stored.confidence == 0.9
        assert stored.payload == {
            "tenant": "acme", "key": "theme", "value": "dark", "message": "Context stored for theme",
        }

        retrieved = self.processor.process("retrieve theme", "acme")

        assert retrieved.success is True
        assert retrieved.payload == {"tenant": "acme", "key": "theme", "found": True, "value": "dark"}

    def test_numbers_are_stored_as_numbers(self):
        self.processor.process("store context limit=10", "acme")
        assert self.store.retrieve("acme", "limit") == 10

    def test_retrieve_is_tenant_scoped(self):
        self.processor.process("store context theme=dark", "acme")

        result = self.processor.process("retrieve theme", "globex")

        assert result.success is True
        assert result.payload["found"] is False
        assert result.payload["value"] is None

    def test_model_extracts_key_value_when_parsing_fails(self):
        result = self.processor.process("store context for my favourite colour blue", "acme")

        assert result.success is True
        assert result.payload["key"] == "colour"
        assert self.store.retrieve("acme", "colour") == "blue"
        assert self.provider.calls[-1][0].startswith("Extract the key and value")

    def test_list_tools(self):
        result = self.processor.process("what tools are available", "acme")

        assert result.success is True
        assert result.payload["count"] == self.registry.size
        assert result.payload["tools"][0]["name"] == "calculator"

    def test_calculation(self):
        result = self.processor.process("calculate 15% of 1200", "acme")

        assert result.success is True
        assert result.action == "execute_tool"
        assert result.payload["tool"] == "calculator"
        assert result.payload["result"]["result"] == 180

    def test_oversized_calculation_fails_fast(self):
        start = time.monotonic()
        result = self.processor.process("calculate (((9^99)^99)^99)^99", "acme", timeout=0.5)

        assert time.monotonic() - start < 0.5
        assert result.success is False
        assert result.error.error_type == "ExecutionError"
        json.dumps(result.to_dict())

    def test_search_returns_ranked_ids(self):
        for doc_id, content, doc_type in [
            ("p1", "wireless headphones with noise cancelling", "products"),
            ("p2", "garden hose with brass fittings", "products"),
            ("d1", "wireless headphones setup guide", "documents"),
        ]:
            self.index.insert(VectorDocument(doc_id, content, self.gateway.embed(content), "acme",
                                             metadata={"type": doc_type}))

        result = self.processor.process("search for wireless headphones products", "acme")

        assert result.success is True
        assert result.payload["query"] == "wireless headphones"
        assert result.payload["type"] == "products"
        assert result.payload["results"][0] == "p1"
        assert "d1" not in result.payload["results"]
        assert result.payload["count"] == 2

    def test_unmatched_command_goes_to_model(self):
        result = self.processor.process("tell me a joke", "acme")

        assert result.success is True
        assert result.action == "other"
        assert result.confidence == 0.3
        assert result.payload == {"response": "OK"}

    def test_none_command_is_validation_error(self):
        result = self.processor.process(None, "acme")

        assert result.success is False
        assert result.command == ""
        assert result.error.error_type == "ValidationError"

    def test_empty_tenant_is_validation_error(self):
        result = self.processor.process("retrieve theme", "")
        assert result.error.error_type == "ValidationError"

    def test_to_dict_shape(self):
        data = self.processor.process("store context theme=dark", "acme").to_dict()

        assert data["success"] is True
        assert data["command"] == "store context theme=dark"
        assert data["action"] == "store_context"
        assert data["result"]["key"] == "theme"
        assert "error" not in data


@pytest.mark.unit
class TestProcessorWithScriptedIntents:

    def setup_method(self):
        self.fallback = Mock()
        self.store = ContextStore()

    def make_processor(self, builtin_registry, gateway=None):
        return CommandProcessor(
            self.store, builtin_registry, BruteForceSimilarityIndex(),
            gateway=gateway,
            router=IntentRouter(fallback=self.fallback),
        )

    def test_unknown_tool_is_not_found(self, builtin_registry):
        self.fallback.classify.return_value = Intent(IntentAction.EXECUTE_TOOL, {"tool": "nonexistent_tool"}, 0.8)

        result = self.make_processor(builtin_registry).process("launch the missing one", "acme")

        assert result.success is False
        assert result.action == "execute_tool"
        assert result.error.error_type == "NotFoundError"

    def test_workflow_steps_run_in_order(self, builtin_registry):
        steps = [{"tool": "calculator", "parameters": {"expression": "6 * 7"}}]
        self.fallback.classify.return_value = Intent(IntentAction.WORKFLOW, {"steps": steps}, 0.8)

        result = self.make_processor(builtin_registry).process("run my workflow", "acme")

        assert result.success is True
        assert result.payload["tool"] == "workflow_executor"
        assert result.payload["result"]["steps"][0]["output"]["result"] == 42

    def test_store_without_value_is_validation_error(self, builtin_registry):
        result = self.make_processor(builtin_registry).process("store context", "acme")

        assert result.success is False
        assert result.error.error_type == "ValidationError"
        assert self.store.tenants() == []

    def test_other_without_model(self, builtin_registry):
        self.fallback.classify.return_value = Intent(IntentAction.OTHER, {}, 0.0, source="default")

        result = self.make_processor(builtin_registry).process("hello", "acme")

        assert result.success is False
        assert result.error.error_type == "ExternalServiceError"

    def test_unexpected_exception_becomes_internal_error(self, builtin_registry):
        self.fallback.classify.side_effect = RuntimeError("classifier exploded")

        result = self.make_processor(builtin_registry).process("hello", "acme")

        assert result.success is False
        assert result.error.error_type == "InternalError"
        assert result.error.details["original_error"] == "RuntimeError"


@pytest.mark.slow
class TestProcessorTimeouts:

    def test_hanging_model_yields_timeout_error(self, builtin_registry):
        config = LLMConfig(provider="mock", model="mock-model", timeout=5.0, max_retries=0)
        gateway = ModelGateway(MockLLMProvider(config, delay=1.0), None, config)
        processor = CommandProcessor(
            ContextStore(), builtin_registry, BruteForceSimilarityIndex(),
            gateway=gateway,
            router=IntentRouter(fallback=LLMIntentClassifier(gateway)),
        )

        start = time.monotonic()
        result = processor.process("tell me a joke", "acme", timeout=0.2)
        elapsed = time.monotonic() - start

        assert result.success is False
        assert result.error.error_type == "ExternalServiceError"
        assert result.error.details["reason"] == "timeout"
        assert elapsed < 1.0
        gateway.shutdown()
