"""
Tests for the tool registry and dispatcher.
"""

import threading

import pytest

from context_engine.tools import (
    BaseTool,
    ParameterSpec,
    ParamType,
    Tool,
    ToolContext,
    ToolRegistry,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistrationError,
    ToolValidationError,
    register_builtin_tools,
)
from context_engine.utils.error_handling import (
    DuplicateNameError,
    ExecutionError,
    NotFoundError,
    ValidationError,
)


class EchoTool(BaseTool):
    """Returns its ``text`` parameter, or fails on request."""

    def get_schema(self) -> Tool:
        return Tool(
            name=self.config.get("name", "echo"),
            description="Echo text back",
            category="testing",
            input_schema=[
                ParameterSpec("text", ParamType.STRING, True, "Text to echo"),
                ParameterSpec("times", ParamType.INTEGER, False, "Repetitions"),
            ],
        )

    def run(self, parameters, context):
        if parameters["text"] == "fail":
            raise ToolExecutionError("asked to fail", self.get_name())
        if parameters["text"] == "crash":
            raise RuntimeError("unexpected")
        return parameters["text"] * parameters.get("times", 1)


@pytest.mark.unit
class TestToolRegistry:

    def setup_method(self):
        self.registry = ToolRegistry()
        self.context = ToolContext(tenant_id="acme")

    def test_register_and_execute(self):
        self.registry.register_tool(EchoTool())

        result = self.registry.execute("echo", {"text": "hi", "times": 2}, self.context)

        assert result.success is True
        assert result.output == "hihi"
        assert result.tool_name == "echo"
        assert result.execution_time_ms is not None

    def test_duplicate_registration_leaves_registry_unchanged(self):
        self.registry.register_tool(EchoTool())

        with pytest.raises(ToolRegistrationError) as exc_info:
            self.registry.register_tool(EchoTool())

        assert isinstance(exc_info.value, DuplicateNameError)
        assert self.registry.size == 1

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            self.registry.register_tool(EchoTool({"name": " "}))

    def test_unknown_tool(self):
        with pytest.raises(ToolNotFoundError) as exc_info:
            self.registry.execute("nonexistent_tool", {}, self.context)

        assert isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.to_dict()["type"] == "NotFoundError"

    def test_disabled_tool_is_not_found_and_not_listed(self):
        self.registry.register_tool(EchoTool())
        self.registry.disable("echo")

        assert self.registry.size == 0
        assert len(self.registry) == 1
        assert self.registry.list() == []
        with pytest.raises(ToolNotFoundError):
            self.registry.execute("echo", {"text": "hi"}, self.context)

        self.registry.enable("echo")
        assert self.registry.list_names() == ["echo"]

    def test_enable_unknown_tool(self):
        with pytest.raises(ToolNotFoundError):
            self.registry.enable("ghost")

    def test_missing_required_parameter(self):
        self.registry.register_tool(EchoTool())

        with pytest.raises(ToolValidationError) as exc_info:
            self.registry.execute("echo", {}, self.context)

        assert "Missing required field: text" in exc_info.value.validation_errors

    def test_wrong_parameter_type(self):
        self.registry.register_tool(EchoTool())

        with pytest.raises(ValidationError):
            self.registry.execute("echo", {"text": "hi", "times": True}, self.context)

    def test_parameters_must_be_mapping(self):
        self.registry.register_tool(EchoTool())

        with pytest.raises(ValidationError):
            self.registry.execute("echo", ["hi"], self.context)

    def test_tool_failure_is_execution_error(self):
        self.registry.register_tool(EchoTool())

        with pytest.raises(ExecutionError) as exc_info:
            self.registry.execute("echo", {"text": "fail"}, self.context)

        assert exc_info.value.details["tool_name"] == "echo"

    def test_unexpected_exception_is_wrapped(self):
        self.registry.register_tool(EchoTool())

        with pytest.raises(ExecutionError):
            self.registry.execute("echo", {"text": "crash"}, self.context)

    def test_stats_and_popularity(self):
        self.registry.register_tool(EchoTool())
        assert self.registry.get("echo").popularity == pytest.approx(0.5)

        self.registry.execute("echo", {"text": "ok"}, self.context)
        with pytest.raises(ExecutionError):
            self.registry.execute("echo", {"text": "fail"}, self.context)

        stats = self.registry.get_stats("echo")
        assert stats["usage_count"] == 2
        assert stats["error_count"] == 1
        assert stats["success_rate"] == 0.5
        assert self.registry.get_stats()["total_executions"] == 2

    def test_list_filters_by_category_in_registration_order(self):
        register_builtin_tools(self.registry)
        self.registry.register_tool(EchoTool())

        assert [t.name for t in self.registry.list("calculation")] == ["calculator", "percentage_calc"]
        assert self.registry.categories() == ["calculation", "code", "data", "workflow", "testing"]

    def test_unregister(self):
        self.registry.register_tool(EchoTool())
        assert self.registry.unregister("echo") is True
        assert self.registry.unregister("echo") is False
        assert "echo" not in self.registry


@pytest.mark.unit
class TestBuiltinCatalogue:

    def test_builtin_tools_registered_in_order(self):
        registry = ToolRegistry()
        register_builtin_tools(registry)

        assert registry.list_names() == [
            "calculator", "percentage_calc",
            "code_analyzer", "dependency_detector",
            "data_transformer", "data_validator",
            "workflow_creator", "workflow_executor",
        ]

    def test_disabled_names_from_config(self):
        registry = ToolRegistry()
        register_builtin_tools(registry, disabled=["code_analyzer", "not_a_tool"])

        assert registry.size == 7
        assert "code_analyzer" not in registry.list_names()

    def test_tool_dict_shape(self):
        registry = ToolRegistry()
        register_builtin_tools(registry)

        data = registry.get("calculator").to_dict()
        assert data["name"] == "calculator"
        assert data["category"] == "calculation"
        assert data["inputSchema"]["required"] == ["expression"]
        assert data["inputSchema"]["properties"]["expression"]["type"] == "string"


@pytest.mark.concurrency
class TestRegistryConcurrency:

    def test_concurrent_registration_of_same_name(self):
        registry = ToolRegistry()
        outcomes = []
        lock = threading.Lock()

        def register():
            try:
                registry.register_tool(EchoTool())
                result = "ok"
            except DuplicateNameError:
                result = "duplicate"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=register) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == 9
        assert registry.size == 1
