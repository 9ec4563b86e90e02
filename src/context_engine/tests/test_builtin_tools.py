"""
Tests for the built-in tool catalogue.
"""

import json

import pytest

from context_engine.tools import ToolContext, ToolExecutionError
from context_engine.tools.calculation import evaluate_expression, prepare_expression
from context_engine.tools.code_tools import detect_dependencies
from context_engine.tools.workflow_tools import MAX_WORKFLOW_DEPTH
from context_engine.utils.error_handling import ExecutionError, ValidationError


@pytest.mark.unit
class TestCalculation:

    @pytest.mark.parametrize("expression,expected", [
        ("2 + 3 * 4", 14),
        ("(2 + 3) * 4", 20),
        ("calculate 15% of 1200", 180),
        ("What is 10 / 4?", 2.5),
        ("2^10", 1024),
        ("3 x 7", 21),
        ("1,200 + 300", 1500),
        ("50%", 0.5),
        ("10 % 3", 1),
        ("please compute 2 + 2 for me", 4),
    ])
    def test_evaluate_expression(self, expression, expected):
        assert evaluate_expression(expression) == expected

    def test_prepare_expression_rewrites_percent_of(self):
        assert prepare_expression("calculate 15% of 1200") == "(15 * 1200 / 100)"

    @pytest.mark.parametrize("expression", ["__import__('os')", "abs(-1)", "hello world", "2 ** 1000"])
    def test_rejects_non_arithmetic(self, expression):
        with pytest.raises(ValueError):
            evaluate_expression(expression)

    def test_calculator_tool(self, builtin_registry):
        result = builtin_registry.execute("calculator", {"expression": "15% of 1200"}, ToolContext("acme"))
        assert result.output == {"expression": "15% of 1200", "result": 180}

    def test_division_by_zero_is_execution_error(self, builtin_registry):
        with pytest.raises(ToolExecutionError) as exc_info:
            builtin_registry.execute("calculator", {"expression": "1 / 0"}, ToolContext("acme"))

        assert "Division by zero" in exc_info.value.message

    def test_malformed_expression_is_execution_error(self, builtin_registry):
        with pytest.raises(ExecutionError):
            builtin_registry.execute("calculator", {"expression": "two plus two"}, ToolContext("acme"))

    @pytest.mark.parametrize("expression", [
        "(9^99)^99",
        "(((9^99)^99)^99)^99",
        " * ".join(["(9^99)"] * 20),
    ])
    def test_oversized_results_are_rejected(self, expression):
        with pytest.raises(ValueError, match="too large"):
            evaluate_expression(expression)

    def test_large_results_within_bound(self):
        assert evaluate_expression("2^100") == 2 ** 100
        assert evaluate_expression("9^99") == 9 ** 99

    def test_nested_power_chain_is_execution_error(self, builtin_registry):
        with pytest.raises(ExecutionError) as exc_info:
            builtin_registry.execute(
                "calculator", {"expression": "(((9^99)^99)^99)^99"}, ToolContext("acme")
            )

        assert "too large" in exc_info.value.message

    def test_percentage_calc(self, builtin_registry):
        result = builtin_registry.execute("percentage_calc", {"value": 200, "percent": 15}, ToolContext("acme"))
        assert result.output["result"] == 30

    def test_percentage_calc_requires_numbers(self, builtin_registry):
        with pytest.raises(ValidationError):
            builtin_registry.execute("percentage_calc", {"value": "200", "percent": 15}, ToolContext("acme"))


@pytest.mark.unit
class TestCodeTools:

    def test_python_dependencies_detected(self):
        code = "import os\nimport numpy as np\nfrom collections import OrderedDict\n"
        result = detect_dependencies(code)

        assert result["language"] == "python"
        assert result["dependencies"] == ["collections", "numpy", "os"]
        assert result["count"] == 3

    def test_javascript_dependencies_with_alias(self):
        code = "const fs = require('fs');\nimport React from 'react';\n"
        result = detect_dependencies(code, "js")

        assert result["language"] == "javascript"
        assert result["dependencies"] == ["fs", "react"]

    def test_c_includes(self):
        result = detect_dependencies('#include <stdio.h>\n#include "util.h"\n', "c")
        assert result["dependencies"] == ["stdio.h", "util.h"]

    def test_dependency_detector_tool(self, builtin_registry):
        result = builtin_registry.execute("dependency_detector", {"code": "import json"}, ToolContext("acme"))
        assert result.output["dependencies"] == ["json"]

    def test_code_analyzer_uses_analysis_model(self, tool_context, mock_provider):
        mock_provider.queue("Looks fine.")

        result = tool_context.registry.execute("code_analyzer", {"code": "x = 1", "language": "python"}, tool_context)

        assert result.output == {"language": "python", "analysis": "Looks fine."}
        prompt, model = mock_provider.calls[-1]
        assert model == "mock-analysis"
        assert "x = 1" in prompt

    def test_code_analyzer_without_model(self, builtin_registry):
        with pytest.raises(ToolExecutionError):
            builtin_registry.execute("code_analyzer", {"code": "x = 1"}, ToolContext("acme"))


@pytest.mark.unit
class TestDataTools:

    def test_json_to_yaml(self, builtin_registry):
        result = builtin_registry.execute(
            "data_transformer", {"data": '{"a": 1}', "from": "json", "to": "yml"}, ToolContext("acme")
        )

        assert result.output["result"] == "a: 1\n"
        assert result.output["to"] == "yaml"
        assert result.output["engine"] == "local"

    def test_csv_to_json(self, builtin_registry):
        result = builtin_registry.execute(
            "data_transformer", {"data": "name,age\nann,30\n", "from": "csv", "to": "json"}, ToolContext("acme")
        )
        assert json.loads(result.output["result"]) == [{"name": "ann", "age": "30"}]

    def test_invalid_source_data(self, builtin_registry):
        with pytest.raises(ValidationError):
            builtin_registry.execute(
                "data_transformer", {"data": "{broken", "from": "json", "to": "yaml"}, ToolContext("acme")
            )

    def test_unknown_formats_go_to_model(self, tool_context, mock_provider):
        mock_provider.queue("<a>1</a>")

        result = tool_context.registry.execute(
            "data_transformer", {"data": '{"a": 1}', "from": "json", "to": "xml"}, tool_context
        )

        assert result.output == {"from": "json", "to": "xml", "result": "<a>1</a>", "engine": "model"}

    def test_validator_reports_missing_fields(self, builtin_registry):
        result = builtin_registry.execute(
            "data_validator",
            {"data": '[{"id": 1}, {"name": "x"}]', "required_fields": ["id"]},
            ToolContext("acme"),
        )

        assert result.output["valid"] is False
        assert result.output["record_count"] == 2
        assert result.output["errors"] == ["record 1: missing required field 'id'"]

    def test_validator_reports_parse_failure(self, builtin_registry):
        result = builtin_registry.execute("data_validator", {"data": "not json"}, ToolContext("acme"))

        assert result.output["valid"] is False
        assert result.output["record_count"] == 0


@pytest.mark.unit
class TestWorkflowTools:

    def test_executor_runs_steps_in_order(self, builtin_registry):
        steps = [
            {"tool": "calculator", "parameters": {"expression": "2 + 2"}},
            {"tool": "percentage_calc", "parameters": {"value": 50, "percent": 10}},
        ]
        context = ToolContext("acme", registry=builtin_registry)

        result = builtin_registry.execute("workflow_executor", {"steps": steps}, context)

        assert result.output["completed"] == 2
        assert result.output["steps"][0]["output"]["result"] == 4
        assert result.output["steps"][1]["output"]["result"] == 5

    def test_executor_stops_at_first_failure(self, builtin_registry):
        steps = [
            {"tool": "calculator", "parameters": {"expression": "1 + 1"}},
            {"tool": "nonexistent_tool", "parameters": {}},
            {"tool": "calculator", "parameters": {"expression": "3 + 3"}},
        ]
        context = ToolContext("acme", registry=builtin_registry)

        with pytest.raises(ToolExecutionError) as exc_info:
            builtin_registry.execute("workflow_executor", {"steps": steps}, context)

        details = exc_info.value.details
        assert details["failed_step"] == 1
        assert len(details["steps"]) == 2
        assert details["steps"][1]["error"]["type"] == "NotFoundError"

    def test_executor_depth_limit(self, builtin_registry):
        context = ToolContext("acme", registry=builtin_registry, call_depth=MAX_WORKFLOW_DEPTH)

        with pytest.raises(ToolExecutionError):
            builtin_registry.execute(
                "workflow_executor", {"steps": [{"tool": "calculator", "parameters": {"expression": "1"}}]}, context
            )

    def test_creator_lists_registry_tools(self, tool_context, mock_provider):
        mock_provider.queue("1. Fetch data\n2. Validate")

        result = tool_context.registry.execute("workflow_creator", {"description": "nightly report"}, tool_context)

        assert result.output["workflow"].startswith("1. Fetch data")
        prompt, _ = mock_provider.calls[-1]
        assert "nightly report" in prompt
        assert "calculator" in prompt
