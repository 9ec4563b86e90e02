"""
Tests for intent routing: keyword rules and the model-backed fallback.
"""

import json
from unittest.mock import Mock

import pytest

from context_engine.core.commands import (
    HEURISTIC_CONFIDENCE,
    Intent,
    IntentAction,
    IntentRouter,
    LLMIntentClassifier,
    parse_model_json,
)
from context_engine.core.commands.router import extract_search_parameters
from context_engine.utils.error_handling import NetworkError, ExternalServiceError


@pytest.mark.unit
class TestKeywordRules:

    def setup_method(self):
        self.fallback = Mock()
        self.router = IntentRouter(fallback=self.fallback)

    @pytest.mark.parametrize("command,action", [
        ("store my preferences context", IntentAction.STORE_CONTEXT),
        ("STORE Context theme=dark", IntentAction.STORE_CONTEXT),
        ("retrieve theme", IntentAction.RETRIEVE_CONTEXT),
        ("get my theme", IntentAction.RETRIEVE_CONTEXT),
        ("what tools are available", IntentAction.LIST_TOOLS),
        ("calculate 15% of 1200", IntentAction.EXECUTE_TOOL),
        ("compute 2 + 2", IntentAction.EXECUTE_TOOL),
        ("find similar products to headphones", IntentAction.SEARCH),
        ("search for wireless headphones", IntentAction.SEARCH),
    ])
    def test_rule_table(self, command, action):
        intent = self.router.classify(command)

        assert intent.action == action
        assert intent.confidence == HEURISTIC_CONFIDENCE
        assert intent.source == "heuristic"
        self.fallback.classify.assert_not_called()

    def test_first_match_wins(self):
        # Contains "get" (rule 2) and "tool" (rule 3)
        assert self.router.classify("get the tool list").action == IntentAction.RETRIEVE_CONTEXT
        # "store" without "context" falls through to later rules
        assert self.router.classify("store this and search for it").action == IntentAction.SEARCH

    def test_get_matches_inside_words(self):
        assert self.router.classify("set a target").action == IntentAction.RETRIEVE_CONTEXT

    def test_calculation_parameters(self):
        intent = self.router.classify("calculate 15% of 1200")
        assert intent.parameters == {"tool": "calculator", "parameters": {"expression": "calculate 15% of 1200"}}

    def test_reasoning_describes_rule(self):
        intent = self.router.classify("store my preferences context")
        assert intent.reasoning == "contains 'store' AND 'context'"


@pytest.mark.unit
class TestSearchExtraction:

    @pytest.mark.parametrize("command,query,doc_type", [
        ("search for wireless headphones products", "wireless headphones", "products"),
        ("find similar documents about onboarding", "documents about onboarding", "documents"),
        ("Search for red shoes", "red shoes", None),
        ("search quarterly report documents", "quarterly report", "documents"),
    ])
    def test_extract(self, command, query, doc_type):
        assert extract_search_parameters(command) == {"query": query, "type": doc_type}


@pytest.mark.unit
class TestFallbackClassifier:

    def setup_method(self):
        self.gateway = Mock()
        self.classifier = LLMIntentClassifier(self.gateway)
        self.router = IntentRouter(fallback=self.classifier)

    def test_unmatched_command_uses_model(self):
        self.gateway.generate.return_value = json.dumps(
            {"action": "workflow", "parameters": {"description": "weekly sync"}, "confidence": 0.7}
        )

        intent = self.router.classify("plan my weekly sync")

        assert intent.action == IntentAction.WORKFLOW
        assert intent.parameters == {"description": "weekly sync"}
        assert intent.confidence == 0.7
        assert intent.source == "model"
        prompt = self.gateway.generate.call_args[0][0]
        assert prompt.startswith("Analyze this MCP command")
        assert prompt.endswith("Command: plan my weekly sync")

    def test_fenced_json_is_accepted(self):
        self.gateway.generate.return_value = '```json\n{"action": "list_tools", "confidence": 2}\n```'

        intent = self.router.classify("show me what you can do")

        assert intent.action == IntentAction.LIST_TOOLS
        assert intent.confidence == 1.0

    def test_unknown_action_maps_to_other(self):
        self.gateway.generate.return_value = '{"action": "dance", "confidence": 0.9}'
        assert self.router.classify("remove context").action == IntentAction.OTHER

    def test_unreachable_model_gives_other_with_zero_confidence(self):
        self.gateway.generate.side_effect = NetworkError("down")

        intent = self.router.classify("remove context")

        assert intent.action == IntentAction.OTHER
        assert intent.confidence == 0.0
        assert intent.source == "default"

    def test_unparseable_answer_gives_other(self):
        self.gateway.generate.return_value = "I think you want to store something"

        intent = self.router.classify("remember this")

        assert intent.action == IntentAction.OTHER
        assert intent.confidence == 0.0

    def test_router_without_fallback(self):
        intent = IntentRouter().classify("remove context")
        assert intent == Intent(action=IntentAction.OTHER, confidence=0.0, source="default",
                                reasoning="no rule matched and no fallback classifier")


@pytest.mark.unit
class TestParseModelJson:

    def test_prose_around_object(self):
        assert parse_model_json('Sure! {"key": "a", "value": "b"} Hope that helps') == {"key": "a", "value": "b"}

    def test_non_object_rejected(self):
        with pytest.raises(ValueError):
            parse_model_json("[1, 2]")

    def test_no_json_rejected(self):
        with pytest.raises(ValueError):
            parse_model_json("nothing here")
