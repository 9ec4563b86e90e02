"""
Command processing for the Context Engine: intent routing and dispatch.
"""

from .types import IntentAction, Intent, CommandResult
from .router import IntentRouter, RoutingRule, ROUTING_RULES, HEURISTIC_CONFIDENCE
from .llm_classifier import LLMIntentClassifier, parse_model_json
from .processor import CommandProcessor

__all__ = [
    "IntentAction",
    "Intent",
    "CommandResult",
    "IntentRouter",
    "RoutingRule",
    "ROUTING_RULES",
    "HEURISTIC_CONFIDENCE",
    "LLMIntentClassifier",
    "parse_model_json",
    "CommandProcessor",
]
