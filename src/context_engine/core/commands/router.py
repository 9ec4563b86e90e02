"""
Intent routing for Context Engine commands.

Commands are matched against an ordered table of keyword rules; the first
matching rule decides the action. Commands no rule matches are handed to the
model-backed fallback classifier.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .types import Intent, IntentAction
from ...utils.logging import get_logger


HEURISTIC_CONFIDENCE = 0.9

_SEARCH_PREFIX = re.compile(r".*(?:find similar|search for|search)\s+", re.IGNORECASE | re.DOTALL)
_SEARCH_SUFFIX = re.compile(r"\s+(?:products|documents)\b.*", re.IGNORECASE | re.DOTALL)


def extract_search_parameters(command: str) -> Dict[str, Any]:
    """Pull the query text and optional document type out of a search command."""
    query = _SEARCH_SUFFIX.sub("", _SEARCH_PREFIX.sub("", command, count=1)).strip()

    text = command.lower()
    if "document" in text:
        doc_type = "documents"
    elif "product" in text:
        doc_type = "products"
    else:
        doc_type = None

    return {"query": query or command.strip(), "type": doc_type}


def extract_calculation_parameters(command: str) -> Dict[str, Any]:
    return {"tool": "calculator", "parameters": {"expression": command}}


@dataclass(frozen=True)
class RoutingRule:
    """Keyword rule: every ``all_of`` term and at least one ``any_of`` term must occur."""

    action: IntentAction
    all_of: Tuple[str, ...] = ()
    any_of: Tuple[str, ...] = ()
    extract: Optional[Callable[[str], Dict[str, Any]]] = None

    def matches(self, text: str) -> bool:
        if not all(term in text for term in self.all_of):
            return False
        return not self.any_of or any(term in text for term in self.any_of)

    def describe(self) -> str:
        parts = []
        if self.all_of:
            parts.append(" AND ".join(repr(t) for t in self.all_of))
        if self.any_of:
            parts.append(" OR ".join(repr(t) for t in self.any_of))
        return f"contains {' AND '.join(parts)}"


# Order matters: the first matching rule wins
ROUTING_RULES: Tuple[RoutingRule, ...] = (
    RoutingRule(IntentAction.STORE_CONTEXT, all_of=("store", "context")),
    RoutingRule(IntentAction.RETRIEVE_CONTEXT, any_of=("retrieve", "get")),
    RoutingRule(IntentAction.LIST_TOOLS, any_of=("tool", "available")),
    RoutingRule(IntentAction.EXECUTE_TOOL, any_of=("calculate", "compute"),
                extract=extract_calculation_parameters),
    RoutingRule(IntentAction.SEARCH, any_of=("find similar", "search"),
                extract=extract_search_parameters),
)


class IntentRouter:
    """Classifies raw commands into intents."""

    def __init__(self, fallback=None, rules: Sequence[RoutingRule] = ROUTING_RULES):
        """
        Args:
            fallback: Object with ``classify(command, deadline) -> Intent``, usually an
                LLMIntentClassifier; without one unmatched commands become ``other``
            rules: Ordered keyword rules
        """
        self.fallback = fallback
        self.rules = tuple(rules)
        self.logger = get_logger(__name__)

    def match_rule(self, command: str) -> Optional[Intent]:
        """Apply the keyword rules only."""
        text = command.lower()
        for rule in self.rules:
            if rule.matches(text):
                return Intent(
                    action=rule.action,
                    parameters=rule.extract(command) if rule.extract else {},
                    confidence=HEURISTIC_CONFIDENCE,
                    source="heuristic",
                    reasoning=rule.describe(),
                )
        return None

    def classify(self, command: str, deadline: Optional[Any] = None) -> Intent:
        intent = self.match_rule(command)
        if intent is not None:
            self.logger.debug(f"Heuristic route {intent.action.value} ({intent.reasoning})")
            return intent

        if self.fallback is None:
            return Intent(action=IntentAction.OTHER, confidence=0.0, source="default",
                          reasoning="no rule matched and no fallback classifier")

        intent = self.fallback.classify(command, deadline=deadline)
        self.logger.debug(f"Fallback route {intent.action.value} (confidence {intent.confidence:.2f})")
        return intent
