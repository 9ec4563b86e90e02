"""
Model-backed intent classifier.

Used by the router only when none of the keyword rules match. It asks the
model for a JSON ``{action, parameters, confidence}`` answer and degrades to
``other`` with confidence 0 when the model is unreachable or the answer
cannot be parsed.
"""

import json
import re
from typing import Any, Dict, Optional

from .types import Intent, IntentAction
from ...utils.error_handling import ExternalServiceError
from ...utils.logging import get_logger


CLASSIFICATION_PROMPT = (
    'Analyze this MCP command and return JSON with: '
    '{"action": "store_context|retrieve_context|list_tools|execute_tool|search|workflow|other", '
    '"parameters": {...}, "confidence": 0.0-1.0}\n'
    'Command: %s'
)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_model_json(text: str) -> Dict[str, Any]:
    """Decode a JSON object from a model answer.

    Models like to wrap JSON in code fences or surround it with prose, so the
    fences are stripped and the outermost ``{...}`` is tried as a last resort.

    Raises:
        ValueError: If no JSON object can be found
    """
    cleaned = _FENCE_PATTERN.sub("", text.strip()).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError(f"No JSON object in model response: {cleaned[:100]}")
        data = json.loads(cleaned[start:end + 1])

    if not isinstance(data, dict):
        raise ValueError("Model response is not a JSON object")
    return data


class LLMIntentClassifier:
    """Fallback classifier asking the model collaborator through the gateway."""

    def __init__(self, gateway):
        """
        Args:
            gateway: ModelGateway used for the classification call
        """
        self.gateway = gateway
        self.logger = get_logger(__name__)

    def classify(self, command: str, deadline: Optional[Any] = None) -> Intent:
        try:
            response = self.gateway.generate(CLASSIFICATION_PROMPT % command, deadline=deadline)
        except ExternalServiceError as e:
            self.logger.warning(f"Model classification unavailable: {e}")
            return Intent(
                action=IntentAction.OTHER,
                confidence=0.0,
                source="default",
                reasoning=f"fallback classifier unavailable: {e.error_type}",
            )

        try:
            return self._parse_classification_response(response)
        except (ValueError, TypeError) as e:
            self.logger.warning(f"Failed to parse model classification: {e}")
            return Intent(
                action=IntentAction.OTHER,
                confidence=0.0,
                source="default",
                reasoning="unparseable classification",
            )

    def _parse_classification_response(self, response: str) -> Intent:
        data = parse_model_json(response)

        parameters = data.get("parameters") or {}
        if not isinstance(parameters, dict):
            parameters = {}

        confidence = min(1.0, max(0.0, float(data.get("confidence", 0.5))))

        return Intent(
            action=IntentAction.parse(data.get("action", "other")),
            parameters=parameters,
            confidence=confidence,
            source="model",
            reasoning=str(data.get("reasoning", "model classification")),
        )
