"""
In-process provider for offline use and tests.

Responses can be scripted with a list, a callable, or left to the defaults,
which answer classification and extraction prompts with well-formed JSON.
"""

import json
import re
import threading
import time
from typing import Any, Callable, List, Optional, Union

from .base import BaseLLMProvider


Responder = Callable[[str, Optional[str]], str]


class MockLLMProvider(BaseLLMProvider):
    """
    Deterministic ``generate`` implementation.

    Args:
        config: Optional LLMConfig
        responses: Answers returned in order; an ``Exception`` instance is raised instead
        handler: Callable ``(prompt, model) -> text`` used once ``responses`` run out
        delay: Seconds to sleep before answering
    """

    def __init__(
        self,
        config: Any = None,
        responses: Optional[List[Union[str, Exception]]] = None,
        handler: Optional[Responder] = None,
        delay: float = 0.0,
    ):
        super().__init__(config)
        self.default_model = getattr(config, "model", None) or "mock-model"
        self._responses = list(responses or [])
        self.handler = handler
        self.delay = delay
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    @property
    def provider_name(self) -> str:
        return "mock"

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        model = model or self.default_model
        with self._lock:
            self.request_count += 1
            self.calls.append((prompt, model))
            scripted = self._responses.pop(0) if self._responses else None

        if self.delay:
            time.sleep(self.delay)

        if isinstance(scripted, Exception):
            raise scripted
        if scripted is not None:
            return scripted
        if self.handler is not None:
            return self.handler(prompt, model)
        return default_response(prompt)

    def queue(self, *responses: Union[str, Exception]) -> None:
        """Append scripted responses."""
        with self._lock:
            self._responses.extend(responses)


def default_response(prompt: str) -> str:
    """Canned answer keyed on the shape of the prompt."""
    if "Extract the key and value" in prompt:
        command = prompt.rsplit("Command:", 1)[-1].strip()
        words = re.findall(r"[\w.-]+", command)
        key = words[-2] if len(words) >= 2 else (words[0] if words else "")
        value = words[-1] if words else ""
        return json.dumps({"key": key, "value": value})

    if "Analyze this MCP command" in prompt:
        return json.dumps({"action": "other", "parameters": {}, "confidence": 0.3})

    return "OK"
