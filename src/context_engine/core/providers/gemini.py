"""
Google AI Studio (Gemini API) provider using an API key.
"""

from typing import Any, Dict

from .base import HTTPLLMProvider
from ...utils.error_handling import AuthError


GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiProvider(HTTPLLMProvider):
    """Calls ``models/{model}:generateContent`` with an ``x-goog-api-key`` header."""

    def __init__(self, config: Any):
        super().__init__(config)
        if not config.api_key:
            raise AuthError(
                "Gemini API key is not configured; set GEMINI_API_KEY or llm.api_key",
                details={"provider": "gemini"}
            )
        self.api_key = config.api_key
        self.base_url = (config.base_url or GEMINI_BASE_URL).rstrip('/')

    def _endpoint(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent"

    def _headers(self) -> Dict[str, str]:
        # Header rather than ?key= so the key never shows up in logged URLs
        return {"x-goog-api-key": self.api_key}
