"""
Vertex AI provider authenticated with a bearer token.
"""

from typing import Any, Dict, Optional

from .base import HTTPLLMProvider
from .credentials import CredentialProvider
from ...utils.error_handling import AuthError, ConfigurationError


class VertexAIProvider(HTTPLLMProvider):
    """Calls the Vertex AI ``generateContent`` endpoint of a Google Cloud project."""

    def __init__(self, config: Any, credentials: CredentialProvider):
        super().__init__(config)
        if not config.project_id:
            raise ConfigurationError(
                "Google Cloud project not configured; set GOOGLE_CLOUD_PROJECT or llm.project_id"
            )
        self.project_id = config.project_id
        self.location = config.location
        self.credentials = credentials
        self.base_url = (config.base_url or f"https://{self.location}-aiplatform.googleapis.com/v1").rstrip('/')

    @property
    def provider_name(self) -> str:
        return "vertex"

    def _endpoint(self, model: str) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}/locations/{self.location}"
            f"/publishers/google/models/{model}:generateContent"
        )

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.credentials.get_token()}"}

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        try:
            return super().generate(prompt, model)
        except AuthError:
            # Expired tokens surface as 401; the next call fetches a fresh one
            self.credentials.invalidate()
            raise
