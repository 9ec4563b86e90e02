"""
Abstract base classes for model providers in the Context Engine.

This module defines the two collaborator interfaces the engine depends on:
text generation (``BaseLLMProvider``) and embeddings (``EmbeddingProvider``,
a LangChain ``Embeddings``), plus the HTTP plumbing that maps transport and
status failures onto the error taxonomy.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import ConnectionError, Timeout, RequestException
from langchain_core.embeddings import Embeddings

from ...utils.error_handling import (
    AuthError,
    EmptyResponseError,
    ExternalServiceError,
    NetworkError,
    QuotaError,
)
from ...utils.logging import get_logger


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def raise_for_status(response: requests.Response, provider: str) -> None:
    """Map a non-2xx HTTP response onto the error taxonomy."""
    status = response.status_code
    if 200 <= status < 300:
        return

    error_msg = f"{provider} request failed with status {status}"
    try:
        error_data = response.json()
        if isinstance(error_data, dict) and 'error' in error_data:
            error = error_data['error']
            error_msg += f": {error.get('message', error) if isinstance(error, dict) else error}"
    except ValueError:
        error_msg += f": {_preview(response.text, 200)}"

    details = {"provider": provider, "status_code": status}

    if status in (401, 403):
        raise AuthError(error_msg, details=details)
    if status == 429:
        raise QuotaError(error_msg, details=details)
    if status >= 500:
        raise NetworkError(error_msg, details=details)
    raise ExternalServiceError(error_msg, details=details)


def post_json(
    session: requests.Session,
    url: str,
    payload: Dict[str, Any],
    provider: str,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """POST a JSON payload and return the decoded JSON body.

    Raises:
        NetworkError: On connection failures, timeouts and 5xx responses
        AuthError: On 401/403
        QuotaError: On 429
        ExternalServiceError: On other failures or an undecodable body
    """
    try:
        response = session.post(url, json=payload, headers=headers, timeout=timeout)
    except Timeout as e:
        raise NetworkError(
            f"{provider} request timed out after {timeout}s: {e}",
            details={"provider": provider, "reason": "timeout"}
        ) from e
    except ConnectionError as e:
        raise NetworkError(f"{provider} connection failed: {e}", details={"provider": provider}) from e
    except RequestException as e:
        raise NetworkError(f"{provider} request failed: {e}", details={"provider": provider}) from e

    raise_for_status(response, provider)

    try:
        data = response.json()
    except ValueError as e:
        raise ExternalServiceError(
            f"{provider} returned invalid JSON: {e}", details={"provider": provider}
        ) from e

    if not isinstance(data, dict):
        raise ExternalServiceError(f"{provider} returned an unexpected payload", details={"provider": provider})
    return data


def extract_candidate_text(data: Dict[str, Any], provider: str) -> str:
    """Pull the generated text out of a ``generateContent`` response."""
    candidates = data.get("candidates") or []
    if not candidates:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        raise EmptyResponseError(
            f"{provider} returned no candidates" + (f" (blocked: {block_reason})" if block_reason else ""),
            details={"provider": provider, "block_reason": block_reason}
        )

    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        raise EmptyResponseError(
            f"{provider} returned an empty response",
            details={"provider": provider, "finish_reason": candidates[0].get("finishReason")}
        )
    return text


class BaseLLMProvider(ABC):
    """
    Abstract base class for all generative model providers.

    The engine only needs ``generate(prompt, model) -> text``; failures are
    raised as ``ExternalServiceError`` subclasses.
    """

    def __init__(self, config: Any):
        """Initialize the provider with configuration.

        Args:
            config: LLMConfig section of the engine configuration
        """
        self.config = config
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self.default_model = getattr(config, "model", None)
        self.request_count = 0

    @abstractmethod
    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """Generate text from a prompt.

        Args:
            prompt: Prompt text
            model: Model name; the configured default when None

        Returns:
            Generated text

        Raises:
            AuthError: If credentials are rejected
            QuotaError: If rate limited
            NetworkError: If the backend is unreachable or failing
            EmptyResponseError: If no text came back
        """

    def health_check(self) -> bool:
        """Check if the provider is healthy and responding."""
        try:
            return bool(self.generate("Reply with OK.").strip())
        except ExternalServiceError as e:
            self.logger.debug(f"Health check failed: {e}")
            return False

    def close(self) -> None:
        """Release resources (override in subclasses if needed)."""

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        return self.__class__.__name__.replace("Provider", "").lower()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider_name='{self.provider_name}', model='{self.default_model}')"


class HTTPLLMProvider(BaseLLMProvider):
    """Shared plumbing for providers speaking the ``generateContent`` REST API."""

    def __init__(self, config: Any):
        super().__init__(config)
        self.timeout = config.timeout
        self.temperature = config.temperature
        self.max_output_tokens = config.max_output_tokens
        # Session for connection reuse
        self.session = requests.Session()

    @abstractmethod
    def _endpoint(self, model: str) -> str:
        """URL of the generateContent call for ``model``."""

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """Authentication headers for one request."""

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        model = model or self.default_model
        self.request_count += 1
        start_time = time.perf_counter()
        self.logger.debug(f"Sending prompt #{self.request_count} to {model}: {_preview(prompt)}")

        data = post_json(
            self.session,
            self._endpoint(model),
            self._build_payload(prompt),
            provider=self.provider_name,
            timeout=self.timeout,
            headers=self._headers(),
        )
        text = extract_candidate_text(data, self.provider_name)

        response_time = (time.perf_counter() - start_time) * 1000
        self.logger.debug(f"Received response #{self.request_count} ({response_time:.1f}ms): {_preview(text)}")
        return text

    def close(self) -> None:
        self.session.close()


class EmbeddingProvider(Embeddings, ABC):
    """
    Base class for embedding providers.

    Subclasses implement ``embed``; the LangChain ``Embeddings`` methods are
    derived from it so providers plug into LangChain and vice versa.
    """

    def __init__(self):
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embed one text.

        Raises:
            ExternalServiceError: If the backend fails
        """

    def embed_query(self, text: str) -> List[float]:
        return self.embed(text)

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        return [self.embed(text) for text in texts]

    @property
    def provider_name(self) -> str:
        return self.__class__.__name__.replace("EmbeddingProvider", "").lower()

