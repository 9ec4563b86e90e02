"""
Model gateway for the Context Engine.

Every call to the generative model or the embedding model goes through a
``ModelGateway``. The gateway bounds concurrency with a worker pool, applies
per-call timeouts capped by the caller's ``Deadline``, and retries transient
failures with exponential backoff.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Any, Callable, List, Optional

from .providers.base import BaseLLMProvider
from ..utils.error_handling import ContextEngineError, ExternalServiceError
from ..utils.logging import get_logger, log_performance


class Deadline:
    """Absolute point in time by which a request must finish."""

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    @classmethod
    def from_timeout(cls, timeout: Optional[float]) -> Optional["Deadline"]:
        return cls(timeout) if timeout is not None else None

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def __repr__(self) -> str:
        return f"Deadline(remaining={self.remaining():.2f}s)"


def timeout_error(operation: str, seconds: float) -> ExternalServiceError:
    return ExternalServiceError(
        f"{operation} timed out after {seconds:.2f}s",
        details={"reason": "timeout", "timeout": round(seconds, 3)},
    )


class ModelGateway:
    """
    Bounded, deadline-aware access to the model collaborators.

    Args:
        llm_provider: Text generation provider; may be None when only embeddings are used
        embedding_provider: Any LangChain ``Embeddings``; may be None when search is unused
        config: LLMConfig providing timeout, retry and pool settings
    """

    def __init__(self, llm_provider: Optional[BaseLLMProvider], embedding_provider: Any = None, config: Any = None):
        self.llm_provider = llm_provider
        self.embedding_provider = embedding_provider
        self.config = config
        self.logger = get_logger(__name__)

        self.timeout = getattr(config, "timeout", 30.0)
        self.max_retries = getattr(config, "max_retries", 3)
        self.retry_delay = getattr(config, "retry_delay", 1.0)
        self.model = getattr(config, "model", None) or getattr(llm_provider, "default_model", None)
        self.analysis_model = getattr(config, "analysis_model", None) or self.model

        max_workers = getattr(config, "max_concurrent_requests", 4)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="model-gateway")
        self._closed = False

    def generate(self, prompt: str, model: Optional[str] = None,
                 deadline: Optional[Deadline] = None, retry: bool = True) -> str:
        """Generate text, retrying transient failures.

        Raises:
            ExternalServiceError: On backend failure, or with ``reason="timeout"``
                when the call outlives its timeout or deadline
        """
        if self.llm_provider is None:
            raise ExternalServiceError("No model provider configured", details={"reason": "unconfigured"})

        model = model or self.model
        return self._with_retries(
            f"generate ({model})",
            lambda: self._submit(self.llm_provider.generate, (prompt, model), "Model call", deadline),
            deadline,
            retry,
        )

    def embed(self, text: str, deadline: Optional[Deadline] = None) -> List[float]:
        """Embed one text with the embedding provider."""
        if self.embedding_provider is None:
            raise ExternalServiceError("No embedding provider configured", details={"reason": "unconfigured"})

        return self._with_retries(
            "embed",
            lambda: self._submit(self.embedding_provider.embed_query, (text,), "Embedding call", deadline),
            deadline,
            True,
        )

    def _with_retries(self, operation: str, call: Callable[[], Any],
                      deadline: Optional[Deadline], retry: bool) -> Any:
        attempts = self.max_retries + 1 if retry else 1

        for attempt in range(attempts):
            try:
                with log_performance(f"{operation} attempt {attempt + 1}", level=logging.DEBUG):
                    return call()
            except ExternalServiceError as e:
                if not e.retryable or attempt + 1 >= attempts:
                    raise

                wait_time = self.retry_delay * (2 ** attempt)
                if deadline is not None and deadline.remaining() <= wait_time:
                    raise

                self.logger.warning(f"{operation} failed (attempt {attempt + 1}), retrying in {wait_time:.1f}s: {e}")
                time.sleep(wait_time)

        raise ExternalServiceError(f"{operation} exhausted its retries")

    def _submit(self, func: Callable, args: tuple, operation: str, deadline: Optional[Deadline]) -> Any:
        if self._closed:
            raise ExternalServiceError("Model gateway is shut down")

        timeout = self.timeout
        if deadline is not None:
            remaining = deadline.remaining()
            if remaining <= 0:
                raise timeout_error(operation, 0.0)
            timeout = min(timeout, remaining)

        future = self._executor.submit(func, *args)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            # A running call cannot be interrupted; its worker finishes in the background
            future.cancel()
            raise timeout_error(operation, timeout)
        except ContextEngineError:
            raise
        except Exception as e:
            raise ExternalServiceError(
                f"{operation} failed: {e}", details={"original_error": type(e).__name__}
            ) from e

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting calls and release the worker pool."""
        self._closed = True
        self._executor.shutdown(wait=wait)
        close = getattr(self.llm_provider, "close", None)
        if close:
            close()
