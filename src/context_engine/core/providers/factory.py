"""
Provider factory for the Context Engine.

Maps the configured provider names onto concrete generation, embedding and
credential providers so the rest of the engine only sees the base interfaces.
"""

from typing import Callable, Dict

from .base import BaseLLMProvider, EmbeddingProvider
from .credentials import (
    CredentialProvider,
    EnvCredentialProvider,
    GcloudCredentialProvider,
    StaticCredentialProvider,
)
from .embeddings import GeminiEmbeddingProvider, HashEmbeddingProvider
from .gemini import GeminiProvider
from .mock import MockLLMProvider
from .vertex import VertexAIProvider
from ...config.models import (
    ContextEngineConfig,
    CredentialSource,
    EmbeddingProviderType,
    LLMConfig,
    Provider,
)
from ...utils.error_handling import ConfigurationError
from ...utils.logging import get_logger


logger = get_logger(__name__)


def create_credential_provider(llm_config: LLMConfig) -> CredentialProvider:
    """Build the bearer-token source selected by ``llm.credential_source``."""
    source = llm_config.credential_source
    if source == CredentialSource.STATIC:
        if not llm_config.access_token:
            raise ConfigurationError("llm.access_token is required for static credentials")
        return StaticCredentialProvider(llm_config.access_token)
    if source == CredentialSource.ENV:
        return EnvCredentialProvider()
    return GcloudCredentialProvider()


_LLM_BUILDERS: Dict[Provider, Callable[[LLMConfig], BaseLLMProvider]] = {
    Provider.GEMINI: GeminiProvider,
    Provider.VERTEX: lambda cfg: VertexAIProvider(cfg, create_credential_provider(cfg)),
    Provider.MOCK: lambda cfg: MockLLMProvider(cfg),
}


def create_llm_provider(config: ContextEngineConfig) -> BaseLLMProvider:
    """Create the generation provider named by ``llm.provider``.

    Raises:
        ConfigurationError: For unknown providers
        AuthError: When the provider's credentials are missing
    """
    provider = config.llm.provider
    builder = _LLM_BUILDERS.get(provider)
    if builder is None:
        raise ConfigurationError(f"Unknown LLM provider: {provider}",
                                 details={"available": [p.value for p in _LLM_BUILDERS]})

    instance = builder(config.llm)
    logger.info(f"Created {instance.provider_name} provider with model {instance.default_model}")
    return instance


def create_embedding_provider(config: ContextEngineConfig) -> EmbeddingProvider:
    """Create the embedding provider named by ``embeddings.provider``."""
    settings = config.embeddings
    if settings.provider == EmbeddingProviderType.HASH:
        instance = HashEmbeddingProvider(settings.dimension)
    elif settings.provider == EmbeddingProviderType.GEMINI:
        instance = GeminiEmbeddingProvider(
            api_key=config.llm.api_key,
            model=settings.model,
            base_url=config.llm.base_url,
            timeout=config.llm.timeout,
        )
    else:
        raise ConfigurationError(f"Unknown embedding provider: {settings.provider}")

    logger.info(f"Created {instance.provider_name} embedding provider")
    return instance
