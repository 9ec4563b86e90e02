"""
Model provider layer for the Context Engine.

Usage:
    from context_engine.core.providers import create_llm_provider, create_embedding_provider

    provider = create_llm_provider(config)
    text = provider.generate("Hello!")
"""

from .base import (
    BaseLLMProvider,
    HTTPLLMProvider,
    EmbeddingProvider,
    post_json,
    raise_for_status,
    extract_candidate_text,
)
from .credentials import (
    CredentialProvider,
    StaticCredentialProvider,
    EnvCredentialProvider,
    GcloudCredentialProvider,
)
from .gemini import GeminiProvider
from .vertex import VertexAIProvider
from .mock import MockLLMProvider
from .embeddings import GeminiEmbeddingProvider, HashEmbeddingProvider
from .factory import (
    create_llm_provider,
    create_embedding_provider,
    create_credential_provider,
)

__all__ = [
    # Base classes
    "BaseLLMProvider",
    "HTTPLLMProvider",
    "EmbeddingProvider",
    "post_json",
    "raise_for_status",
    "extract_candidate_text",

    # Credentials
    "CredentialProvider",
    "StaticCredentialProvider",
    "EnvCredentialProvider",
    "GcloudCredentialProvider",

    # Providers
    "GeminiProvider",
    "VertexAIProvider",
    "MockLLMProvider",
    "GeminiEmbeddingProvider",
    "HashEmbeddingProvider",

    # Factory
    "create_llm_provider",
    "create_embedding_provider",
    "create_credential_provider",
]
