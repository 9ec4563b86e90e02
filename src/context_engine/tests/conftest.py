"""
Shared pytest configuration for Context Engine tests.

This file provides shared fixtures and markers for all test modules.
"""

import pytest

from context_engine.config.models import ContextEngineConfig, LLMConfig, EmbeddingsConfig
from context_engine.core.model_gateway import ModelGateway
from context_engine.core.providers import MockLLMProvider, HashEmbeddingProvider
from context_engine.tools import ToolRegistry, ToolContext, register_builtin_tools


@pytest.fixture
def engine_config():
    """Offline configuration: mock model, hash embeddings, fast retries."""
    return ContextEngineConfig(
        llm=LLMConfig(provider="mock", model="mock-model", timeout=2.0, max_retries=2, retry_delay=0.0),
        embeddings=EmbeddingsConfig(provider="hash", dimension=64),
    )


@pytest.fixture
def mock_provider(engine_config):
    return MockLLMProvider(engine_config.llm)


@pytest.fixture
def hash_embeddings():
    return HashEmbeddingProvider(dimension=64)


@pytest.fixture
def gateway(mock_provider, hash_embeddings, engine_config):
    gateway = ModelGateway(mock_provider, hash_embeddings, engine_config.llm)
    yield gateway
    gateway.shutdown()


@pytest.fixture
def builtin_registry():
    registry = ToolRegistry()
    register_builtin_tools(registry)
    return registry


@pytest.fixture
def tool_context(builtin_registry, gateway):
    return ToolContext(tenant_id="acme", gateway=gateway, registry=builtin_registry, analysis_model="mock-analysis")


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "concurrency: marks tests exercising concurrent access"
    )
