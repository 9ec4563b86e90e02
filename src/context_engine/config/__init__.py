"""
Context Engine Configuration System

This module provides easy access to configuration loading and management.
Import the main functions you need:

    from context_engine.config import get_config, load_config

Basic usage:
    config = get_config()
    print(config.app.name)                       # "Context Engine MCP"
    print(config.llm.model)                      # "gemini-1.5-flash"
    print(config.llm.max_concurrent_requests)    # 4
"""

from .loader import (
    load_config,
    get_config,
    reload_config,
    validate_config_file,
    ConfigLoader,
)

from .models import (
    ContextEngineConfig,
    AppConfig,
    LLMConfig,
    EmbeddingsConfig,
    ToolsConfig,
    ContextConfig,
    SearchConfig,
    PerformanceConfig,
    LogLevel,
    Provider,
    EmbeddingProviderType,
    CredentialSource,
)

from ..utils.error_handling import ConfigurationError

__all__ = [
    # Main functions
    "get_config",
    "load_config",
    "reload_config",
    "validate_config_file",
    "ConfigLoader",

    # Exception
    "ConfigurationError",

    # Configuration models
    "ContextEngineConfig",
    "AppConfig",
    "LLMConfig",
    "EmbeddingsConfig",
    "ToolsConfig",
    "ContextConfig",
    "SearchConfig",
    "PerformanceConfig",

    # Enums
    "LogLevel",
    "Provider",
    "EmbeddingProviderType",
    "CredentialSource",
]
