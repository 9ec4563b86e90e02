"""
Context Engine Utilities

This module provides logging and error handling used throughout the engine.
"""

from .logging import (
    setup_logging,
    get_logger,
    log_performance,
    log_config_info,
)

from .error_handling import (
    ContextEngineError,
    NotFoundError,
    DuplicateNameError,
    ValidationError,
    DimensionMismatchError,
    ExecutionError,
    ExternalServiceError,
    AuthError,
    QuotaError,
    NetworkError,
    EmptyResponseError,
    InternalError,
    ConfigurationError,
    as_engine_error,
    handle_tool_execution,
    validate_input,
)

__all__ = [
    # Logging utilities
    "setup_logging",
    "get_logger",
    "log_performance",
    "log_config_info",

    # Error taxonomy
    "ContextEngineError",
    "NotFoundError",
    "DuplicateNameError",
    "ValidationError",
    "DimensionMismatchError",
    "ExecutionError",
    "ExternalServiceError",
    "AuthError",
    "QuotaError",
    "NetworkError",
    "EmptyResponseError",
    "InternalError",
    "ConfigurationError",
    "as_engine_error",

    # Error handling helpers
    "handle_tool_execution",
    "validate_input",
]
