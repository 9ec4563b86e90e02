"""
Unified error handling utilities for the Context Engine.

This module defines the error taxonomy shared by every component and the
decorators that standardize how lower-layer failures are logged and mapped
onto it.
"""

import functools
import logging
from typing import Any, Callable, Optional, Type, Dict

from ..utils.logging import get_logger


class ContextEngineError(Exception):
    """Base exception for all Context Engine errors."""

    error_type = "ContextEngineError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to its tagged, serializable form."""
        return {
            "type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ContextEngineError):
    """Unknown key, tool or document."""
    error_type = "NotFoundError"


class DuplicateNameError(ContextEngineError):
    """A name that must be unique is already taken."""
    error_type = "DuplicateNameError"


class ValidationError(ContextEngineError):
    """Malformed parameters or schema mismatch."""
    error_type = "ValidationError"


class DimensionMismatchError(ValidationError):
    """Embedding length differs from the established dimensionality."""
    error_type = "DimensionMismatchError"

    def __init__(self, expected: int, actual: int, tenant: Optional[str] = None):
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}",
            details={"expected": expected, "actual": actual, "tenant": tenant},
        )
        self.expected = expected
        self.actual = actual


class ExecutionError(ContextEngineError):
    """A tool ran and reported a failure."""
    error_type = "ExecutionError"


class ExternalServiceError(ContextEngineError):
    """Model or embedding backend unreachable, unauthorized or rate-limited."""
    error_type = "ExternalServiceError"

    # Only transient failures are worth another attempt
    retryable = False


class AuthError(ExternalServiceError):
    """Backend rejected the credentials."""
    error_type = "AuthError"


class QuotaError(ExternalServiceError):
    """Backend rate limit or quota exhausted."""
    error_type = "QuotaError"


class NetworkError(ExternalServiceError):
    """Connection failure, timeout or server-side error."""
    error_type = "NetworkError"
    retryable = True


class EmptyResponseError(ExternalServiceError):
    """Backend answered without any usable content."""
    error_type = "EmptyResponseError"


class InternalError(ContextEngineError):
    """Unexpected internal state."""
    error_type = "InternalError"


class ConfigurationError(ContextEngineError):
    """Configuration-related error."""
    error_type = "ConfigurationError"


def as_engine_error(error: BaseException) -> ContextEngineError:
    """Map any exception onto the taxonomy, wrapping unknown ones as InternalError."""
    if isinstance(error, ContextEngineError):
        return error
    return InternalError(
        f"Unexpected error: {error}",
        details={"original_error": type(error).__name__},
    )


def handle_tool_execution(operation_name: str, logger: Optional[logging.Logger] = None):
    """
    Decorator to standardize tool execution error handling.

    Errors already in the taxonomy pass through untouched; ``ValueError`` and
    ``TypeError`` become ``ValidationError``; anything else becomes an
    ``ExecutionError`` chained to the original.

    Args:
        operation_name: Human-readable name of the operation
        logger: Optional logger instance (defaults to operation-specific logger)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            _logger = logger or get_logger(f"context_engine.tools.{operation_name}")

            try:
                _logger.debug(f"Starting {operation_name}")
                result = func(*args, **kwargs)
                _logger.debug(f"{operation_name} completed successfully")
                return result

            except ContextEngineError:
                raise

            except (ValueError, TypeError) as e:
                _logger.error(f"{operation_name} failed - validation error: {e}")
                raise ValidationError(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "validation", "original_error": str(e)}
                ) from e

            except Exception as e:
                _logger.error(f"{operation_name} failed - unexpected error: {e}", exc_info=True)
                raise ExecutionError(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "unexpected", "original_error": str(e)}
                ) from e

        return wrapper

    return decorator


def validate_input(
    data: Any,
    field_name: str,
    expected_type: Type = None,
    required: bool = True,
    validator: Optional[Callable] = None
) -> Any:
    """
    Standardized input validation utility.

    Args:
        data: The data to validate
        field_name: Name of the field being validated
        expected_type: Expected type of the data
        required: Whether the field is required (empty strings count as missing)
        validator: Optional custom validator function

    Returns:
        The validated data

    Raises:
        ValidationError: If validation fails
    """
    if required and (data is None or (isinstance(data, str) and not data.strip())):
        raise ValidationError(f"{field_name} is required", details={"field": field_name})

    if data is not None and expected_type and not isinstance(data, expected_type):
        raise ValidationError(
            f"{field_name} must be of type {expected_type.__name__}, got {type(data).__name__}",
            details={"field": field_name}
        )

    if validator:
        try:
            return validator(data)
        except Exception as e:
            raise ValidationError(f"{field_name} validation failed: {e}") from e

    return data
