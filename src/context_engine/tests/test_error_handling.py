"""
Test suite for error handling utilities.

This module tests the error taxonomy, the standardized error handling
decorators and input validation.
"""

import pytest
from unittest.mock import Mock

from context_engine.utils.error_handling import (
    AuthError,
    ConfigurationError,
    ContextEngineError,
    DimensionMismatchError,
    DuplicateNameError,
    EmptyResponseError,
    ExecutionError,
    ExternalServiceError,
    InternalError,
    NetworkError,
    NotFoundError,
    QuotaError,
    ValidationError,
    as_engine_error,
    handle_tool_execution,
    validate_input,
)


class TestErrorTaxonomy:
    """Test the error classes and their tagged form."""

    @pytest.mark.parametrize("error_class,tag", [
        (NotFoundError, "NotFoundError"),
        (DuplicateNameError, "DuplicateNameError"),
        (ValidationError, "ValidationError"),
        (ExecutionError, "ExecutionError"),
        (ExternalServiceError, "ExternalServiceError"),
        (InternalError, "InternalError"),
        (ConfigurationError, "ConfigurationError"),
    ])
    def test_to_dict_tags_error_type(self, error_class, tag):
        error = error_class("something broke", details={"k": "v"})

        assert error.to_dict() == {"type": tag, "message": "something broke", "details": {"k": "v"}}
        assert str(error) == "something broke"

    @pytest.mark.parametrize("error_class", [AuthError, QuotaError, NetworkError, EmptyResponseError])
    def test_backend_errors_are_external_service_errors(self, error_class):
        assert issubclass(error_class, ExternalServiceError)

    def test_only_network_errors_are_retryable(self):
        assert NetworkError("x").retryable is True
        assert ExternalServiceError("x").retryable is False
        assert AuthError("x").retryable is False
        assert QuotaError("x").retryable is False

    def test_dimension_mismatch(self):
        error = DimensionMismatchError(3, 2, tenant="acme")

        assert isinstance(error, ValidationError)
        assert error.expected == 3
        assert error.actual == 2
        assert error.to_dict()["details"] == {"expected": 3, "actual": 2, "tenant": "acme"}

    def test_details_default_to_empty(self):
        assert ContextEngineError("x").details == {}

    def test_as_engine_error(self):
        known = NotFoundError("missing")
        assert as_engine_error(known) is known

        wrapped = as_engine_error(KeyError("boom"))
        assert isinstance(wrapped, InternalError)
        assert wrapped.details["original_error"] == "KeyError"


class TestHandleToolExecution:
    """Test the handle_tool_execution decorator."""

    def test_successful_execution(self):
        """Test decorator with successful function."""
        mock_logger = Mock()

        @handle_tool_execution("test_operation", mock_logger)
        def test_function(value):
            return f"success: {value}"

        assert test_function("test") == "success: test"
        mock_logger.debug.assert_any_call("Starting test_operation")
        mock_logger.debug.assert_called_with("test_operation completed successfully")

    def test_taxonomy_errors_pass_through(self):
        @handle_tool_execution("lookup", Mock())
        def failing():
            raise NotFoundError("nope")

        with pytest.raises(NotFoundError):
            failing()

    def test_value_errors_become_validation_errors(self):
        mock_logger = Mock()

        @handle_tool_execution("parse", mock_logger)
        def failing():
            raise ValueError("bad input")

        with pytest.raises(ValidationError) as exc_info:
            failing()

        assert "parse failed: bad input" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValueError)
        mock_logger.error.assert_called_once()

    def test_unexpected_errors_become_execution_errors(self):
        mock_logger = Mock()

        @handle_tool_execution("failing_operation", mock_logger)
        def failing():
            raise RuntimeError("Test error")

        with pytest.raises(ExecutionError) as exc_info:
            failing()

        assert exc_info.value.details["original_error"] == "Test error"
        assert mock_logger.error.call_args[1]["exc_info"] is True


class TestValidateInput:
    """Test the validate_input helper."""

    def test_valid_value_returned(self):
        assert validate_input("acme", "tenant", str) == "acme"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_required_value(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_input(value, "tenant", str)

        assert exc_info.value.details == {"field": "tenant"}

    def test_optional_value(self):
        assert validate_input(None, "limit", int, required=False) is None

    def test_wrong_type(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_input(5, "tenant", str)

        assert "must be of type str, got int" in exc_info.value.message

    def test_custom_validator(self):
        assert validate_input("5", "limit", str, validator=int) == 5

        with pytest.raises(ValidationError):
            validate_input("five", "limit", str, validator=int)
