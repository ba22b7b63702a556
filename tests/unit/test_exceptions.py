"""Unit tests for the exception hierarchy."""

import pytest

from src.utils.exceptions import (
    AcquisitionError,
    AppException,
    AuthError,
    ConfigFileNotFoundError,
    NotFoundError,
    ParseError,
    RateLimitedError,
    TransportError,
    ValidationError,
)


class TestAppException:
    """Test the base exception."""

    def test_default_code_from_class_name(self):
        error = NotFoundError("gone")
        assert error.code == "NOT_FOUND_ERROR"

    def test_str_includes_code(self):
        error = AppException("boom", code="APP_001")
        assert str(error) == "[APP_001] boom"

    def test_to_dict(self):
        error = ConfigFileNotFoundError(path="/tmp/x.yaml")
        data = error.to_dict()
        assert data["error_type"] == "ConfigFileNotFoundError"
        assert data["code"] == "CONFIG_FILE_NOT_FOUND"
        assert data["context"] == {"path": "/tmp/x.yaml"}


class TestAcquisitionError:
    """Test operation and identifier reporting."""

    def test_message_names_operation_and_identifier(self):
        error = NotFoundError("no page", operation="detail", identifier="123")
        assert error.message == "detail not_found for '123': no page"
        assert error.reason == "no page"
        assert error.context["operation"] == "detail"
        assert error.context["identifier"] == "123"

    def test_message_without_identifier(self):
        error = AuthError("no key", operation="credential")
        assert error.message == "credential auth: no key"

    @pytest.mark.parametrize("error_class,kind", [
        (AuthError, "auth"),
        (RateLimitedError, "rate_limited"),
        (NotFoundError, "not_found"),
        (ParseError, "parse"),
        (TransportError, "transport"),
        (ValidationError, "validation"),
    ])
    def test_kinds(self, error_class, kind):
        error = error_class("x")
        assert isinstance(error, AcquisitionError)
        assert error.kind == kind
        assert error.context["kind"] == kind

    def test_rate_limited_retry_after(self):
        error = RateLimitedError(retry_after=30.0, operation="search")
        assert error.retry_after == 30.0
        assert error.context["retry_after"] == 30.0
        assert "upstream throttled" in error.message

    def test_parse_error_records_size_only(self):
        error = ParseError("no data", document_size=2048, operation="detail")
        assert error.document_size == 2048
        assert error.message.endswith("(document size 2048 bytes)")

    def test_transport_status(self):
        error = TransportError("HTTP 503", status=503)
        assert error.status == 503
        assert error.context["status"] == 503

    def test_validation_field(self):
        error = ValidationError("bad months", field="months", operation="calendar")
        assert error.field == "months"
        assert error.context["field"] == "months"
