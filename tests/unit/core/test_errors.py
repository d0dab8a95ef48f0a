"""Tests for custom error classes."""

from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from core.errors import (
    APIError,
    PermissionDeniedError,
    RateLimitError,
    ResourceNotFoundError,
    TablePopulationError,
    TemplateValidationError,
    ValidationError,
    WorkspaceMCPError,
    format_error,
    handle_http_error,
)


def _http_error(status: int, reason: str = "Error") -> HttpError:
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.reason = reason
    return HttpError(mock_resp, reason.encode())


class TestErrorHierarchy:
    """Test error class inheritance."""

    def test_base_error_is_exception(self):
        assert issubclass(WorkspaceMCPError, Exception)

    def test_validation_error_inherits_base(self):
        assert issubclass(ValidationError, WorkspaceMCPError)

    def test_template_validation_error_is_validation_error(self):
        assert issubclass(TemplateValidationError, ValidationError)

    def test_api_error_inherits_base(self):
        assert issubclass(APIError, WorkspaceMCPError)

    @pytest.mark.parametrize(
        "error_class",
        [RateLimitError, ResourceNotFoundError, PermissionDeniedError, TablePopulationError],
    )
    def test_api_subclasses(self, error_class):
        assert issubclass(error_class, APIError)


class TestAPIError:
    """Test APIError class."""

    def test_api_error_with_status_code(self):
        error = APIError("Test error", status_code=500)
        assert error.status_code == 500
        assert str(error) == "Test error"

    def test_api_error_without_status_code(self):
        error = APIError("Test error")
        assert error.status_code is None
        assert error.is_transient is False

    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    def test_transient_statuses(self, status):
        assert APIError("x", status_code=status).is_transient is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_permanent_statuses(self, status):
        assert APIError("x", status_code=status).is_transient is False

    def test_api_error_is_catchable_as_base(self):
        with pytest.raises(WorkspaceMCPError):
            raise APIError("Test")

    def test_rate_limit_defaults_to_429(self):
        error = RateLimitError("slow down")
        assert error.status_code == 429
        assert error.is_transient is True


class TestTemplateValidationError:
    def test_errors_default_to_message(self):
        error = TemplateValidationError("bad template")
        assert error.errors == ["bad template"]

    def test_errors_are_kept(self):
        error = TemplateValidationError("bad", errors=["a: missing", "b: invalid"])
        assert error.errors == ["a: missing", "b: invalid"]


class TestTablePopulationError:
    def test_stores_document_id(self):
        error = TablePopulationError("failed", status_code=500, document_id="doc123")
        assert error.document_id == "doc123"
        assert error.status_code == 500


class TestHandleHttpError:
    def test_404_maps_to_not_found(self):
        error = handle_http_error(_http_error(404), "doc123")
        assert isinstance(error, ResourceNotFoundError)
        assert "doc123" in str(error)
        assert error.status_code == 404

    def test_403_maps_to_permission_denied(self):
        error = handle_http_error(_http_error(403))
        assert isinstance(error, PermissionDeniedError)
        assert error.status_code == 403

    def test_401_maps_to_api_error(self):
        error = handle_http_error(_http_error(401))
        assert type(error) is APIError
        assert "re-authenticate" in str(error)

    def test_429_maps_to_rate_limit(self):
        error = handle_http_error(_http_error(429))
        assert isinstance(error, RateLimitError)

    def test_500_keeps_status(self):
        error = handle_http_error(_http_error(500, "Backend Error"))
        assert type(error) is APIError
        assert error.status_code == 500
        assert error.is_transient is True

    def test_api_error_passes_through(self):
        original = RateLimitError("already mapped")
        assert handle_http_error(original) is original

    def test_other_exception_has_no_status(self):
        error = handle_http_error(RuntimeError("boom"))
        assert error.status_code is None
        assert "boom" in str(error)


class TestFormatError:
    def test_includes_operation_and_message(self):
        assert format_error("insert_markdown", ValidationError("bad")) == "insert_markdown failed: bad"
