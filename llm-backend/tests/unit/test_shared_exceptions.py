"""Unit tests for shared/utils/exceptions.py: custom exception hierarchy."""
import pytest
from fastapi import HTTPException

from shared.utils.exceptions import (
    BoringCourseException,
    CanvasAPIError,
    UpstreamUnavailableError,
    ValidationFailureError,
)


# ---------------------------------------------------------------------------
# BoringCourseException base class
# ---------------------------------------------------------------------------

class TestBoringCourseException:

    def test_is_exception_subclass(self):
        assert issubclass(BoringCourseException, Exception)

    def test_default_http_status_is_500(self):
        http_exc = BoringCourseException("boom").to_http_exception()
        assert isinstance(http_exc, HTTPException)
        assert http_exc.status_code == 500
        assert http_exc.detail == "boom"


# ---------------------------------------------------------------------------
# Upstream failures
# ---------------------------------------------------------------------------

class TestUpstreamUnavailableError:

    def test_maps_to_bad_gateway(self):
        exc = UpstreamUnavailableError("LLM", "timed out")
        assert exc.upstream == "LLM"
        assert str(exc) == "LLM unavailable: timed out"
        assert exc.to_http_exception().status_code == 502

    def test_canvas_error_includes_status(self):
        exc = CanvasAPIError("Invalid access token", status_code=401)
        assert isinstance(exc, UpstreamUnavailableError)
        assert exc.status_code == 401
        assert "Canvas API error 401" in str(exc)
        assert exc.to_http_exception().status_code == 502

    def test_canvas_error_without_status(self):
        exc = CanvasAPIError("connection refused")
        assert exc.status_code is None
        assert str(exc) == "Canvas unavailable: connection refused"


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------

class TestCallerErrors:

    def test_validation_failure_names_field(self):
        http_exc = ValidationFailureError("x-canvas-token", "missing").to_http_exception()
        assert http_exc.status_code == 422
        assert http_exc.detail["field"] == "x-canvas-token"

    @pytest.mark.parametrize("exc", [
        UpstreamUnavailableError("LLM", "x"),
        ValidationFailureError("f", "x"),
    ])
    def test_all_share_base(self, exc):
        with pytest.raises(BoringCourseException):
            raise exc
