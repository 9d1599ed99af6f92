"""
Tests for error handling and validation.
Tests custom exceptions, error response formatting, validation utilities
and the request context middleware.
"""

import json
import pytest
from decimal import Decimal
from unittest.mock import Mock

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from rental_api.config import settings
from rental_api.middleware.request_context import RequestContextMiddleware
from rental_api.services.error_handler import ErrorHandlerService, GENERIC_ERROR_MESSAGE
from rental_api.utils.exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    InternalServerError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
    FileSizeExceededError,
)
from rental_api.utils.validators import ValidationUtils


def body(response) -> dict:
    return json.loads(response.body)


class TestExceptions:
    """Test the exception taxonomy."""

    def test_status_follows_status_code(self):
        assert ValidationError("bad").status == "fail"
        assert NotFoundError("User").status == "fail"
        assert InternalServerError().status == "error"

    def test_every_api_exception_is_operational(self):
        for exc in (ValidationError("x"), ConflictError("x"), ForbiddenError(), InternalServerError()):
            assert isinstance(exc, APIException)
            assert exc.is_operational is True

    def test_messages(self):
        assert PropertyNotFoundError("abc").detail == "Property not found with ID: abc"
        assert InsufficientPermissionsError("delete users").detail == "You do not have permission to delete users"
        assert "50MB" in FileSizeExceededError("movie.mp4", 50 * 1024 * 1024).detail

    def test_unauthorized_sets_authenticate_header(self):
        assert UnauthorizedError().headers == {"WWW-Authenticate": "Bearer"}


class TestErrorHandlerService:
    """Test error handler service functionality."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            status_code=400,
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "test", "message": "Test field error"}],
            request_id="test123"
        )

        assert response["status"] == "fail"
        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Test error message"
        assert response["error"]["request_id"] == "test123"
        assert response["error"]["details"][0]["field"] == "test"
        assert response["error"]["timestamp"].endswith("Z")
        assert "debug" not in response["error"]

    def test_server_errors_use_error_status(self):
        response = ErrorHandlerService.format_error_response(500, "INTERNAL_SERVER_ERROR", "boom")
        assert response["status"] == "error"

    def test_debug_block_in_development(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")

        try:
            raise KeyError("missing")
        except KeyError as exc:
            response = ErrorHandlerService.format_error_response(500, "INTERNAL_SERVER_ERROR", "boom", exception=exc)

        debug = response["error"]["debug"]
        assert debug["type"] == "KeyError"
        assert "missing" in debug["message"]
        assert any("raise KeyError" in line for line in debug["stack"])

    def test_handle_api_exception(self):
        response = ErrorHandlerService.handle_api_exception(ValidationError("Test validation error"))

        assert response.status_code == 400
        data = body(response)
        assert data["status"] == "fail"
        assert data["error"]["code"] == "VALIDATION_ERROR"
        assert data["error"]["message"] == "Test validation error"
        assert data["error"]["request_id"]

    def test_handle_validation_error(self):
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "email"), "msg": "Field required", "type": "missing", "input": None},
            {"loc": ("query", "page"), "msg": "Input should be a valid integer", "type": "int_parsing", "input": "x"},
        ]

        response = ErrorHandlerService.handle_validation_error(mock_error)

        assert response.status_code == 400
        details = body(response)["error"]["details"]
        assert [detail["field"] for detail in details] == ["body -> email", "query -> page"]

    def test_unique_violation_is_conflict(self):
        error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))

        response = ErrorHandlerService.handle_database_error(error)

        assert response.status_code == 409
        assert body(response)["error"]["code"] == "CONFLICT"
        assert body(response)["error"]["message"].startswith("Duplicate value")

    def test_other_integrity_violation_is_validation_error(self):
        error = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: properties.city"))

        response = ErrorHandlerService.handle_database_error(error)

        assert response.status_code == 400
        assert body(response)["error"]["code"] == "VALIDATION_ERROR"
        assert "not null" in body(response)["error"]["message"]

    def test_data_error_is_validation_error(self):
        error = DataError("SELECT", {}, Exception("invalid input syntax for type uuid"))
        assert ErrorHandlerService.handle_database_error(error).status_code == 400

    def test_other_database_errors_are_hidden(self):
        error = OperationalError("SELECT", {}, Exception("connection refused on 10.0.0.5"))

        response = ErrorHandlerService.handle_database_error(error)

        assert response.status_code == 500
        data = body(response)
        assert data["status"] == "error"
        assert data["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert "10.0.0.5" not in json.dumps(data)

    def test_jwt_errors(self):
        expired = ErrorHandlerService.handle_jwt_error(ExpiredSignatureError("Signature has expired."))
        invalid = ErrorHandlerService.handle_jwt_error(JWTError("Signature verification failed."))

        assert expired.status_code == invalid.status_code == 401
        assert body(expired)["error"]["message"] == "Your token has expired. Please log in again"
        assert body(invalid)["error"]["message"] == "Invalid token. Please log in again"

    def test_handle_unexpected_error(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret internals"))

        assert response.status_code == 500
        data = body(response)
        assert data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert data["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert "secret internals" not in json.dumps(data)

    def test_non_operational_api_exception_is_hidden(self):
        class BrokenInvariantError(InternalServerError):
            is_operational = False

        response = ErrorHandlerService.handle_api_exception(BrokenInvariantError("like count went negative"))

        assert response.status_code == 500
        data = body(response)
        assert data["status"] == "error"
        assert data["error"]["message"] == GENERIC_ERROR_MESSAGE
        assert "like count" not in json.dumps(data)

    def test_operational_api_exception_keeps_message(self):
        response = ErrorHandlerService.handle_api_exception(ConflictError("You have already liked this property"))

        assert response.status_code == 409
        assert body(response)["error"]["message"] == "You have already liked this property"


class TestValidationUtils:
    """Test validation utilities."""

    @pytest.mark.parametrize("raw, expected", [
        (None, None),
        ("", []),
        ('["wifi", "pool"]', ["wifi", "pool"]),
        ("wifi, pool ,  gym", ["wifi", "pool", "gym"]),
        (["wifi", " "], ["wifi"]),
    ])
    def test_parse_amenities(self, raw, expected):
        assert ValidationUtils.parse_amenities(raw) == expected

    @pytest.mark.parametrize("raw", ["[wifi", '["wifi",', "[1, 2"])
    def test_parse_amenities_invalid_json(self, raw):
        with pytest.raises(ValidationError, match="Invalid amenities format"):
            ValidationUtils.parse_amenities(raw)

    @pytest.mark.parametrize("raw, expected", [
        (None, None),
        (True, True),
        (False, False),
        ("true", True),
        ("TRUE", True),
        ("false", False),
        ("yes", False),
    ])
    def test_coerce_bool(self, raw, expected):
        assert ValidationUtils.coerce_bool(raw) is expected

    def test_validate_pagination_defaults(self):
        assert ValidationUtils.validate_pagination(None, None) == (1, 10)

    @pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101), ("x", 10)])
    def test_validate_pagination_invalid(self, page, limit):
        with pytest.raises(ValidationError):
            ValidationUtils.validate_pagination(page, limit)

    def test_validate_sort_parameters(self):
        fields = ["name", "price_per_month"]

        assert ValidationUtils.validate_sort_parameters(None, None, fields) == ("name", "asc")
        assert ValidationUtils.validate_sort_parameters("price_per_month", "DESC", fields) == ("price_per_month", "desc")

        with pytest.raises(ValidationError):
            ValidationUtils.validate_sort_parameters("hashed_password", None, fields)
        with pytest.raises(ValidationError):
            ValidationUtils.validate_sort_parameters("name", "sideways", fields)

    def test_validate_price_range(self):
        ValidationUtils.validate_price_range(Decimal("1000"), Decimal("1000"))
        ValidationUtils.validate_price_range(None, Decimal("10"))

        with pytest.raises(ValidationError, match="Minimum price"):
            ValidationUtils.validate_price_range(Decimal("2000"), Decimal("1000"))


class TestRequestContextMiddleware:
    """Request ids, timing headers and body size limits."""

    @pytest.fixture
    async def small_app_client(self):
        small_app = FastAPI()
        small_app.add_middleware(RequestContextMiddleware, max_request_size=64, enable_request_logging=False)

        @small_app.post("/echo")
        async def echo():
            return {"status": "success"}

        async with AsyncClient(transport=ASGITransport(app=small_app), base_url="http://test") as client:
            yield client

    async def test_headers_added(self, small_app_client: AsyncClient):
        response = await small_app_client.post("/echo", content=b"tiny")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 8
        assert float(response.headers["X-Processing-Time"]) >= 0

    async def test_oversized_body_rejected(self, small_app_client: AsyncClient):
        response = await small_app_client.post("/echo", content=b"x" * 65)

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "BAD_REQUEST"
        assert data["error"]["request_id"] == response.headers["X-Request-ID"]
