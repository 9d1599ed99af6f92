"""
Error handling service for consistent error response formatting and logging.
Translates known database and token failures into API errors and hides
everything else behind a generic message.
"""

from typing import Dict, Any, Optional, List, Union
from datetime import datetime, timezone
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, DataError, DBAPIError, StatementError
from pydantic import ValidationError as PydanticValidationError
from jose import JWTError, ExpiredSignatureError
from rental_api.config import settings
from rental_api.utils.exceptions import (
    APIException,
    ConflictError,
    ValidationError,
    InvalidTokenError,
    TokenExpiredError,
    classify_integrity_error,
)
import logging
import traceback
import uuid

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ErrorHandlerService:
    """
    Service for handling and formatting errors consistently across the application.
    Provides structured error responses with appropriate logging and error codes.
    """

    @staticmethod
    def format_error_response(
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None,
        exception: Optional[BaseException] = None
    ) -> Dict[str, Any]:
        """
        Format error response in a consistent structure.

        Args:
            status_code: HTTP status code of the response
            error_code: Error code identifier
            message: Human-readable error message
            details: Optional list of detailed error information
            request_id: Optional request identifier for tracking
            exception: Original exception, described in development mode

        Returns:
            Formatted error response dictionary
        """
        response = {
            "status": "fail" if 400 <= status_code < 500 else "error",
            "error": {
                "code": error_code,
                "message": message,
                "timestamp": ErrorHandlerService._get_current_timestamp(),
            }
        }

        if details:
            response["error"]["details"] = details

        if request_id:
            response["error"]["request_id"] = request_id

        if exception is not None and settings.is_development:
            response["error"]["debug"] = {
                "type": type(exception).__name__,
                "message": str(exception),
                "stack": traceback.format_exception(type(exception), exception, exception.__traceback__),
            }

        return response

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None,
        original: Optional[BaseException] = None
    ) -> JSONResponse:
        """
        Handle custom API exceptions with structured response.

        Operational errors keep their message. Non-operational ones are logged
        with traceback and answered with the generic message.

        Args:
            exception: API exception instance
            request: Optional FastAPI request object
            original: Exception the API error was translated from, if any

        Returns:
            JSON response with formatted error
        """
        request_id = ErrorHandlerService._get_request_id(request)
        operational = exception.is_operational

        log = logger.error if exception.status_code >= 500 or not operational else logger.warning
        log(
            f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}",
            extra={
                "error_code": exception.error_code,
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            },
            exc_info=None if operational else exception
        )

        details = getattr(exception, "field_errors", None)
        error_response = ErrorHandlerService.format_error_response(
            status_code=exception.status_code,
            error_code=exception.error_code or "API_ERROR",
            message=exception.detail if operational else GENERIC_ERROR_MESSAGE,
            details=details if operational else None,
            request_id=request_id,
            exception=original or exception
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        exception: Union[RequestValidationError, PydanticValidationError],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle request and Pydantic validation errors with detailed field information.

        Args:
            exception: Validation error raised by FastAPI or Pydantic
            request: Optional FastAPI request object

        Returns:
            400 JSON response with validation error details
        """
        validation_details = []
        for error in exception.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            validation_details.append({
                "field": field_path,
                "message": error["msg"],
                "type": error["type"],
            })

        api_error = ValidationError("Request validation failed", field_errors=validation_details)
        return ErrorHandlerService.handle_api_exception(api_error, request, original=exception)

    @staticmethod
    def handle_database_error(
        exception: SQLAlchemyError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle database errors with appropriate error responses.

        Unique violations become conflicts, other constraint violations and
        malformed data become validation errors. Anything else is unexpected.

        Args:
            exception: SQLAlchemy error
            request: Optional FastAPI request object

        Returns:
            JSON response with database error information
        """
        if isinstance(exception, IntegrityError):
            constraint_info = classify_integrity_error(exception)
            if constraint_info == "unique":
                api_error = ConflictError("Duplicate value for unique field. Please use another value")
            else:
                api_error = ValidationError(
                    f"Invalid input data: {constraint_info or 'constraint violation'}"
                )
        elif isinstance(exception, DataError) or (
            isinstance(exception, StatementError) and not isinstance(exception, DBAPIError)
        ):
            api_error = ValidationError("Invalid input data")
        else:
            return ErrorHandlerService.handle_unexpected_error(exception, request)

        return ErrorHandlerService.handle_api_exception(api_error, request, original=exception)

    @staticmethod
    def handle_jwt_error(
        exception: JWTError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Handle token errors that escaped the authentication dependency."""
        if isinstance(exception, ExpiredSignatureError):
            api_error = TokenExpiredError()
        else:
            api_error = InvalidTokenError()
        return ErrorHandlerService.handle_api_exception(api_error, request, original=exception)

    @staticmethod
    def handle_http_exception(
        exception: StarletteHTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle framework HTTP exceptions such as unknown routes.

        Args:
            exception: HTTP exception
            request: Optional FastAPI request object

        Returns:
            JSON response with HTTP error information
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.warning(
            f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}",
            extra={
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        error_code = "NOT_FOUND" if exception.status_code == 404 else f"HTTP_{exception.status_code}"
        message = exception.detail
        if exception.status_code == 404 and request is not None:
            message = f"Can't find {request.url.path} on this server"

        error_response = ErrorHandlerService.format_error_response(
            status_code=exception.status_code,
            error_code=error_code,
            message=str(message),
            request_id=request_id
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle unexpected errors with secure error responses.

        Args:
            exception: Unexpected exception
            request: Optional FastAPI request object

        Returns:
            JSON response with generic error message
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {str(exception)}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__
            },
            exc_info=exception
        )

        error_response = ErrorHandlerService.format_error_response(
            status_code=500,
            error_code="INTERNAL_SERVER_ERROR",
            message=GENERIC_ERROR_MESSAGE,
            request_id=request_id,
            exception=exception
        )

        return JSONResponse(status_code=500, content=error_response)

    @staticmethod
    def _get_request_id(request: Optional[Request]) -> str:
        """Request id assigned by the request context middleware, or a fresh one."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]

    @staticmethod
    def _get_current_timestamp() -> str:
        """Get current UTC timestamp in ISO format."""
        return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"
