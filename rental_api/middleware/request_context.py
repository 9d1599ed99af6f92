"""
Request context middleware.
Assigns a request id, rejects oversized bodies up front and logs each request.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from rental_api.services.error_handler import ErrorHandlerService
from rental_api.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request tracking and preprocessing.
    Stamps X-Request-ID and X-Processing-Time on every response.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 10 * 1024 * 1024,
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request through the middleware.

        Args:
            request: FastAPI request object
            call_next: Next middleware/handler in chain

        Returns:
            Response object
        """
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()

        try:
            self._validate_request_size(request)
        except BadRequestError as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        if self.enable_request_logging:
            self._log_request(request, request_id)

        response = await call_next(request)

        processing_time = time.time() - start_time
        if self.enable_request_logging:
            self._log_response(request, response, request_id, processing_time)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time:.4f}"

        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Validate request content length.

        Raises:
            BadRequestError: If request size exceeds limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return

        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")

        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )

    def _log_request(self, request: Request, request_id: str) -> None:
        client_ip = request.client.host if request.client else "unknown"
        logger.info(
            f"Request [{request_id}]: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": client_ip
            }
        )

    def _log_response(self, request: Request, response: Response, request_id: str, processing_time: float) -> None:
        logger.info(
            f"Response [{request_id}]: {response.status_code} in {processing_time:.4f}s",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "path": request.url.path,
                "processing_time": processing_time
            }
        )
