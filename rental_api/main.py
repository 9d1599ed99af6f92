"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
from jose import JWTError
import logging

from rental_api.config import settings
from rental_api.database import check_database_connection, close_db_connection, create_tables
from rental_api.routers import auth, properties
from rental_api.utils.exceptions import APIException
from rental_api.services.error_handler import ErrorHandlerService
from rental_api.middleware.request_context import RequestContextMiddleware

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await check_database_connection()
    if not db_connected:
        logger.error("Failed to connect to database on startup")
    elif settings.create_tables_on_startup:
        await create_tables()

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    REST backend for a property rental listing platform.

    ## Features

    * **Accounts**: customer and administrator registration with JWT authentication
    * **Property Management**: CRUD for listings with featured image, gallery and video uploads
    * **Search**: filter by text, city, state, rooms, monthly price range, flags and amenities
    * **Likes**: users like properties and list the ones they liked

    ## Authentication

    Obtain a token from `/api/auth/login` and send it as `Authorization: Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Registration, login, profile and user administration"
        },
        {
            "name": "Properties",
            "description": "Property listing management, search and likes"
        },
        {
            "name": "Health",
            "description": "Service status endpoints"
        }
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time"],
)

# Room for a full multipart batch: 1 featured image, 10 gallery images, 3 videos
app.add_middleware(
    RequestContextMiddleware,
    max_request_size=settings.max_file_size * 15,
    enable_request_logging=not settings.is_testing
)

app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(properties.router, prefix=settings.api_prefix)

app.mount(
    settings.media_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads"
)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors with appropriate error responses."""
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(JWTError)
async def jwt_exception_handler(request: Request, exc: JWTError):
    """Handle token errors with 401 responses."""
    return ErrorHandlerService.handle_jwt_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle framework HTTP exceptions with structured error responses."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint providing basic API information.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_prefix
    }


@app.get("/ping", tags=["Health"])
async def ping():
    return {"status": "success", "message": "pong"}


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by container health checks and load balancers.
    """
    db_healthy = await check_database_connection()

    if not db_healthy:
        logger.error("Health check failed: database unreachable")
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rental_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
