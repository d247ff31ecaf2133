"""Main FastAPI application."""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from .. import __version__
from ..config import settings
from ..database.connection import dispose_engine, init_db, init_engine
from ..exceptions import (
    AuthenticationRequired, AuthorizationDenied, IngestionError, InvalidRequest,
    NotFound, PropertyServiceError,
)
from ..monitoring.logger import APILogger, setup_logging
from .routes import health, properties

logger = logging.getLogger(__name__)
api_logger = APILogger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the persistent store on startup and release it on shutdown."""
    logger.info("Starting PropertyPulse API...")
    init_engine()
    init_db()
    yield
    logger.info("Shutting down PropertyPulse API...")
    dispose_engine()


# Create FastAPI app
app = FastAPI(
    title="PropertyPulse API",
    description="Property listings with ownership checks and image uploads",
    version=__version__,
    docs_url="/docs" if settings.api.debug else None,
    redoc_url="/redoc" if settings.api.debug else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    api_logger.log_response(request.method, request.url.path, response.status_code, process_time)
    return response


def error_status(exc: PropertyServiceError) -> int:
    """HTTP status code for a service error."""
    if isinstance(exc, InvalidRequest):
        return 400
    if isinstance(exc, AuthenticationRequired):
        return 401
    if isinstance(exc, AuthorizationDenied):
        return settings.api.authorization_denied_status
    if isinstance(exc, NotFound):
        return 404
    return 500


ERROR_MESSAGES = {
    400: "Invalid request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Property not found",
}


# Exception handlers
@app.exception_handler(PropertyServiceError)
async def service_error_handler(request: Request, exc: PropertyServiceError):
    """Translate service errors into generic HTTP responses."""
    status_code = error_status(exc)
    api_logger.log_error(request.method, request.url.path, exc, status_code)

    if isinstance(exc, IngestionError):
        detail = "Failed to upload images"
    else:
        detail = ERROR_MESSAGES.get(status_code, "Something went wrong")
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal server error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Something went wrong"}
    )


# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(properties.router, prefix="/api/properties", tags=["properties"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "PropertyPulse API",
        "version": __version__,
        "docs_url": "/docs" if settings.api.debug else None
    }


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    setup_logging()
    uvicorn.run(app, host=settings.api.host, port=settings.api.port)
