"""FastAPI application with standardized error handling.

The Neo4j client, the LLM client and the services built on them are created
once in the lifespan, stored on app.state and handed to routes via Depends.
"""

import os
import platform
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from db.neo4j import GraphClient
from db.travel_graph import TravelGraphRepository
from middleware import LoggingMiddleware, RequestIDMiddleware
from models.errors import (
    ErrorType,
    create_error_response,
    create_validation_error_response,
)
from routers import chat, knowledge, profiles
from routers.deps import get_graph_client
from services.extractor import InsightExtractor
from services.graph_writer import GraphWriter
from services.llm import LLMClient, LLMServiceError, PromptTooLargeError
from services.recommender import RecommendationGenerator
from utils.logging import configure_logging, get_logger

APP_VERSION = "0.1.0"
APP_NAME = "Travel Knowledge API"

logger = get_logger(__name__)


def get_request_id(request: Request) -> str | None:
    """Extract request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("X-Request-ID")


async def graph_status(client: GraphClient) -> str:
    """connected, disabled (no credentials), or unreachable."""
    if not client.enabled:
        return "disabled"
    if await client.verify_connectivity():
        return "connected"
    return "unreachable"


def log_startup_banner(settings: Settings, graph: str):
    """Log structured startup information."""
    environment = "development" if settings.debug else "production"
    port = int(os.getenv("PORT", os.getenv("UVICORN_PORT", "8000")))
    host = os.getenv("HOST", os.getenv("UVICORN_HOST", "127.0.0.1"))

    logger.info(
        "Application startup complete",
        extra={
            "event": "startup",
            "app_name": APP_NAME,
            "app_version": APP_VERSION,
            "environment": environment,
            "host": host,
            "port": port,
            "python_version": platform.python_version(),
            "services": {"neo4j": graph},
            "config": {
                "cors_origins": settings.cors_origins,
                "llm_model": settings.llm_model,
                "persist_extended_preferences": settings.persist_extended_preferences,
                "normalize_graph_keys": settings.normalize_graph_keys,
            },
        },
    )
    logger.info(f"App: {APP_NAME} v{APP_VERSION} ({environment})")
    logger.info(f"Listening on: http://{host}:{port}")
    if graph != "connected":
        logger.warning(f"Knowledge graph {graph}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared clients and services; close them on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level, json_format=not settings.debug)

    logger.info(f"{APP_NAME} v{APP_VERSION} starting up...")

    graph_client = GraphClient.from_settings(settings)
    graph_client.connect()
    repository = TravelGraphRepository(graph_client, normalize_keys=settings.normalize_graph_keys)
    graph = await graph_status(graph_client)
    if graph == "connected":
        await repository.ensure_schema()

    llm = LLMClient(settings=settings)
    writer = GraphWriter(repository, settings)

    app.state.graph_client = graph_client
    app.state.repository = repository
    app.state.llm = llm
    app.state.extractor = InsightExtractor(llm, writer, settings)
    app.state.recommender = RecommendationGenerator(llm, repository, settings)

    log_startup_banner(settings, graph)

    try:
        yield
    finally:
        logger.info("Shutting down...", extra={"event": "shutdown"})
        await llm.close()
        await graph_client.close()
        logger.info("Shutdown complete")


app = FastAPI(
    title=APP_NAME,
    description="Travel preference knowledge graph and recommendation API",
    version=APP_VERSION,
    lifespan=lifespan,
)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with field details."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        errors.append(
            {
                "field": field,
                "message": error.get("msg", "Validation error"),
                "type": error.get("type", "value_error"),
            }
        )

    response = create_validation_error_response(
        message="Request validation failed",
        errors=errors,
        request_id=get_request_id(request),
        path=str(request.url.path),
    )

    logger.warning(
        f"Validation error on {request.method} {request.url.path}: "
        f"{len(errors)} error(s)"
    )

    return JSONResponse(status_code=422, content=response)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions with the standard error body."""
    error_type_map = {
        400: ErrorType.BAD_REQUEST,
        404: ErrorType.NOT_FOUND,
        413: ErrorType.PAYLOAD_TOO_LARGE,
        503: ErrorType.SERVICE_UNAVAILABLE,
    }

    error_type = error_type_map.get(exc.status_code, ErrorType.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    response = create_error_response(
        error=error_type,
        message=message,
        request_id=get_request_id(request),
        path=str(request.url.path),
    )

    return JSONResponse(status_code=exc.status_code, content=response)


@app.exception_handler(LLMServiceError)
async def llm_service_exception_handler(
    request: Request, exc: LLMServiceError
) -> JSONResponse:
    """Model provider failures map to 502."""
    details = {"model": exc.model}
    if exc.status_code is not None:
        details["upstream_status"] = exc.status_code

    response = create_error_response(
        error=ErrorType.EXTERNAL_SERVICE_ERROR,
        message="The language model request failed",
        details=details,
        request_id=get_request_id(request),
        path=str(request.url.path),
    )

    return JSONResponse(status_code=502, content=response)


@app.exception_handler(PromptTooLargeError)
async def prompt_too_large_exception_handler(
    request: Request, exc: PromptTooLargeError
) -> JSONResponse:
    response = create_error_response(
        error=ErrorType.PAYLOAD_TOO_LARGE,
        message=str(exc),
        details={
            "estimated_tokens": exc.estimated_tokens,
            "max_tokens": exc.max_tokens,
        },
        request_id=get_request_id(request),
        path=str(request.url.path),
    )

    return JSONResponse(status_code=413, content=response)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internals."""
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}"
    )

    response = create_error_response(
        error=ErrorType.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        request_id=get_request_id(request),
        path=str(request.url.path),
    )

    return JSONResponse(status_code=500, content=response)


# =============================================================================
# Middleware (order matters: last added = first executed on request)
# =============================================================================

app.add_middleware(LoggingMiddleware)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID", "Accept"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)

# Outermost, so every log line of the request carries its ID
app.add_middleware(RequestIDMiddleware)

# =============================================================================
# Routers
# =============================================================================

app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(
    knowledge.router, prefix="/api/knowledge-insights", tags=["Knowledge Insights"]
)
app.include_router(profiles.router, prefix="/api/knowledge-graph", tags=["Knowledge Graph"])


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/ready")
async def readiness_check(graph_client: GraphClient = Depends(get_graph_client)):
    """Readiness probe.

    A disabled graph (no credentials) is still ready; a configured graph that
    cannot be reached is not.
    """
    graph = await graph_status(graph_client)
    ready = graph != "unreachable"
    status = {"ready": ready, "checks": {"neo4j": graph}}

    if not ready:
        return JSONResponse(status_code=503, content=status)

    return status


@app.get("/health/live")
async def liveness_check():
    """Liveness probe; does not touch external dependencies."""
    return {"alive": True}


@app.get("/")
async def root():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "docs": "/docs",
    }
