"""
Connection Analyzer Service - Main Application
==============================================

FastAPI application serving partnership recommendations from the
partner graph.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.connection_analyzer.engine import RecommendationEngine
from services.connection_analyzer.errors import ConnectionAnalyzerError, InvalidIdentifierError
from services.connection_analyzer.routes import connections
from shared.config import settings
from shared.database.neo4j import Neo4jClient
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="connection-analyzer",
)

logger = get_logger(__name__)

SERVICE_NAME = "connection-analyzer"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "connection_analyzer_starting",
        environment=settings.environment.value,
        port=settings.ports.connection_analyzer,
    )

    # Startup
    graph = Neo4jClient(settings.neo4j)
    try:
        await graph.connect(
            attempts=settings.sync.connect_attempts,
            backoff_seconds=settings.sync.connect_backoff_seconds,
        )
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        await graph.close()
        raise

    app.state.graph = graph
    app.state.engine = RecommendationEngine(graph, settings.recommendation)

    yield

    # Shutdown
    logger.info("connection_analyzer_shutting_down")
    await graph.close()


# Create FastAPI application
app = FastAPI(
    title="Partner Graph Connection Analyzer",
    description="Graph-native partnership recommendations between businesses",
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request) -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and the graph store.
    """
    graph: Neo4jClient | None = getattr(request.app.state, "graph", None)
    if graph is None:
        neo4j_health: dict[str, Any] = {"status": "unhealthy", "error": "not connected"}
    else:
        neo4j_health = await graph.health_check()

    return HealthResponse.from_components(
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        components={"neo4j": neo4j_health},
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Partner Graph Connection Analyzer",
        "version": SERVICE_VERSION,
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    connections.router,
    prefix="/api/v1/connections",
    tags=["Connections"],
)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(ConnectionAnalyzerError)
async def analyzer_exception_handler(request: Request, exc: ConnectionAnalyzerError) -> JSONResponse:
    """Map domain errors to structured responses."""
    logger.warning(
        "request_rejected",
        status_code=exc.status_code,
        error_code=exc.error_code,
        error=exc.message,
        path=request.url.path,
    )
    body = ErrorResponse(error=exc.message, error_code=exc.error_code, details=exc.details or None)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed query parameters as invalid identifiers."""
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    error = InvalidIdentifierError("Invalid request parameters", details={"fields": fields})
    return await analyzer_exception_handler(request, error)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    body = ErrorResponse(error=str(exc.detail), error_code=f"http_{exc.status_code}")
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    body = ErrorResponse(error="Internal server error", error_code="internal_error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.connection_analyzer.main:app",
        host="0.0.0.0",
        port=settings.ports.connection_analyzer,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
