# src/studiorank/main.py

"""Main FastAPI application for StudioRank."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import leaderboard
from .db.session import engine
from .exceptions import (
    ResourceNotFoundError,
    ScoringEngineError,
    StudioRankError,
    ValidationError,
)
from .middleware.logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown events."""
    yield
    # Shutdown: Dispose of database connections gracefully
    await engine.dispose()


app = FastAPI(title="StudioRank API", lifespan=lifespan)

app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Global Exception Handlers
# =============================================================================


@app.exception_handler(ResourceNotFoundError)
async def resource_not_found_handler(
    request: Request, exc: ResourceNotFoundError
) -> JSONResponse:
    """Handle all resource not found errors -> 404."""
    logger.warning("Resource not found: %s", exc.message, extra=exc.details)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle all validation errors -> 422."""
    logger.warning("Validation error: %s", exc.message, extra=exc.details)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


@app.exception_handler(ScoringEngineError)
async def scoring_engine_error_handler(
    request: Request, exc: ScoringEngineError
) -> JSONResponse:
    """Handle aborted computation runs -> 503."""
    logger.error(
        "Scoring engine error: %s", exc.message, extra=exc.details, exc_info=True
    )
    return JSONResponse(
        status_code=503,
        content={
            "detail": "Leaderboard computation failed",
            "error_type": type(exc).__name__,
        },
    )


@app.exception_handler(StudioRankError)
async def studiorank_error_handler(
    request: Request, exc: StudioRankError
) -> JSONResponse:
    """Catch-all for any other StudioRank errors -> 500."""
    logger.error("StudioRank error: %s", exc.message, extra=exc.details, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Catch-all for SQLAlchemy errors, e.g. a failed snapshot write."""
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal database error occurred"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred"},
    )


app.include_router(leaderboard.router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
