"""FastAPI application for Review_Ingestor service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..exceptions import ReviewIngestorError
from ..utils.config import ensure_runtime_configuration, get_settings
from ..utils.logging import setup_logger
from .routes import monitoring, reviews

logger = setup_logger(__name__, context={"component": "FastAPI"})


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """Refuse to start without a database URL and bucket; log the source on startup."""

    settings = ensure_runtime_configuration(get_settings())
    logger.info(
        "Review_Ingestor API starting up (source=%s, scheduling=%s)",
        settings.source_location,
        "on" if settings.scheduling.enabled else "off",
        extra={"status": "started"},
    )
    yield
    logger.info("Review_Ingestor API shutting down...", extra={"status": "stopped"})


async def review_ingestor_exception_handler(
    request: Request, exc: ReviewIngestorError
) -> JSONResponse:
    """Render pipeline errors that escape a route (a failed listing) as JSON."""

    logger.error(
        "%s on %s: %s",
        exc.__class__.__name__,
        request.url.path,
        exc,
        extra={"status": "error"},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": "error", "message": str(exc), "error_type": exc.__class__.__name__},
    )


def create_app() -> FastAPI:
    """Build the API: versioned review routes plus unversioned monitoring routes."""

    application = FastAPI(
        title="Review_Ingestor API",
        description="Ingests JSONL hotel review files from S3 into the review database",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.add_exception_handler(ReviewIngestorError, review_ingestor_exception_handler)
    application.include_router(reviews.router, prefix="/api/v1", tags=["reviews"])
    application.include_router(monitoring.router, tags=["monitoring"])
    return application


app = create_app()
