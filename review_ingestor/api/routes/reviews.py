"""Review processing trigger and browsing endpoints."""

import asyncio

from fastapi import APIRouter, Depends, Query

from ...models.repository import list_processed_files, list_reviews
from ...pipeline import process_new_files
from ...schemas.api import Page, ProcessedFileOut, ProcessingRunResponse, ReviewOut
from ...utils.logging import setup_logger
from ..dependencies import require_api_key

logger = setup_logger(__name__, context={"component": "ReviewsAPI"})
router = APIRouter(dependencies=[Depends(require_api_key)])

MAX_PAGE_SIZE = 200


@router.post("/reviews/process", response_model=ProcessingRunResponse)
async def process_reviews() -> ProcessingRunResponse:
    """
    Run one batch synchronously and report its outcome.

    Only the listing phase decides success: per-file and per-line failures are
    reported in the summary and logs, not as an error response. A listing
    failure propagates to the application-level error handler.

    Returns:
        ProcessingRunResponse with the aggregated run summary
    """
    logger.info("Manual review processing triggered", extra={"status": "started"})
    summary = await asyncio.to_thread(process_new_files)

    return ProcessingRunResponse(
        status="success",
        message=(
            f"Review processing completed: {summary.files_succeeded} files, "
            f"{summary.records_processed} records"
        ),
        summary=summary.as_dict(),
    )


@router.get("/reviews", response_model=Page[ReviewOut])
async def get_reviews(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
) -> Page[ReviewOut]:
    """Return one page of stored reviews ordered by id."""

    rows, total = await asyncio.to_thread(list_reviews, page=page, size=size)
    return Page[ReviewOut](
        items=[ReviewOut.model_validate(row) for row in rows],
        page=page,
        size=size,
        total=total,
    )


@router.get("/reviews/processed-files", response_model=Page[ProcessedFileOut])
async def get_processed_files(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
) -> Page[ProcessedFileOut]:
    """Return one page of processed-file ledger entries, most recent first."""

    rows, total = await asyncio.to_thread(list_processed_files, page=page, size=size)
    return Page[ProcessedFileOut](
        items=[ProcessedFileOut.model_validate(row) for row in rows],
        page=page,
        size=size,
        total=total,
    )
