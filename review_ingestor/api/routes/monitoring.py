"""Operational endpoints: liveness with database status, Prometheus scrape."""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError

from ...models.base import check_database
from ...utils.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Report service health; unhealthy when the review database is unreachable."""

    try:
        await asyncio.to_thread(check_database)
        database: dict[str, Any] = {"status": "ok"}
    except SQLAlchemyError as exc:
        database = {"status": "error", "message": str(exc)}

    settings = get_settings()
    return {
        "status": "healthy" if database["status"] == "ok" else "unhealthy",
        "service": "review_ingestor",
        "database": database,
        "source": settings.source_location,
        "scheduling_enabled": settings.scheduling.enabled,
    }


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose pipeline metrics in the Prometheus text format."""

    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
