"""Pydantic schemas for the HTTP trigger and browsing endpoints."""
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ReviewOut(BaseModel):
    """A stored review as returned by the browsing endpoint."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    hotel_id: int
    platform: str | None = None
    hotel_name: str | None = None
    review_id: str
    provider_id: int
    rating: float | None = None
    review_title: str | None = None
    review_comments: str | None = None
    review_date: datetime | None = None
    check_in_date: str | None = None
    reviewer_country: str | None = None
    reviewer_name: str | None = None
    room_type: str | None = None
    length_of_stay: int | None = None
    review_group_name: str | None = None
    translate_source: str | None = None
    translate_target: str | None = None
    source_file: str | None = None
    created_at: datetime
    updated_at: datetime


class ProcessedFileOut(BaseModel):
    """A ledger entry as returned by the browsing endpoint."""

    model_config = ConfigDict(from_attributes=True)

    filename: str
    processed_at: datetime
    records_processed: int
    processing_duration_ms: int


class Page(BaseModel, Generic[T]):
    """One page of results with zero-based page numbering."""

    items: list[T] = Field(default_factory=list, description="Rows on this page")
    page: int = Field(..., ge=0, description="Zero-based page number")
    size: int = Field(..., ge=1, description="Requested page size")
    total: int = Field(..., ge=0, description="Total number of rows")


class ProcessingRunResponse(BaseModel):
    """Response schema for a manually triggered batch run."""

    status: str = Field(..., description="Status: 'success' or 'error'")
    message: str = Field(..., description="Human-readable status message")
    summary: dict[str, Any] | None = Field(None, description="Aggregated run summary")
