"""Schemas package initialization."""
from .api import Page, ProcessedFileOut, ProcessingRunResponse, ReviewOut
from .entities import (
    BatchSummary,
    ObjectDescriptor,
    OverallRatingEntity,
    ProcessingResult,
    ReviewEntity,
    RunState,
    TransformedRecord,
    UpsertOutcome,
)
from .records import CommentBlock, ProviderOverall, RawRecord, ReviewerInfo

__all__ = [
    "BatchSummary",
    "CommentBlock",
    "ObjectDescriptor",
    "OverallRatingEntity",
    "Page",
    "ProcessedFileOut",
    "ProcessingResult",
    "ProcessingRunResponse",
    "ProviderOverall",
    "RawRecord",
    "ReviewEntity",
    "ReviewOut",
    "ReviewerInfo",
    "RunState",
    "TransformedRecord",
    "UpsertOutcome",
]
