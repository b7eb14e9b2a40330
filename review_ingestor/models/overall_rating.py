"""SQLAlchemy model for per-provider hotel aggregates."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .review import utcnow


class OverallRating(Base):
    """Aggregate score of one provider for one hotel."""

    __tablename__ = "overall_ratings"
    __table_args__ = (
        UniqueConstraint("hotel_id", "provider_id", name="uq_overall_ratings_hotel_provider"),
        Index("ix_overall_ratings_provider", "provider"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hotel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    provider_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    provider: Mapped[str | None] = mapped_column(String(100), nullable=True)
    overall_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    review_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    grades: Mapped[dict[str, float] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""

        return (
            f"<OverallRating id={self.id} hotel_id={self.hotel_id} "
            f"provider_id={self.provider_id} score={self.overall_score}>"
        )
