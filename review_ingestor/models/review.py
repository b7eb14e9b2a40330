"""SQLAlchemy model for normalized hotel reviews."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


class Review(Base):
    """One provider review of a hotel, unique per ``(review_id, provider_id)``."""

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("review_id", "provider_id", name="uq_reviews_review_provider"),
        Index("ix_reviews_hotel_id", "hotel_id"),
        Index("ix_reviews_platform", "platform"),
        Index("ix_reviews_review_date", "review_date"),
        Index("ix_reviews_source_file", "source_file"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    hotel_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    platform: Mapped[str | None] = mapped_column(String(50), nullable=True)
    hotel_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    review_id: Mapped[str] = mapped_column(String(100), nullable=False)
    provider_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    review_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    review_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    review_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_in_date: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reviewer_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reviewer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    room_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    length_of_stay: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review_group_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    translate_source: Mapped[str | None] = mapped_column(String(10), nullable=True)
    translate_target: Mapped[str | None] = mapped_column(String(10), nullable=True)
    source_file: Mapped[str | None] = mapped_column(String(500), nullable=True)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""

        return (
            f"<Review id={self.id} review_id={self.review_id} "
            f"provider_id={self.provider_id} hotel_id={self.hotel_id}>"
        )
