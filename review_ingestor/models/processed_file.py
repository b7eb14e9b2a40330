"""SQLAlchemy model for the processed-file ledger."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .review import utcnow


class ProcessedFile(Base):
    """Ledger entry written once a file's processing attempt concludes."""

    __tablename__ = "processed_files"
    __table_args__ = (Index("ix_processed_files_processed_at", "processed_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    records_processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processing_duration_ms: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""

        return (
            f"<ProcessedFile id={self.id} filename={self.filename} "
            f"records={self.records_processed}>"
        )
