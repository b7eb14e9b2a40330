"""Create reviews, overall_ratings and processed_files tables."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op as alembic_op  # type: ignore[import-untyped]

revision = "20251006_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the review tables, their natural-key constraints and indexes."""

    alembic_op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("hotel_id", sa.BigInteger(), nullable=False),
        sa.Column("platform", sa.String(length=50), nullable=True),
        sa.Column("hotel_name", sa.String(length=255), nullable=True),
        sa.Column("review_id", sa.String(length=100), nullable=False),
        sa.Column("provider_id", sa.BigInteger(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("review_title", sa.String(length=500), nullable=True),
        sa.Column("review_comments", sa.Text(), nullable=True),
        sa.Column("review_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_in_date", sa.String(length=50), nullable=True),
        sa.Column("reviewer_country", sa.String(length=100), nullable=True),
        sa.Column("reviewer_name", sa.String(length=255), nullable=True),
        sa.Column("room_type", sa.String(length=255), nullable=True),
        sa.Column("length_of_stay", sa.Integer(), nullable=True),
        sa.Column("review_group_name", sa.String(length=255), nullable=True),
        sa.Column("translate_source", sa.String(length=10), nullable=True),
        sa.Column("translate_target", sa.String(length=10), nullable=True),
        sa.Column("source_file", sa.String(length=500), nullable=True),
        sa.Column(
            "processed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("review_id", "provider_id", name="uq_reviews_review_provider"),
    )
    alembic_op.create_index("ix_reviews_hotel_id", "reviews", ["hotel_id"])
    alembic_op.create_index("ix_reviews_platform", "reviews", ["platform"])
    alembic_op.create_index("ix_reviews_review_date", "reviews", ["review_date"])
    alembic_op.create_index("ix_reviews_source_file", "reviews", ["source_file"])

    alembic_op.create_table(
        "overall_ratings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("hotel_id", sa.BigInteger(), nullable=False),
        sa.Column("provider_id", sa.BigInteger(), nullable=False),
        sa.Column("provider", sa.String(length=100), nullable=True),
        sa.Column("overall_score", sa.Float(), nullable=True),
        sa.Column("review_count", sa.Integer(), nullable=True),
        sa.Column("grades", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "hotel_id", "provider_id", name="uq_overall_ratings_hotel_provider"
        ),
    )
    alembic_op.create_index("ix_overall_ratings_provider", "overall_ratings", ["provider"])

    alembic_op.create_table(
        "processed_files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("filename", sa.String(length=500), nullable=False, unique=True),
        sa.Column(
            "processed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("records_processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "processing_duration_ms", sa.BigInteger(), nullable=False, server_default="0"
        ),
    )
    alembic_op.create_index(
        "ix_processed_files_processed_at", "processed_files", ["processed_at"]
    )


def downgrade() -> None:
    """Drop the review tables and related indexes."""

    alembic_op.drop_index("ix_processed_files_processed_at", table_name="processed_files")
    alembic_op.drop_table("processed_files")
    alembic_op.drop_index("ix_overall_ratings_provider", table_name="overall_ratings")
    alembic_op.drop_table("overall_ratings")
    alembic_op.drop_index("ix_reviews_source_file", table_name="reviews")
    alembic_op.drop_index("ix_reviews_review_date", table_name="reviews")
    alembic_op.drop_index("ix_reviews_platform", table_name="reviews")
    alembic_op.drop_index("ix_reviews_hotel_id", table_name="reviews")
    alembic_op.drop_table("reviews")
