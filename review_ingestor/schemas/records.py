"""Pydantic schemas describing one decoded line of a review file."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_RECORD_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class ReviewerInfo(BaseModel):
    """Reviewer details embedded in a comment block."""

    model_config = _RECORD_CONFIG

    country_name: str | None = Field(None, alias="countryName")
    display_member_name: str | None = Field(None, alias="displayMemberName")
    room_type_name: str | None = Field(None, alias="roomTypeName")
    length_of_stay: int | None = Field(None, alias="lengthOfStay")
    review_group_name: str | None = Field(None, alias="reviewGroupName")


class CommentBlock(BaseModel):
    """The review itself as reported by a provider."""

    model_config = _RECORD_CONFIG

    hotel_review_id: int | None = Field(None, alias="hotelReviewId")
    provider_id: int | None = Field(None, alias="providerId")
    rating: float | None = None
    check_in_date_month_and_year: str | None = Field(None, alias="checkInDateMonthAndYear")
    review_title: str | None = Field(None, alias="reviewTitle")
    review_comments: str | None = Field(None, alias="reviewComments")
    review_date: str | None = Field(None, alias="reviewDate")
    translate_source: str | None = Field(None, alias="translateSource")
    translate_target: str | None = Field(None, alias="translateTarget")
    reviewer_info: ReviewerInfo | None = Field(None, alias="reviewerInfo")


class ProviderOverall(BaseModel):
    """Aggregate score a provider publishes for the hotel."""

    model_config = _RECORD_CONFIG

    provider_id: int | None = Field(None, alias="providerId")
    provider: str | None = None
    overall_score: float | None = Field(None, alias="overallScore")
    review_count: int | None = Field(None, alias="reviewCount")
    grades: dict[str, float] | None = None


class RawRecord(BaseModel):
    """One JSONL line: a hotel review plus per-provider aggregates."""

    model_config = _RECORD_CONFIG

    hotel_id: int | None = Field(None, alias="hotelId")
    platform: str | None = None
    hotel_name: str | None = Field(None, alias="hotelName")
    comment: CommentBlock | None = None
    overall_by_providers: tuple[ProviderOverall, ...] = Field((), alias="overallByProviders")

    @field_validator("overall_by_providers", mode="before")
    @classmethod
    def _null_providers_as_empty(cls, value: Any) -> Any:
        """Treat an explicit null provider list the same as an absent one."""

        return () if value is None else value

    def missing_required_fields(self) -> list[str]:
        """Return the dotted names of required fields that are absent or null."""

        missing: list[str] = []
        if self.hotel_id is None:
            missing.append("hotelId")
        if self.comment is None:
            missing.append("comment")
        else:
            if self.comment.hotel_review_id is None:
                missing.append("comment.hotelReviewId")
            if self.comment.provider_id is None:
                missing.append("comment.providerId")
        return missing
