"""Review Schemas: review payloads, the review representation and rating read-through.

Invariants:
    - rating and category scores are 1-5 at the boundary; core re-validates
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    job_id: UUID
    reviewee_id: UUID
    rating: int = Field(ge=1, le=5)
    title: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=1000)
    categories: dict[str, int] | None = None


class ReviewUpdate(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    title: str | None = Field(None, min_length=1, max_length=100)
    content: str | None = Field(None, min_length=1, max_length=1000)
    categories: dict[str, int] | None = None


class HelpfulVote(BaseModel):
    is_helpful: bool


class FlagCreate(BaseModel):
    reason: str


class ReviewReply(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class ModerationDecision(BaseModel):
    status: str
    reason: str | None = Field(None, max_length=500)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reviewer_id: UUID
    reviewee_id: UUID
    job_id: UUID
    rating: int
    title: str
    content: str
    categories: dict[str, int]
    status: str
    helpful_votes_up: int
    helpful_by: list[str]
    response_content: str | None = None
    response_created_at: datetime | None = None
    created_at: datetime


class RatingResponse(BaseModel):
    user_id: UUID
    average: float
    total_reviews: int
    distribution: dict[str, int]
    categories: dict[str, float]
