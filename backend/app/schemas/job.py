"""Job Schemas: create/update payloads and the public job representation.

Invariants:
    - Shape and length checks only; budget ordering and coordinate ranges are
      enforced by core/enforce_job_transitions.py so the rule lives in one place
    - HH:MM time window strings
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.domain_types import ExperienceLevel, JobCategory

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class RequirementsIn(BaseModel):
    skills: list[str] = Field(default_factory=list)
    experience: ExperienceLevel = ExperienceLevel.ANY
    verified_only: bool = False
    notes: str | None = Field(None, max_length=500)


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=2000)
    category: JobCategory
    budget_min: int
    budget_max: int
    budget_negotiable: bool = True
    latitude: float
    longitude: float
    address: dict | None = None
    max_distance_km: int | None = None
    preferred_date: date
    preferred_time_start: str = Field(pattern=TIME_PATTERN)
    preferred_time_end: str = Field(pattern=TIME_PATTERN)
    requirements: RequirementsIn | None = None
    is_urgent: bool = False


class JobUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=2000)
    category: JobCategory | None = None
    budget_min: int | None = None
    budget_max: int | None = None
    budget_negotiable: bool | None = None
    latitude: float | None = None
    longitude: float | None = None
    address: dict | None = None
    max_distance_km: int | None = None
    preferred_date: date | None = None
    preferred_time_start: str | None = Field(None, pattern=TIME_PATTERN)
    preferred_time_end: str | None = Field(None, pattern=TIME_PATTERN)
    requirements: RequirementsIn | None = None
    is_urgent: bool | None = None


class CompleteJobRequest(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    review: str | None = Field(None, max_length=1000)


class CancelJobRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class SaveToggleResponse(BaseModel):
    is_saved: bool
    saved_count: int


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: UUID
    assigned_to_id: UUID | None
    title: str
    description: str
    category: str
    status: str
    payment_status: str | None
    is_urgent: bool
    budget_min: int
    budget_max: int
    budget_negotiable: bool
    latitude: float
    longitude: float
    address: dict
    max_distance_km: int
    preferred_date: date
    preferred_time_start: str
    preferred_time_end: str
    requirements: dict
    views: int
    applications: int
    saved_count: int
    cancellation_reason: str | None = None
    cancelled_by_id: UUID | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    accepted_at: datetime | None = None
    completed_at: datetime | None = None
