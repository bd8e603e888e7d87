from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from wiseup.models.candidate import MAX_EXPERTISE_AREAS, MAX_SKILLS


class LanguageRequirement(BaseModel):
    language_id: UUID
    level_id: UUID

    model_config = {"frozen": True, "from_attributes": True}


class CareerElement(BaseModel):
    kind: Literal["job", "education"]
    from_date: date
    until_date: date | None = None
    position_id: UUID | None = None
    degree_id: UUID | None = None

    model_config = {"frozen": True, "from_attributes": True}


class CandidateProfile(BaseModel):
    """What the matching engine knows about a candidate."""

    id: UUID
    status: Literal["available", "at_capacity"] = "at_capacity"
    address_street: str | None = None
    address_zip: str | None = None
    address_city: str | None = None
    address_country: str | None = None
    desired_hours_per_week: float | None = None
    expected_hourly_rate: float | None = None
    skill_ids: tuple[UUID, ...] = Field(default=(), max_length=MAX_SKILLS)
    expertise_area_ids: tuple[UUID, ...] = Field(default=(), max_length=MAX_EXPERTISE_AREAS)
    languages: tuple[LanguageRequirement, ...] = ()
    career_elements: tuple[CareerElement, ...] = ()

    model_config = {"frozen": True}


class PostingCriteria(BaseModel):
    """A job posting reduced to its matching criteria. Empty lists mean "does not apply"."""

    id: UUID
    startup_id: UUID
    required_zip: str | None = None
    required_city: str | None = None
    required_country: str | None = None
    approx_duration_weeks: int | None = None
    approx_hours_per_week: float | None = None
    approx_hourly_rate: float | None = None
    skill_ids: tuple[UUID, ...] = Field(default=(), max_length=10)
    expertise_area_ids: tuple[UUID, ...] = Field(default=(), max_length=5)
    degree_ids: tuple[UUID, ...] = ()
    position_ids: tuple[UUID, ...] = ()
    languages: tuple[LanguageRequirement, ...] = ()

    model_config = {"frozen": True}


class ProficiencyLevel(BaseModel):
    id: UUID
    code: str
    rank: int

    model_config = {"frozen": True, "from_attributes": True}


class Coordinates(BaseModel):
    lat: float
    lon: float

    model_config = {"frozen": True, "from_attributes": True}


class MatchingRunRead(BaseModel):
    id: UUID
    is_full_run: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MatchCreate(BaseModel):
    matching_run_id: UUID
    job_posting_id: UUID
    candidate_id: UUID
    score: float = Field(ge=0.0, le=1.0)


class MatchRead(BaseModel):
    id: UUID
    matching_run_id: UUID
    job_posting_id: UUID
    candidate_id: UUID
    score: float
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationAction(BaseModel):
    label: str
    url: str


class NotificationPayload(BaseModel):
    type: str = "general"
    title: str
    message: str
    read: bool = False
    actions: list[NotificationAction] = []


class MatchingRunRequest(BaseModel):
    job_posting_id: UUID | None = None
    candidate_id: UUID | None = None


class MatchingRunAccepted(BaseModel):
    task_id: str
    status: str = "queued"
