import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from wiseup.core.database import Base
from wiseup.models.candidate import cap_collection

MAX_REQUIRED_SKILLS = 10
MAX_REQUIRED_EXPERTISE_AREAS = 5


def _criteria_table(name: str, column: str, target: str) -> Table:
    return Table(
        name,
        Base.metadata,
        Column(
            "job_posting_id",
            Uuid,
            ForeignKey("job_postings.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        Column(column, Uuid, ForeignKey(f"{target}.id", ondelete="CASCADE"), primary_key=True),
    )


job_posting_skills = _criteria_table("job_posting_skills", "skill_id", "skills")
job_posting_expertise_areas = _criteria_table(
    "job_posting_expertise_areas", "expertise_area_id", "expertise_areas"
)
job_posting_degrees = _criteria_table("job_posting_degrees", "degree_id", "degrees")
job_posting_positions = _criteria_table("job_posting_positions", "position_id", "positions")


class JobPosting(Base):
    __tablename__ = "job_postings"
    __table_args__ = (
        CheckConstraint(
            "approx_hours_per_week >= 0", name="ck_job_postings_hours_non_negative"
        ),
        CheckConstraint(
            "approx_hourly_rate >= 0", name="ck_job_postings_hourly_rate_non_negative"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("startups.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    required_zip: Mapped[str | None] = mapped_column(String(20), nullable=True)
    required_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    required_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approx_duration_weeks: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approx_hours_per_week: Mapped[float | None] = mapped_column(Float, nullable=True)
    approx_hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    startup = relationship("Startup", back_populates="job_postings")
    required_skills = relationship("Skill", secondary=job_posting_skills)
    required_expertise_areas = relationship("ExpertiseArea", secondary=job_posting_expertise_areas)
    required_degrees = relationship("Degree", secondary=job_posting_degrees)
    required_positions = relationship("JobPosition", secondary=job_posting_positions)
    required_languages = relationship(
        "JobPostingLanguage", back_populates="job_posting", cascade="all, delete-orphan"
    )
    cooperations = relationship(
        "Cooperation", back_populates="job_posting", cascade="all, delete-orphan"
    )

    @validates("startup_id")
    def _validate_owner(self, key, value):
        if self.startup_id is not None and value != self.startup_id:
            raise ValueError("The owning startup of a job posting cannot change")
        return value

    @validates("required_skills")
    def _validate_skill(self, key, skill):
        if len(self.required_skills) >= MAX_REQUIRED_SKILLS:
            raise ValueError(
                f"A job posting can require a maximum of {MAX_REQUIRED_SKILLS} skills."
            )
        return skill

    @validates("required_expertise_areas")
    def _validate_expertise_area(self, key, area):
        if len(self.required_expertise_areas) >= MAX_REQUIRED_EXPERTISE_AREAS:
            raise ValueError(
                "A job posting can require a maximum of "
                f"{MAX_REQUIRED_EXPERTISE_AREAS} expertise areas."
            )
        return area


cap_collection(
    JobPosting.required_skills,
    MAX_REQUIRED_SKILLS,
    f"A job posting can require a maximum of {MAX_REQUIRED_SKILLS} skills.",
)
cap_collection(
    JobPosting.required_expertise_areas,
    MAX_REQUIRED_EXPERTISE_AREAS,
    f"A job posting can require a maximum of {MAX_REQUIRED_EXPERTISE_AREAS} expertise areas.",
)


class JobPostingLanguage(Base):
    __tablename__ = "job_posting_languages"

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("job_postings.id", ondelete="CASCADE"), primary_key=True
    )
    language_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("languages.id"), primary_key=True
    )
    level_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("language_proficiency_levels.id")
    )

    job_posting = relationship("JobPosting", back_populates="required_languages")
