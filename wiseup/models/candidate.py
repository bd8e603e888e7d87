import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Uuid,
    event,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from wiseup.core.database import Base

MAX_SKILLS = 10
MAX_EXPERTISE_AREAS = 5

CANDIDATE_STATUSES = ("available", "at_capacity")
CAREER_ELEMENT_KINDS = ("job", "education")

candidate_skills = Table(
    "candidate_skills",
    Base.metadata,
    Column("candidate_id", Uuid, ForeignKey("candidates.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Uuid, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)

candidate_expertise_areas = Table(
    "candidate_expertise_areas",
    Base.metadata,
    Column("candidate_id", Uuid, ForeignKey("candidates.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "expertise_area_id",
        Uuid,
        ForeignKey("expertise_areas.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Candidate(Base):
    __tablename__ = "candidates"
    __table_args__ = (
        CheckConstraint(
            "desired_hours_per_week >= 0", name="ck_candidates_desired_hours_non_negative"
        ),
        CheckConstraint(
            "expected_hourly_rate >= 0", name="ck_candidates_expected_rate_non_negative"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    name_first: Mapped[str] = mapped_column(String(255), default="")
    name_last: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(20), default="at_capacity", index=True)
    address_street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_zip: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_country: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    desired_hours_per_week: Mapped[float | None] = mapped_column(Float, nullable=True)
    expected_hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    skills = relationship("Skill", secondary=candidate_skills)
    expertise_areas = relationship("ExpertiseArea", secondary=candidate_expertise_areas)
    language_proficiencies = relationship(
        "CandidateLanguage", back_populates="candidate", cascade="all, delete-orphan"
    )
    career_elements = relationship(
        "CareerElement",
        back_populates="candidate",
        cascade="all, delete-orphan",
        order_by="CareerElement.sort_order",
    )

    @validates("skills")
    def _validate_skill(self, key, skill):
        if len(self.skills) >= MAX_SKILLS:
            raise ValueError(f"A candidate can have a maximum of {MAX_SKILLS} skills.")
        return skill

    @validates("expertise_areas")
    def _validate_expertise_area(self, key, area):
        if len(self.expertise_areas) >= MAX_EXPERTISE_AREAS:
            raise ValueError(
                f"A candidate can have a maximum of {MAX_EXPERTISE_AREAS} expertise areas."
            )
        return area

    @validates("status")
    def _validate_status(self, key, value):
        if value not in CANDIDATE_STATUSES:
            raise ValueError(f"Unknown candidate status '{value}'")
        return value

    def refresh_status(self) -> str:
        """Flip to available once the profile has a first and last name.

        Runs on every flush of a new or changed candidate.
        """
        if self.status != "available" and self.name_first and self.name_last:
            self.status = "available"
        return self.status or "at_capacity"


class CandidateLanguage(Base):
    __tablename__ = "candidate_languages"

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("candidates.id", ondelete="CASCADE"), primary_key=True
    )
    language_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("languages.id"), primary_key=True
    )
    level_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("language_proficiency_levels.id")
    )

    candidate = relationship("Candidate", back_populates="language_proficiencies")


class CareerElement(Base):
    __tablename__ = "career_elements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("candidates.id", ondelete="CASCADE"), index=True
    )
    kind: Mapped[str] = mapped_column(String(20))
    title: Mapped[str] = mapped_column(String(255))
    from_date: Mapped[date] = mapped_column(Date)
    until_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    organization_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("positions.id"), nullable=True
    )
    degree_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("degrees.id"), nullable=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    candidate = relationship("Candidate", back_populates="career_elements")

    @validates("kind")
    def _validate_kind(self, key, value):
        if value not in CAREER_ELEMENT_KINDS:
            raise ValueError(f"Unknown career element kind '{value}'")
        return value


def cap_collection(attribute, limit: int, message: str) -> None:
    """Reject whole-list assignments longer than limit.

    Per-item ``@validates`` hooks only see the collection being replaced, so
    ``obj.items = [...]`` and constructor keywords are checked here.
    """

    @event.listens_for(attribute, "bulk_replace")
    def _check(target, values, initiator):
        if len(values) > limit:
            raise ValueError(message)


cap_collection(
    Candidate.skills, MAX_SKILLS, f"A candidate can have a maximum of {MAX_SKILLS} skills."
)
cap_collection(
    Candidate.expertise_areas,
    MAX_EXPERTISE_AREAS,
    f"A candidate can have a maximum of {MAX_EXPERTISE_AREAS} expertise areas.",
)


@event.listens_for(Session, "before_flush")
def _refresh_candidate_status(session, flush_context, instances):
    for obj in list(session.new) + list(session.dirty):
        if isinstance(obj, Candidate):
            obj.refresh_status()
