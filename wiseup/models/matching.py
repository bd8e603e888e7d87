import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from wiseup.core.database import Base


class MatchingRun(Base):
    __tablename__ = "matching_runs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    is_full_run: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )


class Match(Base):
    """One scored (candidate, job posting) pair of a matching run. Never updated."""

    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint(
            "candidate_id", "job_posting_id", "matching_run_id", name="uq_match_pair_run"
        ),
        Index("ix_matches_job_posting_created_at", "job_posting_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # no ON DELETE CASCADE: retention cleanup removes matches and runs together
    matching_run_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("matching_runs.id"), index=True
    )
    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("job_postings.id", ondelete="CASCADE")
    )
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("candidates.id", ondelete="CASCADE")
    )
    score: Mapped[float] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
