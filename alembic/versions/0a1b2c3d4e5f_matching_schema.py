"""matching schema: reference data, candidates, job postings, matching runs, notifications

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0a1b2c3d4e5f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)


def _id():
    return sa.Column("id", UUID, primary_key=True)


def _created_at():
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def upgrade() -> None:
    # --- reference data ---
    op.create_table("skills", _id(), sa.Column("name", sa.String(255), nullable=False, unique=True))
    op.create_table(
        "expertise_areas", _id(), sa.Column("name", sa.String(255), nullable=False, unique=True)
    )
    op.create_table("degrees", _id(), sa.Column("title", sa.String(255), nullable=False))
    op.create_table("positions", _id(), sa.Column("title", sa.String(255), nullable=False))
    op.create_table("languages", _id(), sa.Column("name", sa.String(100), nullable=False, unique=True))
    op.create_table(
        "language_proficiency_levels",
        _id(),
        sa.Column("code", sa.String(10), nullable=False, unique=True),
        sa.Column("rank", sa.Integer, nullable=False, unique=True),
    )
    op.create_table(
        "zip_coords",
        _id(),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("zip", sa.String(20), nullable=False),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lon", sa.Float, nullable=False),
        sa.UniqueConstraint("country", "zip", name="uq_zip_coords_country_zip"),
    )

    # --- startups / candidates ---
    op.create_table(
        "startups",
        _id(),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("address_city", sa.String(255), nullable=True),
        sa.Column("address_country", sa.String(100), nullable=True),
        _created_at(),
    )
    op.create_table(
        "candidates",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name_first", sa.String(255), nullable=False, server_default=""),
        sa.Column("name_last", sa.String(255), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="at_capacity", index=True),
        sa.Column("address_street", sa.String(255), nullable=True),
        sa.Column("address_zip", sa.String(20), nullable=True),
        sa.Column("address_city", sa.String(255), nullable=True),
        sa.Column("address_country", sa.String(100), nullable=True, index=True),
        sa.Column("desired_hours_per_week", sa.Float, nullable=True),
        sa.Column("expected_hourly_rate", sa.Float, nullable=True),
        _created_at(),
        sa.CheckConstraint(
            "desired_hours_per_week >= 0", name="ck_candidates_desired_hours_non_negative"
        ),
        sa.CheckConstraint(
            "expected_hourly_rate >= 0", name="ck_candidates_expected_rate_non_negative"
        ),
    )
    op.create_table(
        "candidate_skills",
        sa.Column("candidate_id", UUID, sa.ForeignKey("candidates.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("skill_id", UUID, sa.ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "candidate_expertise_areas",
        sa.Column("candidate_id", UUID, sa.ForeignKey("candidates.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "expertise_area_id", UUID, sa.ForeignKey("expertise_areas.id", ondelete="CASCADE"), primary_key=True
        ),
    )
    op.create_table(
        "candidate_languages",
        sa.Column("candidate_id", UUID, sa.ForeignKey("candidates.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("language_id", UUID, sa.ForeignKey("languages.id"), primary_key=True),
        sa.Column("level_id", UUID, sa.ForeignKey("language_proficiency_levels.id"), nullable=False),
    )
    op.create_table(
        "career_elements",
        _id(),
        sa.Column(
            "candidate_id", UUID, sa.ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("from_date", sa.Date, nullable=False),
        sa.Column("until_date", sa.Date, nullable=True),
        sa.Column("organization_name", sa.String(255), nullable=True),
        sa.Column("position_id", UUID, sa.ForeignKey("positions.id"), nullable=True),
        sa.Column("degree_id", UUID, sa.ForeignKey("degrees.id"), nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )

    # --- job postings ---
    op.create_table(
        "job_postings",
        _id(),
        sa.Column(
            "startup_id", UUID, sa.ForeignKey("startups.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("required_zip", sa.String(20), nullable=True),
        sa.Column("required_city", sa.String(255), nullable=True),
        sa.Column("required_country", sa.String(100), nullable=True),
        sa.Column("approx_duration_weeks", sa.Integer, nullable=True),
        sa.Column("approx_hours_per_week", sa.Float, nullable=True),
        sa.Column("approx_hourly_rate", sa.Float, nullable=True),
        _created_at(),
        sa.CheckConstraint("approx_hours_per_week >= 0", name="ck_job_postings_hours_non_negative"),
        sa.CheckConstraint("approx_hourly_rate >= 0", name="ck_job_postings_hourly_rate_non_negative"),
    )
    for table, column, target in [
        ("job_posting_skills", "skill_id", "skills"),
        ("job_posting_expertise_areas", "expertise_area_id", "expertise_areas"),
        ("job_posting_degrees", "degree_id", "degrees"),
        ("job_posting_positions", "position_id", "positions"),
    ]:
        op.create_table(
            table,
            sa.Column(
                "job_posting_id", UUID, sa.ForeignKey("job_postings.id", ondelete="CASCADE"), primary_key=True
            ),
            sa.Column(column, UUID, sa.ForeignKey(f"{target}.id", ondelete="CASCADE"), primary_key=True),
        )
    op.create_table(
        "job_posting_languages",
        sa.Column(
            "job_posting_id", UUID, sa.ForeignKey("job_postings.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column("language_id", UUID, sa.ForeignKey("languages.id"), primary_key=True),
        sa.Column("level_id", UUID, sa.ForeignKey("language_proficiency_levels.id"), nullable=False),
    )
    op.create_table(
        "cooperations",
        _id(),
        sa.Column("candidate_id", UUID, sa.ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "job_posting_id", UUID, sa.ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _created_at(),
    )

    # --- matching ---
    op.create_table(
        "matching_runs",
        _id(),
        sa.Column("is_full_run", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True
        ),
    )
    op.create_table(
        "matches",
        _id(),
        sa.Column("matching_run_id", UUID, sa.ForeignKey("matching_runs.id"), nullable=False, index=True),
        sa.Column("job_posting_id", UUID, sa.ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("candidate_id", UUID, sa.ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False),
        sa.Column("score", sa.Float, nullable=False),
        _created_at(),
        sa.UniqueConstraint("candidate_id", "job_posting_id", "matching_run_id", name="uq_match_pair_run"),
    )
    op.create_index("ix_matches_job_posting_created_at", "matches", ["job_posting_id", "created_at"])

    # --- notifications ---
    op.create_table(
        "notifications",
        _id(),
        sa.Column("user_id", UUID, nullable=False, index=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("actions", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        _created_at(),
    )


def downgrade() -> None:
    for table in [
        "notifications",
        "matches",
        "matching_runs",
        "cooperations",
        "job_posting_languages",
        "job_posting_positions",
        "job_posting_degrees",
        "job_posting_expertise_areas",
        "job_posting_skills",
        "job_postings",
        "career_elements",
        "candidate_languages",
        "candidate_expertise_areas",
        "candidate_skills",
        "candidates",
        "startups",
        "zip_coords",
        "language_proficiency_levels",
        "languages",
        "positions",
        "degrees",
        "expertise_areas",
        "skills",
    ]:
        op.drop_table(table)
