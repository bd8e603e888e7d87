"""SQLAlchemy implementations of the matching storage contracts.

All stores share one sync Session. Matches and runs are committed as they are
written: a run that fails half way keeps what it already stored.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

import structlog
from pydantic import ValidationError
from sqlalchemy import delete, distinct, exists, func, select
from sqlalchemy.orm import Session, selectinload

from wiseup.models.candidate import Candidate
from wiseup.models.cooperation import Cooperation
from wiseup.models.job_posting import JobPosting
from wiseup.models.matching import Match, MatchingRun
from wiseup.models.reference import LanguageProficiencyLevel, ZipCoords
from wiseup.schemas.matching import (
    CandidateProfile,
    CareerElement,
    Coordinates,
    LanguageRequirement,
    MatchCreate,
    MatchingRunRead,
    MatchRead,
    PostingCriteria,
    ProficiencyLevel,
)

logger = structlog.get_logger()


def candidate_to_profile(candidate: Candidate) -> CandidateProfile:
    return CandidateProfile(
        id=candidate.id,
        status=candidate.status,
        address_street=candidate.address_street,
        address_zip=candidate.address_zip,
        address_city=candidate.address_city,
        address_country=candidate.address_country,
        desired_hours_per_week=candidate.desired_hours_per_week,
        expected_hourly_rate=candidate.expected_hourly_rate,
        skill_ids=[skill.id for skill in candidate.skills],
        expertise_area_ids=[area.id for area in candidate.expertise_areas],
        languages=[LanguageRequirement.model_validate(lp) for lp in candidate.language_proficiencies],
        career_elements=[CareerElement.model_validate(ce) for ce in candidate.career_elements],
    )


def posting_to_criteria(posting: JobPosting) -> PostingCriteria:
    return PostingCriteria(
        id=posting.id,
        startup_id=posting.startup_id,
        required_zip=posting.required_zip,
        required_city=posting.required_city,
        required_country=posting.required_country,
        approx_duration_weeks=posting.approx_duration_weeks,
        approx_hours_per_week=posting.approx_hours_per_week,
        approx_hourly_rate=posting.approx_hourly_rate,
        skill_ids=[skill.id for skill in posting.required_skills],
        expertise_area_ids=[area.id for area in posting.required_expertise_areas],
        degree_ids=[degree.id for degree in posting.required_degrees],
        position_ids=[position.id for position in posting.required_positions],
        languages=[LanguageRequirement.model_validate(lang) for lang in posting.required_languages],
    )


def _latest_per_pair(*criteria):
    """Subquery of matches ranked newest-first within each (candidate, posting) pair."""
    return (
        select(
            Match.id,
            Match.candidate_id,
            Match.job_posting_id,
            Match.score,
            func.row_number()
            .over(
                partition_by=(Match.candidate_id, Match.job_posting_id),
                order_by=Match.created_at.desc(),
            )
            .label("recency"),
        )
        .where(*criteria)
        .subquery()
    )


class SqlCandidateRepository:
    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        return select(Candidate).options(
            selectinload(Candidate.skills),
            selectinload(Candidate.expertise_areas),
            selectinload(Candidate.language_proficiencies),
            selectinload(Candidate.career_elements),
        )

    def find_available(
        self, country: str | None = None, candidate_id: UUID | None = None
    ) -> list[CandidateProfile]:
        query = self._query().where(Candidate.status == "available")
        if country:
            query = query.where(Candidate.address_country == country)
        if candidate_id:
            query = query.where(Candidate.id == candidate_id)
        profiles = []
        for candidate in self.session.execute(query).scalars().all():
            try:
                profiles.append(candidate_to_profile(candidate))
            except ValidationError as e:
                logger.warning(
                    "matching_candidate_invalid",
                    candidate_id=str(candidate.id),
                    error=str(e),
                )
        return profiles

    def find_by_id(self, candidate_id: UUID) -> CandidateProfile | None:
        result = self.session.execute(self._query().where(Candidate.id == candidate_id))
        candidate = result.scalar_one_or_none()
        return candidate_to_profile(candidate) if candidate else None


class SqlPostingRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, job_posting_id: UUID) -> PostingCriteria | None:
        result = self.session.execute(
            select(JobPosting)
            .options(
                selectinload(JobPosting.required_skills),
                selectinload(JobPosting.required_expertise_areas),
                selectinload(JobPosting.required_degrees),
                selectinload(JobPosting.required_positions),
                selectinload(JobPosting.required_languages),
            )
            .where(JobPosting.id == job_posting_id)
        )
        posting = result.scalar_one_or_none()
        if posting is None:
            return None
        try:
            return posting_to_criteria(posting)
        except ValidationError as e:
            logger.warning("matching_posting_invalid", job_posting_id=str(posting.id), error=str(e))
            return None

    def find_unfilled_ids(self) -> list[UUID]:
        hired = exists().where(
            Cooperation.job_posting_id == JobPosting.id,
            Cooperation.status == "accepted",
        )
        result = self.session.execute(
            select(JobPosting.id).where(~hired).order_by(JobPosting.created_at)
        )
        return list(result.scalars().all())

    def find_startup_ids_for_postings(self, job_posting_ids: Sequence[UUID]) -> list[UUID]:
        if not job_posting_ids:
            return []
        result = self.session.execute(
            select(distinct(JobPosting.startup_id)).where(JobPosting.id.in_(job_posting_ids))
        )
        return list(result.scalars().all())

    def find_ids_by_startup(self, startup_id: UUID) -> list[UUID]:
        result = self.session.execute(
            select(JobPosting.id).where(JobPosting.startup_id == startup_id)
        )
        return list(result.scalars().all())


class SqlReferenceData:
    def __init__(self, session: Session):
        self.session = session

    def list_proficiency_levels(self) -> list[ProficiencyLevel]:
        result = self.session.execute(select(LanguageProficiencyLevel))
        return [ProficiencyLevel.model_validate(level) for level in result.scalars().all()]

    def find_coordinates(self, zip_code: str, country: str) -> Coordinates | None:
        result = self.session.execute(
            select(ZipCoords).where(ZipCoords.zip == zip_code, ZipCoords.country == country)
        )
        row = result.scalars().first()
        return Coordinates.model_validate(row) if row else None


class SqlMatchStore:
    def __init__(self, session: Session):
        self.session = session

    def insert(self, match: MatchCreate) -> MatchRead:
        row = Match(**match.model_dump())
        self.session.add(row)
        self.session.commit()
        return MatchRead.model_validate(row)

    def count_distinct_acceptable_candidates(
        self,
        job_posting_ids: Sequence[UUID],
        threshold: float,
        exclude_run_id: UUID | None = None,
    ) -> int:
        """Candidates whose latest score for at least one of the postings is acceptable."""
        if not job_posting_ids:
            return 0
        criteria = [Match.job_posting_id.in_(job_posting_ids)]
        if exclude_run_id is not None:
            criteria.append(Match.matching_run_id != exclude_run_id)
        latest = _latest_per_pair(*criteria)
        count = self.session.scalar(
            select(func.count(distinct(latest.c.candidate_id))).where(
                latest.c.recency == 1,
                latest.c.score >= threshold,
            )
        )
        return count or 0

    def delete_by_run_ids(self, run_ids: Sequence[UUID]) -> int:
        if not run_ids:
            return 0
        result = self.session.execute(delete(Match).where(Match.matching_run_id.in_(run_ids)))
        self.session.commit()
        return result.rowcount

    def latest_for_posting(self, job_posting_id: UUID) -> list[MatchRead]:
        """Newest match per candidate for the posting, best score first."""
        latest = _latest_per_pair(Match.job_posting_id == job_posting_id)
        result = self.session.execute(
            select(Match)
            .join(latest, latest.c.id == Match.id)
            .where(latest.c.recency == 1)
            .order_by(Match.score.desc())
        )
        return [MatchRead.model_validate(m) for m in result.scalars().all()]


class SqlRunStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, is_full_run: bool) -> MatchingRunRead:
        run = MatchingRun(is_full_run=is_full_run)
        self.session.add(run)
        self.session.commit()
        return MatchingRunRead.model_validate(run)

    def find_older_than(self, cutoff: datetime) -> list[MatchingRunRead]:
        result = self.session.execute(
            select(MatchingRun).where(MatchingRun.created_at < cutoff)
        )
        return [MatchingRunRead.model_validate(run) for run in result.scalars().all()]

    def delete_by_ids(self, run_ids: Sequence[UUID]) -> int:
        if not run_ids:
            return 0
        result = self.session.execute(delete(MatchingRun).where(MatchingRun.id.in_(run_ids)))
        self.session.commit()
        logger.info("matching_runs_deleted", count=result.rowcount)
        return result.rowcount
