from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from sqlalchemy.orm import Session

from wiseup.core.config import MatchingConfig
from wiseup.repositories.base import (
    CandidateRepository,
    MatchStore,
    NotificationSink,
    PostingRepository,
    ReferenceData,
    RunStore,
)
from wiseup.schemas.matching import (
    CandidateProfile,
    MatchCreate,
    MatchingRunRead,
    MatchRead,
    NotificationAction,
    NotificationPayload,
    PostingCriteria,
)
from wiseup.services.geo import CoordinateLookup
from wiseup.services.scoring import ProficiencyLevels, aggregate_score

logger = structlog.get_logger()


def select_candidates(
    candidates: CandidateRepository,
    posting: PostingCriteria,
    candidate_id: UUID | None = None,
) -> list[CandidateProfile]:
    """
    Candidates worth scoring for a posting.

    Only availability, the optional single candidate and the posting's country
    narrow the pool. Salary, hours and the rest are scored instead, so imperfect
    matches still show up with a lower score.
    """
    return candidates.find_available(country=posting.required_country, candidate_id=candidate_id)


def latest_per_pair(matches: Iterable[MatchRead]) -> dict[tuple[UUID, UUID], MatchRead]:
    """Current match of every (candidate, job posting) pair: the newest one wins.

    In-memory counterpart of the row_number() window the SQL match store
    queries with; stores that hold matches in memory build their counts on it.
    """
    latest: dict[tuple[UUID, UUID], MatchRead] = {}
    for match in matches:
        key = (match.candidate_id, match.job_posting_id)
        if key not in latest or match.created_at > latest[key].created_at:
            latest[key] = match
    return latest


def new_matches_notification(count: int, job_posting_id: UUID | None = None) -> NotificationPayload:
    if count == 1:
        message = "1 new match found for your job postings!"
    else:
        message = f"{count} new matches found for your job postings!"
    return NotificationPayload(
        type="new_matches",
        title="New Matches Found",
        message=message,
        actions=[
            NotificationAction(
                label="View Matches",
                url=f"/startup/matches/{job_posting_id or ''}",
            )
        ],
    )


class MatchingEngine:
    """Scores candidates against job postings in run-scoped batches."""

    def __init__(
        self,
        candidates: CandidateRepository,
        postings: PostingRepository,
        reference_data: ReferenceData,
        matches: MatchStore,
        runs: RunStore,
        notifier: NotificationSink,
        config: MatchingConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.candidates = candidates
        self.postings = postings
        self.reference_data = reference_data
        self.matches = matches
        self.runs = runs
        self.notifier = notifier
        self.config = config or MatchingConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.coordinates = CoordinateLookup(reference_data)

    def run_matching(
        self,
        job_posting_id: UUID | None = None,
        candidate_id: UUID | None = None,
    ) -> MatchingRunRead:
        """
        Create a matching run for one job posting, or for every posting that
        has not hired anyone yet, optionally limited to a single candidate.

        Storage errors abort the run and propagate; matches stored before the
        failure are kept.
        """
        if job_posting_id:
            target_ids = [job_posting_id]
        else:
            target_ids = self.postings.find_unfilled_ids()

        levels = ProficiencyLevels(self.reference_data.list_proficiency_levels())
        run = self.runs.create(is_full_run=not job_posting_id and not candidate_id)
        logger.info(
            "matching_run_start",
            run_id=str(run.id),
            is_full_run=run.is_full_run,
            postings=len(target_ids),
            candidate_id=str(candidate_id) if candidate_id else None,
        )

        created = 0
        for posting_id in target_ids:
            posting = self.postings.find_by_id(posting_id)
            if posting is None:
                logger.warning("matching_posting_missing", job_posting_id=str(posting_id))
                continue
            created += self._match_posting(posting, levels, run, candidate_id)

        notified = self._notify_startups(run, target_ids, job_posting_id)
        removed = self.cleanup_old_runs()

        logger.info(
            "matching_run_complete",
            run_id=str(run.id),
            matches_created=created,
            startups_notified=notified,
            runs_removed=len(removed),
        )
        return run

    def _match_posting(
        self,
        posting: PostingCriteria,
        levels: ProficiencyLevels,
        run: MatchingRunRead,
        candidate_id: UUID | None,
    ) -> int:
        selected = select_candidates(self.candidates, posting, candidate_id)
        for candidate in selected:
            score = aggregate_score(candidate, posting, levels, self.coordinates)
            self.matches.insert(
                MatchCreate(
                    matching_run_id=run.id,
                    job_posting_id=posting.id,
                    candidate_id=candidate.id,
                    score=score,
                )
            )
        return len(selected)

    def acceptable_match_delta(
        self, run: MatchingRunRead, job_posting_ids: list[UUID]
    ) -> int:
        """Candidates above the threshold now, minus those above it before this run."""
        threshold = self.config.acceptable_score_threshold
        before = self.matches.count_distinct_acceptable_candidates(
            job_posting_ids, threshold, exclude_run_id=run.id
        )
        after = self.matches.count_distinct_acceptable_candidates(job_posting_ids, threshold)
        return after - before

    def _notify_startups(
        self,
        run: MatchingRunRead,
        target_ids: list[UUID],
        job_posting_id: UUID | None,
    ) -> int:
        notified = 0
        for startup_id in self.postings.find_startup_ids_for_postings(target_ids):
            if job_posting_id:
                relevant_ids = [job_posting_id]
            else:
                relevant_ids = self.postings.find_ids_by_startup(startup_id)

            delta = self.acceptable_match_delta(run, relevant_ids)
            if delta <= 0:
                continue

            try:
                self.notifier.notify(startup_id, new_matches_notification(delta, job_posting_id))
                notified += 1
            except Exception as e:
                logger.error(
                    "matching_notification_failed",
                    startup_id=str(startup_id),
                    run_id=str(run.id),
                    error=str(e),
                )
        return notified

    def cleanup_old_runs(self) -> list[UUID]:
        """
        Drop runs, and their matches, older than retention_factor scheduled
        intervals. At least retention_factor complete runs always remain.
        """
        cutoff = self.clock() - timedelta(minutes=self.config.retention_minutes)
        run_ids = [run.id for run in self.runs.find_older_than(cutoff)]
        if run_ids:
            self.matches.delete_by_run_ids(run_ids)
            self.runs.delete_by_ids(run_ids)
            logger.info("matching_cleanup", cutoff=cutoff.isoformat(), runs=len(run_ids))
        return run_ids


def build_engine(
    session: Session,
    config: MatchingConfig | None = None,
    notifier: NotificationSink | None = None,
) -> MatchingEngine:
    from wiseup.repositories.sql import (
        SqlCandidateRepository,
        SqlMatchStore,
        SqlPostingRepository,
        SqlReferenceData,
        SqlRunStore,
    )
    from wiseup.services.notification_service import NotificationService

    return MatchingEngine(
        candidates=SqlCandidateRepository(session),
        postings=SqlPostingRepository(session),
        reference_data=SqlReferenceData(session),
        matches=SqlMatchStore(session),
        runs=SqlRunStore(session),
        notifier=notifier or NotificationService(session),
        config=config or MatchingConfig.from_settings(),
    )
