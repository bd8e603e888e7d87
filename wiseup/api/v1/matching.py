from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from wiseup.core.database import get_db
from wiseup.core.rate_limit import MATCHING_RUN_LIMIT, limiter
from wiseup.models.job_posting import JobPosting
from wiseup.repositories.sql import SqlMatchStore
from wiseup.schemas.matching import MatchingRunAccepted, MatchingRunRequest, MatchRead
from wiseup.workers.matching import trigger_matching_run

logger = structlog.get_logger()
router = APIRouter(tags=["Matching"])


@router.post(
    "/matching/runs",
    response_model=MatchingRunAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
@limiter.limit(MATCHING_RUN_LIMIT)
async def create_matching_run(request: Request, data: MatchingRunRequest):
    """Queue a matching run for one posting, one candidate, or everything unfilled."""
    result = trigger_matching_run(
        job_posting_id=data.job_posting_id,
        candidate_id=data.candidate_id,
    )
    logger.info(
        "matching_run_requested",
        task_id=result.id,
        job_posting_id=str(data.job_posting_id) if data.job_posting_id else None,
        candidate_id=str(data.candidate_id) if data.candidate_id else None,
    )
    return MatchingRunAccepted(task_id=result.id)


@router.get("/job-postings/{job_posting_id}/matches", response_model=list[MatchRead])
async def list_current_matches(job_posting_id: UUID, db: AsyncSession = Depends(get_db)):
    """Latest match per candidate for the posting, best score first."""
    posting = await db.get(JobPosting, job_posting_id)
    if not posting:
        raise HTTPException(status_code=404, detail="Job posting not found")

    matches = await db.run_sync(
        lambda session: SqlMatchStore(session).latest_for_posting(job_posting_id)
    )
    if not matches:
        raise HTTPException(status_code=404, detail="No matches found for this job posting")
    return matches
