"""Matching worker: scheduled full runs plus ad-hoc runs for one posting or candidate."""

import structlog
from celery import shared_task
from celery.signals import worker_ready

logger = structlog.get_logger()


@shared_task(name="matching.run")
def run_matching(job_posting_id: str | None = None, candidate_id: str | None = None):
    from uuid import UUID

    from wiseup.core.database import session_scope
    from wiseup.services.matching import build_engine

    logger.info("matching_task_start", job_posting_id=job_posting_id, candidate_id=candidate_id)

    with session_scope() as session:
        engine = build_engine(session)
        run = engine.run_matching(
            job_posting_id=UUID(job_posting_id) if job_posting_id else None,
            candidate_id=UUID(candidate_id) if candidate_id else None,
        )

    return {"run_id": str(run.id), "is_full_run": run.is_full_run}


def trigger_matching_run(job_posting_id=None, candidate_id=None):
    """Queue a matching run, e.g. after a posting is created or edited."""
    return run_matching.delay(
        str(job_posting_id) if job_posting_id else None,
        str(candidate_id) if candidate_id else None,
    )


@worker_ready.connect
def run_matching_on_startup(sender=None, **kwargs):
    from wiseup.core.config import get_settings

    if not get_settings().MATCHING_RUN_ON_STARTUP:
        return
    logger.info("matching_startup_run_queued")
    trigger_matching_run()
