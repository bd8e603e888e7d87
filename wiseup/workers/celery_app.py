from celery import Celery

from wiseup.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "wiseup",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "wiseup.workers.matching",
        "wiseup.workers.notifications",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "matching-full-run": {
            "task": "matching.run",
            "schedule": settings.MATCHING_INTERVAL_MINUTES * 60,
        },
    },
)
