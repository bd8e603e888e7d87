import structlog
from celery import shared_task

logger = structlog.get_logger()


@shared_task(name="notifications.send_email")
def send_email(to: str, subject: str, html_body: str):
    logger.info("send_email", to=to, subject=subject)

    from wiseup.core.config import get_settings

    settings = get_settings()

    if not settings.RESEND_API_KEY:
        logger.warning("email_skip_no_api_key", to=to)
        return {"status": "skipped", "reason": "no_api_key"}

    # test accounts never receive mail
    if to.endswith("@example.com"):
        logger.info("email_skip_test_address", to=to)
        return {"status": "skipped", "reason": "test_address"}

    try:
        import httpx

        response = httpx.post(
            "https://api.resend.com/emails",
            headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            json={
                "from": settings.EMAIL_FROM,
                "to": [to],
                "subject": subject,
                "html": html_body,
            },
            timeout=10,
        )
        response.raise_for_status()
        logger.info("email_sent", to=to)
        return {"status": "sent"}
    except Exception as e:
        logger.error("email_error", to=to, error=str(e))
        return {"status": "error", "error": str(e)}
