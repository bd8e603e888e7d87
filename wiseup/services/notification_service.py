import json
from collections.abc import Callable
from uuid import UUID

import redis
import structlog
from sqlalchemy.orm import Session

from wiseup.core.config import get_settings
from wiseup.models.candidate import Candidate
from wiseup.models.notification import Notification
from wiseup.models.startup import Startup
from wiseup.schemas.matching import NotificationPayload
from wiseup.services.email import render_notification_email

logger = structlog.get_logger()


class NotificationRecipientNotFound(LookupError):
    pass


class LivePublisher:
    """Pushes notifications to the user's Redis channel.

    The realtime gateway subscribes one channel per connected user, so a publish
    that reaches nobody means the user is offline.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        timeout: float | None = None,
        channel_prefix: str | None = None,
    ):
        settings = get_settings()
        self.redis_url = redis_url or settings.REDIS_URL
        self.timeout = timeout if timeout is not None else settings.LIVE_DELIVERY_TIMEOUT_SECONDS
        self.channel_prefix = channel_prefix or settings.NOTIFICATION_CHANNEL_PREFIX

    def channel(self, user_id: UUID) -> str:
        return f"{self.channel_prefix}:{user_id}"

    def publish(self, user_id: UUID, message: dict) -> bool:
        client = redis.Redis.from_url(
            self.redis_url,
            socket_timeout=self.timeout,
            socket_connect_timeout=self.timeout,
        )
        try:
            receivers = client.publish(self.channel(user_id), json.dumps(message))
            return receivers > 0
        except redis.RedisError as e:
            logger.warning("notification_live_delivery_failed", user_id=str(user_id), error=str(e))
            return False
        finally:
            client.close()


def _enqueue_email(to: str, subject: str, html_body: str) -> None:
    from wiseup.workers.notifications import send_email

    send_email.delay(to, subject, html_body)


class NotificationService:
    """Stores a notification, pushes it live and falls back to email for offline users."""

    def __init__(
        self,
        session: Session,
        publisher: LivePublisher | None = None,
        enqueue_email: Callable[[str, str, str], None] = _enqueue_email,
    ):
        self.session = session
        self.publisher = publisher or LivePublisher()
        self.enqueue_email = enqueue_email

    def _recipient_email(self, user_id: UUID) -> str:
        for model in (Startup, Candidate):
            user = self.session.get(model, user_id)
            if user is not None:
                return user.email
        raise NotificationRecipientNotFound(f"User with ID {user_id} not found")

    def notify(self, user_id: UUID, payload: NotificationPayload) -> None:
        email = self._recipient_email(user_id)

        notification = Notification(
            user_id=user_id,
            type=payload.type,
            title=payload.title,
            message=payload.message,
            read=payload.read,
            actions=[action.model_dump() for action in payload.actions],
        )
        self.session.add(notification)
        self.session.commit()

        logger.info(
            "notification_created",
            user_id=str(user_id),
            type=payload.type,
            notification_id=str(notification.id),
        )

        message = {
            "id": str(notification.id),
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "read": notification.read,
            "actions": notification.actions,
            "created_at": notification.created_at.isoformat(),
        }
        if self.publisher.publish(user_id, message):
            logger.info("notification_delivered_live", user_id=str(user_id))
            return

        self._send_offline_copy(email, payload)

    def _send_offline_copy(self, email: str, payload: NotificationPayload) -> None:
        subject, html = render_notification_email(payload)
        try:
            self.enqueue_email(email, subject, html)
            logger.info("notification_email_queued", to=email)
        except Exception as e:
            logger.error("notification_email_enqueue_failed", to=email, error=str(e))
