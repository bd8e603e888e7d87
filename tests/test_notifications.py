import uuid

import pytest
import redis

from wiseup.models import Candidate, Notification, Startup
from wiseup.schemas.matching import NotificationAction, NotificationPayload
from wiseup.services.email import render_notification_email
from wiseup.services.notification_service import (
    LivePublisher,
    NotificationRecipientNotFound,
    NotificationService,
)


class FakePublisher:
    def __init__(self, online=False):
        self.online = online
        self.published = []

    def publish(self, user_id, message):
        self.published.append((user_id, message))
        return self.online


class OutboxSpy:
    def __init__(self, error=None):
        self.error = error
        self.emails = []

    def __call__(self, to, subject, html_body):
        if self.error:
            raise self.error
        self.emails.append((to, subject, html_body))


@pytest.fixture()
def payload():
    return NotificationPayload(
        type="new_matches",
        title="New Matches Found",
        message="2 new matches found for your job postings!",
        actions=[NotificationAction(label="View Matches", url="/startup/matches/")],
    )


@pytest.fixture()
def startup(db_session):
    startup = Startup(title="Greenbox", email="founders@greenbox.test")
    db_session.add(startup)
    db_session.commit()
    return startup


def test_notification_is_stored_and_pushed_live(db_session, startup, payload):
    publisher = FakePublisher(online=True)
    outbox = OutboxSpy()

    NotificationService(db_session, publisher=publisher, enqueue_email=outbox).notify(
        startup.id, payload
    )

    stored = db_session.query(Notification).filter_by(user_id=startup.id).one()
    assert stored.type == "new_matches"
    assert stored.read is False
    assert stored.actions == [{"label": "View Matches", "url": "/startup/matches/"}]

    user_id, message = publisher.published[0]
    assert user_id == startup.id
    assert message["id"] == str(stored.id)
    assert message["title"] == "New Matches Found"
    assert outbox.emails == []


def test_offline_user_gets_an_email_copy(db_session, startup, payload):
    outbox = OutboxSpy()

    NotificationService(db_session, publisher=FakePublisher(), enqueue_email=outbox).notify(
        startup.id, payload
    )

    assert db_session.query(Notification).count() == 1
    to, subject, html = outbox.emails[0]
    assert to == "founders@greenbox.test"
    assert subject == "WiseUp - New Matches Found"
    assert "2 new matches found for your job postings!" in html
    assert "/startup/matches/" in html


def test_candidates_can_be_notified(db_session, payload):
    candidate = Candidate(email="retired.cfo@example.com", status="available")
    db_session.add(candidate)
    db_session.commit()
    outbox = OutboxSpy()

    NotificationService(db_session, publisher=FakePublisher(), enqueue_email=outbox).notify(
        candidate.id, payload
    )

    assert outbox.emails[0][0] == "retired.cfo@example.com"


def test_unknown_recipient_raises(db_session, payload):
    service = NotificationService(db_session, publisher=FakePublisher(), enqueue_email=OutboxSpy())

    with pytest.raises(NotificationRecipientNotFound):
        service.notify(uuid.uuid4(), payload)

    assert db_session.query(Notification).count() == 0


def test_email_enqueue_failure_is_not_raised(db_session, startup, payload):
    outbox = OutboxSpy(error=ConnectionError("broker down"))
    service = NotificationService(db_session, publisher=FakePublisher(), enqueue_email=outbox)

    service.notify(startup.id, payload)

    assert db_session.query(Notification).count() == 1


def test_render_notification_email_links_actions(payload):
    subject, html = render_notification_email(payload)
    assert subject == "WiseUp - New Matches Found"
    assert "View Matches" in html
    assert "http://localhost:5173/startup/matches/" in html


class FakeRedis:
    def __init__(self, receivers=0, error=None):
        self.receivers = receivers
        self.error = error
        self.published = []
        self.closed = False

    def publish(self, channel, data):
        if self.error:
            raise self.error
        self.published.append((channel, data))
        return self.receivers

    def close(self):
        self.closed = True


def test_live_publisher_reports_receivers(monkeypatch):
    fake = FakeRedis(receivers=1)
    monkeypatch.setattr(redis.Redis, "from_url", lambda *args, **kwargs: fake)
    publisher = LivePublisher(redis_url="redis://test", timeout=0.5, channel_prefix="notifications")
    user_id = uuid.uuid4()

    assert publisher.publish(user_id, {"title": "hi"}) is True
    assert fake.published[0][0] == f"notifications:{user_id}"
    assert fake.closed


def test_live_publisher_treats_no_receivers_as_offline(monkeypatch):
    monkeypatch.setattr(redis.Redis, "from_url", lambda *args, **kwargs: FakeRedis(receivers=0))
    publisher = LivePublisher(redis_url="redis://test", timeout=0.5)

    assert publisher.publish(uuid.uuid4(), {}) is False


def test_live_publisher_treats_redis_errors_as_offline(monkeypatch):
    fake = FakeRedis(error=redis.TimeoutError("timed out"))
    monkeypatch.setattr(redis.Redis, "from_url", lambda *args, **kwargs: fake)
    publisher = LivePublisher(redis_url="redis://test", timeout=0.5)

    assert publisher.publish(uuid.uuid4(), {}) is False
    assert fake.closed
