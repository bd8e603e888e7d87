"""Jinja2 rendering of notification emails."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from wiseup.core.config import get_settings
from wiseup.schemas.matching import NotificationPayload

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)


def render(template_name: str, **ctx) -> str:
    tpl = _env.get_template(template_name)
    return tpl.render(**ctx)


def render_notification_email(payload: NotificationPayload) -> tuple[str, str]:
    """Subject and HTML body for the offline copy of an in-app notification."""
    html = render(
        "email/notification.html",
        title=payload.title,
        message=payload.message,
        actions=payload.actions,
        frontend_url=get_settings().FRONTEND_URL.rstrip("/"),
    )
    return f"WiseUp - {payload.title}", html
