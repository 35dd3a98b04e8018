"""Notification message composition.

Only the title/body/url of each message is built here; delivery to devices
is handled outside this service. Event times are rendered in the circle's
display timezone.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import pytz

from circle.config import settings
from circle.services.rsvp_policy import as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationMessage:
    title: str
    body: str
    url: str
    recipients: list[str] = field(default_factory=list)


def format_local_time(value: datetime, tz_name: Optional[str] = None) -> str:
    """Render a UTC datetime as local wall-clock time, e.g. ``2026-11-03 19:00 (JST)``."""
    tz = pytz.timezone(tz_name or settings.DISPLAY_TIMEZONE)
    local = as_utc(value).astimezone(tz)
    return local.strftime("%Y-%m-%d %H:%M (%Z)")


def event_created_message(event, user_ids: list[str], tz_name: Optional[str] = None) -> NotificationMessage:
    place = event.location or "TBD"
    return NotificationMessage(
        title=f"New event: {event.title}",
        body=(
            f"Place: {place}\n"
            f"When: {format_local_time(event.start_time_utc, tz_name)}\n"
            f"Please respond by {format_local_time(event.rsvp_deadline, tz_name)}."
        ),
        url=f"/events/{event.event_id}",
        recipients=list(user_ids),
    )


def payment_reminder_message(event, user_ids: list[str]) -> NotificationMessage:
    return NotificationMessage(
        title="Payment reminder",
        body=f"Please pay the {settings.CURRENCY_SYMBOL}{event.fee:,} fee for \"{event.title}\".",
        url=f"/payments?event_id={event.event_id}",
        recipients=list(user_ids),
    )


def dispatch(message: NotificationMessage) -> NotificationMessage:
    logger.info("Notification '%s' queued for %d recipient(s)", message.title, len(message.recipients))
    return message
