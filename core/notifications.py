"""
Notification dispatch.

The engine never delivers notifications itself: after a transition has
committed it hands an event to the Celery ``deliver_notification`` task.
Queueing problems are logged and never undo the committed transition.
"""

import logging
from enum import Enum as PyEnum
from typing import Any, Iterable, Optional

from core.config import settings

logger = logging.getLogger(__name__)


class NotificationEvent(str, PyEnum):
    """Events other actors are told about."""

    DOCUMENT_REVIEWED = "document_reviewed"
    VERIFICATION_SUBMITTED = "verification_submitted"
    VERIFICATION_RESOLVED = "verification_resolved"
    QUOTE_REQUESTED = "quote_requested"
    QUOTE_RESOLVED = "quote_resolved"
    QUOTE_OPTION_SELECTED = "quote_option_selected"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_CONFIRMED = "interview_confirmed"
    INTERVIEW_SLOT_REJECTED = "interview_slot_rejected"
    INTERVIEW_CANCELLED = "interview_cancelled"
    DEMAND_CANDIDATE_SUGGESTED = "demand_candidate_suggested"


class NotificationDispatcher:
    """Queue notification events on Celery."""

    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = settings.notifications_enabled if enabled is None else enabled

    def dispatch(
        self,
        event: NotificationEvent,
        recipient_ids: Iterable[str],
        payload: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Queue one event for each recipient.

        Args:
            event: What happened
            recipient_ids: Actor ids to notify
            payload: JSON-serializable event details

        Returns:
            True if the event was queued
        """
        recipients = sorted({r for r in recipient_ids if r})
        if not self.enabled or not recipients:
            return False

        try:
            from workers.tasks.notifications import deliver_notification

            deliver_notification.delay(event.value, recipients, payload or {})
            return True
        except Exception as e:
            logger.warning(f"Failed to queue {event.value} notification: {e}")
            return False


_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    """Return the process-wide dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher


def notify(
    event: NotificationEvent,
    recipient_ids: Iterable[str],
    payload: Optional[dict[str, Any]] = None,
) -> bool:
    """Shortcut for ``get_dispatcher().dispatch(...)``."""
    return get_dispatcher().dispatch(event, recipient_ids, payload)
