"""Notification delivery tasks."""

import logging
from typing import Any, Dict, List

import httpx
from celery import Task

from core.config import settings
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="workers.tasks.notifications.deliver_notification", bind=True)
def deliver_notification(
    self: Task,
    event: str,
    recipient_ids: List[str],
    payload: Dict[str, Any],
) -> dict:
    """Deliver a workflow notification.

    When NOTIFICATION_WEBHOOK_URL is set the event is posted there for the
    messaging service to fan out; otherwise it is only logged.

    Args:
        event: Notification event name (quote_resolved, interview_confirmed, ...)
        recipient_ids: Actor ids to notify
        payload: Event details

    Returns:
        Dictionary with delivery status
    """
    webhook_url = settings.notification_webhook_url
    if not webhook_url:
        logger.info(f"Notification {event} for {len(recipient_ids)} recipient(s): {payload}")
        return {"status": "logged", "event": event, "recipients": len(recipient_ids)}

    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(
                webhook_url,
                json={"event": event, "recipients": recipient_ids, "payload": payload},
                headers={
                    "Content-Type": "application/json",
                    "X-Notification-Event": event,
                },
            )
            response.raise_for_status()

        return {
            "status": "delivered",
            "status_code": response.status_code,
            "event": event,
        }
    except httpx.HTTPError as e:
        logger.warning(f"Notification {event} delivery failed: {e}")
        # Retry with exponential backoff
        raise self.retry(
            exc=e,
            countdown=2 ** self.request.retries * 60,
            max_retries=5,
        )
