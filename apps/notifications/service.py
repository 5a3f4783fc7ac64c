"""
Notification dispatcher.
notify() is fire-and-forget: delivery is queued on a Celery task once the
surrounding transaction commits, and any failure is logged, never raised.
"""

import logging
from functools import partial

import requests
from django.conf import settings
from django.db import transaction

logger = logging.getLogger("freightlink.notifications")

EVENTS = {
    "order.created", "order.assigned", "order.started", "order.near_destination",
    "order.delivered", "order.delayed", "order.cancelled", "order.unassigned",
    "quote.sent", "quote.accepted", "quote.rejected", "quote.expiring",
    "vehicle.maintenance_due",
}


class NotificationService:
    """Queue and deliver domain events. Never blocks or fails the main flow."""

    def notify(self, event: str, payload: dict) -> None:
        if event not in EVENTS:
            logger.warning("Unknown notification event %s", event)
            return
        transaction.on_commit(partial(self._enqueue, event, payload))

    def _enqueue(self, event, payload):
        from apps.notifications.tasks import deliver_notification
        try:
            deliver_notification.delay(event, payload)
        except Exception as exc:
            logger.warning("Could not queue %s: %s", event, exc)

    def deliver(self, event: str, payload: dict) -> bool:
        """POST the event to the gateway. Returns True on success."""
        try:
            resp = requests.post(
                f"{settings.NOTIFICATION_GATEWAY_URL}/events",
                json={"event": event, "payload": payload},
                timeout=3,
            )
            if resp.status_code in (200, 201, 202):
                logger.info("Notification %s delivered", event)
                return True
            logger.warning("Gateway returned %s for %s", resp.status_code, event)
        except requests.RequestException as exc:
            logger.warning("Notification %s failed: %s", event, exc)
        return False
