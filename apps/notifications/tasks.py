"""Celery tasks: notification delivery and the periodic reminder sweep."""

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger("freightlink.tasks")


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def deliver_notification(self, event: str, payload: dict):
    """Push one event to the gateway, retrying while it is unreachable."""
    from apps.notifications.service import NotificationService

    if NotificationService().deliver(event, payload):
        return True
    if self.request.retries >= self.max_retries:
        logger.error("Giving up on %s after %d retries", event, self.request.retries)
        return False
    raise self.retry()


@shared_task
def send_scheduled_reminders():
    """
    Hourly sweep. Reads state only:
      - vehicles whose next maintenance falls within MAINTENANCE_REMINDER_DAYS
      - SENT quotes expiring in the next 24 hours
      - REQUESTED orders still without a carrier after 24 hours
    """
    from apps.fleet.models import Vehicle
    from apps.notifications.service import NotificationService
    from apps.orders.models import Order
    from apps.quotes.models import Quote

    notifier = NotificationService()
    now      = timezone.now()
    today    = timezone.localdate()
    horizon  = today + timedelta(days=getattr(settings, "MAINTENANCE_REMINDER_DAYS", 7))

    due = Vehicle.objects.filter(
        is_active=True, next_maintenance__isnull=False,
        next_maintenance__gte=today, next_maintenance__lte=horizon,
    )
    for v in due:
        notifier.notify("vehicle.maintenance_due", {
            "vehicle_id":   str(v.pk),
            "plate_number": v.plate_number,
            "carrier_id":   str(v.carrier_id),
            "due":          v.next_maintenance.isoformat(),
        })

    expiring = Quote.objects.filter(
        status=Quote.Status.SENT, valid_until__gt=now, valid_until__lte=now + timedelta(hours=24),
    ).select_related("order")
    for q in expiring:
        notifier.notify("quote.expiring", {
            "quote_id":    str(q.pk),
            "order_id":    str(q.order_id),
            "shipper_id":  str(q.order.shipper_id),
            "valid_until": q.valid_until.isoformat(),
        })

    unassigned = Order.objects.filter(
        status=Order.Status.REQUESTED, carrier__isnull=True, created_at__lt=now - timedelta(hours=24),
    )
    for o in unassigned:
        notifier.notify("order.unassigned", {
            "order_id":     str(o.pk),
            "order_number": o.order_number,
            "shipper_id":   str(o.shipper_id),
        })

    counts = {"maintenance": due.count(), "expiring": expiring.count(), "unassigned": unassigned.count()}
    logger.info("Reminder sweep: %s", counts)
    return counts
