"""Live tracking for orders in transit: position reports, delays, history."""

import logging
from datetime import timedelta

from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import (
    ValidationError, NotFoundError, AuthorizationError, StateError, conflict_on_lock_failure,
)
from apps.fleet.scheduler import AvailabilityScheduler
from apps.geo.distance import get_geo_provider, validate_point
from apps.notifications.service import NotificationService
from apps.orders.models import Order, TrackingEvent

logger = logging.getLogger("freightlink.tracking")

NEAR_DESTINATION_KM = 5
IMMINENT_KM         = 2
POSITION_CACHE_TTL  = 3600


def position_cache_key(order_id) -> str:
    return f"order:{order_id}:position"


class TrackingService:

    def __init__(self, geo_provider=None, notification_service=None, scheduler=None):
        self.geo       = geo_provider         or get_geo_provider()
        self.notifier  = notification_service or NotificationService()
        self.scheduler = scheduler            or AvailabilityScheduler()

    def _order_in_transit(self, actor, order_id, lock=False) -> Order:
        qs = Order.objects.select_for_update() if lock else Order.objects.select_related("destination_address")
        order = qs.filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")
        if not actor.is_carrier or order.carrier_id != actor.pk:
            raise AuthorizationError("Only the carrier bound to this order reports tracking.")
        if order.status != Order.Status.IN_TRANSIT:
            raise StateError(order.status, Order.Status.IN_TRANSIT,
                             message=f"Tracking is only available in transit (order is {order.status}).")
        return order

    def record_position(self, actor, order_id, latitude, longitude) -> dict:
        order = self._order_in_transit(actor, order_id)
        here  = validate_point((latitude, longitude))

        TrackingEvent.objects.create(
            order=order, event_type=TrackingEvent.Type.POSITION, recorded_by=actor,
            latitude=here.lat, longitude=here.lng,
        )

        remaining_km = eta = None
        destination = order.destination_address.point
        if destination:
            remaining = self.geo.estimate(here, destination)
            remaining_km = remaining.km
            eta = timezone.now() + timedelta(minutes=remaining.minutes)

            if remaining_km < NEAR_DESTINATION_KM:
                self.notifier.notify("order.near_destination", {
                    "order_id":     str(order.pk),
                    "order_number": order.order_number,
                    "shipper_id":   str(order.shipper_id),
                    "distance_km":  remaining_km,
                    "imminent":     remaining_km < IMMINENT_KM,
                })

        if order.delivery_date and timezone.now() > order.delivery_date:
            self.notifier.notify("order.delayed", {
                "order_id":     str(order.pk),
                "order_number": order.order_number,
                "shipper_id":   str(order.shipper_id),
                "expected":     order.delivery_date.isoformat(),
            })

        position = {
            "latitude":     here.lat,
            "longitude":    here.lng,
            "remaining_km": remaining_km,
            "eta":          eta.isoformat() if eta else None,
            "recorded_at":  timezone.now().isoformat(),
        }
        cache.set(position_cache_key(order.pk), position, POSITION_CACHE_TTL)
        logger.debug("Position for %s: %s,%s", order.order_number, here.lat, here.lng)
        return position

    @conflict_on_lock_failure
    @transaction.atomic
    def report_delay(self, actor, order_id, reason: str, new_eta=None) -> TrackingEvent:
        order = self._order_in_transit(actor, order_id, lock=True)
        if not reason:
            raise ValidationError("A delay needs a reason.")
        if new_eta is not None:
            if new_eta <= timezone.now():
                raise ValidationError("New ETA must be in the future.")
            order.delivery_date = new_eta
            order.save(update_fields=["delivery_date", "updated_at"])
            self.scheduler.extend_for_order(order)

        event = TrackingEvent.objects.create(
            order=order, event_type=TrackingEvent.Type.DELAY, recorded_by=actor,
            description=reason[:255],
        )
        self.notifier.notify("order.delayed", {
            "order_id":     str(order.pk),
            "order_number": order.order_number,
            "shipper_id":   str(order.shipper_id),
            "reason":       reason,
            "new_eta":      new_eta.isoformat() if new_eta else None,
        })
        logger.info("Delay reported on %s: %s", order.order_number, reason)
        return event

    def last_position(self, order) -> dict:
        return cache.get(position_cache_key(order.pk))

    def history(self, order):
        return order.tracking_events.select_related("recorded_by").all()
