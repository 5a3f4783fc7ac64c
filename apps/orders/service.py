"""
OrderWorkflow: the order state machine.

Flow:  create → (quotes) → on_quote_sent → on_quote_accepted → assign → start → complete
                                                                   ↘ cancel (any non-terminal state)

Every multi-row operation runs in one transaction with the order row (and,
where a vehicle is involved, the vehicle row) locked for its duration.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.accounts.models import Address
from apps.core.exceptions import (
    ValidationError, NotFoundError, AuthorizationError, ConflictError, StateError,
    conflict_on_lock_failure,
)
from apps.core.numbering import create_numbered
from apps.fleet.models import Vehicle
from apps.fleet.scheduler import AvailabilityScheduler, set_vehicle_status
from apps.geo.distance import get_geo_provider
from apps.notifications.service import NotificationService
from apps.orders.models import Order, OrderEvent, TrackingEvent
from apps.pricing.engine import PricingEngine

logger = logging.getLogger("freightlink.orders")

S = Order.Status


def _order_payload(order: Order, **extra) -> dict:
    payload = {
        "order_id":     str(order.pk),
        "order_number": order.order_number,
        "status":       order.status,
        "shipper_id":   str(order.shipper_id),
        "carrier_id":   str(order.carrier_id) if order.carrier_id else None,
    }
    payload.update(extra)
    return payload


class OrderWorkflow:
    """
    Order orchestration.
    Dependencies are injected so they can be swapped in tests.
    """

    def __init__(
        self,
        geo_provider=None,
        pricing_engine=None,
        scheduler=None,
        notification_service=None,
    ):
        self.geo       = geo_provider         or get_geo_provider()
        self.pricing   = pricing_engine       or PricingEngine()
        self.scheduler = scheduler            or AvailabilityScheduler()
        self.notifier  = notification_service or NotificationService()

    # ── lookups ───────────────────────────────────────────────────────────────
    def visible_to(self, actor):
        qs = Order.objects.select_related(
            "shipper", "carrier", "vehicle", "departure_address", "destination_address",
        )
        if actor.is_admin:
            return qs
        if actor.is_carrier:
            return qs.filter(Q(carrier=actor) | Q(status__in=[S.REQUESTED, S.QUOTE_SENT]))
        return qs.filter(shipper=actor)

    def get_for_actor(self, actor, order_id) -> Order:
        order = self.visible_to(actor).filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")
        return order

    def _lock(self, order_id) -> Order:
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")
        return order

    def _require_bound_carrier(self, actor, order):
        if not actor.is_carrier or order.carrier_id != actor.pk:
            raise AuthorizationError("Only the carrier bound to this order may do that.")

    def _lock_vehicle(self, vehicle_id) -> Vehicle:
        vehicle = Vehicle.objects.select_for_update().filter(pk=vehicle_id).first()
        if vehicle is None:
            raise NotFoundError("Vehicle not found.")
        return vehicle

    def _transition(self, order, to_status, actor=None, note="", fields=()):
        if not order.can_transition(to_status):
            raise StateError(order.status, to_status)
        from_status   = order.status
        order.status  = to_status
        order.version += 1
        order.save(update_fields=["status", "version", "updated_at", *fields])
        OrderEvent.objects.create(
            order=order, from_status=from_status, to_status=to_status,
            actor=actor, note=note[:255],
        )
        logger.info("Order %s %s → %s", order.order_number, from_status, to_status)
        return order

    # ── create ────────────────────────────────────────────────────────────────
    @transaction.atomic
    def create(self, actor, data: dict) -> Order:
        if not actor.is_shipper:
            raise AuthorizationError("Only shippers create orders.")

        departure   = self._owned_address(actor, data.pop("departure_address"))
        destination = self._owned_address(actor, data.pop("destination_address"))
        if departure.pk == destination.pk:
            raise ValidationError("Departure and destination must differ.")

        departure_date = data["departure_date"]
        if departure_date < timezone.now():
            raise ValidationError("Departure date is in the past.")
        delivery_date = data.get("delivery_date")
        if delivery_date is not None and delivery_date <= departure_date:
            raise ValidationError("Delivery date must be after departure.")

        km = minutes = None
        if departure.point and destination.point:
            estimate = self.geo.estimate(departure.point, destination.point)
            km, minutes = Decimal(str(estimate.km)), estimate.minutes

        order = create_numbered(
            Order, "order_number", "TR",
            shipper                = actor,
            departure_address      = departure,
            destination_address    = destination,
            estimated_distance_km  = km,
            estimated_duration_min = minutes,
            base_price             = self.pricing.estimate_base_price(data["weight_kg"], km, data["goods_type"]),
            status                 = S.REQUESTED,
            **data,
        )
        OrderEvent.objects.create(
            order=order, from_status="", to_status=S.REQUESTED, actor=actor,
            note="Order created",
        )
        self.notifier.notify("order.created", _order_payload(order, weight_kg=str(order.weight_kg)))
        logger.info("Order %s created by shipper %s", order.order_number, actor.pk)
        return order

    def _owned_address(self, actor, address_id) -> Address:
        address = Address.objects.filter(pk=address_id, owner=actor, is_active=True).first()
        if address is None:
            raise NotFoundError("Address not found.")
        return address

    # ── quote callbacks ───────────────────────────────────────────────────────
    def on_quote_sent(self, order: Order, actor=None) -> Order:
        """REQUESTED → QUOTE_SENT; later states are left untouched."""
        if order.status == S.REQUESTED:
            return self._transition(order, S.QUOTE_SENT, actor, note="First quote sent")
        if not order.accepts_quotes:
            raise StateError(order.status, S.QUOTE_SENT)
        return order

    def on_quote_accepted(self, order: Order, quote, actor=None) -> Order:
        """
        Bind carrier, vehicle and price from the accepted quote.
        The write is conditional on the version read by the caller, so a
        concurrent writer makes it match zero rows and fail.
        """
        if not order.accepts_quotes:
            raise StateError(order.status, S.QUOTE_ACCEPTED)

        from_status = order.status
        # bulk update bypasses Order.save(), so the frozen-price guard is repeated here
        matched = (
            Order.objects.filter(pk=order.pk, version=order.version, status=from_status)
            .exclude(status=S.DELIVERED)
            .update(
                status      = S.QUOTE_ACCEPTED,
                carrier_id  = quote.carrier_id,
                vehicle_id  = quote.vehicle_id,
                total_price = quote.total_price,
                version     = F("version") + 1,
                updated_at  = timezone.now(),
            )
        )
        if matched == 0:
            raise ConflictError("Order was modified concurrently; quote not accepted.")

        order.refresh_from_db()
        OrderEvent.objects.create(
            order=order, from_status=from_status, to_status=S.QUOTE_ACCEPTED, actor=actor,
            note=f"Quote {quote.quote_number} accepted",
        )
        logger.info("Order %s bound to carrier %s", order.order_number, quote.carrier_id)
        return order

    # ── carrier steps ─────────────────────────────────────────────────────────
    @conflict_on_lock_failure
    @transaction.atomic
    def assign(self, actor, order_id, vehicle_id, estimated_delivery=None) -> Order:
        order = self._lock(order_id)
        self._require_bound_carrier(actor, order)
        if order.status != S.QUOTE_ACCEPTED:
            raise StateError(order.status, S.CONFIRMED)

        vehicle = self._lock_vehicle(vehicle_id)
        if vehicle.carrier_id != order.carrier_id or not vehicle.is_active:
            raise ValidationError("Vehicle does not belong to the carrier bound to this order.")
        if vehicle.status != Vehicle.Status.AVAILABLE:
            raise ValidationError(f"Vehicle {vehicle.plate_number} is {vehicle.status}, not AVAILABLE.")
        if vehicle.capacity_tons < order.weight_tons:
            raise ValidationError(
                f"capacity mismatch: vehicle carries {vehicle.capacity_tons}t, order needs {order.weight_tons}t"
            )
        if estimated_delivery is not None:
            if estimated_delivery <= order.departure_date:
                raise ValidationError("Estimated delivery must be after departure.")
            order.delivery_date = estimated_delivery

        set_vehicle_status(vehicle, Vehicle.Status.RESERVED)
        order.vehicle     = vehicle
        order.assigned_at = timezone.now()
        self.scheduler.auto_book_for_order(order, order.carrier, vehicle)

        self._transition(
            order, S.CONFIRMED, actor, note=f"Vehicle {vehicle.plate_number} assigned",
            fields=["vehicle", "delivery_date", "assigned_at"],
        )
        self.notifier.notify("order.assigned", _order_payload(order, vehicle=vehicle.plate_number))
        return order

    @conflict_on_lock_failure
    @transaction.atomic
    def start(self, actor, order_id) -> Order:
        order = self._lock(order_id)
        self._require_bound_carrier(actor, order)
        if order.status != S.CONFIRMED:
            raise StateError(order.status, S.IN_TRANSIT)

        vehicle = self._lock_vehicle(order.vehicle_id)
        set_vehicle_status(vehicle, Vehicle.Status.IN_USE)
        order.started_at = timezone.now()
        self._transition(order, S.IN_TRANSIT, actor, note="Departed", fields=["started_at"])
        self.notifier.notify("order.started", _order_payload(order))
        return order

    @conflict_on_lock_failure
    @transaction.atomic
    def complete(self, actor, order_id, proof: dict = None) -> Order:
        proof = proof or {}
        order = self._lock(order_id)
        self._require_bound_carrier(actor, order)
        if order.status != S.IN_TRANSIT:
            raise StateError(order.status, S.DELIVERED)

        vehicle = self._lock_vehicle(order.vehicle_id)
        set_vehicle_status(vehicle, Vehicle.Status.AVAILABLE)
        self.scheduler.auto_release(order)

        TrackingEvent.objects.create(
            order=order, event_type=TrackingEvent.Type.DELIVERY, recorded_by=actor,
            description=proof.get("notes", "Delivered")[:255],
            images=proof.get("images", []), signature=proof.get("signature", ""),
            latitude=proof.get("latitude"), longitude=proof.get("longitude"),
        )
        order.completed_at = timezone.now()
        self._transition(order, S.DELIVERED, actor, note="Delivered", fields=["completed_at"])
        self.notifier.notify("order.delivered", _order_payload(order))
        return order

    @conflict_on_lock_failure
    @transaction.atomic
    def adjust_price(self, actor, order_id, total_price) -> Order:
        order = self._lock(order_id)
        self._require_bound_carrier(actor, order)
        if order.status in (S.DELIVERED, S.CANCELLED):
            raise StateError(order.status, "PRICE_CHANGE",
                             message=f"Price cannot change on a {order.status} order.")
        if total_price < 0:
            raise ValidationError("Price cannot be negative.")

        previous = order.total_price
        order.total_price = total_price
        order.save(update_fields=["total_price", "updated_at"])
        OrderEvent.objects.create(
            order=order, from_status=order.status, to_status=order.status, actor=actor,
            note=f"Price adjusted {previous} → {total_price}",
        )
        logger.info("Order %s price adjusted %s → %s", order.order_number, previous, total_price)
        return order

    # ── cancel ────────────────────────────────────────────────────────────────
    @conflict_on_lock_failure
    @transaction.atomic
    def cancel(self, actor, order_id, reason: str = "") -> Order:
        """
        Shipper or bound carrier only. Frees the vehicle and its order windows
        and closes every open quote; carrier/vehicle stay on the record.
        """
        from apps.quotes.models import Quote

        order = self._lock(order_id)
        if actor.pk not in (order.shipper_id, order.carrier_id):
            raise AuthorizationError("Only the shipper or the bound carrier may cancel.")
        if not order.can_transition(S.CANCELLED):
            raise StateError(order.status, S.CANCELLED)

        # the vehicle is held by this order only once assigned
        if order.vehicle_id and order.status in (S.CONFIRMED, S.IN_TRANSIT):
            vehicle = self._lock_vehicle(order.vehicle_id)
            if vehicle.status in (Vehicle.Status.RESERVED, Vehicle.Status.IN_USE):
                set_vehicle_status(vehicle, Vehicle.Status.AVAILABLE)
        self.scheduler.auto_release(order)

        now = timezone.now()
        closed = Quote.objects.filter(
            order=order, status__in=[Quote.Status.DRAFT, Quote.Status.SENT],
        ).update(status=Quote.Status.REJECTED, rejection_reason="Order cancelled", responded_at=now)

        order.cancellation_reason = reason[:255]
        order.cancelled_by        = actor
        order.cancelled_at        = now
        self._transition(
            order, S.CANCELLED, actor, note=reason or "Cancelled",
            fields=["cancellation_reason", "cancelled_by", "cancelled_at"],
        )
        self.notifier.notify("order.cancelled", _order_payload(order, reason=reason, cancelled_by=str(actor.pk)))
        logger.info("Order %s cancelled by %s (%d open quotes closed)", order.order_number, actor.pk, closed)
        return order
