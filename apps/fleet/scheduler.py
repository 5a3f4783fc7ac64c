"""
AvailabilityScheduler: availability windows, conflict detection and the
vehicle status table.

Two blocking windows (any type but FREE) may never overlap on the same
vehicle, nor on the same carrier when the window has no vehicle. Every
check-then-insert runs in one transaction with the owning vehicle (or the
carrier account) row locked.
"""

import calendar
import logging
from collections import OrderedDict
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import (
    ValidationError, ConflictError, NotFoundError, AuthorizationError, conflict_on_lock_failure,
)
from apps.fleet.models import Vehicle, AvailabilityWindow

logger = logging.getLogger("freightlink.availability")

MAX_OCCURRENCES    = 52
RECURRENCE_HORIZON = timedelta(days=365)
DEFAULT_ORDER_SPAN = timedelta(hours=24)

Window = AvailabilityWindow

VEHICLE_STATUS_TRANSITIONS = {
    Vehicle.Status.AVAILABLE:      {Vehicle.Status.IN_USE, Vehicle.Status.MAINTENANCE, Vehicle.Status.RESERVED},
    Vehicle.Status.IN_USE:         {Vehicle.Status.AVAILABLE},
    Vehicle.Status.MAINTENANCE:    {Vehicle.Status.AVAILABLE, Vehicle.Status.OUT_OF_SERVICE},
    Vehicle.Status.OUT_OF_SERVICE: {Vehicle.Status.MAINTENANCE, Vehicle.Status.AVAILABLE},
    Vehicle.Status.RESERVED:       {Vehicle.Status.AVAILABLE, Vehicle.Status.IN_USE},
}


def set_vehicle_status(vehicle: Vehicle, new_status: str) -> Vehicle:
    """Apply a status change allowed by VEHICLE_STATUS_TRANSITIONS."""
    if new_status == vehicle.status:
        return vehicle
    if new_status not in VEHICLE_STATUS_TRANSITIONS.get(vehicle.status, set()):
        raise ValidationError(
            f"Vehicle {vehicle.plate_number} cannot go from {vehicle.status} to {new_status}"
        )
    old = vehicle.status
    vehicle.status = new_status
    vehicle.save(update_fields=["status", "updated_at"])
    logger.info("Vehicle %s %s → %s", vehicle.plate_number, old, new_status)
    return vehicle


def add_months(when, months: int):
    month = when.month - 1 + months
    year  = when.year + month // 12
    month = month % 12 + 1
    day   = min(when.day, calendar.monthrange(year, month)[1])
    return when.replace(year=year, month=month, day=day)


def occurrence_start(start, recurrence: str, index: int):
    if recurrence == Window.Recurrence.DAILY:
        return start + timedelta(days=index)
    if recurrence == Window.Recurrence.WEEKLY:
        return start + timedelta(weeks=index)
    return add_months(start, index)


class AvailabilityScheduler:

    # ── conflicts ─────────────────────────────────────────────────────────────
    def conflicts(self, carrier, vehicle, start, end, exclude=None):
        """Blocking windows overlapping [start, end] on the same vehicle/carrier."""
        qs = Window.objects.exclude(window_type=Window.Type.FREE).filter(start__lte=end, end__gte=start)
        if vehicle is not None:
            qs = qs.filter(vehicle=vehicle)
        else:
            qs = qs.filter(carrier=carrier, vehicle__isnull=True)
        if exclude is not None:
            qs = qs.exclude(pk=exclude.pk)
        return qs

    def check_conflict(self, carrier, vehicle, start, end, window_type, exclude=None) -> bool:
        if window_type == Window.Type.FREE:
            return False
        return self.conflicts(carrier, vehicle, start, end, exclude).exists()

    def _lock(self, carrier, vehicle):
        if vehicle is not None:
            return Vehicle.objects.select_for_update().get(pk=vehicle.pk)
        get_user_model().objects.select_for_update().get(pk=carrier.pk)
        return None

    # ── manual windows ────────────────────────────────────────────────────────
    @conflict_on_lock_failure
    @transaction.atomic
    def create_window(self, actor, data: dict) -> AvailabilityWindow:
        """
        Create a manual window. Recurring windows are expanded eagerly into
        occurrences (up to MAX_OCCURRENCES including the first, never past a
        one-year horizon); a conflict on any occurrence aborts the whole set.
        """
        if not actor.is_carrier:
            raise AuthorizationError("Only carriers manage availability.")

        start, end  = data["start"], data["end"]
        window_type = data["window_type"]
        vehicle     = data.get("vehicle")
        recurring   = data.get("is_recurring", False)
        recurrence  = data.get("recurrence") or ""

        if end <= start:
            raise ValidationError("Window end must be after its start.")
        if recurring and not recurrence:
            raise ValidationError("Recurring windows need a recurrence pattern.")
        if vehicle is not None and vehicle.carrier_id != actor.pk:
            raise AuthorizationError("Vehicle does not belong to this carrier.")

        vehicle = self._lock(actor, vehicle)

        if self.check_conflict(actor, vehicle, start, end, window_type):
            raise ConflictError("Window overlaps an existing blocking window.")

        window = Window.objects.create(
            carrier=actor, vehicle=vehicle, window_type=window_type,
            start=start, end=end, is_recurring=recurring,
            recurrence=recurrence if recurring else "",
            origin=Window.Origin.MANUAL, notes=data.get("notes", ""),
        )
        if recurring:
            self._materialize(window)

        if window_type == Window.Type.MAINTENANCE and vehicle is not None:
            now = timezone.now()
            if start <= now <= end and vehicle.status == Vehicle.Status.AVAILABLE:
                set_vehicle_status(vehicle, Vehicle.Status.MAINTENANCE)

        logger.info("Availability %s created for carrier %s (%s)", window.pk, actor.pk, window_type)
        return window

    def _materialize(self, window):
        span    = window.end - window.start
        horizon = window.start + RECURRENCE_HORIZON
        created = 0
        for index in range(1, MAX_OCCURRENCES):
            start = occurrence_start(window.start, window.recurrence, index)
            if start > horizon:
                break
            end = start + span
            if self.check_conflict(window.carrier, window.vehicle, start, end, window.window_type):
                raise ConflictError(f"Recurring occurrence starting {start:%Y-%m-%d %H:%M} overlaps an existing window.")
            Window.objects.create(
                carrier=window.carrier, vehicle=window.vehicle, window_type=window.window_type,
                start=start, end=end, origin=Window.Origin.RECURRENCE, parent=window,
                notes=window.notes,
            )
            created += 1
        logger.info("Materialized %d occurrences for window %s", created, window.pk)

    @transaction.atomic
    def delete_window(self, actor, window_id) -> None:
        window = Window.objects.select_related("vehicle").filter(pk=window_id).first()
        if window is None:
            raise NotFoundError("Availability window not found.")
        if window.carrier_id != actor.pk:
            raise AuthorizationError("Window belongs to another carrier.")
        if window.origin == Window.Origin.ORDER:
            raise ValidationError("Order-linked windows are released by their order.")

        vehicle = window.vehicle
        was_maintenance = window.window_type == Window.Type.MAINTENANCE
        window.delete()

        if was_maintenance and vehicle is not None and vehicle.status == Vehicle.Status.MAINTENANCE:
            now = timezone.now()
            still_down = Window.objects.filter(
                vehicle=vehicle, window_type=Window.Type.MAINTENANCE, start__lte=now, end__gte=now,
            ).exists()
            if not still_down:
                set_vehicle_status(vehicle, Vehicle.Status.AVAILABLE)
        logger.info("Availability %s deleted by %s", window_id, actor.pk)

    # ── order-linked windows ──────────────────────────────────────────────────
    def order_span(self, order):
        start = order.departure_date
        if order.delivery_date:
            end = order.delivery_date
        elif order.estimated_duration_min:
            end = start + timedelta(minutes=order.estimated_duration_min)
        else:
            end = start + DEFAULT_ORDER_SPAN
        return start, end

    def auto_book_for_order(self, order, carrier, vehicle) -> AvailabilityWindow:
        """Called inside the assignment transaction with the vehicle row locked."""
        start, end = self.order_span(order)
        if self.check_conflict(carrier, vehicle, start, end, Window.Type.BUSY):
            raise ConflictError(f"Vehicle {vehicle.plate_number} is already booked for this period.")
        window = Window.objects.create(
            carrier=carrier, vehicle=vehicle, window_type=Window.Type.BUSY,
            start=start, end=end, origin=Window.Origin.ORDER, origin_order=order,
            notes=f"Order {order.order_number}",
        )
        logger.info("Vehicle %s booked for order %s", vehicle.plate_number, order.order_number)
        return window

    def extend_for_order(self, order):
        """Stretch the order's BUSY window to its current span. Caller holds the transaction."""
        window = Window.objects.filter(origin_order=order).first()
        if window is None:
            return None
        if window.vehicle_id:
            Vehicle.objects.select_for_update().get(pk=window.vehicle_id)
        start, end = self.order_span(order)
        if self.check_conflict(window.carrier, window.vehicle, start, end, window.window_type, exclude=window):
            raise ConflictError(f"Order {order.order_number} cannot be extended: the vehicle is booked.")
        window.start, window.end = start, end
        window.save(update_fields=["start", "end"])
        logger.info("Window for order %s now ends %s", order.order_number, end)
        return window

    def auto_release(self, order) -> int:
        deleted, _ = Window.objects.filter(origin_order=order).delete()
        if deleted:
            logger.info("Released %d window(s) for order %s", deleted, order.order_number)
        return deleted

    # ── queries ───────────────────────────────────────────────────────────────
    def query_availability(self, carrier, start, end, vehicle=None) -> dict:
        if end <= start:
            raise ValidationError("Period end must be after its start.")
        conflicts = Window.objects.filter(carrier=carrier, start__lte=end, end__gte=start) \
                                  .exclude(window_type=Window.Type.FREE)
        if vehicle is not None:
            conflicts = conflicts.filter(vehicle=vehicle)

        available_vehicles = []
        if vehicle is None:
            candidates = Vehicle.objects.filter(
                carrier=carrier, is_active=True,
                status__in=[Vehicle.Status.AVAILABLE, Vehicle.Status.RESERVED],
            )
            available_vehicles = [v for v in candidates if not self.conflicts(carrier, v, start, end).exists()]

        conflicts = list(conflicts.select_related("vehicle"))
        return {
            "is_available":       not conflicts,
            "conflicts":          conflicts,
            "available_vehicles": available_vehicles,
        }

    def carrier_schedule(self, carrier, start, end) -> list:
        """Windows and departing orders grouped per calendar day."""
        from apps.orders.models import Order

        days = OrderedDict()

        def _day(when):
            key = timezone.localtime(when).date().isoformat()
            return days.setdefault(key, {"date": key, "windows": [], "orders": []})

        windows = Window.objects.filter(carrier=carrier, start__lte=end, end__gte=start).select_related("vehicle")
        for w in windows:
            _day(w.start)["windows"].append({
                "id":          str(w.pk),
                "window_type": w.window_type,
                "start":       w.start.isoformat(),
                "end":         w.end.isoformat(),
                "vehicle":     w.vehicle.plate_number if w.vehicle_id else None,
                "notes":       w.notes,
            })

        orders = (
            Order.objects.filter(carrier=carrier, departure_date__range=(start, end))
            .select_related("departure_address", "destination_address", "vehicle")
            .order_by("departure_date")
        )
        for o in orders:
            _day(o.departure_date)["orders"].append({
                "id":           str(o.pk),
                "order_number": o.order_number,
                "status":       o.status,
                "route":        f"{o.departure_address.city} → {o.destination_address.city}",
                "departure":    o.departure_date.isoformat(),
                "vehicle":      o.vehicle.plate_number if o.vehicle_id else None,
            })

        return sorted(days.values(), key=lambda d: d["date"])
