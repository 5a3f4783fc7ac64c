"""TrackingService: position reports and delays for orders in transit."""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.core.cache import cache
from django.utils import timezone

from apps.core.exceptions import ValidationError, AuthorizationError, StateError
from apps.orders.models import Order, TrackingEvent
from apps.orders.tracking import TrackingService, position_cache_key


@pytest.fixture
def tracking(notifier):
    cache.clear()
    return TrackingService(notification_service=notifier)


@pytest.fixture
def in_transit(make_order, order_workflow, carrier, make_vehicle):
    vehicle = make_vehicle(carrier)
    order = make_order()
    order_workflow.on_quote_accepted(order, SimpleNamespace(
        carrier_id=carrier.pk, vehicle_id=vehicle.pk,
        total_price=Decimal("113575"), quote_number="DV-TEST",
    ))
    order_workflow.assign(carrier, order.pk, vehicle.pk)
    return order_workflow.start(carrier, order.pk)


def events_named(notifier, name):
    return [c[0][1] for c in notifier.notify.call_args_list if c[0][0] == name]


@pytest.mark.django_db
class TestPositions:

    def test_far_position_is_cached_without_alert(self, tracking, in_transit, carrier, notifier):
        position = tracking.record_position(carrier, in_transit.pk, 14.6928, -17.4467)

        assert position["remaining_km"] > 50
        assert position["eta"] is not None
        assert cache.get(position_cache_key(in_transit.pk)) == position
        assert tracking.last_position(in_transit) == position
        assert not events_named(notifier, "order.near_destination")
        assert in_transit.tracking_events.filter(event_type=TrackingEvent.Type.POSITION).count() == 1

    def test_near_destination_alert(self, tracking, in_transit, carrier, notifier):
        tracking.record_position(carrier, in_transit.pk, 14.7000, -16.9359)
        tracking.record_position(carrier, in_transit.pk, 14.8000, -16.9359)

        near = events_named(notifier, "order.near_destination")
        assert len(near) == 1
        assert near[0]["imminent"] is True
        assert near[0]["distance_km"] < 2

    def test_late_position_flags_delay(self, tracking, in_transit, carrier, notifier):
        Order.objects.filter(pk=in_transit.pk).update(
            delivery_date=timezone.now() - timedelta(minutes=5),
        )
        tracking.record_position(carrier, in_transit.pk, 14.7500, -17.1000)
        assert len(events_named(notifier, "order.delayed")) == 1

    def test_invalid_coordinates(self, tracking, in_transit, carrier):
        with pytest.raises(ValidationError):
            tracking.record_position(carrier, in_transit.pk, 95, 0)

    def test_only_bound_carrier_reports(self, tracking, in_transit, other_carrier, shipper):
        with pytest.raises(AuthorizationError):
            tracking.record_position(other_carrier, in_transit.pk, 14.7, -17.0)
        with pytest.raises(AuthorizationError):
            tracking.record_position(shipper, in_transit.pk, 14.7, -17.0)

    def test_not_in_transit(self, tracking, make_order, order_workflow, carrier):
        order = make_order()
        order_workflow.on_quote_accepted(order, SimpleNamespace(
            carrier_id=carrier.pk, vehicle_id=None,
            total_price=Decimal("113575"), quote_number="DV-TEST",
        ))
        with pytest.raises(StateError):
            tracking.record_position(carrier, order.pk, 14.7, -17.0)


@pytest.mark.django_db
class TestDelays:

    def test_delay_moves_delivery_date(self, tracking, in_transit, carrier, notifier):
        new_eta = timezone.now() + timedelta(days=5)
        event = tracking.report_delay(carrier, in_transit.pk, "Panne sur la N2", new_eta)

        in_transit.refresh_from_db()
        assert event.event_type == TrackingEvent.Type.DELAY
        assert in_transit.delivery_date == new_eta
        assert events_named(notifier, "order.delayed")[0]["reason"] == "Panne sur la N2"

    def test_delay_stretches_the_order_booking(self, tracking, in_transit, carrier):
        from apps.fleet.models import AvailabilityWindow
        from apps.fleet.scheduler import AvailabilityScheduler

        new_eta = in_transit.delivery_date + timedelta(days=2)
        tracking.report_delay(carrier, in_transit.pk, "Route coupée", new_eta)

        window = AvailabilityWindow.objects.get(origin_order=in_transit)
        assert window.end == new_eta
        inside = new_eta - timedelta(hours=1)
        assert AvailabilityScheduler().check_conflict(
            carrier, window.vehicle, inside, inside + timedelta(minutes=30), AvailabilityWindow.Type.BUSY,
        )

    def test_delay_into_booked_period_is_conflict(self, tracking, in_transit, carrier):
        from apps.core.exceptions import ConflictError
        from apps.fleet.models import AvailabilityWindow

        window = AvailabilityWindow.objects.get(origin_order=in_transit)
        next_job = window.end + timedelta(days=1)
        AvailabilityWindow.objects.create(
            carrier=carrier, vehicle=window.vehicle, window_type=AvailabilityWindow.Type.BUSY,
            start=next_job, end=next_job + timedelta(hours=8),
        )
        old_delivery = in_transit.delivery_date

        with pytest.raises(ConflictError):
            tracking.report_delay(carrier, in_transit.pk, "Route coupée", next_job + timedelta(hours=2))

        in_transit.refresh_from_db()
        window.refresh_from_db()
        assert in_transit.delivery_date == old_delivery
        assert window.end == old_delivery
        assert not in_transit.tracking_events.filter(event_type=TrackingEvent.Type.DELAY).exists()

    def test_delay_needs_reason(self, tracking, in_transit, carrier):
        with pytest.raises(ValidationError):
            tracking.report_delay(carrier, in_transit.pk, "")

    def test_eta_in_past_rejected(self, tracking, in_transit, carrier):
        with pytest.raises(ValidationError):
            tracking.report_delay(carrier, in_transit.pk, "Douane", timezone.now() - timedelta(hours=1))

    def test_history_lists_events(self, tracking, in_transit, carrier):
        tracking.record_position(carrier, in_transit.pk, 14.7, -17.2)
        tracking.report_delay(carrier, in_transit.pk, "Embouteillage")
        kinds = {e.event_type for e in tracking.history(in_transit)}
        assert {TrackingEvent.Type.POSITION, TrackingEvent.Type.DELAY} <= kinds
