"""OrderWorkflow: creation, state machine, assignment, completion, cancellation."""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from django.db import OperationalError
from django.utils import timezone

from apps.core.exceptions import (
    ValidationError, NotFoundError, AuthorizationError, ConflictError, StateError,
)
from apps.fleet.models import Vehicle, AvailabilityWindow
from apps.orders.models import Order, OrderEvent, TrackingEvent

S = Order.Status


def accepted_quote(carrier, vehicle=None, total="113575"):
    return SimpleNamespace(
        carrier_id=carrier.pk, vehicle_id=vehicle.pk if vehicle else None,
        total_price=Decimal(total), quote_number="DV-TEST",
    )


@pytest.fixture
def bound_order(make_order, order_workflow, carrier):
    """Order in QUOTE_ACCEPTED bound to ``carrier``."""
    def _make(weight_kg="5000"):
        order = make_order(weight_kg=weight_kg)
        return order_workflow.on_quote_accepted(order, accepted_quote(carrier))
    return _make


# ═══════════════════════════════════════════════════════════════════════════════
# CREATE
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestCreateOrder:

    def test_create_sets_requested_number_and_estimates(self, make_order, notifier):
        order = make_order()
        assert order.status == S.REQUESTED
        assert order.order_number.startswith("TR")
        assert len(order.order_number) == 12
        assert order.estimated_distance_km > 50
        assert order.estimated_duration_min > 0
        assert order.base_price > 0
        assert order.carrier is None and order.vehicle is None
        assert OrderEvent.objects.filter(order=order, to_status=S.REQUESTED).exists()
        notifier.notify.assert_called_once()
        assert notifier.notify.call_args[0][0] == "order.created"

    def test_order_numbers_are_sequential(self, make_order):
        first, second = make_order(), make_order()
        assert int(second.order_number[-4:]) == int(first.order_number[-4:]) + 1

    def test_only_shippers_create(self, order_workflow, carrier):
        with pytest.raises(AuthorizationError):
            order_workflow.create(carrier, {})

    def test_foreign_address_is_not_found(self, make_order, make_account, make_address):
        stranger = make_account("SHIPPER")
        foreign = make_address(stranger)
        with pytest.raises(NotFoundError):
            make_order(destination_address=foreign.pk)

    def test_inactive_address_is_not_found(self, make_order, route):
        route[1].is_active = False
        route[1].save()
        with pytest.raises(NotFoundError):
            make_order()

    def test_past_departure_rejected(self, make_order):
        with pytest.raises(ValidationError):
            make_order(departure_date=timezone.now() - timedelta(hours=1))

    def test_no_coordinates_means_no_distance(self, make_order, shipper, make_address):
        a = make_address(shipper, lat=None, lng=None)
        b = make_address(shipper, city="Mbour", lat=None, lng=None)
        order = make_order(departure_address=a.pk, destination_address=b.pk)
        assert order.estimated_distance_km is None
        assert order.base_price == Decimal("50000")


# ═══════════════════════════════════════════════════════════════════════════════
# STATE MACHINE
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestTransitions:

    def test_quote_sent_is_idempotent_past_requested(self, make_order, order_workflow):
        order = make_order()
        order_workflow.on_quote_sent(order)
        assert order.status == S.QUOTE_SENT
        version = order.version
        order_workflow.on_quote_sent(order)
        assert order.status == S.QUOTE_SENT
        assert order.version == version

    def test_quote_sent_on_cancelled_order_fails(self, make_order, order_workflow, shipper):
        order = order_workflow.cancel(shipper, make_order().pk)
        with pytest.raises(StateError):
            order_workflow.on_quote_sent(order)

    def test_quote_accepted_binds_carrier_and_price(self, make_order, order_workflow, carrier, make_vehicle):
        vehicle = make_vehicle(carrier)
        order = order_workflow.on_quote_accepted(make_order(), accepted_quote(carrier, vehicle))
        assert order.status == S.QUOTE_ACCEPTED
        assert order.carrier_id == carrier.pk
        assert order.vehicle_id == vehicle.pk
        assert order.total_price == Decimal("113575")

    def test_stale_version_loses(self, make_order, order_workflow, carrier, other_carrier):
        order = make_order()
        stale = Order.objects.get(pk=order.pk)
        order_workflow.on_quote_accepted(order, accepted_quote(carrier))

        with pytest.raises((ConflictError, StateError)):
            order_workflow.on_quote_accepted(stale, accepted_quote(other_carrier))
        assert Order.objects.get(pk=order.pk).carrier_id == carrier.pk

    def test_concurrent_version_bump_is_conflict(self, make_order, order_workflow, carrier):
        order = make_order()
        Order.objects.filter(pk=order.pk).update(version=order.version + 1)
        with pytest.raises(ConflictError):
            order_workflow.on_quote_accepted(order, accepted_quote(carrier))

    def test_binding_never_reprices_a_delivered_order(self, make_order, order_workflow, carrier):
        order = make_order()
        # the row moved on to DELIVERED behind this stale instance
        Order.objects.filter(pk=order.pk).update(status=S.DELIVERED, total_price=Decimal("90000"))
        with pytest.raises(ConflictError):
            order_workflow.on_quote_accepted(order, accepted_quote(carrier, total="1"))
        delivered = Order.objects.get(pk=order.pk)
        assert delivered.total_price == Decimal("90000")
        assert delivered.carrier_id is None

    def test_start_requires_confirmed(self, bound_order, order_workflow, carrier):
        order = bound_order()
        with pytest.raises(StateError) as exc:
            order_workflow.start(carrier, order.pk)
        assert exc.value.current == S.QUOTE_ACCEPTED
        assert exc.value.attempted == S.IN_TRANSIT

    @pytest.mark.parametrize("status, target, allowed", [
        (S.REQUESTED, S.QUOTE_ACCEPTED, True),
        (S.REQUESTED, S.CONFIRMED, False),
        (S.QUOTE_SENT, S.REQUESTED, False),
        (S.IN_TRANSIT, S.CANCELLED, True),
        (S.DELIVERED, S.CANCELLED, False),
        (S.CANCELLED, S.REQUESTED, False),
    ])
    def test_transition_graph(self, status, target, allowed):
        assert Order(status=status).can_transition(target) is allowed


# ═══════════════════════════════════════════════════════════════════════════════
# ASSIGN / START / COMPLETE
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestFulfilment:

    def test_capacity_mismatch_then_success(self, bound_order, order_workflow, carrier, make_vehicle):
        order = bound_order(weight_kg="12000")
        small = make_vehicle(carrier, capacity_tons="10")
        large = make_vehicle(carrier, vehicle_type="T20", capacity_tons="15")

        with pytest.raises(ValidationError, match="capacity mismatch"):
            order_workflow.assign(carrier, order.pk, small.pk)

        order = order_workflow.assign(carrier, order.pk, large.pk)
        large.refresh_from_db()
        small.refresh_from_db()
        assert order.status == S.CONFIRMED
        assert large.status == Vehicle.Status.RESERVED
        assert small.status == Vehicle.Status.AVAILABLE

        booking = AvailabilityWindow.objects.get(origin_order=order)
        assert booking.window_type == AvailabilityWindow.Type.BUSY
        assert booking.origin == AvailabilityWindow.Origin.ORDER
        assert booking.start == order.departure_date
        assert booking.end == order.delivery_date

    def test_assign_rejects_busy_vehicle(self, bound_order, order_workflow, carrier, make_vehicle):
        order = bound_order()
        vehicle = make_vehicle(carrier)
        AvailabilityWindow.objects.create(
            carrier=carrier, vehicle=vehicle, window_type=AvailabilityWindow.Type.LEAVE,
            start=order.departure_date, end=order.departure_date + timedelta(hours=1),
        )
        with pytest.raises(ConflictError):
            order_workflow.assign(carrier, order.pk, vehicle.pk)
        vehicle.refresh_from_db()
        assert vehicle.status == Vehicle.Status.AVAILABLE

    def test_assign_aborted_by_concurrent_update_is_conflict(
        self, bound_order, order_workflow, carrier, make_vehicle,
    ):
        cause = Exception("could not serialize access due to concurrent update")
        cause.sqlstate = "40001"
        failure = OperationalError(str(cause))
        failure.__cause__ = cause

        vehicle = make_vehicle(carrier)
        order = bound_order()
        with patch.object(order_workflow.scheduler, "auto_book_for_order", side_effect=failure):
            with pytest.raises(ConflictError):
                order_workflow.assign(carrier, order.pk, vehicle.pk)

        vehicle.refresh_from_db()
        assert vehicle.status == Vehicle.Status.AVAILABLE
        assert Order.objects.get(pk=order.pk).status == S.QUOTE_ACCEPTED

    def test_assign_rejects_unavailable_vehicle(self, bound_order, order_workflow, carrier, make_vehicle):
        vehicle = make_vehicle(carrier, status=Vehicle.Status.MAINTENANCE)
        with pytest.raises(ValidationError):
            order_workflow.assign(carrier, bound_order().pk, vehicle.pk)

    def test_assign_rejects_foreign_vehicle(self, bound_order, order_workflow, carrier, other_carrier, make_vehicle):
        vehicle = make_vehicle(other_carrier)
        with pytest.raises(ValidationError):
            order_workflow.assign(carrier, bound_order().pk, vehicle.pk)

    def test_only_bound_carrier_assigns(self, bound_order, order_workflow, other_carrier, make_vehicle):
        vehicle = make_vehicle(other_carrier)
        with pytest.raises(AuthorizationError):
            order_workflow.assign(other_carrier, bound_order().pk, vehicle.pk)

    def test_full_run_releases_vehicle_and_freezes_price(self, bound_order, order_workflow, carrier, make_vehicle):
        vehicle = make_vehicle(carrier)
        order = bound_order()
        order_workflow.assign(carrier, order.pk, vehicle.pk)

        order = order_workflow.start(carrier, order.pk)
        vehicle.refresh_from_db()
        assert order.status == S.IN_TRANSIT
        assert vehicle.status == Vehicle.Status.IN_USE

        order = order_workflow.complete(carrier, order.pk, {"notes": "Reçu par le magasinier", "signature": "abc"})
        vehicle.refresh_from_db()
        assert order.status == S.DELIVERED
        assert order.completed_at is not None
        assert vehicle.status == Vehicle.Status.AVAILABLE
        assert not AvailabilityWindow.objects.filter(origin_order=order).exists()
        assert TrackingEvent.objects.filter(order=order, event_type=TrackingEvent.Type.DELIVERY).count() == 1

        delivered = Order.objects.get(pk=order.pk)
        delivered.total_price = Decimal("1")
        with pytest.raises(StateError):
            delivered.save()
        with pytest.raises(StateError):
            order_workflow.adjust_price(carrier, order.pk, Decimal("100000"))
        assert Order.objects.get(pk=order.pk).total_price == Decimal("113575")

    def test_events_journal_every_step(self, bound_order, order_workflow, carrier, make_vehicle):
        vehicle = make_vehicle(carrier)
        order = bound_order()
        order_workflow.assign(carrier, order.pk, vehicle.pk)
        order_workflow.start(carrier, order.pk)
        order_workflow.complete(carrier, order.pk)
        steps = list(OrderEvent.objects.filter(order=order).values_list("to_status", flat=True))
        assert steps == [S.REQUESTED, S.QUOTE_ACCEPTED, S.CONFIRMED, S.IN_TRANSIT, S.DELIVERED]


# ═══════════════════════════════════════════════════════════════════════════════
# CANCEL / PRICE
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestCancelAndPrice:

    def test_cancel_releases_reservation_and_closes_quotes(
        self, bound_order, order_workflow, carrier, shipper, make_vehicle,
    ):
        from apps.quotes.models import Quote

        vehicle = make_vehicle(carrier)
        order = bound_order()
        draft = Quote.objects.create(
            quote_number="DV0000000001", order=order, carrier=carrier,
            valid_until=timezone.now() + timedelta(days=1),
        )
        order_workflow.assign(carrier, order.pk, vehicle.pk)

        order = order_workflow.cancel(shipper, order.pk, "Client a changé d'avis")
        vehicle.refresh_from_db()
        draft.refresh_from_db()
        assert order.status == S.CANCELLED
        assert order.cancelled_by == shipper
        assert order.carrier_id == carrier.pk
        assert vehicle.status == Vehicle.Status.AVAILABLE
        assert not AvailabilityWindow.objects.filter(origin_order=order).exists()
        assert draft.status == Quote.Status.REJECTED

    def test_cancel_in_transit_frees_vehicle(self, bound_order, order_workflow, carrier, make_vehicle):
        vehicle = make_vehicle(carrier)
        order = bound_order()
        order_workflow.assign(carrier, order.pk, vehicle.pk)
        order_workflow.start(carrier, order.pk)
        order_workflow.cancel(carrier, order.pk, "Panne moteur")
        vehicle.refresh_from_db()
        assert vehicle.status == Vehicle.Status.AVAILABLE

    def test_cancel_before_assignment_leaves_quoted_vehicle_alone(
        self, bound_order, make_order, order_workflow, carrier, shipper, make_vehicle,
    ):
        vehicle = make_vehicle(carrier)
        running = bound_order()
        order_workflow.assign(carrier, running.pk, vehicle.pk)
        order_workflow.start(carrier, running.pk)

        # a second order names the same truck through its accepted quote
        pending = order_workflow.on_quote_accepted(make_order(), accepted_quote(carrier, vehicle))
        order_workflow.cancel(shipper, pending.pk, "Plus besoin")

        vehicle.refresh_from_db()
        running.refresh_from_db()
        assert vehicle.status == Vehicle.Status.IN_USE
        assert running.status == S.IN_TRANSIT
        assert AvailabilityWindow.objects.filter(origin_order=running).exists()

    def test_third_party_cannot_cancel(self, make_order, order_workflow, other_carrier):
        with pytest.raises(AuthorizationError):
            order_workflow.cancel(other_carrier, make_order().pk)

    def test_cannot_cancel_twice(self, make_order, order_workflow, shipper):
        order = make_order()
        order_workflow.cancel(shipper, order.pk)
        with pytest.raises(StateError):
            order_workflow.cancel(shipper, order.pk)

    def test_carrier_adjusts_price_before_delivery(self, bound_order, order_workflow, carrier):
        order = order_workflow.adjust_price(carrier, bound_order().pk, Decimal("120000"))
        assert order.total_price == Decimal("120000")


# ═══════════════════════════════════════════════════════════════════════════════
# VISIBILITY
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestVisibility:

    def test_each_role_sees_its_orders(self, make_order, order_workflow, shipper, carrier,
                                       other_carrier, admin, make_account):
        open_order = make_order()
        taken = order_workflow.on_quote_accepted(make_order(), accepted_quote(carrier))

        assert set(order_workflow.visible_to(shipper)) == {open_order, taken}
        assert set(order_workflow.visible_to(carrier)) == {open_order, taken}
        assert set(order_workflow.visible_to(other_carrier)) == {open_order}
        assert set(order_workflow.visible_to(make_account("SHIPPER"))) == set()
        assert order_workflow.visible_to(admin).count() == 2
