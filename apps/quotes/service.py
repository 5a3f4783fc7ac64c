"""
QuoteWorkflow: DRAFT → SENT → {ACCEPTED | REJECTED}.

accept() is the contended path: the order row is locked for the whole
transaction, so of two concurrent accepts on the same order only the first
commits; the second sees the ACCEPTED sibling and fails with ConflictError.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction, IntegrityError
from django.utils import timezone

from apps.accounts.models import CarrierProfile
from apps.core.exceptions import (
    ValidationError, NotFoundError, AuthorizationError, ConflictError, StateError,
    conflict_on_lock_failure,
)
from apps.core.numbering import create_numbered
from apps.fleet.models import Vehicle
from apps.notifications.service import NotificationService
from apps.orders.models import Order
from apps.orders.service import OrderWorkflow
from apps.pricing.engine import PricingEngine, BREAKDOWN_COMPONENTS, VAT_RATE, to_decimal
from apps.pricing.models import find_pricing_rule
from apps.quotes.models import Quote

logger = logging.getLogger("freightlink.quotes")

Q = Quote.Status

ROUNDING_TOLERANCE = Decimal("1")
TERM_FIELDS = ("payment_terms", "delivery_terms", "conditions", "notes")


def _validity_days() -> int:
    return getattr(settings, "QUOTE_VALIDITY_DAYS", 7)


def _auto_quote_limit() -> int:
    return getattr(settings, "AUTO_QUOTE_LIMIT", 5)


def _auto_send_margin() -> Decimal:
    return to_decimal(getattr(settings, "AUTO_SEND_PRICE_MARGIN", Decimal("0.20")))


def check_breakdown(breakdown: dict) -> dict:
    """
    Validate a client-submitted breakdown and return it as Decimals.
    Components must be non-negative; subtotal, taxes and total must re-add within
    one currency unit.
    """
    amounts = {}
    for field in BREAKDOWN_COMPONENTS + ("subtotal", "taxes", "total_price"):
        value = to_decimal(breakdown.get(field))
        if value < 0:
            raise ValidationError(f"{field} cannot be negative.")
        amounts[field] = value

    expected_subtotal = sum((amounts[f] for f in BREAKDOWN_COMPONENTS), Decimal("0"))
    if abs(amounts["subtotal"] - expected_subtotal) > ROUNDING_TOLERANCE:
        raise ValidationError(
            f"Subtotal {amounts['subtotal']} does not match its components ({expected_subtotal})."
        )
    expected_taxes = expected_subtotal * VAT_RATE
    if abs(amounts["taxes"] - expected_taxes) > ROUNDING_TOLERANCE:
        raise ValidationError(
            f"Taxes {amounts['taxes']} do not match VAT on the subtotal ({expected_taxes:.0f})."
        )
    expected_total = expected_subtotal * (1 + VAT_RATE)
    if abs(amounts["total_price"] - expected_total) > ROUNDING_TOLERANCE:
        raise ValidationError(
            f"Total {amounts['total_price']} does not match subtotal plus VAT ({expected_total:.0f})."
        )
    return amounts


def best_vehicle(carrier, weight_tons):
    """Smallest sufficient vehicle, cheapest first on a tie."""
    return (
        Vehicle.objects.filter(
            carrier=carrier, is_active=True, status=Vehicle.Status.AVAILABLE,
            capacity_tons__gte=weight_tons,
        )
        .order_by("capacity_tons", "daily_rate")
        .first()
    )


class QuoteWorkflow:

    def __init__(self, order_workflow=None, pricing_engine=None, notification_service=None):
        self.notifier = notification_service or NotificationService()
        self.pricing  = pricing_engine or PricingEngine()
        self.orders   = order_workflow or OrderWorkflow(
            pricing_engine=self.pricing, notification_service=self.notifier,
        )

    # ── lookups ───────────────────────────────────────────────────────────────
    def _get(self, quote_id, lock=False) -> Quote:
        qs = Quote.objects.select_for_update() if lock else Quote.objects.select_related("order")
        quote = qs.filter(pk=quote_id).first()
        if quote is None:
            raise NotFoundError("Quote not found.")
        return quote

    def _own(self, actor, quote_id, lock=False) -> Quote:
        quote = self._get(quote_id, lock)
        if quote.carrier_id != actor.pk:
            raise AuthorizationError("Quote belongs to another carrier.")
        return quote

    def get_for_actor(self, actor, quote_id) -> Quote:
        quote = self._get(quote_id)
        if actor.is_admin or quote.carrier_id == actor.pk:
            return quote
        if quote.order.shipper_id == actor.pk and quote.status != Q.DRAFT:
            return quote
        raise AuthorizationError("You may not view this quote.")

    def for_order(self, actor, order_id):
        """Quotes of an order: all of them for the carrier's own, non-drafts for the shipper."""
        order = Order.objects.filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")
        qs = Quote.objects.filter(order=order).select_related("carrier", "vehicle")
        if actor.is_admin:
            return qs
        if order.shipper_id == actor.pk:
            return qs.exclude(status=Q.DRAFT)
        if actor.is_carrier:
            return qs.filter(carrier=actor)
        raise AuthorizationError("You may not view quotes for this order.")

    def for_carrier(self, actor):
        return Quote.objects.filter(carrier=actor).select_related("order", "vehicle")

    # ── create ────────────────────────────────────────────────────────────────
    def create_quote(self, actor, order_id, breakdown: dict, valid_until, vehicle_id=None, **terms) -> Quote:
        if not actor.is_carrier:
            raise AuthorizationError("Only carriers submit quotes.")
        order = Order.objects.filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")
        vehicle = None
        if vehicle_id is not None:
            vehicle = Vehicle.objects.filter(pk=vehicle_id, carrier=actor, is_active=True).first()
            if vehicle is None:
                raise NotFoundError("Vehicle not found.")
        return self._create(actor, order, check_breakdown(breakdown), valid_until, vehicle, **terms)

    @transaction.atomic
    def _create(self, carrier, order, amounts, valid_until, vehicle=None, is_automatic=False, **terms) -> Quote:
        if not order.accepts_quotes:
            raise StateError(order.status, Order.Status.QUOTE_SENT,
                             message=f"Order {order.order_number} no longer accepts quotes ({order.status}).")
        if valid_until <= timezone.now():
            raise ValidationError("valid_until must be in the future.")
        if Quote.objects.filter(order=order, carrier=carrier).exists():
            raise ConflictError(f"Carrier already quoted order {order.order_number}.")

        try:
            quote = create_numbered(
                Quote, "quote_number", "DV",
                order        = order,
                carrier      = carrier,
                vehicle      = vehicle,
                valid_until  = valid_until,
                is_automatic = is_automatic,
                **amounts,
                **{k: v for k, v in terms.items() if k in TERM_FIELDS},
            )
        except IntegrityError:
            raise ConflictError(f"Carrier already quoted order {order.order_number}.")

        logger.info("Quote %s drafted by %s on %s: %s", quote.quote_number, carrier.pk,
                    order.order_number, quote.total_price)
        return quote

    def price_for_carrier(self, actor, order_id, vehicle_id=None) -> Quote:
        """Draft a quote priced by the engine with the carrier's own rates."""
        if not actor.is_carrier:
            raise AuthorizationError("Only carriers submit quotes.")
        order = Order.objects.filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")

        if vehicle_id is not None:
            vehicle = Vehicle.objects.filter(pk=vehicle_id, carrier=actor, is_active=True).first()
            if vehicle is None:
                raise NotFoundError("Vehicle not found.")
            if vehicle.capacity_tons < order.weight_tons:
                raise ValidationError(
                    f"capacity mismatch: vehicle carries {vehicle.capacity_tons}t, order needs {order.weight_tons}t"
                )
        else:
            vehicle = best_vehicle(actor, order.weight_tons)
            if vehicle is None:
                raise ValidationError("No available vehicle can carry this order.")

        amounts = self._price(order, actor, vehicle)
        valid_until = timezone.now() + timedelta(days=_validity_days())
        return self._create(actor, order, amounts, valid_until, vehicle)

    def _price(self, order, carrier, vehicle) -> dict:
        rule = find_pricing_rule(carrier, vehicle.vehicle_type, order.goods_type)
        return self.pricing.price(order, vehicle.vehicle_type, rule)

    # ── automatic matching ────────────────────────────────────────────────────
    def suitable_carriers(self, order) -> list:
        """(carrier, best vehicle) pairs ranked by capacity then daily rate."""
        profiles = CarrierProfile.objects.filter(
            is_verified=True, is_online=True, account__is_active=True,
        ).select_related("account")

        candidates = []
        for profile in profiles:
            vehicle = best_vehicle(profile.account, order.weight_tons)
            if vehicle is not None:
                candidates.append((profile.account, vehicle))
        candidates.sort(key=lambda pair: (pair[1].capacity_tons, pair[1].daily_rate))
        return candidates

    @transaction.atomic
    def generate_auto_quotes(self, order_id, actor=None) -> list:
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")
        if actor is not None and not actor.is_admin and order.shipper_id != actor.pk:
            raise AuthorizationError("Only the order's shipper may request automatic quotes.")
        if not order.accepts_quotes:
            raise StateError(order.status, Order.Status.QUOTE_SENT,
                             message=f"Order {order.order_number} no longer accepts quotes ({order.status}).")
        if not order.estimated_distance_km:
            raise ValidationError("Order has no distance estimate; automatic pricing needs one.")

        quoted = set(order.quotes.values_list("carrier_id", flat=True))
        candidates = [(c, v) for c, v in self.suitable_carriers(order) if c.pk not in quoted]
        candidates = candidates[:_auto_quote_limit()]
        if not candidates:
            logger.warning("No suitable carriers for order %s (%s kg)", order.order_number, order.weight_kg)
            return []

        valid_until = timezone.now() + timedelta(days=_validity_days())
        quotes = [
            self._create(
                carrier, order, self._price(order, carrier, vehicle), valid_until, vehicle,
                is_automatic=True, notes="Automatic quote",
            )
            for carrier, vehicle in candidates
        ]

        ceiling = min(q.total_price for q in quotes) * (1 + _auto_send_margin())
        for quote in quotes:
            if quote.total_price <= ceiling:
                self._send(quote, order)
        logger.info("Generated %d automatic quotes for %s", len(quotes), order.order_number)
        return quotes

    # ── transitions ───────────────────────────────────────────────────────────
    @conflict_on_lock_failure
    @transaction.atomic
    def send(self, actor, quote_id) -> Quote:
        quote = self._own(actor, quote_id, lock=True)
        order = Order.objects.select_for_update().get(pk=quote.order_id)
        return self._send(quote, order, actor)

    def _send(self, quote, order, actor=None) -> Quote:
        if quote.status != Q.DRAFT:
            raise StateError(quote.status, Q.SENT, entity="quote")
        if quote.is_expired:
            raise ValidationError(f"Quote {quote.quote_number} has expired.")

        quote.status  = Q.SENT
        quote.sent_at = timezone.now()
        quote.save(update_fields=["status", "sent_at", "updated_at"])
        self.orders.on_quote_sent(order, actor)

        self.notifier.notify("quote.sent", {
            "quote_id":     str(quote.pk),
            "quote_number": quote.quote_number,
            "order_id":     str(order.pk),
            "shipper_id":   str(order.shipper_id),
            "carrier_id":   str(quote.carrier_id),
            "total_price":  str(quote.total_price),
        })
        logger.info("Quote %s sent for %s", quote.quote_number, order.order_number)
        return quote

    @conflict_on_lock_failure
    @transaction.atomic
    def accept(self, actor, quote_id) -> Quote:
        """
        Accept a SENT quote. Locks the order row first so concurrent accepts
        on the same order serialize; every other SENT quote is rejected and
        the order is bound to this quote's carrier, vehicle and price.
        """
        quote = self._get(quote_id)
        order = Order.objects.select_for_update().get(pk=quote.order_id)
        if order.shipper_id != actor.pk:
            raise AuthorizationError("Only the order's shipper may accept quotes.")

        quote = self._get(quote_id, lock=True)
        if Quote.objects.filter(order=order, status=Q.ACCEPTED).exclude(pk=quote.pk).exists():
            raise ConflictError(f"Another quote was already accepted for {order.order_number}.")
        if quote.status != Q.SENT:
            raise StateError(quote.status, Q.ACCEPTED, entity="quote")
        if quote.is_expired:
            raise ValidationError(f"Quote {quote.quote_number} has expired.")

        now = timezone.now()
        quote.status       = Q.ACCEPTED
        quote.responded_at = now
        quote.save(update_fields=["status", "responded_at", "updated_at"])

        siblings = list(
            Quote.objects.filter(order=order, status=Q.SENT).exclude(pk=quote.pk)
            .values_list("pk", "carrier_id")
        )
        Quote.objects.filter(pk__in=[pk for pk, _ in siblings]).update(
            status=Q.REJECTED, responded_at=now, rejection_reason="Another quote was accepted",
        )

        self.orders.on_quote_accepted(order, quote, actor)

        self.notifier.notify("quote.accepted", {
            "quote_id":    str(quote.pk),
            "order_id":    str(order.pk),
            "carrier_id":  str(quote.carrier_id),
            "total_price": str(quote.total_price),
        })
        for pk, carrier_id in siblings:
            self.notifier.notify("quote.rejected", {
                "quote_id":   str(pk),
                "order_id":   str(order.pk),
                "carrier_id": str(carrier_id),
                "reason":     "Another quote was accepted",
            })
        logger.info("Quote %s accepted; %d sibling(s) rejected", quote.quote_number, len(siblings))
        return quote

    @conflict_on_lock_failure
    @transaction.atomic
    def reject(self, actor, quote_id, reason: str = "") -> Quote:
        quote = self._get(quote_id, lock=True)
        order = Order.objects.get(pk=quote.order_id)
        if order.shipper_id != actor.pk:
            raise AuthorizationError("Only the order's shipper may reject quotes.")
        if quote.status != Q.SENT:
            raise StateError(quote.status, Q.REJECTED, entity="quote")

        quote.status           = Q.REJECTED
        quote.responded_at     = timezone.now()
        quote.rejection_reason = reason[:255]
        quote.save(update_fields=["status", "responded_at", "rejection_reason", "updated_at"])

        self.notifier.notify("quote.rejected", {
            "quote_id":   str(quote.pk),
            "order_id":   str(order.pk),
            "carrier_id": str(quote.carrier_id),
            "reason":     reason,
        })
        logger.info("Quote %s rejected by shipper", quote.quote_number)
        return quote

    # ── draft editing ─────────────────────────────────────────────────────────
    @transaction.atomic
    def update_quote(self, actor, quote_id, data: dict) -> Quote:
        quote = self._own(actor, quote_id, lock=True)
        if quote.status != Q.DRAFT:
            raise StateError(quote.status, "UPDATE", entity="quote",
                             message=f"Only DRAFT quotes can be edited (quote is {quote.status}).")

        amount_fields = BREAKDOWN_COMPONENTS + ("subtotal", "taxes", "total_price")
        if any(f in data for f in amount_fields):
            merged = {f: data.get(f, getattr(quote, f)) for f in amount_fields}
            for field, value in check_breakdown(merged).items():
                setattr(quote, field, value)

        if "valid_until" in data:
            if data["valid_until"] <= timezone.now():
                raise ValidationError("valid_until must be in the future.")
            quote.valid_until = data["valid_until"]
        if "vehicle" in data:
            vehicle = data["vehicle"]
            if vehicle is not None and vehicle.carrier_id != actor.pk:
                raise AuthorizationError("Vehicle belongs to another carrier.")
            quote.vehicle = vehicle
        for field in TERM_FIELDS:
            if field in data:
                setattr(quote, field, data[field])

        quote.save()
        logger.info("Quote %s updated", quote.quote_number)
        return quote

    @transaction.atomic
    def delete_quote(self, actor, quote_id) -> None:
        quote = self._own(actor, quote_id, lock=True)
        if quote.status != Q.DRAFT:
            raise StateError(quote.status, "DELETE", entity="quote",
                             message=f"Only DRAFT quotes can be deleted (quote is {quote.status}).")
        number = quote.quote_number
        quote.delete()
        logger.info("Quote %s deleted", number)
