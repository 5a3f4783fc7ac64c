"""
Derived counters, always computed from the rows they summarise.
Nothing here is stored, so the numbers can never drift from the orders.
"""

from decimal import Decimal

from django.db.models import Count, Sum, Avg, Q, F
from django.db.models.functions import TruncMonth

from apps.fleet.models import Vehicle
from apps.orders.models import Order
from apps.quotes.models import Quote


def _rate(part, whole) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def carrier_stats(carrier) -> dict:
    orders = Order.objects.filter(carrier=carrier).aggregate(
        total=Count("id"),
        delivered=Count("id", filter=Q(status=Order.Status.DELIVERED)),
        cancelled=Count("id", filter=Q(status=Order.Status.CANCELLED)),
        active=Count("id", filter=Q(status__in=[Order.Status.CONFIRMED, Order.Status.IN_TRANSIT])),
        revenue=Sum("total_price", filter=Q(status=Order.Status.DELIVERED)),
    )
    quotes = Quote.objects.filter(carrier=carrier).exclude(status=Quote.Status.DRAFT).aggregate(
        sent=Count("id"),
        accepted=Count("id", filter=Q(status=Quote.Status.ACCEPTED)),
        average=Avg("total_price"),
    )
    fleet = Vehicle.objects.filter(carrier=carrier, is_active=True).aggregate(
        size=Count("id"),
        available=Count("id", filter=Q(status=Vehicle.Status.AVAILABLE)),
        capacity=Sum("capacity_tons"),
    )
    closed = orders["delivered"] + orders["cancelled"]
    return {
        "fleet_size":           fleet["size"],
        "available_vehicles":   fleet["available"],
        "total_capacity_tons":  fleet["capacity"] or Decimal("0"),
        "total_orders":         orders["total"],
        "active_orders":        orders["active"],
        "delivered_orders":     orders["delivered"],
        "completion_rate":      _rate(orders["delivered"], closed),
        "revenue":              orders["revenue"] or Decimal("0"),
        "quotes_sent":          quotes["sent"],
        "quote_acceptance_rate": _rate(quotes["accepted"], quotes["sent"]),
        "average_quote":        quotes["average"],
    }


def shipper_stats(shipper) -> dict:
    orders = Order.objects.filter(shipper=shipper).aggregate(
        total=Count("id"),
        delivered=Count("id", filter=Q(status=Order.Status.DELIVERED)),
        open=Count("id", filter=Q(status__in=[Order.Status.REQUESTED, Order.Status.QUOTE_SENT])),
        spent=Sum("total_price", filter=Q(status=Order.Status.DELIVERED)),
    )
    return {
        "total_orders":     orders["total"],
        "open_orders":      orders["open"],
        "delivered_orders": orders["delivered"],
        "total_spent":      orders["spent"] or Decimal("0"),
    }


def top_routes(limit=20):
    return list(
        Order.objects
        .values(origin=F("departure_address__city"), destination=F("destination_address__city"))
        .annotate(order_count=Count("id"), total_weight_kg=Sum("weight_kg"))
        .order_by("-order_count")[:limit]
    )


def goods_breakdown():
    return list(
        Order.objects
        .values("goods_type")
        .annotate(count=Count("id"), total_weight_kg=Sum("weight_kg"), total_value=Sum("declared_value"))
        .order_by("-total_weight_kg")
    )


def monthly_summary(months=12):
    return list(
        Order.objects
        .annotate(month=TruncMonth("created_at"))
        .values("month")
        .annotate(
            count=Count("id"),
            delivered=Count("id", filter=Q(status=Order.Status.DELIVERED)),
            total_weight_kg=Sum("weight_kg"),
            total_revenue=Sum("total_price", filter=Q(status=Order.Status.DELIVERED)),
        )
        .order_by("-month")[:months]
    )
