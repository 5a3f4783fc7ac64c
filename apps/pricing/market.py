"""Market price analysis over recently delivered orders on a region pair."""

from datetime import timedelta
from decimal import Decimal

from django.db.models import Avg, Min, Max, Count
from django.utils import timezone

from apps.orders.models import Order
from .engine import round_amount

LOOKBACK_DAYS      = 90
THIN_SAMPLE        = 5
HIGH_SPREAD_RATIO  = Decimal("0.5")


def analyze_market(departure_region, destination_region, goods_type, vehicle_type=None) -> dict:
    since = timezone.now() - timedelta(days=LOOKBACK_DAYS)
    qs = Order.objects.filter(
        status=Order.Status.DELIVERED,
        goods_type=goods_type,
        created_at__gte=since,
        total_price__gt=0,
        departure_address__region__iexact=departure_region,
        destination_address__region__iexact=destination_region,
    )
    if vehicle_type:
        qs = qs.filter(vehicle__vehicle_type=vehicle_type)

    agg = qs.aggregate(
        average=Avg("total_price"), minimum=Min("total_price"),
        maximum=Max("total_price"), sample=Count("id"),
    )
    if not agg["sample"]:
        return {
            "average_price":   Decimal("0"),
            "min_price":       Decimal("0"),
            "max_price":       Decimal("0"),
            "sample_size":     0,
            "recommendations": ["No delivered orders on this route in the last 90 days."],
        }

    average = Decimal(agg["average"])
    recommendations = []
    if agg["sample"] < THIN_SAMPLE:
        recommendations.append("Limited data; prices are indicative only.")
    if average and (agg["maximum"] - agg["minimum"]) / average > HIGH_SPREAD_RATIO:
        recommendations.append("Prices vary widely on this route; room to negotiate.")

    return {
        "average_price":   round_amount(average),
        "min_price":       round_amount(agg["minimum"]),
        "max_price":       round_amount(agg["maximum"]),
        "sample_size":     agg["sample"],
        "recommendations": recommendations,
    }
