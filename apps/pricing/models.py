"""Carrier-specific rate overrides."""

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from apps.core.choices import VehicleType, GoodsType


class PricingRuleQuerySet(models.QuerySet):
    def applicable(self, carrier, vehicle_type, goods_type, at=None):
        """Active rules for this carrier/vehicle/goods, most specific first."""
        at = at or timezone.now()
        return (
            self.filter(carrier=carrier, is_active=True, valid_from__lte=at)
            .filter(Q(valid_until__isnull=True) | Q(valid_until__gte=at))
            .filter(Q(vehicle_type__isnull=True) | Q(vehicle_type=vehicle_type))
            .filter(Q(goods_type__isnull=True) | Q(goods_type=goods_type))
            .order_by(
                F("vehicle_type").asc(nulls_last=True),
                F("goods_type").asc(nulls_last=True),
                "-created_at",
            )
        )


class PricingRule(models.Model):
    """Non-null rates replace the default tables for matching requests."""
    carrier       = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
                                      related_name="pricing_rules")
    name          = models.CharField(max_length=80, blank=True)
    vehicle_type  = models.CharField(max_length=15, choices=VehicleType.choices, null=True, blank=True)
    goods_type    = models.CharField(max_length=15, choices=GoodsType.choices, null=True, blank=True)
    base_price    = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True,
                                        validators=[MinValueValidator(0)])
    price_per_km  = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                        validators=[MinValueValidator(0)])
    price_per_ton = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                        validators=[MinValueValidator(0)])
    valid_from    = models.DateTimeField(default=timezone.now)
    valid_until   = models.DateTimeField(null=True, blank=True)
    is_active     = models.BooleanField(default=True)
    created_at    = models.DateTimeField(auto_now_add=True)

    objects = PricingRuleQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes  = [models.Index(fields=["carrier", "is_active"])]

    def __str__(self):
        scope = "/".join(filter(None, [self.vehicle_type, self.goods_type])) or "any"
        return f"{self.carrier} [{scope}]"


def find_pricing_rule(carrier, vehicle_type, goods_type, at=None):
    return PricingRule.objects.applicable(carrier, vehicle_type, goods_type, at).first()
