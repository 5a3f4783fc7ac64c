"""Pricing serializers."""

from rest_framework import serializers

from apps.core.choices import VehicleType, GoodsType, Priority, SpecialRequirement
from .models import PricingRule


class EstimateSerializer(serializers.Serializer):
    vehicle_type          = serializers.ChoiceField(choices=VehicleType.choices)
    goods_type            = serializers.ChoiceField(choices=GoodsType.choices)
    weight_kg             = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=1)
    volume_m3             = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    estimated_distance_km = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0)
    declared_value        = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    special_requirements  = serializers.ListField(
        child=serializers.ChoiceField(choices=SpecialRequirement.choices), required=False,
    )
    priority              = serializers.ChoiceField(choices=Priority.choices, default=Priority.NORMAL)
    departure_date        = serializers.DateTimeField(required=False, allow_null=True)


class MarketQuerySerializer(serializers.Serializer):
    departure_region   = serializers.CharField(max_length=80)
    destination_region = serializers.CharField(max_length=80)
    goods_type         = serializers.ChoiceField(choices=GoodsType.choices)
    vehicle_type       = serializers.ChoiceField(choices=VehicleType.choices, required=False)


class PricingRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model  = PricingRule
        fields = [
            "id", "name", "vehicle_type", "goods_type", "base_price", "price_per_km",
            "price_per_ton", "valid_from", "valid_until", "is_active", "created_at",
        ]
        read_only_fields = ["id", "created_at"]

    def validate(self, data):
        valid_from, valid_until = data.get("valid_from"), data.get("valid_until")
        if valid_from and valid_until and valid_until <= valid_from:
            raise serializers.ValidationError("valid_until must be after valid_from.")
        return data
