"""Quote serializers."""

from rest_framework import serializers

from apps.fleet.models import Vehicle
from .models import Quote

AMOUNT = dict(max_digits=14, decimal_places=2, min_value=0)


class BreakdownSerializer(serializers.Serializer):
    base_price     = serializers.DecimalField(**AMOUNT)
    distance_price = serializers.DecimalField(**AMOUNT, default=0)
    weight_price   = serializers.DecimalField(**AMOUNT, default=0)
    volume_price   = serializers.DecimalField(**AMOUNT, default=0)
    fuel_surcharge = serializers.DecimalField(**AMOUNT, default=0)
    toll_fees      = serializers.DecimalField(**AMOUNT, default=0)
    handling_fees  = serializers.DecimalField(**AMOUNT, default=0)
    insurance_fees = serializers.DecimalField(**AMOUNT, default=0)
    other_fees     = serializers.DecimalField(**AMOUNT, default=0)
    subtotal       = serializers.DecimalField(**AMOUNT)
    taxes          = serializers.DecimalField(**AMOUNT)
    total_price    = serializers.DecimalField(**AMOUNT)


class QuoteCreateSerializer(BreakdownSerializer):
    order          = serializers.UUIDField()
    vehicle        = serializers.UUIDField(required=False, allow_null=True)
    valid_until    = serializers.DateTimeField()
    payment_terms  = serializers.CharField(required=False, allow_blank=True, max_length=255)
    delivery_terms = serializers.CharField(required=False, allow_blank=True, max_length=255)
    conditions     = serializers.CharField(required=False, allow_blank=True)
    notes          = serializers.CharField(required=False, allow_blank=True)


class QuoteUpdateSerializer(serializers.ModelSerializer):
    vehicle = serializers.PrimaryKeyRelatedField(
        queryset=Vehicle.objects.filter(is_active=True), required=False, allow_null=True,
    )

    class Meta:
        model  = Quote
        fields = [
            "vehicle", "base_price", "distance_price", "weight_price", "volume_price",
            "fuel_surcharge", "toll_fees", "handling_fees", "insurance_fees", "other_fees",
            "subtotal", "taxes", "total_price", "valid_until",
            "payment_terms", "delivery_terms", "conditions", "notes",
        ]
        extra_kwargs = {f: {"required": False} for f in fields}


class PriceRequestSerializer(serializers.Serializer):
    order   = serializers.UUIDField()
    vehicle = serializers.UUIDField(required=False, allow_null=True)


class AutoQuoteSerializer(serializers.Serializer):
    order = serializers.UUIDField()


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class QuoteDetailSerializer(serializers.ModelSerializer):
    order_number  = serializers.CharField(source="order.order_number", read_only=True)
    carrier_name  = serializers.CharField(source="carrier.full_name", read_only=True)
    vehicle_plate = serializers.CharField(source="vehicle.plate_number", read_only=True, default=None)
    vehicle_type  = serializers.CharField(source="vehicle.vehicle_type", read_only=True, default=None)

    class Meta:
        model  = Quote
        fields = [
            "id", "quote_number", "status", "order", "order_number",
            "carrier", "carrier_name", "vehicle", "vehicle_plate", "vehicle_type",
            "base_price", "distance_price", "weight_price", "volume_price",
            "fuel_surcharge", "toll_fees", "handling_fees", "insurance_fees", "other_fees",
            "subtotal", "taxes", "total_price",
            "valid_until", "payment_terms", "delivery_terms", "conditions", "notes",
            "is_automatic", "sent_at", "responded_at", "rejection_reason", "created_at",
        ]
