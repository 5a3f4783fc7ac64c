"""Order serializers."""

from rest_framework import serializers

from apps.accounts.models import Address
from apps.core.choices import SpecialRequirement
from .models import Order, OrderEvent, TrackingEvent


class AddressBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model  = Address
        fields = ["id", "label", "street", "city", "region", "latitude", "longitude"]


class OrderEventSerializer(serializers.ModelSerializer):
    actor_name = serializers.CharField(source="actor.full_name", read_only=True, default=None)

    class Meta:
        model  = OrderEvent
        fields = ["from_status", "to_status", "actor_name", "note", "occurred_at"]


class TrackingEventSerializer(serializers.ModelSerializer):
    class Meta:
        model  = TrackingEvent
        fields = ["event_type", "latitude", "longitude", "description", "images", "occurred_at"]


class OrderCreateSerializer(serializers.ModelSerializer):
    departure_address    = serializers.UUIDField()
    destination_address  = serializers.UUIDField()
    special_requirements = serializers.ListField(
        child=serializers.ChoiceField(choices=SpecialRequirement.choices), required=False,
    )

    class Meta:
        model  = Order
        fields = [
            "departure_address", "destination_address", "departure_date", "delivery_date",
            "goods_type", "goods_description", "weight_kg", "volume_m3", "declared_value",
            "special_requirements", "priority", "notes",
        ]

    def validate(self, data):
        if data["departure_address"] == data["destination_address"]:
            raise serializers.ValidationError("Departure and destination must differ.")
        return data


class OrderDetailSerializer(serializers.ModelSerializer):
    departure_address   = AddressBriefSerializer(read_only=True)
    destination_address = AddressBriefSerializer(read_only=True)
    events              = OrderEventSerializer(many=True, read_only=True)
    shipper_name        = serializers.CharField(source="shipper.full_name", read_only=True)
    carrier_name        = serializers.CharField(source="carrier.full_name", read_only=True, default=None)
    vehicle_plate       = serializers.CharField(source="vehicle.plate_number", read_only=True, default=None)

    class Meta:
        model  = Order
        fields = [
            "id", "order_number", "status", "version",
            "shipper_name", "carrier_name", "vehicle_plate",
            "departure_address", "destination_address", "departure_date", "delivery_date",
            "goods_type", "goods_description", "weight_kg", "volume_m3", "declared_value",
            "special_requirements", "priority",
            "estimated_distance_km", "estimated_duration_min", "base_price", "total_price",
            "notes", "cancellation_reason", "events",
            "created_at", "assigned_at", "started_at", "completed_at", "cancelled_at",
        ]


class AssignSerializer(serializers.Serializer):
    vehicle            = serializers.UUIDField()
    estimated_delivery = serializers.DateTimeField(required=False)


class CompleteSerializer(serializers.Serializer):
    notes     = serializers.CharField(required=False, allow_blank=True, max_length=255)
    signature = serializers.CharField(required=False, allow_blank=True)
    images    = serializers.ListField(child=serializers.URLField(), required=False)
    latitude  = serializers.FloatField(required=False, min_value=-90,  max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class PriceAdjustSerializer(serializers.Serializer):
    total_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class PositionSerializer(serializers.Serializer):
    latitude  = serializers.FloatField(min_value=-90,  max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class DelaySerializer(serializers.Serializer):
    reason  = serializers.CharField(max_length=255)
    new_eta = serializers.DateTimeField(required=False)
