"""Fleet serializers."""

from rest_framework import serializers

from .models import Vehicle, MaintenanceRecord, AvailabilityWindow


class VehicleSerializer(serializers.ModelSerializer):
    class Meta:
        model  = Vehicle
        fields = [
            "id", "vehicle_type", "plate_number", "brand", "year", "capacity_tons", "volume_m3",
            "daily_rate", "status", "mileage", "last_maintenance", "next_maintenance",
            "is_active", "created_at",
        ]
        read_only_fields = ["id", "status", "mileage", "last_maintenance", "next_maintenance",
                            "is_active", "created_at"]


class VehicleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Vehicle.Status.choices)


class MileageSerializer(serializers.Serializer):
    mileage = serializers.IntegerField(min_value=0)
    notes   = serializers.CharField(required=False, allow_blank=True, max_length=200)


class MaintenanceRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model  = MaintenanceRecord
        fields = ["id", "kind", "description", "cost", "mileage", "performed_at", "next_due", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate(self, data):
        if data.get("next_due") and data["next_due"] <= data["performed_at"]:
            raise serializers.ValidationError("next_due must be after performed_at.")
        return data


class MaintenanceScheduleSerializer(serializers.Serializer):
    scheduled_date = serializers.DateField()
    description    = serializers.CharField(max_length=200)
    days           = serializers.IntegerField(min_value=1, max_value=30, default=1)


class AvailabilityWindowSerializer(serializers.ModelSerializer):
    vehicle = serializers.PrimaryKeyRelatedField(
        queryset=Vehicle.objects.filter(is_active=True), required=False, allow_null=True,
    )
    vehicle_plate = serializers.CharField(source="vehicle.plate_number", read_only=True, default=None)

    class Meta:
        model  = AvailabilityWindow
        fields = [
            "id", "vehicle", "vehicle_plate", "window_type", "start", "end",
            "is_recurring", "recurrence", "origin", "origin_order", "parent", "notes", "created_at",
        ]
        read_only_fields = ["id", "origin", "origin_order", "parent", "created_at"]


class AvailabilityQuerySerializer(serializers.Serializer):
    start   = serializers.DateTimeField()
    end     = serializers.DateTimeField()
    vehicle = serializers.UUIDField(required=False)


class ScheduleQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end   = serializers.DateTimeField()
