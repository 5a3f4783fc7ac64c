"""Fleet API: vehicles, maintenance and availability windows."""

from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema
from django_filters.rest_framework import DjangoFilterBackend

from apps.core.exceptions import AuthorizationError
from .models import Vehicle, AvailabilityWindow
from .scheduler import AvailabilityScheduler
from .service import VehicleService
from . import serializers as sz

scheduler = AvailabilityScheduler()
vehicles  = VehicleService(scheduler)


def _require_carrier(user):
    if not user.is_carrier:
        raise AuthorizationError("Fleet management requires a carrier account.")


# ── Vehicles ──────────────────────────────────────────────────────────────────
@extend_schema(tags=["Fleet"], summary="List or register the carrier's vehicles")
class VehicleListCreateView(generics.ListCreateAPIView):
    serializer_class   = sz.VehicleSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["status", "vehicle_type"]

    def get_queryset(self):
        _require_carrier(self.request.user)
        return Vehicle.objects.filter(carrier=self.request.user, is_active=True)

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        vehicle = vehicles.register(request.user, dict(ser.validated_data))
        return Response(sz.VehicleSerializer(vehicle).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Fleet"])
class VehicleDetailView(APIView):
    """GET/DELETE /api/fleet/vehicles/{id}/: DELETE deactivates."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, vehicle_id):
        return Response(sz.VehicleSerializer(vehicles.get_owned(request.user, vehicle_id)).data)

    def delete(self, request, vehicle_id):
        vehicles.deactivate(request.user, vehicle_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Fleet"], summary="Change vehicle status", request=sz.VehicleStatusSerializer)
class VehicleStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, vehicle_id):
        ser = sz.VehicleStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        vehicle = vehicles.change_status(request.user, vehicle_id, ser.validated_data["status"])
        return Response(sz.VehicleSerializer(vehicle).data)


@extend_schema(tags=["Fleet"], summary="Update odometer", request=sz.MileageSerializer)
class VehicleMileageView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, vehicle_id):
        ser = sz.MileageSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        vehicle = vehicles.update_mileage(
            request.user, vehicle_id, ser.validated_data["mileage"], ser.validated_data.get("notes", ""),
        )
        return Response(sz.VehicleSerializer(vehicle).data)


@extend_schema(tags=["Fleet"], summary="Maintenance history or record a maintenance")
class MaintenanceView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, vehicle_id):
        vehicle = vehicles.get_owned(request.user, vehicle_id)
        return Response(sz.MaintenanceRecordSerializer(vehicle.maintenance_records.all(), many=True).data)

    @extend_schema(request=sz.MaintenanceRecordSerializer)
    def post(self, request, vehicle_id):
        ser = sz.MaintenanceRecordSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        record = vehicles.record_maintenance(request.user, vehicle_id, dict(ser.validated_data))
        return Response(sz.MaintenanceRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Fleet"], summary="Schedule a future maintenance window",
               request=sz.MaintenanceScheduleSerializer)
class MaintenanceScheduleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, vehicle_id):
        ser = sz.MaintenanceScheduleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        window = vehicles.schedule_maintenance(
            request.user, vehicle_id, d["scheduled_date"], d["description"], d["days"],
        )
        return Response(sz.AvailabilityWindowSerializer(window).data, status=status.HTTP_201_CREATED)


# ── Availability ──────────────────────────────────────────────────────────────
@extend_schema(tags=["Availability"], summary="List or create availability windows")
class WindowListCreateView(generics.ListCreateAPIView):
    serializer_class   = sz.AvailabilityWindowSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["window_type", "vehicle", "origin"]

    def get_queryset(self):
        _require_carrier(self.request.user)
        return AvailabilityWindow.objects.filter(carrier=self.request.user).select_related("vehicle")

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        window = scheduler.create_window(request.user, dict(ser.validated_data))
        return Response(sz.AvailabilityWindowSerializer(window).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Availability"], summary="Delete a manual window (and its occurrences)")
class WindowDeleteView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, window_id):
        scheduler.delete_window(request.user, window_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Availability"], summary="Check availability over a period", request=sz.AvailabilityQuerySerializer)
class AvailabilityQueryView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        _require_carrier(request.user)
        ser = sz.AvailabilityQuerySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        vehicle = vehicles.get_owned(request.user, d["vehicle"]) if d.get("vehicle") else None

        result = scheduler.query_availability(request.user, d["start"], d["end"], vehicle)
        return Response({
            "is_available":       result["is_available"],
            "conflicts":          sz.AvailabilityWindowSerializer(result["conflicts"], many=True).data,
            "available_vehicles": sz.VehicleSerializer(result["available_vehicles"], many=True).data,
        })


@extend_schema(tags=["Availability"], summary="Per-day schedule of windows and orders")
class ScheduleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        _require_carrier(request.user)
        ser = sz.ScheduleQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        days = scheduler.carrier_schedule(request.user, ser.validated_data["start"], ser.validated_data["end"])
        return Response({"days": days})
