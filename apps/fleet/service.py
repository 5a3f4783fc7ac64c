"""Vehicle registry: registration, status changes, mileage and maintenance."""

import logging
from datetime import datetime, time, timedelta

from django.db import transaction
from django.utils import timezone

from apps.core.choices import VEHICLE_CAPACITIES
from apps.core.exceptions import ValidationError, NotFoundError, AuthorizationError, ConflictError
from apps.fleet.models import Vehicle, MaintenanceRecord, AvailabilityWindow
from apps.fleet.scheduler import AvailabilityScheduler, set_vehicle_status

logger = logging.getLogger("freightlink.fleet")

# mileage jumps above this are journaled as a maintenance record
MILEAGE_JOURNAL_THRESHOLD = 100


def validate_capacity(vehicle_type, capacity_tons, volume_m3=None):
    limits = VEHICLE_CAPACITIES.get(vehicle_type)
    if limits is None:
        raise ValidationError(f"Unknown vehicle type {vehicle_type}")
    max_tons, max_volume = limits
    if capacity_tons > max_tons:
        raise ValidationError(f"Capacity {capacity_tons}t exceeds the {max_tons}t limit for {vehicle_type}")
    if volume_m3 is not None and volume_m3 > max_volume:
        raise ValidationError(f"Volume {volume_m3}m³ exceeds the {max_volume}m³ limit for {vehicle_type}")


class VehicleService:

    def __init__(self, scheduler=None):
        self.scheduler = scheduler or AvailabilityScheduler()

    def get_owned(self, actor, vehicle_id, lock=False) -> Vehicle:
        qs = Vehicle.objects.select_for_update() if lock else Vehicle.objects
        vehicle = qs.filter(pk=vehicle_id, is_active=True).first()
        if vehicle is None:
            raise NotFoundError("Vehicle not found.")
        if vehicle.carrier_id != actor.pk:
            raise AuthorizationError("Vehicle belongs to another carrier.")
        return vehicle

    def register(self, actor, data: dict) -> Vehicle:
        if not actor.is_carrier:
            raise AuthorizationError("Only carriers register vehicles.")
        if Vehicle.objects.filter(plate_number=data["plate_number"]).exists():
            raise ConflictError(f"Plate {data['plate_number']} is already registered.")
        validate_capacity(data["vehicle_type"], data["capacity_tons"], data.get("volume_m3"))

        vehicle = Vehicle.objects.create(carrier=actor, status=Vehicle.Status.AVAILABLE, **data)
        logger.info("Vehicle %s registered for carrier %s", vehicle.plate_number, actor.pk)
        return vehicle

    @transaction.atomic
    def change_status(self, actor, vehicle_id, new_status) -> Vehicle:
        vehicle = self.get_owned(actor, vehicle_id, lock=True)
        return set_vehicle_status(vehicle, new_status)

    @transaction.atomic
    def deactivate(self, actor, vehicle_id) -> Vehicle:
        vehicle = self.get_owned(actor, vehicle_id, lock=True)
        if vehicle.status in (Vehicle.Status.RESERVED, Vehicle.Status.IN_USE):
            raise ValidationError("Vehicle is committed to an active order.")
        vehicle.is_active = False
        vehicle.save(update_fields=["is_active", "updated_at"])
        logger.info("Vehicle %s deactivated", vehicle.plate_number)
        return vehicle

    @transaction.atomic
    def update_mileage(self, actor, vehicle_id, mileage: int, notes="") -> Vehicle:
        vehicle = self.get_owned(actor, vehicle_id, lock=True)
        if mileage < vehicle.mileage:
            raise ValidationError(f"Mileage cannot go down ({vehicle.mileage} → {mileage}).")

        previous = vehicle.mileage
        vehicle.mileage = mileage
        vehicle.save(update_fields=["mileage", "updated_at"])

        if previous and mileage - previous > MILEAGE_JOURNAL_THRESHOLD:
            description = f"Mileage update {previous} → {mileage} km"
            if notes:
                description = f"{description} - {notes}"
            MaintenanceRecord.objects.create(
                vehicle=vehicle, kind=MaintenanceRecord.Kind.PREVENTIVE,
                description=description[:255], mileage=mileage,
                performed_at=timezone.localdate(),
            )
        return vehicle

    @transaction.atomic
    def record_maintenance(self, actor, vehicle_id, data: dict) -> MaintenanceRecord:
        vehicle = self.get_owned(actor, vehicle_id, lock=True)
        mileage = data.get("mileage")
        if mileage is not None and mileage < vehicle.mileage:
            raise ValidationError("Maintenance mileage is below the vehicle's current mileage.")

        record = MaintenanceRecord.objects.create(vehicle=vehicle, **data)
        vehicle.last_maintenance = record.performed_at
        vehicle.next_maintenance = record.next_due
        if mileage is not None:
            vehicle.mileage = mileage
        vehicle.save(update_fields=["last_maintenance", "next_maintenance", "mileage", "updated_at"])
        logger.info("Maintenance recorded for %s (%s)", vehicle.plate_number, record.kind)
        return record

    @transaction.atomic
    def schedule_maintenance(self, actor, vehicle_id, scheduled_date, description, days=1) -> AvailabilityWindow:
        """Book a future MAINTENANCE window and move next_maintenance to it."""
        vehicle = self.get_owned(actor, vehicle_id)
        if scheduled_date <= timezone.localdate():
            raise ValidationError("Maintenance must be scheduled in the future.")

        start = timezone.make_aware(datetime.combine(scheduled_date, time.min))
        window = self.scheduler.create_window(actor, {
            "vehicle":     vehicle,
            "window_type": AvailabilityWindow.Type.MAINTENANCE,
            "start":       start,
            "end":         start + timedelta(days=days) - timedelta(seconds=1),
            "notes":       f"Scheduled maintenance: {description}"[:255],
        })
        Vehicle.objects.filter(pk=vehicle.pk).update(next_maintenance=scheduled_date)
        return window
