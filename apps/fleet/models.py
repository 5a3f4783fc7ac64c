"""
Fleet models: vehicles, their maintenance history and the availability
windows that keep a vehicle (or a whole carrier) from being double-booked.
"""

import uuid
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator

from apps.core.choices import VehicleType


class Vehicle(models.Model):

    class Status(models.TextChoices):
        AVAILABLE      = "AVAILABLE",      "Available"
        IN_USE         = "IN_USE",         "In use"
        MAINTENANCE    = "MAINTENANCE",    "Maintenance"
        OUT_OF_SERVICE = "OUT_OF_SERVICE", "Out of service"
        RESERVED       = "RESERVED",       "Reserved"

    id               = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    carrier          = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
                                         related_name="vehicles")
    vehicle_type     = models.CharField(max_length=15, choices=VehicleType.choices)
    plate_number     = models.CharField(max_length=20, unique=True)
    brand            = models.CharField(max_length=60, blank=True)
    year             = models.PositiveSmallIntegerField(null=True, blank=True)
    capacity_tons    = models.DecimalField(max_digits=6, decimal_places=2,
                                           validators=[MinValueValidator(0.1)])
    volume_m3        = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    daily_rate       = models.DecimalField(max_digits=10, decimal_places=2, default=0,
                                           validators=[MinValueValidator(0)])
    status           = models.CharField(max_length=15, choices=Status.choices, default=Status.AVAILABLE)
    mileage          = models.PositiveIntegerField(default=0)
    last_maintenance = models.DateField(null=True, blank=True)
    next_maintenance = models.DateField(null=True, blank=True)
    is_active        = models.BooleanField(default=True)
    created_at       = models.DateTimeField(auto_now_add=True)
    updated_at       = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["capacity_tons", "daily_rate"]
        indexes  = [
            models.Index(fields=["carrier", "status"]),
            models.Index(fields=["next_maintenance"]),
        ]

    def __str__(self):
        return f"{self.plate_number} ({self.vehicle_type})"


class MaintenanceRecord(models.Model):
    class Kind(models.TextChoices):
        PREVENTIVE = "PREVENTIVE", "Preventive"
        CORRECTIVE = "CORRECTIVE", "Corrective"
        ACCIDENT   = "ACCIDENT",   "Accident repair"

    vehicle      = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name="maintenance_records")
    kind         = models.CharField(max_length=12, choices=Kind.choices)
    description  = models.CharField(max_length=255)
    cost         = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    mileage      = models.PositiveIntegerField(null=True, blank=True)
    performed_at = models.DateField()
    next_due     = models.DateField(null=True, blank=True)
    created_at   = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-performed_at"]


class AvailabilityWindow(models.Model):
    """
    A time interval in which a vehicle (or, with vehicle=NULL, the carrier
    as a whole) is in a given state. Every type except FREE blocks.
    """

    class Type(models.TextChoices):
        FREE        = "FREE",        "Free"
        BUSY        = "BUSY",        "Busy"
        MAINTENANCE = "MAINTENANCE", "Maintenance"
        REST        = "REST",        "Rest"
        LEAVE       = "LEAVE",       "Leave"

    class Recurrence(models.TextChoices):
        DAILY   = "DAILY",   "Daily"
        WEEKLY  = "WEEKLY",  "Weekly"
        MONTHLY = "MONTHLY", "Monthly"

    class Origin(models.TextChoices):
        MANUAL     = "MANUAL",     "Manual"
        ORDER      = "ORDER",      "Order-linked"
        RECURRENCE = "RECURRENCE", "Recurring occurrence"

    id           = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    carrier      = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
                                     related_name="availability_windows")
    vehicle      = models.ForeignKey(Vehicle, on_delete=models.CASCADE, null=True, blank=True,
                                     related_name="availability_windows")
    window_type  = models.CharField(max_length=12, choices=Type.choices)
    start        = models.DateTimeField()
    end          = models.DateTimeField()
    is_recurring = models.BooleanField(default=False)
    recurrence   = models.CharField(max_length=8, choices=Recurrence.choices, blank=True)
    origin       = models.CharField(max_length=10, choices=Origin.choices, default=Origin.MANUAL)
    origin_order = models.ForeignKey("orders.Order", on_delete=models.CASCADE, null=True, blank=True,
                                     related_name="availability_windows")
    parent       = models.ForeignKey("self", on_delete=models.CASCADE, null=True, blank=True,
                                     related_name="occurrences")
    notes        = models.CharField(max_length=255, blank=True)
    created_at   = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["start"]
        indexes  = [
            models.Index(fields=["vehicle", "start", "end"]),
            models.Index(fields=["carrier", "start", "end"]),
            models.Index(fields=["origin_order"]),
        ]

    def __str__(self):
        target = self.vehicle.plate_number if self.vehicle_id else "carrier"
        return f"{self.window_type} {target} {self.start:%Y-%m-%d %H:%M}–{self.end:%Y-%m-%d %H:%M}"

    @property
    def is_blocking(self) -> bool:
        return self.window_type != self.Type.FREE
