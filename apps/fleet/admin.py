from django.contrib import admin
from .models import Vehicle, MaintenanceRecord, AvailabilityWindow


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display  = ("plate_number", "vehicle_type", "carrier", "capacity_tons", "daily_rate", "status", "is_active")
    list_filter   = ("vehicle_type", "status", "is_active")
    search_fields = ("plate_number", "carrier__full_name")
    readonly_fields = ("id", "created_at", "updated_at")


@admin.register(MaintenanceRecord)
class MaintenanceRecordAdmin(admin.ModelAdmin):
    list_display  = ("vehicle", "kind", "performed_at", "cost", "next_due")
    list_filter   = ("kind",)


@admin.register(AvailabilityWindow)
class AvailabilityWindowAdmin(admin.ModelAdmin):
    list_display  = ("carrier", "vehicle", "window_type", "start", "end", "origin", "origin_order")
    list_filter   = ("window_type", "origin")
    readonly_fields = ("created_at",)
