from django.contrib import admin
from .models import Order, OrderEvent, TrackingEvent


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display  = ("order_number", "status", "shipper", "carrier", "vehicle", "weight_kg", "total_price", "departure_date")
    list_filter   = ("status", "goods_type", "priority")
    search_fields = ("order_number", "shipper__phone", "shipper__full_name", "carrier__full_name")
    readonly_fields = ("id", "order_number", "version", "created_at", "updated_at")
    ordering      = ("-created_at",)


@admin.register(OrderEvent)
class OrderEventAdmin(admin.ModelAdmin):
    list_display  = ("order", "from_status", "to_status", "actor", "occurred_at")
    readonly_fields = ("occurred_at",)


@admin.register(TrackingEvent)
class TrackingEventAdmin(admin.ModelAdmin):
    list_display  = ("order", "event_type", "latitude", "longitude", "occurred_at")
    list_filter   = ("event_type",)
