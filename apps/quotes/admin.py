from django.contrib import admin
from .models import Quote


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display  = ("quote_number", "order", "carrier", "vehicle", "status", "total_price", "valid_until", "is_automatic")
    list_filter   = ("status", "is_automatic")
    search_fields = ("quote_number", "order__order_number", "carrier__full_name")
    readonly_fields = ("id", "quote_number", "created_at", "updated_at", "sent_at", "responded_at")
