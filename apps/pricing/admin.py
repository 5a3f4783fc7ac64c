from django.contrib import admin
from .models import PricingRule


@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    list_display  = ("carrier", "vehicle_type", "goods_type", "base_price", "price_per_km",
                     "price_per_ton", "valid_from", "valid_until", "is_active")
    list_filter   = ("vehicle_type", "goods_type", "is_active")
    search_fields = ("carrier__full_name", "name")
