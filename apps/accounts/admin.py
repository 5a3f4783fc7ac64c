from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import Account, CarrierProfile, ShipperProfile, Address


@admin.register(Account)
class AccountAdmin(BaseUserAdmin):
    list_display  = ("phone", "full_name", "role", "is_active", "created_at")
    list_filter   = ("role", "is_active")
    search_fields = ("phone", "full_name", "email")
    ordering      = ("-created_at",)
    fieldsets = (
        (None,          {"fields": ("phone", "password")}),
        ("Personal",    {"fields": ("full_name", "email")}),
        ("Role",        {"fields": ("role",)}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("phone", "full_name", "role", "password1", "password2")}),
    )


@admin.register(CarrierProfile)
class CarrierProfileAdmin(admin.ModelAdmin):
    list_display  = ("company_name", "account", "license_number", "is_verified", "is_online")
    list_filter   = ("is_verified", "is_online")
    search_fields = ("company_name", "license_number", "account__full_name")


@admin.register(ShipperProfile)
class ShipperProfileAdmin(admin.ModelAdmin):
    list_display  = ("account", "company_name", "tax_number")
    search_fields = ("company_name", "account__full_name")


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display  = ("owner", "street", "city", "region", "is_active")
    list_filter   = ("region", "is_active")
    search_fields = ("street", "city", "owner__full_name")
