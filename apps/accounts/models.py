"""
Identity models.
Account is the custom User for every actor (shipper, carrier, admin).
Role-specific data lives in one-to-one extension records keyed by role.
"""

import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager


class AccountManager(BaseUserManager):
    def create_user(self, phone, password=None, **extra):
        if not phone:
            raise ValueError("Phone number is required.")
        user = self.model(phone=phone, **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, phone, password, **extra):
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        extra.setdefault("role", Account.Role.ADMIN)
        return self.create_user(phone, password, **extra)


class Account(AbstractBaseUser, PermissionsMixin):
    """Every human actor in FreightLink, identified by phone."""

    class Role(models.TextChoices):
        SHIPPER = "SHIPPER", "Shipper"
        CARRIER = "CARRIER", "Carrier"
        ADMIN   = "ADMIN",   "Admin"

    id         = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    phone      = models.CharField(max_length=20, unique=True)
    email      = models.EmailField(blank=True)
    full_name  = models.CharField(max_length=120)
    role       = models.CharField(max_length=10, choices=Role.choices, default=Role.SHIPPER)
    is_active  = models.BooleanField(default=True)
    is_staff   = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD  = "phone"
    REQUIRED_FIELDS = ["full_name"]

    objects = AccountManager()

    class Meta:
        verbose_name = "Account"
        indexes = [models.Index(fields=["role"])]

    def __str__(self):
        return f"{self.full_name} ({self.role})"

    @property
    def is_shipper(self) -> bool:
        return self.role == self.Role.SHIPPER

    @property
    def is_carrier(self) -> bool:
        return self.role == self.Role.CARRIER

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN


class CarrierProfile(models.Model):
    """Extension record for accounts with role=CARRIER."""
    account          = models.OneToOneField(Account, on_delete=models.CASCADE, related_name="carrier_profile")
    company_name     = models.CharField(max_length=120)
    license_number   = models.CharField(max_length=40, unique=True)
    is_verified      = models.BooleanField(default=False)
    is_online        = models.BooleanField(default=False)
    service_regions  = models.JSONField(default=list, blank=True)
    created_at       = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.company_name} – {self.license_number}"


class ShipperProfile(models.Model):
    """Extension record for accounts with role=SHIPPER."""
    account      = models.OneToOneField(Account, on_delete=models.CASCADE, related_name="shipper_profile")
    company_name = models.CharField(max_length=120, blank=True)
    tax_number   = models.CharField(max_length=40, blank=True)
    created_at   = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.company_name or self.account.full_name


class Address(models.Model):
    """Pickup / delivery location owned by an account."""
    id        = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner     = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="addresses")
    label     = models.CharField(max_length=60, blank=True)
    street    = models.CharField(max_length=200)
    city      = models.CharField(max_length=80)
    region    = models.CharField(max_length=80, blank=True)
    country   = models.CharField(max_length=60, default="Senegal")
    latitude  = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "addresses"

    def __str__(self):
        return f"{self.street}, {self.city}"

    @property
    def point(self):
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)
