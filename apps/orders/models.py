"""
Order models.
An Order moves through a strict state machine (see ALLOWED_TRANSITIONS);
every move is journaled as an OrderEvent.

The total price is frozen once DELIVERED. Order.save() enforces that;
QuerySet.update() skips save(), so any bulk write touching total_price must
exclude DELIVERED rows itself.
"""

import uuid
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator

from apps.core.choices import GoodsType, Priority
from apps.core.exceptions import StateError


class Order(models.Model):

    class Status(models.TextChoices):
        REQUESTED      = "REQUESTED",      "Requested"
        QUOTE_SENT     = "QUOTE_SENT",     "Quote sent"
        QUOTE_ACCEPTED = "QUOTE_ACCEPTED", "Quote accepted"
        CONFIRMED      = "CONFIRMED",      "Confirmed"
        IN_TRANSIT     = "IN_TRANSIT",     "In transit"
        DELIVERED      = "DELIVERED",      "Delivered"
        CANCELLED      = "CANCELLED",      "Cancelled"

    ALLOWED_TRANSITIONS = {
        Status.REQUESTED:      {Status.QUOTE_SENT, Status.QUOTE_ACCEPTED, Status.CANCELLED},
        Status.QUOTE_SENT:     {Status.QUOTE_ACCEPTED, Status.CANCELLED},
        Status.QUOTE_ACCEPTED: {Status.CONFIRMED, Status.CANCELLED},
        Status.CONFIRMED:      {Status.IN_TRANSIT, Status.CANCELLED},
        Status.IN_TRANSIT:     {Status.DELIVERED, Status.CANCELLED},
        Status.DELIVERED:      set(),
        Status.CANCELLED:      set(),
    }

    id                  = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number        = models.CharField(max_length=20, unique=True, db_index=True)
    status              = models.CharField(max_length=15, choices=Status.choices, default=Status.REQUESTED)
    version             = models.PositiveIntegerField(default=0)

    shipper             = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                            related_name="shipped_orders")
    carrier             = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                            null=True, blank=True, related_name="carried_orders")
    vehicle             = models.ForeignKey("fleet.Vehicle", on_delete=models.PROTECT,
                                            null=True, blank=True, related_name="orders")

    departure_address   = models.ForeignKey("accounts.Address", on_delete=models.PROTECT,
                                            related_name="departing_orders")
    destination_address = models.ForeignKey("accounts.Address", on_delete=models.PROTECT,
                                            related_name="arriving_orders")
    departure_date      = models.DateTimeField()
    delivery_date       = models.DateTimeField(null=True, blank=True)

    goods_type          = models.CharField(max_length=15, choices=GoodsType.choices)
    goods_description   = models.CharField(max_length=255)
    weight_kg           = models.DecimalField(max_digits=10, decimal_places=2,
                                              validators=[MinValueValidator(1)])
    volume_m3           = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    declared_value      = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    special_requirements = models.JSONField(default=list, blank=True)
    priority            = models.CharField(max_length=8, choices=Priority.choices, default=Priority.NORMAL)

    estimated_distance_km  = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    estimated_duration_min = models.PositiveIntegerField(null=True, blank=True)

    # Price snapshot; total_price is frozen once DELIVERED
    base_price          = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_price         = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    notes               = models.TextField(blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_by        = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                                            null=True, blank=True, related_name="+")

    created_at          = models.DateTimeField(auto_now_add=True)
    updated_at          = models.DateTimeField(auto_now=True)
    assigned_at         = models.DateTimeField(null=True, blank=True)
    started_at          = models.DateTimeField(null=True, blank=True)
    completed_at        = models.DateTimeField(null=True, blank=True)
    cancelled_at        = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [
            models.Index(fields=["status"]),
            models.Index(fields=["shipper", "status"]),
            models.Index(fields=["carrier", "status"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        return f"{self.order_number} [{self.status}]"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        if "total_price" in field_names and "status" in field_names:
            instance._loaded_total  = instance.total_price
            instance._loaded_status = instance.status
        return instance

    def save(self, *args, **kwargs):
        if getattr(self, "_loaded_status", None) == self.Status.DELIVERED \
                and self.total_price != self._loaded_total:
            raise StateError(self.status, "PRICE_CHANGE", message="Price is frozen once the order is delivered.")
        super().save(*args, **kwargs)
        self._loaded_total  = self.total_price
        self._loaded_status = self.status

    def can_transition(self, new_status) -> bool:
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())

    @property
    def weight_tons(self):
        return self.weight_kg / 1000

    @property
    def accepts_quotes(self) -> bool:
        return self.status in (self.Status.REQUESTED, self.Status.QUOTE_SENT)


class OrderEvent(models.Model):
    """Immutable audit trail for every status transition."""
    order       = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="events")
    from_status = models.CharField(max_length=15)
    to_status   = models.CharField(max_length=15)
    actor       = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True)
    note        = models.CharField(max_length=255, blank=True)
    occurred_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["occurred_at", "id"]


class TrackingEvent(models.Model):
    """Position reports, delays and proof of delivery."""

    class Type(models.TextChoices):
        POSITION = "POSITION", "Position update"
        DELAY    = "DELAY",    "Delay"
        DELIVERY = "DELIVERY", "Delivery"

    order       = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="tracking_events")
    event_type  = models.CharField(max_length=10, choices=Type.choices)
    latitude    = models.FloatField(null=True, blank=True)
    longitude   = models.FloatField(null=True, blank=True)
    description = models.CharField(max_length=255, blank=True)
    images      = models.JSONField(default=list, blank=True)
    signature   = models.TextField(blank=True)
    recorded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True)
    occurred_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["occurred_at", "id"]
