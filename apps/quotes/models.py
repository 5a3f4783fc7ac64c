"""
Quote: a carrier's priced offer on an order.
DRAFT → SENT → {ACCEPTED | REJECTED}; one quote per (order, carrier).
"""

import uuid
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from django.utils import timezone

AMOUNT = dict(max_digits=14, decimal_places=2, default=0, validators=[MinValueValidator(0)])


class Quote(models.Model):

    class Status(models.TextChoices):
        DRAFT    = "DRAFT",    "Draft"
        SENT     = "SENT",     "Sent"
        ACCEPTED = "ACCEPTED", "Accepted"
        REJECTED = "REJECTED", "Rejected"

    id               = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quote_number     = models.CharField(max_length=20, unique=True, db_index=True)
    order            = models.ForeignKey("orders.Order", on_delete=models.PROTECT, related_name="quotes")
    carrier          = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                         related_name="quotes")
    vehicle          = models.ForeignKey("fleet.Vehicle", on_delete=models.SET_NULL,
                                         null=True, blank=True, related_name="quotes")
    status           = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)

    # Breakdown
    base_price       = models.DecimalField(**AMOUNT)
    distance_price   = models.DecimalField(**AMOUNT)
    weight_price     = models.DecimalField(**AMOUNT)
    volume_price     = models.DecimalField(**AMOUNT)
    fuel_surcharge   = models.DecimalField(**AMOUNT)
    toll_fees        = models.DecimalField(**AMOUNT)
    handling_fees    = models.DecimalField(**AMOUNT)
    insurance_fees   = models.DecimalField(**AMOUNT)
    other_fees       = models.DecimalField(**AMOUNT)
    subtotal         = models.DecimalField(**AMOUNT)
    taxes            = models.DecimalField(**AMOUNT)
    total_price      = models.DecimalField(**AMOUNT)

    valid_until      = models.DateTimeField()
    payment_terms    = models.CharField(max_length=255, blank=True)
    delivery_terms   = models.CharField(max_length=255, blank=True)
    conditions       = models.TextField(blank=True)
    notes            = models.TextField(blank=True)
    is_automatic     = models.BooleanField(default=False)

    sent_at          = models.DateTimeField(null=True, blank=True)
    responded_at     = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)
    created_at       = models.DateTimeField(auto_now_add=True)
    updated_at       = models.DateTimeField(auto_now=True)

    class Meta:
        ordering    = ["total_price", "created_at"]
        constraints = [
            models.UniqueConstraint(fields=["order", "carrier"], name="one_quote_per_carrier_per_order"),
        ]
        indexes     = [
            models.Index(fields=["order", "status"]),
            models.Index(fields=["carrier", "status"]),
            models.Index(fields=["valid_until"]),
        ]

    def __str__(self):
        return f"{self.quote_number} [{self.status}] {self.total_price}"

    @property
    def is_expired(self) -> bool:
        return self.valid_until <= timezone.now()
