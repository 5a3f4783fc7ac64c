import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models

from apps.core.choices import GoodsType, Priority

ORDER_STATUSES = [
    ("REQUESTED", "Requested"), ("QUOTE_SENT", "Quote sent"), ("QUOTE_ACCEPTED", "Quote accepted"),
    ("CONFIRMED", "Confirmed"), ("IN_TRANSIT", "In transit"), ("DELIVERED", "Delivered"),
    ("CANCELLED", "Cancelled"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("fleet", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id",                     models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number",           models.CharField(db_index=True, max_length=20, unique=True)),
                ("status",                 models.CharField(choices=ORDER_STATUSES, default="REQUESTED", max_length=15)),
                ("version",                models.PositiveIntegerField(default=0)),
                ("departure_date",         models.DateTimeField()),
                ("delivery_date",          models.DateTimeField(blank=True, null=True)),
                ("goods_type",             models.CharField(choices=GoodsType.choices, max_length=15)),
                ("goods_description",      models.CharField(max_length=255)),
                ("weight_kg",              models.DecimalField(decimal_places=2, max_digits=10,
                                                               validators=[django.core.validators.MinValueValidator(1)])),
                ("volume_m3",              models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("declared_value",         models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("special_requirements",   models.JSONField(blank=True, default=list)),
                ("priority",               models.CharField(choices=Priority.choices, default="NORMAL", max_length=8)),
                ("estimated_distance_km",  models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("estimated_duration_min", models.PositiveIntegerField(blank=True, null=True)),
                ("base_price",             models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("total_price",            models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("notes",                  models.TextField(blank=True)),
                ("cancellation_reason",    models.CharField(blank=True, max_length=255)),
                ("created_at",             models.DateTimeField(auto_now_add=True)),
                ("updated_at",             models.DateTimeField(auto_now=True)),
                ("assigned_at",            models.DateTimeField(blank=True, null=True)),
                ("started_at",             models.DateTimeField(blank=True, null=True)),
                ("completed_at",           models.DateTimeField(blank=True, null=True)),
                ("cancelled_at",           models.DateTimeField(blank=True, null=True)),
                ("shipper",                models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="shipped_orders",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("carrier",                models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="carried_orders",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("vehicle",                models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="orders",
                    to="fleet.vehicle",
                )),
                ("departure_address",      models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="departing_orders",
                    to="accounts.address",
                )),
                ("destination_address",    models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="arriving_orders",
                    to="accounts.address",
                )),
                ("cancelled_by",           models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["status"], name="order_status_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["shipper", "status"], name="order_shipper_status_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["carrier", "status"], name="order_carrier_status_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["created_at"], name="order_created_idx"),
        ),
        migrations.CreateModel(
            name="OrderEvent",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("from_status", models.CharField(max_length=15)),
                ("to_status",   models.CharField(max_length=15)),
                ("note",        models.CharField(blank=True, max_length=255)),
                ("occurred_at", models.DateTimeField(auto_now_add=True)),
                ("actor",       models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL,
                )),
                ("order",       models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="events", to="orders.order",
                )),
            ],
            options={"ordering": ["occurred_at", "id"]},
        ),
        migrations.CreateModel(
            name="TrackingEvent",
            fields=[
                ("id",          models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("event_type",  models.CharField(
                    choices=[("POSITION", "Position update"), ("DELAY", "Delay"), ("DELIVERY", "Delivery")],
                    max_length=10,
                )),
                ("latitude",    models.FloatField(blank=True, null=True)),
                ("longitude",   models.FloatField(blank=True, null=True)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("images",      models.JSONField(blank=True, default=list)),
                ("signature",   models.TextField(blank=True)),
                ("occurred_at", models.DateTimeField(auto_now_add=True)),
                ("order",       models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name="tracking_events", to="orders.order",
                )),
                ("recorded_by", models.ForeignKey(
                    null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["occurred_at", "id"]},
        ),
    ]
