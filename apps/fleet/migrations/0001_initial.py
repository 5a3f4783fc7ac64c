import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models

from apps.core.choices import VehicleType


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Vehicle",
            fields=[
                ("id",               models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("vehicle_type",     models.CharField(choices=VehicleType.choices, max_length=15)),
                ("plate_number",     models.CharField(max_length=20, unique=True)),
                ("brand",            models.CharField(blank=True, max_length=60)),
                ("year",             models.PositiveSmallIntegerField(blank=True, null=True)),
                ("capacity_tons",    models.DecimalField(decimal_places=2, max_digits=6,
                                                         validators=[django.core.validators.MinValueValidator(0.1)])),
                ("volume_m3",        models.DecimalField(blank=True, decimal_places=2, max_digits=7, null=True)),
                ("daily_rate",       models.DecimalField(decimal_places=2, default=0, max_digits=10,
                                                         validators=[django.core.validators.MinValueValidator(0)])),
                ("status",           models.CharField(
                    choices=[("AVAILABLE", "Available"), ("IN_USE", "In use"), ("MAINTENANCE", "Maintenance"),
                             ("OUT_OF_SERVICE", "Out of service"), ("RESERVED", "Reserved")],
                    default="AVAILABLE", max_length=15,
                )),
                ("mileage",          models.PositiveIntegerField(default=0)),
                ("last_maintenance", models.DateField(blank=True, null=True)),
                ("next_maintenance", models.DateField(blank=True, null=True)),
                ("is_active",        models.BooleanField(default=True)),
                ("created_at",       models.DateTimeField(auto_now_add=True)),
                ("updated_at",       models.DateTimeField(auto_now=True)),
                ("carrier",          models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="vehicles",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["capacity_tons", "daily_rate"]},
        ),
        migrations.AddIndex(
            model_name="vehicle",
            index=models.Index(fields=["carrier", "status"], name="fleet_vehicle_carrier_idx"),
        ),
        migrations.AddIndex(
            model_name="vehicle",
            index=models.Index(fields=["next_maintenance"], name="fleet_vehicle_maint_idx"),
        ),
        migrations.CreateModel(
            name="MaintenanceRecord",
            fields=[
                ("id",           models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("kind",         models.CharField(
                    choices=[("PREVENTIVE", "Preventive"), ("CORRECTIVE", "Corrective"), ("ACCIDENT", "Accident repair")],
                    max_length=12,
                )),
                ("description",  models.CharField(max_length=255)),
                ("cost",         models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("mileage",      models.PositiveIntegerField(blank=True, null=True)),
                ("performed_at", models.DateField()),
                ("next_due",     models.DateField(blank=True, null=True)),
                ("created_at",   models.DateTimeField(auto_now_add=True)),
                ("vehicle",      models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="maintenance_records",
                    to="fleet.vehicle",
                )),
            ],
            options={"ordering": ["-performed_at"]},
        ),
        migrations.CreateModel(
            name="AvailabilityWindow",
            fields=[
                ("id",           models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("window_type",  models.CharField(
                    choices=[("FREE", "Free"), ("BUSY", "Busy"), ("MAINTENANCE", "Maintenance"),
                             ("REST", "Rest"), ("LEAVE", "Leave")],
                    max_length=12,
                )),
                ("start",        models.DateTimeField()),
                ("end",          models.DateTimeField()),
                ("is_recurring", models.BooleanField(default=False)),
                ("recurrence",   models.CharField(
                    blank=True, choices=[("DAILY", "Daily"), ("WEEKLY", "Weekly"), ("MONTHLY", "Monthly")],
                    max_length=8,
                )),
                ("origin",       models.CharField(
                    choices=[("MANUAL", "Manual"), ("ORDER", "Order-linked"), ("RECURRENCE", "Recurring occurrence")],
                    default="MANUAL", max_length=10,
                )),
                ("notes",        models.CharField(blank=True, max_length=255)),
                ("created_at",   models.DateTimeField(auto_now_add=True)),
                ("carrier",      models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="availability_windows",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("vehicle",      models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="availability_windows",
                    to="fleet.vehicle",
                )),
                ("parent",       models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="occurrences",
                    to="fleet.availabilitywindow",
                )),
            ],
            options={"ordering": ["start"]},
        ),
        migrations.AddIndex(
            model_name="availabilitywindow",
            index=models.Index(fields=["vehicle", "start", "end"], name="fleet_window_vehicle_idx"),
        ),
        migrations.AddIndex(
            model_name="availabilitywindow",
            index=models.Index(fields=["carrier", "start", "end"], name="fleet_window_carrier_idx"),
        ),
    ]
