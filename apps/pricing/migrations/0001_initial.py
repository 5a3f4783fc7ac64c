import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

from apps.core.choices import VehicleType, GoodsType


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PricingRule",
            fields=[
                ("id",            models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("name",          models.CharField(blank=True, max_length=80)),
                ("vehicle_type",  models.CharField(blank=True, choices=VehicleType.choices, max_length=15, null=True)),
                ("goods_type",    models.CharField(blank=True, choices=GoodsType.choices, max_length=15, null=True)),
                ("base_price",    models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True,
                                                      validators=[django.core.validators.MinValueValidator(0)])),
                ("price_per_km",  models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True,
                                                      validators=[django.core.validators.MinValueValidator(0)])),
                ("price_per_ton", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True,
                                                      validators=[django.core.validators.MinValueValidator(0)])),
                ("valid_from",    models.DateTimeField(default=django.utils.timezone.now)),
                ("valid_until",   models.DateTimeField(blank=True, null=True)),
                ("is_active",     models.BooleanField(default=True)),
                ("created_at",    models.DateTimeField(auto_now_add=True)),
                ("carrier",       models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="pricing_rules",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.AddIndex(
            model_name="pricingrule",
            index=models.Index(fields=["carrier", "is_active"], name="pricing_rule_carrier_idx"),
        ),
    ]
