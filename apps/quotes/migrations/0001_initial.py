import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


def amount():
    return models.DecimalField(decimal_places=2, default=0, max_digits=14,
                               validators=[django.core.validators.MinValueValidator(0)])


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        ("fleet", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Quote",
            fields=[
                ("id",               models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quote_number",     models.CharField(db_index=True, max_length=20, unique=True)),
                ("status",           models.CharField(
                    choices=[("DRAFT", "Draft"), ("SENT", "Sent"), ("ACCEPTED", "Accepted"), ("REJECTED", "Rejected")],
                    default="DRAFT", max_length=10,
                )),
                ("base_price",       amount()),
                ("distance_price",   amount()),
                ("weight_price",     amount()),
                ("volume_price",     amount()),
                ("fuel_surcharge",   amount()),
                ("toll_fees",        amount()),
                ("handling_fees",    amount()),
                ("insurance_fees",   amount()),
                ("other_fees",       amount()),
                ("subtotal",         amount()),
                ("taxes",            amount()),
                ("total_price",      amount()),
                ("valid_until",      models.DateTimeField()),
                ("payment_terms",    models.CharField(blank=True, max_length=255)),
                ("delivery_terms",   models.CharField(blank=True, max_length=255)),
                ("conditions",       models.TextField(blank=True)),
                ("notes",            models.TextField(blank=True)),
                ("is_automatic",     models.BooleanField(default=False)),
                ("sent_at",          models.DateTimeField(blank=True, null=True)),
                ("responded_at",     models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.CharField(blank=True, max_length=255)),
                ("created_at",       models.DateTimeField(auto_now_add=True)),
                ("updated_at",       models.DateTimeField(auto_now=True)),
                ("order",            models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="quotes", to="orders.order",
                )),
                ("carrier",          models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name="quotes", to=settings.AUTH_USER_MODEL,
                )),
                ("vehicle",          models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL, related_name="quotes", to="fleet.vehicle",
                )),
            ],
            options={"ordering": ["total_price", "created_at"]},
        ),
        migrations.AddConstraint(
            model_name="quote",
            constraint=models.UniqueConstraint(fields=("order", "carrier"), name="one_quote_per_carrier_per_order"),
        ),
        migrations.AddIndex(
            model_name="quote",
            index=models.Index(fields=["order", "status"], name="quote_order_status_idx"),
        ),
        migrations.AddIndex(
            model_name="quote",
            index=models.Index(fields=["carrier", "status"], name="quote_carrier_status_idx"),
        ),
        migrations.AddIndex(
            model_name="quote",
            index=models.Index(fields=["valid_until"], name="quote_valid_until_idx"),
        ),
    ]
