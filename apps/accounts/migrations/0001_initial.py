import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("password",     models.CharField(max_length=128, verbose_name="password")),
                ("last_login",   models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False)),
                ("id",           models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("phone",        models.CharField(max_length=20, unique=True)),
                ("email",        models.EmailField(blank=True, max_length=254)),
                ("full_name",    models.CharField(max_length=120)),
                ("role",         models.CharField(
                    choices=[("SHIPPER", "Shipper"), ("CARRIER", "Carrier"), ("ADMIN", "Admin")],
                    default="SHIPPER",
                    max_length=10,
                )),
                ("is_active",    models.BooleanField(default=True)),
                ("is_staff",     models.BooleanField(default=False)),
                ("created_at",   models.DateTimeField(auto_now_add=True)),
                ("groups",           models.ManyToManyField(blank=True, related_name="user_set", related_query_name="user", to="auth.group")),
                ("user_permissions", models.ManyToManyField(blank=True, related_name="user_set", related_query_name="user", to="auth.permission")),
            ],
            options={"verbose_name": "Account"},
        ),
        migrations.AddIndex(
            model_name="account",
            index=models.Index(fields=["role"], name="accounts_ac_role_idx"),
        ),
        migrations.CreateModel(
            name="CarrierProfile",
            fields=[
                ("id",              models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("company_name",    models.CharField(max_length=120)),
                ("license_number",  models.CharField(max_length=40, unique=True)),
                ("is_verified",     models.BooleanField(default=False)),
                ("is_online",       models.BooleanField(default=False)),
                ("service_regions", models.JSONField(blank=True, default=list)),
                ("created_at",      models.DateTimeField(auto_now_add=True)),
                ("account",         models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="carrier_profile",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name="ShipperProfile",
            fields=[
                ("id",           models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("company_name", models.CharField(blank=True, max_length=120)),
                ("tax_number",   models.CharField(blank=True, max_length=40)),
                ("created_at",   models.DateTimeField(auto_now_add=True)),
                ("account",      models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="shipper_profile",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name="Address",
            fields=[
                ("id",         models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("label",      models.CharField(blank=True, max_length=60)),
                ("street",     models.CharField(max_length=200)),
                ("city",       models.CharField(max_length=80)),
                ("region",     models.CharField(blank=True, max_length=80)),
                ("country",    models.CharField(default="Senegal", max_length=60)),
                ("latitude",   models.FloatField(blank=True, null=True)),
                ("longitude",  models.FloatField(blank=True, null=True)),
                ("is_active",  models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("owner",      models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="addresses",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={"verbose_name_plural": "addresses"},
        ),
    ]
