"""
pytest configuration for FreightLink.
Sets Django settings and provides shared fixtures.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.conf import settings


def pytest_configure(config):
    """Configure Django settings before tests run."""
    if not settings.configured:
        settings.configure(
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME":   ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.admin",
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "django.contrib.sessions",
                "django.contrib.messages",
                "django.contrib.staticfiles",
                "rest_framework",
                "rest_framework_simplejwt",
                "drf_spectacular",
                "django_filters",
                "corsheaders",
                "apps.core",
                "apps.accounts",
                "apps.pricing",
                "apps.fleet",
                "apps.orders",
                "apps.quotes",
                "apps.notifications",
                "apps.analytics",
                "apps.ops",
            ],
            AUTH_USER_MODEL="accounts.Account",
            REST_FRAMEWORK={
                "DEFAULT_AUTHENTICATION_CLASSES": [
                    "rest_framework_simplejwt.authentication.JWTAuthentication",
                ],
                "DEFAULT_PERMISSION_CLASSES": [
                    "rest_framework.permissions.IsAuthenticated",
                ],
                "DEFAULT_FILTER_BACKENDS": [
                    "django_filters.rest_framework.DjangoFilterBackend",
                    "rest_framework.filters.SearchFilter",
                    "rest_framework.filters.OrderingFilter",
                ],
                "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
                "PAGE_SIZE": 50,
                "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
                "EXCEPTION_HANDLER": "apps.core.exceptions.freight_exception_handler",
            },
            SPECTACULAR_SETTINGS={
                "TITLE": "FreightLink API",
                "VERSION": "1.0.0",
                "SERVE_INCLUDE_SCHEMA": False,
            },
            SECRET_KEY="test-secret-key-not-for-production",
            DEBUG=True,
            USE_TZ=True,
            TIME_ZONE="Africa/Dakar",
            ROOT_URLCONF="freightlink.urls",
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            TEMPLATES=[{
                "BACKEND": "django.template.backends.django.DjangoTemplates",
                "DIRS": [],
                "APP_DIRS": True,
                "OPTIONS": {
                    "context_processors": [
                        "django.template.context_processors.debug",
                        "django.template.context_processors.request",
                        "django.contrib.auth.context_processors.auth",
                        "django.contrib.messages.context_processors.messages",
                    ],
                },
            }],
            MIDDLEWARE=[
                "django.middleware.security.SecurityMiddleware",
                "corsheaders.middleware.CorsMiddleware",
                "django.contrib.sessions.middleware.SessionMiddleware",
                "django.middleware.common.CommonMiddleware",
                "django.middleware.csrf.CsrfViewMiddleware",
                "django.contrib.auth.middleware.AuthenticationMiddleware",
                "django.contrib.messages.middleware.MessageMiddleware",
            ],
            STATIC_URL="/static/",
            STATIC_ROOT="/tmp/staticfiles_test",
            # Dummy external service URL (mocked in tests)
            NOTIFICATION_GATEWAY_URL="http://notify-mock:8010",
            CACHES={
                "default": {
                    "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
                }
            },
            CELERY_TASK_ALWAYS_EAGER=True,   # Execute tasks synchronously in tests
            CELERY_TASK_EAGER_PROPAGATES=True,
            CORS_ALLOW_ALL_ORIGINS=True,
            GEO_PROVIDER="apps.geo.distance.HaversineEstimator",
            QUOTE_VALIDITY_DAYS=7,
            AUTO_QUOTE_LIMIT=5,
            AUTO_SEND_PRICE_MARGIN=Decimal("0.20"),
            MAINTENANCE_REMINDER_DAYS=7,
            SIMPLE_JWT={
                "ACCESS_TOKEN_LIFETIME": timedelta(hours=8),
                "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
                "ALGORITHM": "HS256",
                "AUTH_HEADER_TYPES": ("Bearer",),
            },
        )


# ═══════════════════════════════════════════════════════════════════════════════
# SHARED FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def make_account(db):
    from apps.accounts.models import Account, CarrierProfile, ShipperProfile

    def _make(role="SHIPPER", phone=None, verified=True, online=True, **kwargs):
        phone = phone or f"+2217{uuid.uuid4().int % 100000000:08d}"
        account = Account.objects.create_user(
            phone=phone, password="Test@1234",
            full_name=kwargs.pop("full_name", f"Test {role.title()}"),
            role=role, **kwargs,
        )
        if role == "CARRIER":
            CarrierProfile.objects.create(
                account=account, company_name=f"{account.full_name} Transport",
                license_number=f"LIC-{uuid.uuid4().hex[:10]}",
                is_verified=verified, is_online=online,
            )
        elif role == "SHIPPER":
            ShipperProfile.objects.create(account=account)
        return account
    return _make


@pytest.fixture
def shipper(make_account):
    return make_account("SHIPPER", phone="+221770000001", full_name="Fatou Sow")


@pytest.fixture
def carrier(make_account):
    return make_account("CARRIER", phone="+221770000002", full_name="Moussa Diop")


@pytest.fixture
def other_carrier(make_account):
    return make_account("CARRIER", phone="+221770000003", full_name="Awa Ndiaye")


@pytest.fixture
def admin(make_account):
    return make_account("ADMIN", phone="+221770000009", full_name="Admin Aminata", is_staff=True)


@pytest.fixture
def make_address(db):
    from apps.accounts.models import Address

    def _make(owner, city="Dakar", lat=14.6928, lng=-17.4467, region=None, **kwargs):
        return Address.objects.create(
            owner=owner, street=kwargs.pop("street", "1 Rue Test"), city=city,
            region=region or city, latitude=lat, longitude=lng, **kwargs,
        )
    return _make


@pytest.fixture
def route(shipper, make_address):
    """Dakar → Thiès, roughly 57 km as the crow flies."""
    return (
        make_address(shipper, city="Dakar", lat=14.6928, lng=-17.4467),
        make_address(shipper, city="Thiès", lat=14.7910, lng=-16.9359),
    )


@pytest.fixture
def make_vehicle(db):
    from apps.fleet.models import Vehicle

    def _make(carrier, vehicle_type="T10", capacity_tons="10", daily_rate="90000", **kwargs):
        return Vehicle.objects.create(
            carrier=carrier, vehicle_type=vehicle_type,
            plate_number=kwargs.pop("plate_number", f"DK-{uuid.uuid4().hex[:6].upper()}"),
            capacity_tons=Decimal(capacity_tons), daily_rate=Decimal(daily_rate), **kwargs,
        )
    return _make


@pytest.fixture
def notifier():
    from unittest.mock import MagicMock
    return MagicMock()


@pytest.fixture
def order_workflow(notifier):
    from apps.orders.service import OrderWorkflow
    return OrderWorkflow(notification_service=notifier)


@pytest.fixture
def quote_workflow(order_workflow, notifier):
    from apps.quotes.service import QuoteWorkflow
    return QuoteWorkflow(order_workflow=order_workflow, notification_service=notifier)


@pytest.fixture
def make_order(order_workflow, shipper, route):
    """REQUESTED order Dakar → Thiès departing in three days."""
    from django.utils import timezone

    def _make(weight_kg="5000", **overrides):
        departure = timezone.now() + timedelta(days=3)
        data = {
            "departure_address":   route[0].pk,
            "destination_address": route[1].pk,
            "departure_date":      departure,
            "delivery_date":       departure + timedelta(hours=10),
            "goods_type":          "GENERAL",
            "goods_description":   "Sacs de riz",
            "weight_kg":           Decimal(weight_kg),
        }
        data.update(overrides)
        return order_workflow.create(shipper, data)
    return _make
