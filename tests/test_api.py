"""HTTP surface: auth, orders, quotes, error bodies, analytics, health."""

from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework import status

from apps.orders.models import Order
from apps.quotes.models import Quote

BREAKDOWN = {
    "base_price": "45000", "distance_price": "15000", "weight_price": "25000",
    "fuel_surcharge": "8500", "toll_fees": "750", "insurance_fees": "2000",
    "subtotal": "96250", "taxes": "17325", "total_price": "113575",
}


def as_user(api_client, account):
    api_client.force_authenticate(user=account)
    return api_client


def order_payload(route, **extra):
    departure = timezone.now() + timedelta(days=3)
    payload = {
        "departure_address":   str(route[0].pk),
        "destination_address": str(route[1].pk),
        "departure_date":      departure.isoformat(),
        "delivery_date":       (departure + timedelta(hours=10)).isoformat(),
        "goods_type":          "GENERAL",
        "goods_description":   "Ciment",
        "weight_kg":           "5000",
    }
    payload.update(extra)
    return payload


# ═══════════════════════════════════════════════════════════════════════════════
# AUTH
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestAuth:

    def test_register_carrier_and_login(self, api_client):
        resp = api_client.post("/api/auth/register/", {
            "phone": "+221771234567", "full_name": "Ibrahima Fall", "role": "CARRIER",
            "password": "Transport@2025", "company_name": "Fall Logistique", "license_number": "SN-4455",
        }, format="json")
        assert resp.status_code == status.HTTP_201_CREATED

        resp = api_client.post("/api/auth/login/", {
            "phone": "+221771234567", "password": "Transport@2025",
        }, format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert "access" in resp.data

    def test_carrier_registration_needs_company(self, api_client):
        resp = api_client.post("/api/auth/register/", {
            "phone": "+221771234568", "full_name": "X", "role": "CARRIER", "password": "Transport@2025",
        }, format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_admin_cannot_self_register(self, api_client):
        resp = api_client.post("/api/auth/register/", {
            "phone": "+221771234569", "full_name": "X", "role": "ADMIN", "password": "Transport@2025",
        }, format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_orders_need_authentication(self, api_client):
        assert api_client.get("/api/orders/").status_code == status.HTTP_401_UNAUTHORIZED

    def test_address_book(self, api_client, shipper):
        client = as_user(api_client, shipper)
        resp = client.post("/api/auth/addresses/", {
            "street": "Avenue Cheikh Anta Diop", "city": "Dakar", "region": "Dakar",
            "latitude": 14.69, "longitude": -17.46,
        }, format="json")
        assert resp.status_code == status.HTTP_201_CREATED
        assert client.get("/api/auth/addresses/").data["count"] == 1


# ═══════════════════════════════════════════════════════════════════════════════
# ORDERS
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestOrdersApi:

    def test_create_and_list(self, api_client, shipper, route):
        client = as_user(api_client, shipper)
        resp = client.post("/api/orders/", order_payload(route), format="json")
        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.data["status"] == "REQUESTED"
        assert resp.data["order_number"].startswith("TR")

        listing = client.get("/api/orders/", {"status": "REQUESTED"})
        assert listing.data["count"] == 1

    def test_same_address_rejected(self, api_client, shipper, route):
        client = as_user(api_client, shipper)
        resp = client.post("/api/orders/", order_payload(
            route, destination_address=str(route[0].pk),
        ), format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_carrier_create_has_error_body(self, api_client, carrier, route):
        resp = as_user(api_client, carrier).post("/api/orders/", order_payload(route), format="json")
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert resp.data["error"] == "authorization_error"
        assert resp.data["detail"]

    def test_state_error_body(self, api_client, make_order, shipper):
        order = make_order()
        client = as_user(api_client, shipper)
        assert client.post(f"/api/orders/{order.pk}/cancel/", {"reason": "Annulé"}, format="json").status_code == 200

        resp = client.post(f"/api/orders/{order.pk}/cancel/", {}, format="json")
        assert resp.status_code == status.HTTP_409_CONFLICT
        assert resp.data["error"] == "state_error"
        assert resp.data["current"] == "CANCELLED"

    def test_unknown_order_is_404(self, api_client, shipper):
        resp = as_user(api_client, shipper).get("/api/orders/00000000-0000-0000-0000-000000000000/")
        assert resp.status_code == status.HTTP_404_NOT_FOUND
        assert resp.data["error"] == "not_found"

    def test_track_shows_events(self, api_client, make_order, shipper):
        order = make_order()
        resp = as_user(api_client, shipper).get(f"/api/orders/{order.pk}/track/")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["last_position"] is None
        assert resp.data["events"] == []


# ═══════════════════════════════════════════════════════════════════════════════
# QUOTES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestQuotesApi:

    def _submit(self, client, order):
        resp = client.post("/api/quotes/", {
            **BREAKDOWN, "order": str(order.pk),
            "valid_until": (timezone.now() + timedelta(days=2)).isoformat(),
        }, format="json")
        assert resp.status_code == status.HTTP_201_CREATED, resp.data
        quote_id = resp.data["id"]
        assert client.post(f"/api/quotes/{quote_id}/send/").status_code == status.HTTP_200_OK
        return quote_id

    def test_two_carriers_quote_shipper_accepts_one(
        self, api_client, make_order, shipper, carrier, other_carrier,
    ):
        order = make_order()
        q1 = self._submit(as_user(api_client, carrier), order)
        q2 = self._submit(as_user(api_client, other_carrier), order)

        client = as_user(api_client, shipper)
        listing = client.get(f"/api/quotes/order/{order.pk}/")
        assert listing.data["count"] == 2

        resp = client.post(f"/api/quotes/{q1}/accept/")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["status"] == "ACCEPTED"

        assert Quote.objects.get(pk=q2).status == Quote.Status.REJECTED
        order.refresh_from_db()
        assert order.status == Order.Status.QUOTE_ACCEPTED
        assert order.carrier_id == carrier.pk

        again = client.post(f"/api/quotes/{q2}/accept/")
        assert again.status_code == status.HTTP_409_CONFLICT

    def test_inconsistent_breakdown_is_400(self, api_client, make_order, carrier):
        order = make_order()
        resp = as_user(api_client, carrier).post("/api/quotes/", {
            **BREAKDOWN, "total_price": "1", "order": str(order.pk),
            "valid_until": (timezone.now() + timedelta(days=2)).isoformat(),
        }, format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert resp.data["error"] == "validation_error"

    def test_auto_quotes_inline(self, api_client, make_order, shipper, carrier, make_vehicle):
        make_vehicle(carrier)
        order = make_order()
        resp = as_user(api_client, shipper).post("/api/quotes/auto/", {"order": str(order.pk)}, format="json")
        assert resp.status_code == status.HTTP_201_CREATED
        assert resp.data["count"] == 1

    def test_auto_quotes_queued(self, api_client, make_order, shipper):
        from unittest.mock import patch
        order = make_order()
        with patch("apps.quotes.views.generate_auto_quotes_task.delay") as delay:
            resp = as_user(api_client, shipper).post(
                "/api/quotes/auto/?async=1", {"order": str(order.pk)}, format="json",
            )
        assert resp.status_code == status.HTTP_202_ACCEPTED
        delay.assert_called_once_with(str(order.pk))


# ═══════════════════════════════════════════════════════════════════════════════
# PRICING / ANALYTICS / HEALTH
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestSupportingEndpoints:

    def test_my_stats_by_role(self, api_client, carrier, make_vehicle, shipper):
        make_vehicle(carrier)
        resp = as_user(api_client, carrier).get("/api/analytics/me/")
        assert resp.data["fleet_size"] == 1

        resp = as_user(api_client, shipper).get("/api/analytics/me/")
        assert resp.data["total_orders"] == 0

    def test_platform_analytics_are_admin_only(self, api_client, shipper, admin):
        assert as_user(api_client, shipper).get("/api/analytics/routes/top/").status_code == 403
        assert as_user(api_client, admin).get("/api/analytics/routes/top/").status_code == 200

    def test_health(self, api_client):
        resp = api_client.get("/api/health/deep/")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["checks"] == {"database": "ok", "cache": "ok"}
