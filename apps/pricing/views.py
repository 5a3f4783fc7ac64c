"""Pricing API: price estimates, market analysis and carrier rate rules."""

from types import SimpleNamespace

from rest_framework import generics, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.core.exceptions import AuthorizationError
from .engine import PricingEngine
from .market import analyze_market
from .models import PricingRule, find_pricing_rule
from . import serializers as sz


# ── POST /api/pricing/estimate/ ───────────────────────────────────────────────
@extend_schema(tags=["Pricing"], summary="Full price breakdown before ordering", request=sz.EstimateSerializer)
class EstimateView(APIView):
    """Carriers get their own rate rule applied; everyone else the default tables."""
    permission_classes = [permissions.IsAuthenticated]
    engine = PricingEngine()

    def post(self, request):
        ser = sz.EstimateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data

        # lightweight stand-in for an Order
        request_like = SimpleNamespace(
            weight_kg             = d["weight_kg"],
            volume_m3             = d.get("volume_m3"),
            goods_type            = d["goods_type"],
            declared_value        = d.get("declared_value"),
            estimated_distance_km = d["estimated_distance_km"],
            special_requirements  = d.get("special_requirements", []),
            priority              = d["priority"],
            departure_date        = d.get("departure_date"),
        )
        rule = None
        if request.user.is_carrier:
            rule = find_pricing_rule(request.user, d["vehicle_type"], d["goods_type"])
        return Response(self.engine.price(request_like, d["vehicle_type"], rule))


# ── GET /api/pricing/market/ ──────────────────────────────────────────────────
@extend_schema(tags=["Pricing"], summary="Market prices on a region pair (last 90 days)")
class MarketAnalysisView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        ser = sz.MarketQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        return Response(analyze_market(
            d["departure_region"], d["destination_region"], d["goods_type"], d.get("vehicle_type"),
        ))


# ── GET/POST /api/pricing/rules/ ──────────────────────────────────────────────
@extend_schema(tags=["Pricing"], summary="The carrier's rate rules")
class PricingRuleListCreateView(generics.ListCreateAPIView):
    serializer_class   = sz.PricingRuleSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        if not self.request.user.is_carrier:
            raise AuthorizationError("Only carriers keep rate rules.")
        return PricingRule.objects.filter(carrier=self.request.user)

    def perform_create(self, serializer):
        if not self.request.user.is_carrier:
            raise AuthorizationError("Only carriers keep rate rules.")
        serializer.save(carrier=self.request.user)
