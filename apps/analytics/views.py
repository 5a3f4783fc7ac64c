"""Analytics views. Counters come from apps.analytics.stats aggregates."""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema

from apps.core.exceptions import AuthorizationError
from . import stats


def _require_admin(request):
    if not request.user.is_admin:
        raise AuthorizationError("Analytics require the ADMIN role.")


@extend_schema(tags=["Analytics"], summary="Own dashboard counters (carrier or shipper)")
class MyStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if request.user.is_carrier:
            return Response(stats.carrier_stats(request.user))
        return Response(stats.shipper_stats(request.user))


@extend_schema(tags=["Analytics"], summary="Busiest city pairs")
class TopRoutesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        _require_admin(request)
        return Response(stats.top_routes())


@extend_schema(tags=["Analytics"], summary="Orders per goods type")
class GoodsBreakdownView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        _require_admin(request)
        return Response(stats.goods_breakdown())


@extend_schema(tags=["Analytics"], summary="Orders and revenue per month")
class MonthlySummaryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        _require_admin(request)
        return Response(stats.monthly_summary())
