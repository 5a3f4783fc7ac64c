"""Operations views: deep health check (database, cache)."""

import logging

from django.core.cache import cache
from django.db import connection, DatabaseError
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from drf_spectacular.utils import extend_schema

logger = logging.getLogger("freightlink.ops")


# ── GET /api/health/deep/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Ops"], summary="Deep health check: database and cache")
class DeepHealthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        checks = {}

        try:
            with connection.cursor() as cur:
                cur.execute("SELECT 1")
            checks["database"] = "ok"
        except DatabaseError as exc:
            logger.error("Health check: database unreachable: %s", exc)
            checks["database"] = f"error: {exc}"

        try:
            cache.set("healthcheck", "1", 5)
            checks["cache"] = "ok" if cache.get("healthcheck") == "1" else "miss"
        except Exception as exc:
            logger.error("Health check: cache unreachable: %s", exc)
            checks["cache"] = f"error: {exc}"

        overall = "ok" if all(v == "ok" for v in checks.values()) else "degraded"
        return Response({"status": overall, "checks": checks}, status=200 if overall == "ok" else 503)
