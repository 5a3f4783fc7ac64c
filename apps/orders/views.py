"""Order API views. Every mutation goes through OrderWorkflow / TrackingService."""

import logging
from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema
from django_filters.rest_framework import DjangoFilterBackend

from .service import OrderWorkflow
from .tracking import TrackingService
from . import serializers as sz

logger = logging.getLogger("freightlink.orders")
workflow = OrderWorkflow()
tracking = TrackingService()


def _detail(order, code=status.HTTP_200_OK):
    return Response(sz.OrderDetailSerializer(order).data, status=code)


# ── GET/POST /api/orders/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Orders"], summary="List visible orders or create one (shippers)")
class OrderListCreateView(generics.ListCreateAPIView):
    permission_classes = [permissions.IsAuthenticated]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["status", "goods_type", "priority"]

    def get_serializer_class(self):
        if self.request.method == "POST":
            return sz.OrderCreateSerializer
        return sz.OrderDetailSerializer

    def get_queryset(self):
        return workflow.visible_to(self.request.user).prefetch_related("events")

    def create(self, request, *args, **kwargs):
        ser = sz.OrderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order = workflow.create(request.user, dict(ser.validated_data))
        return _detail(order, status.HTTP_201_CREATED)


# ── GET /api/orders/{id}/ ─────────────────────────────────────────────────────
@extend_schema(tags=["Orders"], summary="Retrieve an order")
class OrderDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, order_id):
        return _detail(workflow.get_for_actor(request.user, order_id))


@extend_schema(tags=["Orders"], summary="Assign a vehicle (bound carrier)", request=sz.AssignSerializer)
class OrderAssignView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, order_id):
        ser = sz.AssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order = workflow.assign(
            request.user, order_id, ser.validated_data["vehicle"],
            ser.validated_data.get("estimated_delivery"),
        )
        return _detail(order)


@extend_schema(tags=["Orders"], summary="Start transport (bound carrier)", request=None)
class OrderStartView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, order_id):
        return _detail(workflow.start(request.user, order_id))


@extend_schema(tags=["Orders"], summary="Confirm delivery with proof (bound carrier)", request=sz.CompleteSerializer)
class OrderCompleteView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, order_id):
        ser = sz.CompleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _detail(workflow.complete(request.user, order_id, ser.validated_data))


@extend_schema(tags=["Orders"], summary="Cancel an order (shipper or bound carrier)", request=sz.CancelSerializer)
class OrderCancelView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, order_id):
        ser = sz.CancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _detail(workflow.cancel(request.user, order_id, ser.validated_data.get("reason", "")))


@extend_schema(tags=["Orders"], summary="Revise the agreed price (bound carrier)", request=sz.PriceAdjustSerializer)
class OrderPriceView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, order_id):
        ser = sz.PriceAdjustSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _detail(workflow.adjust_price(request.user, order_id, ser.validated_data["total_price"]))


# ── Tracking ──────────────────────────────────────────────────────────────────
@extend_schema(tags=["Tracking"], summary="Tracking history and last known position")
class OrderTrackView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, order_id):
        order = workflow.get_for_actor(request.user, order_id)
        return Response({
            "order_number":  order.order_number,
            "status":        order.status,
            "last_position": tracking.last_position(order),
            "events":        sz.TrackingEventSerializer(tracking.history(order), many=True).data,
        })


@extend_schema(tags=["Tracking"], summary="Report current position (bound carrier)", request=sz.PositionSerializer)
class OrderPositionView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, order_id):
        ser = sz.PositionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        position = tracking.record_position(
            request.user, order_id, ser.validated_data["latitude"], ser.validated_data["longitude"],
        )
        return Response(position, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Tracking"], summary="Report a delay (bound carrier)", request=sz.DelaySerializer)
class OrderDelayView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, order_id):
        ser = sz.DelaySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        event = tracking.report_delay(
            request.user, order_id, ser.validated_data["reason"], ser.validated_data.get("new_eta"),
        )
        return Response(sz.TrackingEventSerializer(event).data, status=status.HTTP_201_CREATED)
