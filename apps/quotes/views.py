"""Quote API views."""

from django.conf import settings
from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema
from django_filters.rest_framework import DjangoFilterBackend

from apps.core.exceptions import AuthorizationError
from .service import QuoteWorkflow
from .tasks import generate_auto_quotes_task
from . import serializers as sz

workflow = QuoteWorkflow()


def _detail(quote, code=status.HTTP_200_OK):
    return Response(sz.QuoteDetailSerializer(quote).data, status=code)


@extend_schema(tags=["Quotes"], summary="Submit a quote with an explicit breakdown (carrier)",
               request=sz.QuoteCreateSerializer)
class QuoteCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = sz.QuoteCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        quote = workflow.create_quote(
            request.user, data.pop("order"), data,
            valid_until=data.pop("valid_until"), vehicle_id=data.pop("vehicle", None),
            **{k: data.pop(k) for k in ("payment_terms", "delivery_terms", "conditions", "notes") if k in data},
        )
        return _detail(quote, status.HTTP_201_CREATED)


@extend_schema(tags=["Quotes"], summary="Draft a quote priced with the carrier's own rates",
               request=sz.PriceRequestSerializer)
class QuotePriceView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = sz.PriceRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        quote = workflow.price_for_carrier(
            request.user, ser.validated_data["order"], ser.validated_data.get("vehicle"),
        )
        return _detail(quote, status.HTTP_201_CREATED)


@extend_schema(tags=["Quotes"], summary="Request automatic quotes for an order (shipper)",
               request=sz.AutoQuoteSerializer)
class AutoQuoteView(APIView):
    """Runs inline in dev/tests; queued on Celery when ?async=1."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = sz.AutoQuoteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order_id = ser.validated_data["order"]

        if request.query_params.get("async") == "1":
            if not request.user.is_shipper and not request.user.is_admin:
                raise AuthorizationError("Only shippers request automatic quotes.")
            generate_auto_quotes_task.delay(str(order_id))
            return Response({"message": "Automatic quoting queued."}, status=status.HTTP_202_ACCEPTED)

        quotes = workflow.generate_auto_quotes(order_id, actor=request.user)
        return Response(
            {
                "count":  len(quotes),
                "limit":  getattr(settings, "AUTO_QUOTE_LIMIT", 5),
                "quotes": sz.QuoteDetailSerializer(quotes, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )


@extend_schema(tags=["Quotes"], summary="The authenticated carrier's quotes")
class CarrierQuoteListView(generics.ListAPIView):
    serializer_class   = sz.QuoteDetailSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["status"]

    def get_queryset(self):
        return workflow.for_carrier(self.request.user)


@extend_schema(tags=["Quotes"], summary="Quotes on an order")
class OrderQuoteListView(generics.ListAPIView):
    serializer_class   = sz.QuoteDetailSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return workflow.for_order(self.request.user, self.kwargs["order_id"])


@extend_schema(tags=["Quotes"])
class QuoteDetailView(APIView):
    """GET/PATCH/DELETE /api/quotes/{id}/: edits and deletion only while DRAFT."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, quote_id):
        return _detail(workflow.get_for_actor(request.user, quote_id))

    @extend_schema(request=sz.QuoteUpdateSerializer)
    def patch(self, request, quote_id):
        ser = sz.QuoteUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        return _detail(workflow.update_quote(request.user, quote_id, dict(ser.validated_data)))

    def delete(self, request, quote_id):
        workflow.delete_quote(request.user, quote_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Quotes"], summary="Send a DRAFT quote to the shipper (carrier)", request=None)
class QuoteSendView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, quote_id):
        return _detail(workflow.send(request.user, quote_id))


@extend_schema(tags=["Quotes"], summary="Accept a SENT quote (shipper)", request=None)
class QuoteAcceptView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, quote_id):
        return _detail(workflow.accept(request.user, quote_id))


@extend_schema(tags=["Quotes"], summary="Reject a SENT quote (shipper)", request=sz.RejectSerializer)
class QuoteRejectView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, quote_id):
        ser = sz.RejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _detail(workflow.reject(request.user, quote_id, ser.validated_data.get("reason", "")))
