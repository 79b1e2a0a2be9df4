from rest_framework import permissions, status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
import logging

from core_backend.base import ReadOnlyBaseViewSet
from core_backend.exceptions import ValidationError
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import (
    OrderSerializer,
    OrderCreateSerializer,
    OrderStatisticsQuerySerializer,
    OrderStatisticsSerializer,
)
from orders.services import OrderService
from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)


class OrderViewSet(StatusActionsMixin, ReadOnlyBaseViewSet):
    """
    Orders API. Every write goes through OrderService; this viewset only
    validates input and renders results.

    - POST /orders/                      create (checkout)
    - GET  /orders/                      list with status/date_from/date_to/search/limit/offset
    - GET  /orders/{id}/                 detail
    - GET  /orders/by-number/{number}/   lookup by order number
    - POST /orders/{id}/status/          status transition
    - GET  /orders/statistics/           sales figures for a date range
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = OrderFilter
    lookup_value_regex = r"[0-9a-fA-F-]{32,36}"

    def list(self, request: Request, *args, **kwargs) -> Response:
        """
        Returns ``{"orders": [...], "total": n, "hasMore": bool}``.
        """
        filterset = OrderFilter(request.query_params, queryset=Order.objects.all())
        if not filterset.is_valid():
            raise ValidationError(f"Invalid filters: {dict(filterset.errors)}")
        cleaned = filterset.form.cleaned_data

        page = OrderService.list_orders(
            status=cleaned.get("status") or None,
            date_from=cleaned.get("date_from") or None,
            date_to=cleaned.get("date_to") or None,
            search=cleaned.get("search") or None,
            limit=request.query_params.get("limit"),
            offset=request.query_params.get("offset", 0),
        )
        return Response(
            {
                "orders": OrderSerializer(page["orders"], many=True).data,
                "total": page["total"],
                "hasMore": page["has_more"],
            }
        )

    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.create_order(user=request.user, **serializer.to_service_kwargs())
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, *args, **kwargs) -> Response:
        order = OrderService.get_order(kwargs["pk"])
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], url_path=r"by-number/(?P<order_number>[^/]+)")
    def by_number(self, request: Request, order_number=None) -> Response:
        order = OrderService.get_order_by_number(order_number)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], url_path="statistics")
    def statistics(self, request: Request) -> Response:
        query = OrderStatisticsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        stats = OrderService.get_order_statistics(
            date_from=query.validated_data.get("date_from") or None,
            date_to=query.validated_data.get("date_to") or None,
        )
        return Response(OrderStatisticsSerializer(stats).data)
