from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
import logging

from orders.serializers import OrderSerializer, OrderStatusUpdateSerializer
from orders.services import OrderService

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order status transition actions

    This mixin provides action methods for OrderViewSet.
    """

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request: Request, pk=None) -> Response:
        """
        Moves the order to the requested status.

        Returns:
        - 200: Order after the transition (or unchanged if already in that status)
        - 404: Order not found
        - 422: Transition not allowed from the current status
        """
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.update_status(
            pk, serializer.validated_data["status"], user=request.user
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request: Request, pk=None) -> Response:
        order = OrderService.cancel_order(pk, user=request.user)
        return Response(OrderSerializer(order).data)
