from rest_framework import permissions
from rest_framework.request import Request
from rest_framework.response import Response
import logging

from core_backend.base.viewsets import BaseAPIView
from core_backend.exceptions import ValidationError
from orders.serializers import OrderSerializer
from .projection import KitchenPriority
from .serializers import (
    KitchenBoardSerializer,
    KitchenOrderSerializer,
    ToggleItemSerializer,
    kitchen_order_from_data,
)
from .services import KitchenService

logger = logging.getLogger(__name__)


def _parse_priorities(query_params) -> dict:
    """
    ``?rush=<id>,<id>&vip=<id>`` -> {order_id: KitchenPriority}.
    An order listed under both is RUSH.
    """
    priorities = {}
    for param, priority in (("vip", KitchenPriority.VIP), ("rush", KitchenPriority.RUSH)):
        for order_id in filter(None, (value.strip() for value in query_params.get(param, "").split(","))):
            priorities[order_id] = priority
    return priorities


class KitchenViewSet(BaseAPIView):
    """
    Kitchen display endpoints.

    The board and the item toggle are read-only projections; bump is the
    only call that changes a persisted order.
    """

    permission_classes = [permissions.IsAuthenticated]

    def board(self, request: Request) -> Response:
        board = KitchenService.get_board(priorities=_parse_priorities(request.query_params))
        return Response(KitchenBoardSerializer(board).data)

    def toggle_item(self, request: Request) -> Response:
        serializer = ToggleItemSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError("Invalid toggle request", errors=serializer.errors)

        kitchen_order = kitchen_order_from_data(serializer.validated_data["order"])
        toggled = KitchenService.toggle_item(kitchen_order, serializer.validated_data["item_id"])
        logger.debug(
            f"Toggled item {serializer.validated_data['item_id']} on {kitchen_order.order_number}: "
            f"order now {toggled.status.value}"
        )
        return Response(KitchenOrderSerializer(toggled).data)

    def bump(self, request: Request, order_id=None) -> Response:
        order = KitchenService.bump(order_id, user=request.user)
        return Response(OrderSerializer(order).data)
