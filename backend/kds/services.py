from django.db import transaction
import logging

from core_backend.exceptions import InvalidStatusTransition, NotFound
from orders.models import Order
from orders.services import OrderService
from .projection import (
    KitchenPriority,
    group_by_status,
    project_order,
    toggle_item as toggle_projected_item,
)

logger = logging.getLogger(__name__)


class KitchenService:
    """Read side of the kitchen display, plus the bump write-back."""

    # Each bump step is a legal persisted transition
    BUMP_CHAIN = {
        Order.OrderStatus.PENDING: Order.OrderStatus.PREPARING,
        Order.OrderStatus.PREPARING: Order.OrderStatus.READY,
        Order.OrderStatus.READY: Order.OrderStatus.COMPLETED,
    }

    @staticmethod
    def get_board(priorities=None) -> dict:
        """
        Project every open order and group the result by kitchen status.

        Args:
            priorities: optional mapping of order id (str) to KitchenPriority.
                Orders not in the mapping are NORMAL.
        """
        priorities = priorities or {}
        kitchen_orders = []
        for order in Order.objects.open().with_details():
            priority = priorities.get(str(order.pk), KitchenPriority.NORMAL)
            kitchen_order = project_order(order, priority=priority)
            if kitchen_order is not None:
                kitchen_orders.append(kitchen_order)

        logger.debug(f"Kitchen board built with {len(kitchen_orders)} open order(s)")
        return group_by_status(kitchen_orders)

    @staticmethod
    def toggle_item(kitchen_order, item_id):
        try:
            return toggle_projected_item(kitchen_order, item_id)
        except KeyError:
            raise NotFound(f"Item {item_id} is not part of order {kitchen_order.order_number}")

    @staticmethod
    @transaction.atomic
    def bump(order_id, user=None) -> Order:
        """
        Complete an order from the kitchen. Walks the persisted order through
        every remaining step to COMPLETED, all or nothing.
        """
        order = OrderService.get_order(order_id)
        if order.status == Order.OrderStatus.CANCELLED:
            raise InvalidStatusTransition(order.status, Order.OrderStatus.COMPLETED)

        if order.status == Order.OrderStatus.COMPLETED:
            return OrderService.update_status(order.pk, Order.OrderStatus.COMPLETED, user=user)

        status = order.status
        while status in KitchenService.BUMP_CHAIN:
            order = OrderService.update_status(order.pk, KitchenService.BUMP_CHAIN[status], user=user)
            status = order.status

        logger.info(f"Order {order.order_number} bumped to {order.status} from the kitchen")
        return order
