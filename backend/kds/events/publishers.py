from typing import Any, Dict
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from rest_framework.utils.encoders import JSONEncoder
import json

from core_backend.config import app_settings
from ..projection import project_order
from ..serializers import KitchenOrderSerializer

logger = logging.getLogger(__name__)


class KitchenEventPublisher:
    """Broadcasts order events to every connected kitchen display."""

    @staticmethod
    def _payload(order) -> Dict[str, Any]:
        kitchen_order = project_order(order)
        data = {
            "orderId": str(order.pk),
            "orderNumber": order.order_number,
            "status": order.status,
            "kitchenOrder": KitchenOrderSerializer(kitchen_order).data if kitchen_order else None,
        }
        # Round-trip through DRF's encoder so the channel layer only sees plain types
        return json.loads(json.dumps(data, cls=JSONEncoder))

    @staticmethod
    def _send(message_type: str, data: Dict[str, Any]):
        channel_layer = get_channel_layer()
        if not channel_layer:
            logger.warning("No channel layer available for kitchen notifications")
            return

        async_to_sync(channel_layer.group_send)(
            app_settings.kitchen_group,
            {
                "type": "kitchen_notification",
                "message_type": message_type,
                "data": data,
            },
        )
        logger.debug(f"Sent {message_type} to group {app_settings.kitchen_group}")

    @staticmethod
    def _publish(message_type: str, order, **extra):
        def send():
            try:
                data = KitchenEventPublisher._payload(order)
                data.update(extra)
                KitchenEventPublisher._send(message_type, data)
            except Exception as e:
                # The order is already committed; a missed broadcast must not fail the request.
                logger.error(f"Error publishing {message_type} for order {order.order_number}: {e}")

        if transaction.get_connection().in_atomic_block:
            transaction.on_commit(send)
        else:
            send()

    @staticmethod
    def order_created(order):
        logger.info(f"Publishing order_created event for {order.order_number}")
        KitchenEventPublisher._publish("order_created", order)

    @staticmethod
    def order_status_changed(order, previous_status: str):
        logger.info(
            f"Publishing order_status_changed event for {order.order_number}: "
            f"{previous_status} -> {order.status}"
        )
        KitchenEventPublisher._publish(
            "order_status_changed", order, previousStatus=previous_status
        )
