from channels.generic.websocket import AsyncWebsocketConsumer
from channels.db import database_sync_to_async
from django.utils import timezone
from rest_framework.utils.encoders import JSONEncoder
import json
import logging

from core_backend.config import app_settings
from core_backend.exceptions import POSError
from .serializers import KitchenBoardSerializer, KitchenOrderSerializer, ToggleItemSerializer, kitchen_order_from_data
from .services import KitchenService

logger = logging.getLogger(__name__)


class KitchenConsumer(AsyncWebsocketConsumer):
    """WebSocket consumer for kitchen displays. All displays share one group."""

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated kitchen WebSocket connection")
            await self.close()
            return

        self.group_name = app_settings.kitchen_group
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send_board()

        logger.info(f"Kitchen WebSocket connected: user={user.pk}")

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
        logger.info(f"Kitchen WebSocket disconnected: code={close_code}")

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON format")
            return

        if not isinstance(data, dict):
            await self.send_error("Message must be a JSON object")
            return

        action = data.get("action")
        logger.debug(f"Received kitchen action: {action}")

        try:
            if action == "ping":
                await self.send_json_message({"type": "pong", "timestamp": timezone.now().isoformat()})
            elif action == "refresh_board":
                await self.send_board()
            elif action == "toggle_item":
                await self.handle_toggle_item(data)
            elif action == "bump":
                await self.handle_bump(data)
            else:
                await self.send_error(f"Unknown action: {action}")
        except POSError as e:
            await self.send_error(e.message, code=e.code)

    async def handle_toggle_item(self, data):
        serializer = ToggleItemSerializer(data=data.get("data") or {})
        if not serializer.is_valid():
            await self.send_error("Invalid toggle request", code="VALIDATION_ERROR", errors=serializer.errors)
            return
        kitchen_order = kitchen_order_from_data(serializer.validated_data["order"])
        toggled = KitchenService.toggle_item(kitchen_order, serializer.validated_data["item_id"])
        await self.send_json_message({"type": "kitchen_order", "data": KitchenOrderSerializer(toggled).data})

    async def handle_bump(self, data):
        order_id = data.get("order_id")
        if not order_id:
            await self.send_error("Missing order_id", code="VALIDATION_ERROR")
            return
        order = await database_sync_to_async(KitchenService.bump)(order_id, self.scope["user"])
        await self.send_json_message(
            {"type": "success", "message": f"Order {order.order_number} completed"}
        )

    @database_sync_to_async
    def get_board(self):
        return KitchenBoardSerializer(KitchenService.get_board()).data

    async def send_board(self):
        board = await self.get_board()
        await self.send_json_message({"type": "board", "data": board})

    async def kitchen_notification(self, event):
        """Forward a group event published by KitchenEventPublisher."""
        await self.send_json_message(
            {"type": event["message_type"], "data": event["data"]}
        )

    async def send_error(self, message, code="ERROR", **extra):
        await self.send_json_message({"type": "error", "code": code, "message": message, **extra})

    async def send_json_message(self, payload):
        await self.send(text_data=json.dumps(payload, cls=JSONEncoder))
