from .order_item_serializers import OrderItemSerializer, OrderItemInputSerializer
from .order_serializers import (
    OrderSerializer,
    OrderCreateSerializer,
    OrderStatisticsQuerySerializer,
    OrderStatisticsSerializer,
)
from .status_serializers import OrderStatusUpdateSerializer

__all__ = [
    "OrderItemSerializer",
    "OrderItemInputSerializer",
    "OrderSerializer",
    "OrderCreateSerializer",
    "OrderStatisticsQuerySerializer",
    "OrderStatisticsSerializer",
    "OrderStatusUpdateSerializer",
]
