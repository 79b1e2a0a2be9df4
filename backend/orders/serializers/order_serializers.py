from rest_framework import serializers

from core_backend.base import BaseModelSerializer
from core_backend.base.serializers import MoneyField
from orders.models import Order
from .order_item_serializers import OrderItemSerializer, OrderItemInputSerializer


class OrderSerializer(BaseModelSerializer):
    """Read shape of an order as returned by every order endpoint."""

    orderNumber = serializers.CharField(source="order_number", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    subtotal = MoneyField(read_only=True)
    tax = MoneyField(read_only=True)
    total = MoneyField(read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    customerName = serializers.CharField(source="customer_name", read_only=True)
    customerPhone = serializers.CharField(source="customer_phone", read_only=True)
    tableNumber = serializers.CharField(source="table_number", read_only=True)
    createdBy = serializers.IntegerField(source="created_by_id", read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "orderNumber",
            "status",
            "items",
            "subtotal",
            "tax",
            "total",
            "paymentMethod",
            "customerName",
            "customerPhone",
            "tableNumber",
            "notes",
            "createdBy",
            "createdAt",
            "completedAt",
        ]
        read_only_fields = fields
        select_related_fields = ["created_by"]
        prefetch_related_fields = ["items__product"]


class OrderCreateSerializer(serializers.Serializer):
    """
    Validates a checkout request. The order itself is created by
    OrderService.create_order, never by this serializer.
    """

    items = OrderItemInputSerializer(many=True, allow_empty=False)
    paymentMethod = serializers.ChoiceField(choices=Order.PaymentMethod.choices)
    customerName = serializers.CharField(max_length=200, required=False, allow_blank=True)
    customerPhone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    tableNumber = serializers.CharField(max_length=20, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def to_service_kwargs(self):
        data = self.validated_data
        return {
            "items": data["items"],
            "payment_method": data["paymentMethod"],
            "customer_name": data.get("customerName"),
            "customer_phone": data.get("customerPhone"),
            "table_number": data.get("tableNumber"),
            "notes": data.get("notes"),
        }


class OrderStatisticsQuerySerializer(serializers.Serializer):
    date_from = serializers.CharField(required=False, allow_blank=True)
    date_to = serializers.CharField(required=False, allow_blank=True)


class OrderStatisticsSerializer(serializers.Serializer):
    """Renders the dict returned by OrderService.get_order_statistics."""

    def to_representation(self, stats):
        return {
            "orderCount": stats["order_count"],
            "revenue": str(stats["revenue"]),
            "subtotal": str(stats["subtotal"]),
            "tax": str(stats["tax"]),
            "averageOrderValue": str(stats["average_order_value"]),
            "byStatus": stats["by_status"],
            "byPaymentMethod": [
                {
                    "paymentMethod": row["payment_method"],
                    "count": row["count"],
                    "revenue": str(row["revenue"]),
                }
                for row in stats["by_payment_method"]
            ],
            "topProducts": [
                {
                    "productId": row["product_id"],
                    "name": row["name"],
                    "quantity": row["quantity"],
                    "revenue": str(row["revenue"]),
                }
                for row in stats["top_products"]
            ],
        }
