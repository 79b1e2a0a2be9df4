from rest_framework import serializers

from core_backend.base.serializers import BaseModelSerializer
from .models import StockMovement


class StockMovementSerializer(BaseModelSerializer):
    productId = serializers.IntegerField(source="product_id", read_only=True)
    productName = serializers.CharField(source="product.name", read_only=True)
    type = serializers.CharField(source="movement_type", read_only=True)
    previousStock = serializers.IntegerField(source="previous_stock", read_only=True)
    newStock = serializers.IntegerField(source="new_stock", read_only=True)
    orderId = serializers.UUIDField(source="order_id", read_only=True, allow_null=True)
    userId = serializers.IntegerField(source="user_id", read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "productId",
            "productName",
            "type",
            "quantity",
            "previousStock",
            "newStock",
            "reason",
            "orderId",
            "userId",
            "createdAt",
        ]
        read_only_fields = fields
        select_related_fields = ["product"]
