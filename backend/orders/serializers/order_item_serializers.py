from rest_framework import serializers

from core_backend.base.serializers import BaseModelSerializer, MoneyField
from orders.models import OrderItem


class OrderItemSerializer(BaseModelSerializer):
    productId = serializers.IntegerField(source="product_id", read_only=True)
    productName = serializers.CharField(source="product.name", read_only=True)
    price = MoneyField(read_only=True)
    discount = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)
    total = MoneyField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "productId", "productName", "quantity", "price", "discount", "total"]
        read_only_fields = fields


class OrderItemInputSerializer(serializers.Serializer):
    """One requested line of a new order."""

    productId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    price = MoneyField(required=False, min_value=0)
    discount = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, min_value=0, max_value=100
    )

    def to_internal_value(self, data):
        validated = super().to_internal_value(data)
        item = {
            "product_id": validated["productId"],
            "quantity": validated["quantity"],
        }
        if "price" in validated:
            item["price"] = validated["price"]
        if "discount" in validated:
            item["discount"] = validated["discount"]
        return item
