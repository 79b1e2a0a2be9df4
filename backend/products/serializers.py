from rest_framework import serializers

from core_backend.base.serializers import BaseModelSerializer, MoneyField
from .models import Product


class ProductSerializer(BaseModelSerializer):
    price = MoneyField(read_only=True)
    minStock = serializers.IntegerField(source="min_stock", read_only=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    isLowStock = serializers.BooleanField(source="is_low_stock", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "barcode",
            "price",
            "stock",
            "minStock",
            "isActive",
            "isLowStock",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields


class AdjustStockSerializer(serializers.Serializer):
    MODE_CHOICES = ["add", "subtract", "set"]

    quantity = serializers.IntegerField(min_value=0)
    mode = serializers.ChoiceField(choices=MODE_CHOICES)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
