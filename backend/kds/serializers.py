from rest_framework import serializers

from .projection import (
    KitchenItemStatus,
    KitchenOrder,
    KitchenOrderItem,
    KitchenOrderStatus,
    KitchenPriority,
)


def _choices(enum_cls):
    return [member.value for member in enum_cls]


class KitchenOrderItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    productId = serializers.IntegerField(source="product_id")
    productName = serializers.CharField(source="product_name", allow_blank=True, required=False, default="")
    quantity = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=_choices(KitchenItemStatus), default=KitchenItemStatus.PENDING.value)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["status"] = KitchenItemStatus(instance.status).value
        return data


class KitchenOrderSerializer(serializers.Serializer):
    """
    Wire shape of a projected kitchen order. Also accepted as input by the
    toggle endpoint, which is stateless and works on what the client sends.
    """

    id = serializers.CharField()
    orderNumber = serializers.CharField(source="order_number")
    status = serializers.ChoiceField(choices=_choices(KitchenOrderStatus))
    priority = serializers.ChoiceField(choices=_choices(KitchenPriority), default=KitchenPriority.NORMAL.value)
    createdAt = serializers.DateTimeField(source="created_at")
    tableNumber = serializers.CharField(source="table_number", allow_blank=True, required=False, default="")
    customerName = serializers.CharField(source="customer_name", allow_blank=True, required=False, default="")
    notes = serializers.CharField(allow_blank=True, required=False, default="")
    items = KitchenOrderItemSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("A kitchen order needs at least one item.")
        ids = [item["id"] for item in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Item ids must be unique.")
        return value

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["status"] = KitchenOrderStatus(instance.status).value
        data["priority"] = KitchenPriority(instance.priority).value
        return data


def kitchen_order_from_data(data) -> KitchenOrder:
    """Build a KitchenOrder from validated KitchenOrderSerializer data."""
    return KitchenOrder(
        id=data["id"],
        order_number=data["order_number"],
        status=KitchenOrderStatus(data["status"]),
        created_at=data["created_at"],
        items=tuple(
            KitchenOrderItem(
                id=item["id"],
                product_id=item["product_id"],
                product_name=item["product_name"],
                quantity=item["quantity"],
                status=KitchenItemStatus(item["status"]),
            )
            for item in data["items"]
        ),
        priority=KitchenPriority(data["priority"]),
        table_number=data["table_number"],
        customer_name=data["customer_name"],
        notes=data["notes"],
    )


class ToggleItemSerializer(serializers.Serializer):
    order = KitchenOrderSerializer()
    itemId = serializers.IntegerField(source="item_id")


class KitchenBoardSerializer(serializers.Serializer):
    NEW = KitchenOrderSerializer(many=True)
    IN_PROGRESS = KitchenOrderSerializer(many=True)
    READY = KitchenOrderSerializer(many=True)
    COMPLETED = KitchenOrderSerializer(many=True)
