from django_filters import rest_framework as filters

from core_backend.base.filters import BaseFilterSet, FlexibleDateTimeFilter
from .models import StockMovement


class StockMovementFilter(BaseFilterSet):
    product = filters.NumberFilter(field_name="product_id")
    order = filters.UUIDFilter(field_name="order_id")
    type = filters.ChoiceFilter(
        field_name="movement_type", choices=StockMovement.MovementType.choices
    )
    created_after = FlexibleDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = FlexibleDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = StockMovement
        fields = ["product", "order", "type", "created_after", "created_before"]
