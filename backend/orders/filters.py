import django_filters
from core_backend.base.filters import BaseFilterSet
from .models import Order


class OrderFilter(BaseFilterSet):
    """
    Filters for the order list. Each one delegates to the matching
    OrderQuerySet method so the API and OrderService filter identically.

    ``date_from``/``date_to`` accept a date ("2024-05-01", whole day) or a
    full ISO datetime.
    """

    status = django_filters.ChoiceFilter(choices=Order.OrderStatus.choices, method="filter_status")
    date_from = django_filters.CharFilter(method="filter_date_from")
    date_to = django_filters.CharFilter(method="filter_date_to")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Order
        fields = ["status", "date_from", "date_to", "search"]

    def filter_status(self, queryset, name, value):
        return queryset.by_status(value)

    def filter_date_from(self, queryset, name, value):
        return queryset.created_between(date_from=value)

    def filter_date_to(self, queryset, name, value):
        return queryset.created_between(date_to=value)

    def filter_search(self, queryset, name, value):
        return queryset.search(value)
