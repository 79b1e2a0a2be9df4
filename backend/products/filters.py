from django.db.models import F
from django_filters import rest_framework as filters
from .models import Product


class ProductFilter(filters.FilterSet):
    low_stock = filters.BooleanFilter(method="filter_low_stock")

    class Meta:
        model = Product
        fields = ["is_active", "barcode", "low_stock"]

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(stock__lte=F("min_stock"))
        return queryset.exclude(stock__lte=F("min_stock"))
