"""
Core backend base components.

Foundational classes shared by the products, inventory, orders and kds apps.
"""

from .viewsets import ReadOnlyBaseViewSet, BaseAPIView
from .serializers import BaseModelSerializer, MoneyField
from .filters import BaseFilterSet, FlexibleDateTimeFilter, normalize_datetime_value

__all__ = [
    # ViewSets
    'ReadOnlyBaseViewSet',
    'BaseAPIView',

    # Serializers
    'BaseModelSerializer',
    'MoneyField',

    # Filters
    'BaseFilterSet',
    'FlexibleDateTimeFilter',
    'normalize_datetime_value',
]
