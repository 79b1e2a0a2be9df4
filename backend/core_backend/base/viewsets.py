from rest_framework import viewsets, filters
from django_filters.rest_framework import DjangoFilterBackend
from ..pagination import HasMoreLimitOffsetPagination


class ReadOnlyBaseViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Base ViewSet for read-only endpoints.

    Features:
    - limit/offset pagination with total and hasMore
    - django-filter, search and ordering backends
    - select_related/prefetch_related taken from the serializer Meta
    """

    pagination_class = HasMoreLimitOffsetPagination
    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter,
    ]
    ordering = ["-id"]

    def get_queryset(self):
        queryset = super().get_queryset()
        serializer_class = self.get_serializer_class()
        meta = getattr(serializer_class, "Meta", None)

        select_related = getattr(meta, "select_related_fields", None)
        if select_related:
            queryset = queryset.select_related(*select_related)

        prefetch_related = getattr(meta, "prefetch_related_fields", None)
        if prefetch_related:
            queryset = queryset.prefetch_related(*prefetch_related)

        return queryset


class BaseAPIView(viewsets.ViewSet):
    """
    Base class for endpoints that are backed by a service rather than a queryset.
    """

    pagination_class = HasMoreLimitOffsetPagination
