from rest_framework import permissions

from core_backend.base.viewsets import ReadOnlyBaseViewSet
from .filters import StockMovementFilter
from .models import StockMovement
from .serializers import StockMovementSerializer


class StockMovementViewSet(ReadOnlyBaseViewSet):
    """
    Read-only access to the stock ledger, newest first.
    Filter with ?product=, ?order= and ?type=.
    """

    queryset = StockMovement.objects.all()
    serializer_class = StockMovementSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = StockMovementFilter
    search_fields = ["reason", "product__name"]
    ordering_fields = ["created_at", "id"]
    ordering = ["-created_at", "-id"]
