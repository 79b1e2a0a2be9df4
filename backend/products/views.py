from rest_framework import permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core_backend.base.viewsets import ReadOnlyBaseViewSet
from inventory.services import InventoryService
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer, AdjustStockSerializer
from .services import ProductService


class ProductViewSet(ReadOnlyBaseViewSet):
    """
    Catalog reads plus the manual stock adjustment action.

    Detail reads are served through the catalog cache. Stock is never written
    through a serializer; adjust-stock goes through InventoryService so the
    change is recorded in the ledger.
    """

    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    lookup_value_regex = r"\d+"
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = ProductFilter
    search_fields = ["name", "barcode"]
    ordering_fields = ["name", "price", "stock", "created_at"]
    ordering = ["name"]

    def retrieve(self, request, *args, **kwargs):
        product = ProductService.get_product(kwargs["pk"])
        serializer = self.get_serializer(product)
        return Response(serializer.data)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        products = InventoryService.get_low_stock_products()
        serializer = self.get_serializer(products, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=["post"], url_path="adjust-stock")
    def adjust_stock(self, request, pk=None):
        serializer = AdjustStockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = InventoryService.adjust(
            product_id=pk,
            quantity=serializer.validated_data["quantity"],
            mode=serializer.validated_data["mode"],
            reason=serializer.validated_data["reason"],
            user=request.user,
        )
        return Response(self.get_serializer(product).data, status=status.HTTP_200_OK)
