from django.contrib import admin
from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        "created_at",
        "product",
        "movement_type",
        "quantity",
        "previous_stock",
        "new_stock",
        "order",
        "user",
    )
    list_filter = ("movement_type",)
    search_fields = ("product__name", "reason", "order__order_number")
    list_select_related = ("product", "order", "user")

    # The ledger is append-only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
