from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "barcode", "price", "stock", "min_stock", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "barcode")
    # Stock changes must go through InventoryService so they reach the ledger.
    readonly_fields = ("stock", "created_at", "updated_at")
