from django.contrib import admin
from .models import Order, OrderItem, OrderNumberSequence


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product", "quantity", "price", "discount", "total")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "status",
        "payment_method",
        "total",
        "customer_name",
        "table_number",
        "created_at",
    )
    list_filter = ("status", "payment_method", "created_at")
    search_fields = ("order_number", "customer_name", "customer_phone", "table_number")
    # Status changes must go through OrderService so stock stays consistent.
    readonly_fields = (
        "order_number",
        "status",
        "subtotal",
        "tax",
        "total",
        "created_by",
        "created_at",
        "updated_at",
        "completed_at",
    )
    inlines = [OrderItemInline]


@admin.register(OrderNumberSequence)
class OrderNumberSequenceAdmin(admin.ModelAdmin):
    list_display = ("date", "last_value")
    readonly_fields = ("date", "last_value")
