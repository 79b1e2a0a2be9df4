import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("movement_type", models.CharField(choices=[("SALE", "Sale"), ("RETURN", "Return"), ("MANUAL_ADD", "Manual Add"), ("MANUAL_SUBTRACT", "Manual Subtract"), ("MANUAL_SET", "Manual Set")], help_text="Type of stock operation performed", max_length=20)),
                ("quantity", models.IntegerField(help_text="Change in stock (positive for additions, negative for subtractions)")),
                ("previous_stock", models.PositiveIntegerField(help_text="Stock before the operation")),
                ("new_stock", models.PositiveIntegerField(help_text="Stock after the operation")),
                ("reason", models.CharField(blank=True, help_text="Why the stock changed, e.g. 'Order ORD-20240501-0001'", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("order", models.ForeignKey(blank=True, help_text="Order that caused the movement, if any", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="stock_movements", to="orders.order")),
                ("product", models.ForeignKey(help_text="Product whose stock changed", on_delete=django.db.models.deletion.PROTECT, related_name="stock_movements", to="products.product")),
                ("user", models.ForeignKey(blank=True, help_text="User who performed the operation", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stock_movements", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Stock Movement",
                "verbose_name_plural": "Stock Movements",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="movement_product_time_idx"),
                    models.Index(fields=["movement_type"], name="movement_type_idx"),
                ],
            },
        ),
    ]
