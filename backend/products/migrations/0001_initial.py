from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(help_text="Name of the product.", max_length=200)),
                ("barcode", models.CharField(blank=True, help_text="Product barcode for scanning", max_length=50, null=True, unique=True)),
                ("price", models.DecimalField(decimal_places=2, help_text="The selling price of the product.", max_digits=10)),
                ("stock", models.PositiveIntegerField(default=0, help_text="Units on hand. Changed only through InventoryService so every change is recorded.")),
                ("min_stock", models.PositiveIntegerField(default=0, help_text="Low-stock threshold. At or below this level the product is flagged.")),
                ("is_active", models.BooleanField(db_index=True, default=True, help_text="Inactive products cannot be ordered.")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="product_name_idx"),
                    models.Index(fields=["is_active", "stock"], name="product_active_stock_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("stock__gte", 0)), name="product_stock_non_negative"),
                ],
            },
        ),
    ]
