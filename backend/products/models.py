from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class ProductQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def low_stock(self):
        """Active products at or below their minimum stock, lowest stock first."""
        return self.active().filter(stock__lte=models.F("min_stock")).order_by("stock", "name")


class Product(models.Model):
    name = models.CharField(max_length=200, help_text=_("Name of the product."))
    barcode = models.CharField(
        max_length=50,
        blank=True,
        null=True,
        unique=True,
        help_text=_("Product barcode for scanning"),
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("The selling price of the product."),
    )
    stock = models.PositiveIntegerField(
        default=0,
        help_text=_(
            "Units on hand. Changed only through InventoryService so every change is recorded."
        ),
    )
    min_stock = models.PositiveIntegerField(
        default=0,
        help_text=_("Low-stock threshold. At or below this level the product is flagged."),
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text=_("Inactive products cannot be ordered."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock__gte=0), name="product_stock_non_negative"
            ),
        ]
        indexes = [
            models.Index(fields=["name"], name="product_name_idx"),
            models.Index(fields=["is_active", "stock"], name="product_active_stock_idx"),
        ]

    def __str__(self):
        return self.name

    @property
    def is_low_stock(self):
        return self.stock <= self.min_stock
