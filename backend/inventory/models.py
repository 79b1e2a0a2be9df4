from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from products.models import Product


class StockMovementQuerySet(models.QuerySet):
    def delete(self):
        raise ValidationError("Stock movements are append-only and cannot be deleted.")

    def update(self, **kwargs):
        raise ValidationError("Stock movements are append-only and cannot be updated.")


class StockMovement(models.Model):
    """
    Append-only ledger of every change to Product.stock.

    ``quantity`` is the signed change actually applied, so
    ``new_stock == previous_stock + quantity`` holds for every row.
    """

    class MovementType(models.TextChoices):
        SALE = "SALE", _("Sale")
        RETURN = "RETURN", _("Return")
        MANUAL_ADD = "MANUAL_ADD", _("Manual Add")
        MANUAL_SUBTRACT = "MANUAL_SUBTRACT", _("Manual Subtract")
        MANUAL_SET = "MANUAL_SET", _("Manual Set")

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="stock_movements",
        help_text=_("Product whose stock changed"),
    )
    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        help_text=_("Type of stock operation performed"),
    )
    quantity = models.IntegerField(
        help_text=_("Change in stock (positive for additions, negative for subtractions)")
    )
    previous_stock = models.PositiveIntegerField(help_text=_("Stock before the operation"))
    new_stock = models.PositiveIntegerField(help_text=_("Stock after the operation"))
    reason = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Why the stock changed, e.g. 'Order ORD-20240501-0001'"),
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_movements",
        help_text=_("Order that caused the movement, if any"),
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
        help_text=_("User who performed the operation"),
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        verbose_name = _("Stock Movement")
        verbose_name_plural = _("Stock Movements")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="movement_product_time_idx"),
            models.Index(fields=["movement_type"], name="movement_type_idx"),
        ]

    # Expected sign of ``quantity`` per type. MANUAL_SET may go either way.
    DIRECTIONS = {
        MovementType.SALE: -1,
        MovementType.RETURN: 1,
        MovementType.MANUAL_ADD: 1,
        MovementType.MANUAL_SUBTRACT: -1,
        MovementType.MANUAL_SET: 0,
    }

    def __str__(self):
        return (
            f"{self.get_movement_type_display()} {self.quantity:+d} {self.product} "
            f"({self.previous_stock} -> {self.new_stock})"
        )

    def clean(self):
        super().clean()
        if self.new_stock != self.previous_stock + self.quantity:
            raise ValidationError(
                f"new_stock ({self.new_stock}) must equal previous_stock "
                f"({self.previous_stock}) + quantity ({self.quantity})"
            )
        direction = self.DIRECTIONS.get(self.movement_type)
        if direction is None:
            raise ValidationError(f"Unknown movement type {self.movement_type}")
        if direction > 0 and self.quantity < 0:
            raise ValidationError(f"{self.movement_type} movements cannot decrease stock")
        if direction < 0 and self.quantity > 0:
            raise ValidationError(f"{self.movement_type} movements cannot increase stock")

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValidationError("Stock movements are append-only and cannot be updated.")
        self.full_clean(exclude=["product", "order", "user"])
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Stock movements are append-only and cannot be deleted.")
