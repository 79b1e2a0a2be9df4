from decimal import Decimal
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from products.models import Product
from .managers import OrderManager


class OrderNumberSequence(models.Model):
    """
    One row per calendar day holding the last order number sequence handed
    out. Incremented under a row lock by OrderNumberService.
    """

    date = models.DateField(unique=True)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _("Order Number Sequence")
        verbose_name_plural = _("Order Number Sequences")
        ordering = ["-date"]

    def __str__(self):
        return f"{self.date:%Y-%m-%d}: {self.last_value}"


class Order(models.Model):
    # --- Status Fields ---
    class OrderStatus(models.TextChoices):
        PENDING = "PENDING", _("Pending")  # Placed, stock reserved
        PREPARING = "PREPARING", _("Preparing")  # Kitchen is working on it
        READY = "READY", _("Ready")  # Waiting for pickup / serving
        COMPLETED = "COMPLETED", _("Completed")  # Handed over
        CANCELLED = "CANCELLED", _("Cancelled")  # Stock returned

    class PaymentMethod(models.TextChoices):
        CASH = "CASH", _("Cash")
        CARD = "CARD", _("Card")
        MOBILE = "MOBILE", _("Mobile")
        OTHER = "OTHER", _("Other")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(
        max_length=32,
        unique=True,
        editable=False,
        help_text=_("Human-readable, day-scoped number, e.g. ORD-20240501-0001"),
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )

    # --- Customer / table reference ---
    customer_name = models.CharField(max_length=200, blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    table_number = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)

    # --- Financial Fields ---
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_orders",
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = OrderManager()

    class Meta:
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        # Show newest orders first, with order_number as secondary sort for same timestamps
        ordering = ["-created_at", "-order_number"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
            models.Index(fields=["customer_phone"], name="order_customer_phone_idx"),
        ]

    def __str__(self):
        return f"Order {self.order_number or self.pk} - {self.status}"

    def save(self, *args, **kwargs):
        # Numbers come from the day's sequence row, never from counting orders.
        if not self.order_number:
            from .services.numbering_service import OrderNumberService

            self.order_number = OrderNumberService.next()
        super().save(*args, **kwargs)

    @property
    def is_open(self):
        return self.status in (
            self.OrderStatus.PENDING,
            self.OrderStatus.PREPARING,
            self.OrderStatus.READY,
        )

    def clean(self):
        super().clean()
        if self.total != self.subtotal + self.tax:
            raise ValidationError(_("Order total must equal subtotal plus tax."))


class OrderItem(models.Model):
    """
    One line of an order. Price is a snapshot taken when the order was placed
    and the row is never changed afterwards.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Unit price at the time of sale"),
    )
    discount = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text=_("Percentage discount, 0-100"),
    )
    total = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("price * quantity * (1 - discount / 100)"),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0), name="order_item_quantity_positive"
            ),
            models.CheckConstraint(
                condition=Q(discount__gte=0) & Q(discount__lte=100),
                name="order_item_discount_range",
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_id} in Order {self.order.order_number}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Order items cannot be changed after the order is placed.")
        super().save(*args, **kwargs)
