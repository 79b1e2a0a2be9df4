from django.db import transaction
from django.db.models import F
from django.utils import timezone
from .models import StockMovement
from products.models import Product
from products.services import ProductService
from core_backend.exceptions import (
    InsufficientStock,
    NotFound,
    ValidationError,
    wrap_storage_errors,
)
import logging

logger = logging.getLogger(__name__)


ADJUST_MODES = {
    "add": StockMovement.MovementType.MANUAL_ADD,
    "subtract": StockMovement.MovementType.MANUAL_SUBTRACT,
    "set": StockMovement.MovementType.MANUAL_SET,
}


def _actor(user):
    if user is not None and getattr(user, "is_authenticated", False):
        return user
    return None


class InventoryService:
    """
    The only writer of Product.stock. Every successful mutation appends exactly
    one StockMovement in the same transaction and invalidates the catalog cache.
    """

    @staticmethod
    def _log_stock_operation(
        product: Product,
        movement_type: str,
        previous_stock: int,
        new_stock: int,
        user=None,
        order=None,
        reason: str = "",
    ) -> StockMovement:
        """
        Append the ledger entry for a stock change that has already been applied.
        Failures propagate so the surrounding transaction rolls back.
        """
        return StockMovement.objects.create(
            product=product,
            movement_type=movement_type,
            quantity=new_stock - previous_stock,
            previous_stock=previous_stock,
            new_stock=new_stock,
            reason=reason[:255],
            order=order,
            user=_actor(user),
        )

    @staticmethod
    def _after_stock_change(product: Product, previous_stock: int, new_stock: int):
        ProductService.invalidate_product_cache(product.pk)

        # Alert only when the product crosses the threshold, not on every sale below it.
        if previous_stock > product.min_stock >= new_stock:
            from .tasks import send_low_stock_alert

            product_id = product.pk

            def queue_alert():
                try:
                    send_low_stock_alert.delay(product_id)
                except Exception as e:
                    # The stock change is committed; a lost alert must not fail the request.
                    logger.error(f"Could not queue low stock alert for product_id {product_id}: {e}")

            transaction.on_commit(queue_alert)
            logger.info(
                f"Low stock threshold crossed for {product.name}: {new_stock} <= {product.min_stock}"
            )

    @staticmethod
    def _validate_quantity(quantity, allow_zero=False):
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"Quantity must be an integer, got {quantity!r}")
        if quantity < 0 or (quantity == 0 and not allow_zero):
            raise ValidationError(
                "Quantity must not be negative" if allow_zero else "Quantity must be positive"
            )

    @staticmethod
    def get_product(product_id) -> Product:
        """Uncached read, for use inside a transaction."""
        try:
            return Product.objects.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Product {product_id} not found")

    @staticmethod
    def check_availability(product_id, quantity) -> bool:
        """
        Advisory check only. ``reserve`` re-checks atomically.
        """
        return Product.objects.filter(
            pk=product_id, is_active=True, stock__gte=quantity
        ).exists()

    @staticmethod
    def get_low_stock_products():
        return list(Product.objects.low_stock())

    @staticmethod
    @wrap_storage_errors
    @transaction.atomic
    def reserve(product_id, quantity, user=None, order=None, reason="") -> Product:
        """
        Decrement stock by ``quantity`` if and only if enough is on hand.

        The guard and the decrement are one conditional UPDATE, so two callers
        racing for the last units cannot both succeed. Zero affected rows means
        the guard failed and InsufficientStock is raised.
        """
        InventoryService._validate_quantity(quantity)

        updated = Product.objects.filter(
            pk=product_id, is_active=True, stock__gte=quantity
        ).update(stock=F("stock") - quantity, updated_at=timezone.now())

        if not updated:
            product = Product.objects.filter(pk=product_id).first()
            if product is None:
                raise NotFound(f"Product {product_id} not found")
            if not product.is_active:
                raise ValidationError(f"Product {product.name} is not available")
            logger.warning(
                f"Insufficient stock for {product.name}: requested {quantity}, available {product.stock}"
            )
            raise InsufficientStock(product.name, product.stock, requested=quantity)

        # The UPDATE holds the row lock until commit, so this read is exact.
        product = Product.objects.get(pk=product_id)
        new_stock = product.stock
        previous_stock = new_stock + quantity

        InventoryService._log_stock_operation(
            product=product,
            movement_type=StockMovement.MovementType.SALE,
            previous_stock=previous_stock,
            new_stock=new_stock,
            user=user,
            order=order,
            reason=reason,
        )
        InventoryService._after_stock_change(product, previous_stock, new_stock)

        logger.info(f"Reserved {quantity} x {product.name}: {previous_stock} -> {new_stock}")
        return product

    @staticmethod
    @wrap_storage_errors
    @transaction.atomic
    def restore(product_id, quantity, user=None, order=None, reason="") -> Product:
        """
        Unconditionally increment stock, e.g. when an order is cancelled.
        """
        InventoryService._validate_quantity(quantity)

        try:
            product = Product.objects.select_for_update().get(pk=product_id)
        except Product.DoesNotExist:
            raise NotFound(f"Product {product_id} not found")

        previous_stock = product.stock
        Product.objects.filter(pk=product.pk).update(
            stock=F("stock") + quantity, updated_at=timezone.now()
        )
        product.refresh_from_db(fields=["stock", "updated_at"])

        InventoryService._log_stock_operation(
            product=product,
            movement_type=StockMovement.MovementType.RETURN,
            previous_stock=previous_stock,
            new_stock=product.stock,
            user=user,
            order=order,
            reason=reason,
        )
        InventoryService._after_stock_change(product, previous_stock, product.stock)

        logger.info(f"Restored {quantity} x {product.name}: {previous_stock} -> {product.stock}")
        return product

    @staticmethod
    @wrap_storage_errors
    @transaction.atomic
    def adjust(product_id, quantity, mode, user=None, reason="") -> Product:
        """
        Manual stock correction. ``mode`` is one of add, subtract or set.
        Subtract and set clamp the result at zero.
        """
        if mode not in ADJUST_MODES:
            raise ValidationError(
                f"Invalid adjustment mode '{mode}'. Expected one of: {', '.join(ADJUST_MODES)}"
            )
        InventoryService._validate_quantity(quantity, allow_zero=True)

        try:
            product = Product.objects.select_for_update().get(pk=product_id)
        except (Product.DoesNotExist, ValueError):
            raise NotFound(f"Product {product_id} not found")

        previous_stock = product.stock
        if mode == "add":
            new_stock = previous_stock + quantity
        elif mode == "subtract":
            new_stock = max(0, previous_stock - quantity)
        else:
            new_stock = quantity

        Product.objects.filter(pk=product.pk).update(
            stock=new_stock, updated_at=timezone.now()
        )
        product.refresh_from_db(fields=["stock", "updated_at"])

        InventoryService._log_stock_operation(
            product=product,
            movement_type=ADJUST_MODES[mode],
            previous_stock=previous_stock,
            new_stock=new_stock,
            user=user,
            reason=reason or f"Manual {mode}",
        )
        InventoryService._after_stock_change(product, previous_stock, new_stock)

        logger.info(
            f"Adjusted stock for {product.name} ({mode} {quantity}): {previous_stock} -> {new_stock}"
        )
        return product

    @staticmethod
    def reserve_order_inventory(order, user=None):
        """
        Reserve stock for every line item of a new order. One SALE movement per
        item. Items are reserved in product id order so concurrent orders lock
        rows consistently. Must run inside the order's transaction.
        """
        items = sorted(order.items.all(), key=lambda item: (item.product_id, item.pk))
        for item in items:
            InventoryService.reserve(
                item.product_id,
                item.quantity,
                user=user,
                order=order,
                reason=f"Order {order.order_number}",
            )

    @staticmethod
    def restore_order_inventory(order, user=None):
        """
        Return the stock reserved by ``order``. One RETURN movement per line item.
        Must run inside the cancellation's transaction.
        """
        items = sorted(order.items.all(), key=lambda item: (item.product_id, item.pk))
        for item in items:
            InventoryService.restore(
                item.product_id,
                item.quantity,
                user=user,
                order=order,
                reason=f"Cancelled order {order.order_number}",
            )
        logger.info(f"Restored inventory for cancelled order {order.order_number}")
