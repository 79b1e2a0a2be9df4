from decimal import Decimal, InvalidOperation
from collections import defaultdict
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Sum
from django.utils import timezone
import logging

from core_backend.exceptions import (
    Conflict,
    InsufficientStock,
    InvalidStatusTransition,
    NotFound,
    ValidationError,
    wrap_storage_errors,
)
from inventory.services import InventoryService
from orders.models import Order, OrderItem
from orders.signals import order_created, order_status_changed
from products.models import Product
from .calculation_service import OrderCalculationService, quantize
from .numbering_service import OrderNumberService

logger = logging.getLogger(__name__)


class OrderService:
    """Core service for order lifecycle management - creating orders and moving them through statuses."""

    # Valid status transitions for order state machine
    VALID_STATUS_TRANSITIONS = {
        Order.OrderStatus.PENDING: [
            Order.OrderStatus.PREPARING,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.PREPARING: [
            Order.OrderStatus.READY,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.READY: [
            Order.OrderStatus.COMPLETED,
        ],
        Order.OrderStatus.COMPLETED: [],
        Order.OrderStatus.CANCELLED: [],
    }

    @staticmethod
    def _normalize_items(items):
        """
        Validate raw item input and return a list of dicts with
        ``product_id``, ``quantity``, ``price`` (Decimal or None) and ``discount``.
        Nothing is read from or written to the database here.
        """
        if not items:
            raise ValidationError("Order must contain at least one item")

        lines = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValidationError(f"Item {index + 1}: expected an object")
            product_id = item.get("product_id")
            quantity = item.get("quantity")

            if product_id is None:
                raise ValidationError(f"Item {index + 1}: product_id is required")
            if isinstance(product_id, str) and product_id.strip().isdecimal():
                product_id = int(product_id)
            if isinstance(product_id, bool) or not isinstance(product_id, int):
                raise ValidationError(f"Item {index + 1}: product_id must be an integer")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(f"Item {index + 1}: quantity must be a positive integer")

            try:
                price = item.get("price")
                price = Decimal(str(price)) if price is not None else None
                discount = Decimal(str(item.get("discount") or 0))
            except InvalidOperation:
                raise ValidationError(f"Item {index + 1}: price and discount must be numbers")

            if price is not None and price < 0:
                raise ValidationError(f"Item {index + 1}: price must not be negative")
            if discount < 0 or discount > 100:
                raise ValidationError(f"Item {index + 1}: discount must be between 0 and 100")

            lines.append(
                {
                    "product_id": product_id,
                    "quantity": quantity,
                    "price": price,
                    "discount": discount,
                }
            )
        return lines

    @staticmethod
    def _load_products(lines):
        product_ids = {line["product_id"] for line in lines}
        products = Product.objects.in_bulk(product_ids)

        missing = sorted(str(pid) for pid in product_ids if pid not in products)
        if missing:
            raise ValidationError(f"Product(s) not found: {', '.join(missing)}")

        inactive = sorted(p.name for p in products.values() if not p.is_active)
        if inactive:
            raise ValidationError(f"Product(s) not available: {', '.join(inactive)}")
        return products

    @staticmethod
    def _check_stock(lines, products):
        """
        Fail early, before any write, if a product cannot cover the total
        quantity ordered across all of its lines.
        """
        requested = defaultdict(int)
        for line in lines:
            requested[line["product_id"]] += line["quantity"]

        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.stock < quantity:
                logger.warning(
                    f"Order rejected: insufficient stock for {product.name} "
                    f"(requested {quantity}, available {product.stock})"
                )
                raise InsufficientStock(product.name, product.stock, requested=quantity)

    @staticmethod
    def _validate_payment_method(payment_method):
        if payment_method not in Order.PaymentMethod.values:
            raise ValidationError(
                f"'{payment_method}' is not a valid payment method. "
                f"Expected one of: {', '.join(Order.PaymentMethod.values)}"
            )
        return payment_method

    @staticmethod
    @wrap_storage_errors
    def create_order(
        items,
        payment_method,
        user=None,
        customer_name=None,
        customer_phone=None,
        table_number=None,
        notes=None,
    ) -> Order:
        """
        Place an order and reserve its stock as one unit of work.

        Args:
            items: list of dicts with ``product_id``, ``quantity`` and optional
                ``price`` (defaults to the catalog price) and ``discount`` (0-100)
            payment_method: one of Order.PaymentMethod
            user: the acting user, recorded on the order and the ledger

        Raises:
            ValidationError: empty items, bad quantity, unknown or inactive product
            InsufficientStock: a product cannot cover the ordered quantity
            Conflict: the order number was already taken
        """
        lines = OrderService._normalize_items(items)
        OrderService._validate_payment_method(payment_method)

        try:
            order = OrderService._create_order_atomic(
                lines,
                payment_method,
                user,
                customer_name=customer_name or "",
                customer_phone=customer_phone or "",
                table_number=table_number or "",
                notes=notes or "",
            )
        except IntegrityError as e:
            if "order_number" in str(e).lower():
                logger.error(f"Order number collision while creating order: {e}")
                raise Conflict("Order number already in use, please retry")
            raise

        logger.info(
            f"Order {order.order_number} created with {len(lines)} item(s), total {order.total}"
        )
        return Order.objects.with_details().get(pk=order.pk)

    @staticmethod
    @transaction.atomic
    def _create_order_atomic(lines, payment_method, user, **details) -> Order:
        products = OrderService._load_products(lines)
        OrderService._check_stock(lines, products)

        priced_lines = []
        for line in lines:
            product = products[line["product_id"]]
            price = line["price"] if line["price"] is not None else product.price
            price = quantize(price)
            total = OrderCalculationService.calculate_item_total(
                price, line["quantity"], line["discount"]
            )
            priced_lines.append({**line, "price": price, "total": total})

        totals = OrderCalculationService.calculate_totals(
            [line["total"] for line in priced_lines]
        )

        order = Order(
            status=Order.OrderStatus.PENDING,
            payment_method=payment_method,
            subtotal=totals["subtotal"],
            tax=totals["tax"],
            total=totals["total"],
            created_by=user if user is not None and user.is_authenticated else None,
            **details,
        )
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=line["product_id"],
                    quantity=line["quantity"],
                    price=line["price"],
                    discount=line["discount"],
                    total=line["total"],
                )
                for line in priced_lines
            ]
        )

        InventoryService.reserve_order_inventory(order, user=user)

        transaction.on_commit(
            lambda: order_created.send(sender=Order, order=order), robust=True
        )
        return order

    @staticmethod
    def _lock_order(order_id) -> Order:
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound(f"Order {order_id} not found")

    @staticmethod
    @wrap_storage_errors
    @transaction.atomic
    def update_status(order_id, new_status, user=None) -> Order:
        """
        Move an order to ``new_status``.

        Cancelling returns every item's stock once. The order row is locked for
        the whole transition, so a second cancellation waits, then sees
        CANCELLED and does nothing. Re-applying the current status is a no-op.
        """
        if new_status not in Order.OrderStatus.values:
            raise ValidationError(f"'{new_status}' is not a valid order status.")

        order = OrderService._lock_order(order_id)
        previous_status = order.status

        if new_status == previous_status:
            logger.info(f"Order {order.order_number} already {new_status}, nothing to do")
            return Order.objects.with_details().get(pk=order.pk)

        if new_status not in OrderService.VALID_STATUS_TRANSITIONS.get(previous_status, []):
            logger.warning(
                f"Rejected transition for order {order.order_number}: {previous_status} -> {new_status}"
            )
            raise InvalidStatusTransition(previous_status, new_status)

        if new_status == Order.OrderStatus.CANCELLED:
            InventoryService.restore_order_inventory(order, user=user)

        update_fields = ["status", "updated_at"]
        order.status = new_status
        if new_status == Order.OrderStatus.COMPLETED:
            order.completed_at = timezone.now()
            update_fields.append("completed_at")
        order.save(update_fields=update_fields)

        actor = user if user is not None and user.is_authenticated else None
        transaction.on_commit(
            lambda: order_status_changed.send(
                sender=Order, order=order, previous_status=previous_status, user=actor
            ),
            robust=True,
        )

        logger.info(f"Order {order.order_number}: {previous_status} -> {new_status}")
        return Order.objects.with_details().get(pk=order.pk)

    @staticmethod
    def cancel_order(order_id, user=None) -> Order:
        return OrderService.update_status(order_id, Order.OrderStatus.CANCELLED, user=user)

    @staticmethod
    def complete_order(order_id, user=None) -> Order:
        return OrderService.update_status(order_id, Order.OrderStatus.COMPLETED, user=user)

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return Order.objects.with_details().get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound(f"Order {order_id} not found")

    @staticmethod
    def get_order_by_number(order_number) -> Order:
        # Malformed numbers are a client error, not a missing order
        OrderNumberService.parse(order_number)
        return Order.objects.get_by_number(order_number)

    @staticmethod
    def list_orders(status=None, date_from=None, date_to=None, search=None, limit=None, offset=0) -> dict:
        filters = {
            "status": status,
            "date_from": date_from,
            "date_to": date_to,
            "search": search,
        }
        return Order.objects.list_orders(filters, limit=limit, offset=offset)

    @staticmethod
    def get_order_statistics(date_from=None, date_to=None) -> dict:
        """
        Sales figures for a date range. Cancelled orders count towards
        ``by_status`` only.
        """
        in_range = Order.objects.created_between(date_from, date_to)
        sold = in_range.exclude(status=Order.OrderStatus.CANCELLED)

        aggregates = sold.aggregate(
            order_count=Count("id"),
            revenue=Sum("total"),
            subtotal=Sum("subtotal"),
            tax=Sum("tax"),
        )
        order_count = aggregates["order_count"] or 0
        revenue = quantize(aggregates["revenue"] or 0)
        average = quantize(revenue / order_count) if order_count else Decimal("0.00")

        by_status = {status: 0 for status in Order.OrderStatus.values}
        for row in in_range.order_by().values("status").annotate(count=Count("id")):
            by_status[row["status"]] = row["count"]

        by_payment_method = [
            {
                "payment_method": row["payment_method"],
                "count": row["count"],
                "revenue": quantize(row["revenue"] or 0),
            }
            for row in sold.order_by()
            .values("payment_method")
            .annotate(count=Count("id"), revenue=Sum("total"))
            .order_by("payment_method")
        ]

        top_products = [
            {
                "product_id": row["product_id"],
                "name": row["product__name"],
                "quantity": row["quantity"],
                "revenue": quantize(row["revenue"] or 0),
            }
            for row in OrderItem.objects.filter(order__in=sold)
            .values("product_id", "product__name")
            .annotate(quantity=Sum("quantity"), revenue=Sum("total"))
            .order_by("-quantity", "product__name")[:10]
        ]

        return {
            "order_count": order_count,
            "revenue": revenue,
            "subtotal": quantize(aggregates["subtotal"] or 0),
            "tax": quantize(aggregates["tax"] or 0),
            "average_order_value": average,
            "by_status": by_status,
            "by_payment_method": by_payment_method,
            "top_products": top_products,
        }
