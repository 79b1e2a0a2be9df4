"""
Concurrent Access Tests

Tests for race conditions that could cause:
- Inventory overselling
- Duplicate order numbers
- Double stock restoration on cancellation

These tests use threading to simulate simultaneous tills. SQLite queues
writers on BEGIN IMMEDIATE with a generous timeout, so every request either
fits and succeeds or loses to the stock guard.
"""
import pytest
from decimal import Decimal
from threading import Thread, Barrier

from django.db import connection

from core_backend.exceptions import BusinessRuleViolation, InsufficientStock, InternalError
from inventory.models import StockMovement
from inventory.services import InventoryService
from orders.models import Order
from orders.services import OrderService
from products.models import Product


def run_concurrently(count, target):
    """Run ``target(thread_id)`` in ``count`` threads released together."""
    barrier = Barrier(count)
    results = []
    errors = []

    def worker(thread_id):
        try:
            barrier.wait()
            results.append(target(thread_id))
        except (BusinessRuleViolation, InternalError) as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


@pytest.mark.django_db(transaction=True)
class TestConcurrentStockReservation:
    def test_concurrent_reservations_never_oversell(self):
        """
        Product has 10 units; 3 tills try to take 4 each. Exactly two
        succeed and the third loses to the stock guard.
        """
        product = Product.objects.create(name="Latte", price=Decimal("4.00"), stock=10)

        results, errors = run_concurrently(
            3, lambda i: InventoryService.reserve(product.id, 4, reason=f"till_{i}")
        )

        product.refresh_from_db()
        sales = StockMovement.objects.filter(product=product)
        assert len(results) == 2
        assert len(errors) == 1
        assert isinstance(errors[0], InsufficientStock)
        assert product.stock == 2
        assert sales.count() == 2

    def test_concurrent_orders_never_oversell(self):
        product = Product.objects.create(name="Bagel", price=Decimal("2.50"), stock=5)

        results, errors = run_concurrently(
            4,
            lambda i: OrderService.create_order(
                [{"product_id": product.id, "quantity": 2}], "CASH"
            ),
        )

        product.refresh_from_db()
        assert len(results) == 2
        assert len(errors) == 2
        assert all(isinstance(e, InsufficientStock) for e in errors)
        assert product.stock == 1
        assert Order.objects.count() == 2
        assert StockMovement.objects.count() == 2


@pytest.mark.django_db(transaction=True)
class TestConcurrentOrderNumbers:
    def test_concurrent_orders_get_unique_numbers(self):
        product = Product.objects.create(name="Tea", price=Decimal("2.00"), stock=100)

        results, errors = run_concurrently(
            5,
            lambda i: OrderService.create_order(
                [{"product_id": product.id, "quantity": 1}], "CASH"
            ).order_number,
        )

        assert len(results) == 5, f"Failed orders: {errors}"
        numbers = list(Order.objects.values_list("order_number", flat=True))
        assert sorted(numbers) == sorted(results)
        assert len(set(numbers)) == len(numbers)
        product.refresh_from_db()
        assert product.stock == 100 - len(results)


@pytest.mark.django_db(transaction=True)
class TestConcurrentCancellation:
    def test_concurrent_cancellations_restore_once(self):
        product = Product.objects.create(name="Scone", price=Decimal("3.00"), stock=10)
        order = OrderService.create_order([{"product_id": product.id, "quantity": 4}], "CASH")

        results, errors = run_concurrently(
            3, lambda i: OrderService.cancel_order(order.id).status
        )

        product.refresh_from_db()
        returns = StockMovement.objects.filter(
            order=order, movement_type=StockMovement.MovementType.RETURN
        )
        assert len(results) == 3, f"Failed cancellations: {errors}"
        assert set(results) == {"CANCELLED"}
        assert returns.count() == 1
        assert product.stock == 10
