"""
Stock ledger tests.

Every stock mutation must change Product.stock and append exactly one
StockMovement whose arithmetic reconciles, or do neither.
"""
import pytest
from unittest.mock import patch
from django.core import mail
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status

from core_backend.exceptions import (
    InsufficientStock,
    InternalError,
    NotFound,
    ValidationError,
)
from inventory.models import StockMovement
from inventory.services import InventoryService
from inventory.tasks import send_low_stock_alert


@pytest.mark.django_db
class TestReserve:
    def test_reserve_decrements_and_records_sale(self, burger, cashier_user):
        product = InventoryService.reserve(burger.id, 5, user=cashier_user, reason="Walk-in")

        assert product.stock == 15
        movement = StockMovement.objects.get(product=burger)
        assert movement.movement_type == StockMovement.MovementType.SALE
        assert movement.quantity == -5
        assert (movement.previous_stock, movement.new_stock) == (20, 15)
        assert movement.user == cashier_user
        assert movement.reason == "Walk-in"

    def test_reserve_exact_remaining_stock(self, soda):
        assert InventoryService.reserve(soda.id, 3).stock == 0

    def test_insufficient_stock_changes_nothing(self, soda):
        with pytest.raises(InsufficientStock) as excinfo:
            InventoryService.reserve(soda.id, 4)

        assert excinfo.value.available == 3
        assert "Insufficient stock for Soda. Available: 3" in str(excinfo.value)
        soda.refresh_from_db()
        assert soda.stock == 3
        assert not StockMovement.objects.exists()

    def test_inactive_product_is_rejected(self, product_factory):
        product = product_factory(stock=10, is_active=False)
        with pytest.raises(ValidationError):
            InventoryService.reserve(product.id, 1)

    def test_unknown_product(self, db):
        with pytest.raises(NotFound):
            InventoryService.reserve(999999, 1)

    @pytest.mark.parametrize("quantity", [0, -2, 1.5, True])
    def test_quantity_must_be_positive_integer(self, burger, quantity):
        with pytest.raises(ValidationError):
            InventoryService.reserve(burger.id, quantity)
        burger.refresh_from_db()
        assert burger.stock == 20

    def test_availability_check_is_advisory(self, soda):
        assert InventoryService.check_availability(soda.id, 3) is True
        assert InventoryService.check_availability(soda.id, 4) is False


@pytest.mark.django_db
class TestRestoreAndAdjust:
    def test_restore_records_return(self, soda):
        InventoryService.reserve(soda.id, 2)
        product = InventoryService.restore(soda.id, 2, reason="Undo")

        assert product.stock == 3
        ret = StockMovement.objects.get(movement_type=StockMovement.MovementType.RETURN)
        assert (ret.previous_stock, ret.new_stock, ret.quantity) == (1, 3, 2)

    def test_adjust_add(self, soda):
        assert InventoryService.adjust(soda.id, 7, "add").stock == 10

    def test_adjust_subtract_clamps_at_zero(self, soda):
        product = InventoryService.adjust(soda.id, 10, "subtract")

        assert product.stock == 0
        movement = StockMovement.objects.get(product=soda)
        assert movement.movement_type == StockMovement.MovementType.MANUAL_SUBTRACT
        assert movement.quantity == -3
        assert movement.new_stock == movement.previous_stock + movement.quantity

    def test_adjust_set_records_signed_delta(self, burger):
        InventoryService.adjust(burger.id, 12, "set")
        InventoryService.adjust(burger.id, 30, "set")

        deltas = list(
            StockMovement.objects.filter(product=burger)
            .order_by("id")
            .values_list("quantity", flat=True)
        )
        assert deltas == [-8, 18]

    def test_adjust_unknown_mode(self, burger):
        with pytest.raises(ValidationError):
            InventoryService.adjust(burger.id, 1, "multiply")


@pytest.mark.django_db
class TestLedgerIsAppendOnly:
    def test_movement_cannot_be_updated(self, burger):
        InventoryService.reserve(burger.id, 1)
        movement = StockMovement.objects.get()
        movement.reason = "rewritten"
        with pytest.raises(DjangoValidationError):
            movement.save()

    def test_movement_cannot_be_deleted(self, burger):
        InventoryService.reserve(burger.id, 1)
        with pytest.raises(DjangoValidationError):
            StockMovement.objects.get().delete()
        with pytest.raises(DjangoValidationError):
            StockMovement.objects.all().delete()

    def test_inconsistent_arithmetic_is_rejected(self, burger):
        with pytest.raises(DjangoValidationError):
            StockMovement.objects.create(
                product=burger,
                movement_type=StockMovement.MovementType.SALE,
                quantity=-2,
                previous_stock=20,
                new_stock=19,
            )

    def test_storage_failure_rolls_back_stock(self, burger):
        with patch.object(
            InventoryService, "_log_stock_operation", side_effect=DatabaseError("disk full")
        ):
            with pytest.raises(InternalError):
                InventoryService.reserve(burger.id, 5)

        burger.refresh_from_db()
        assert burger.stock == 20
        assert not StockMovement.objects.exists()


@pytest.mark.django_db
class TestLowStockAlert:
    def test_alert_queued_when_threshold_crossed(self, burger, django_capture_on_commit_callbacks):
        with patch("inventory.tasks.send_low_stock_alert.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                InventoryService.reserve(burger.id, 18)

        delay.assert_called_once_with(burger.id)

    def test_no_alert_once_already_below_threshold(self, burger, django_capture_on_commit_callbacks):
        InventoryService.adjust(burger.id, 1, "set")
        with patch("inventory.tasks.send_low_stock_alert.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                InventoryService.reserve(burger.id, 1)

        delay.assert_not_called()

    def test_queue_failure_is_logged_not_raised(self, burger, django_capture_on_commit_callbacks, caplog):
        with patch(
            "inventory.tasks.send_low_stock_alert.delay", side_effect=ConnectionError("broker down")
        ):
            with django_capture_on_commit_callbacks(execute=True):
                product = InventoryService.reserve(burger.id, 18)

        assert product.stock == 2
        assert "Could not queue low stock alert" in caplog.text

    def test_task_emails_staff(self, burger, staff_user):
        InventoryService.adjust(burger.id, 1, "set")

        result = send_low_stock_alert.apply(args=[burger.id]).get()

        assert result["status"] == "sent"
        assert result["recipients"] == 1
        assert len(mail.outbox) == 1
        assert "Burger" in mail.outbox[0].subject

    def test_task_skips_restocked_product(self, burger, staff_user):
        result = send_low_stock_alert.apply(args=[burger.id]).get()

        assert result["status"] == "skipped"
        assert mail.outbox == []


@pytest.mark.django_db(transaction=True)
class TestAlertFailureAfterCommit:
    def test_failing_alert_does_not_fail_committed_checkout(
        self, product_factory, staff_user, celery_eager
    ):
        from orders.models import Order
        from orders.services import OrderService

        bagel = product_factory(name="Bagel", stock=5, min_stock=3)

        with patch(
            "inventory.tasks.send_mail", side_effect=ConnectionRefusedError(111, "Connection refused")
        ) as send, patch(
            "kds.events.publishers.KitchenEventPublisher.order_created"
        ) as published:
            order = OrderService.create_order(
                [{"product_id": bagel.id, "quantity": 3}], "CASH"
            )

        assert send.called
        assert order.status == Order.OrderStatus.PENDING
        published.assert_called_once()
        bagel.refresh_from_db()
        assert bagel.stock == 2
        assert Order.objects.count() == 1


@pytest.mark.django_db
class TestMovementAPI:
    def test_filter_by_product_and_type(self, authenticated_client, burger, fries):
        InventoryService.reserve(burger.id, 1)
        InventoryService.reserve(fries.id, 1)
        InventoryService.adjust(burger.id, 5, "add")

        response = authenticated_client.get(
            "/api/inventory/movements/", {"product": burger.id, "type": "SALE"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["total"] == 1
        row = response.data["results"][0]
        assert row["productName"] == "Burger"
        assert row["type"] == "SALE"
        assert row["quantity"] == -1
        assert (row["previousStock"], row["newStock"]) == (20, 19)

    def test_filter_by_order(self, authenticated_client, pending_order, soda):
        InventoryService.reserve(soda.id, 1)

        response = authenticated_client.get(
            "/api/inventory/movements/", {"order": str(pending_order.id)}
        )

        assert response.data["total"] == 2
        assert {row["orderId"] for row in response.data["results"]} == {str(pending_order.id)}

    def test_movements_are_read_only(self, authenticated_client, burger):
        response = authenticated_client.post(
            "/api/inventory/movements/", {"product": burger.id}, format="json"
        )
        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
