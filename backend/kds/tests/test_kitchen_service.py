"""
Kitchen service and API tests: board, stateless toggle and bump.
"""
import pytest
from unittest.mock import patch
from rest_framework import status

from core_backend.exceptions import InvalidStatusTransition, NotFound
from inventory.models import StockMovement
from kds.projection import KitchenOrderStatus, KitchenPriority, project_order
from kds.serializers import KitchenOrderSerializer
from kds.services import KitchenService
from orders.models import Order
from orders.services import OrderService


@pytest.mark.django_db
class TestKitchenBoard:
    def test_board_groups_open_orders(self, order_factory, burger, fries):
        new = order_factory((burger, 1))
        preparing = order_factory((fries, 1))
        cancelled = order_factory((fries, 1))
        OrderService.update_status(preparing.id, "PREPARING")
        OrderService.cancel_order(cancelled.id)

        board = KitchenService.get_board()

        assert [o.id for o in board["NEW"]] == [str(new.id)]
        assert [o.id for o in board["IN_PROGRESS"]] == [str(preparing.id)]
        assert board["READY"] == []
        assert board["COMPLETED"] == []

    def test_completed_orders_leave_the_board(self, pending_order):
        KitchenService.bump(pending_order.id)

        board = KitchenService.get_board()
        assert all(not orders for orders in board.values())

    def test_priorities_reorder_a_bucket(self, order_factory, burger):
        first = order_factory((burger, 1))
        second = order_factory((burger, 1))

        board = KitchenService.get_board(priorities={str(second.id): KitchenPriority.RUSH})

        assert [o.id for o in board["NEW"]] == [str(second.id), str(first.id)]
        assert board["NEW"][0].priority == KitchenPriority.RUSH

    def test_toggle_unknown_item_is_not_found(self, pending_order):
        kitchen_order = project_order(OrderService.get_order(pending_order.id))
        with pytest.raises(NotFound):
            KitchenService.toggle_item(kitchen_order, 999999)


@pytest.mark.django_db
class TestBump:
    def test_bump_walks_pending_order_to_completed(self, pending_order, cashier_user):
        order = KitchenService.bump(pending_order.id, user=cashier_user)

        assert order.status == Order.OrderStatus.COMPLETED
        assert order.completed_at is not None

    def test_bump_from_ready(self, pending_order):
        OrderService.update_status(pending_order.id, "PREPARING")
        OrderService.update_status(pending_order.id, "READY")

        assert KitchenService.bump(pending_order.id).status == "COMPLETED"

    def test_bump_completed_order_is_a_no_op(self, pending_order):
        KitchenService.bump(pending_order.id)
        assert KitchenService.bump(pending_order.id).status == "COMPLETED"

    def test_bump_cancelled_order_is_rejected(self, pending_order, burger):
        OrderService.cancel_order(pending_order.id)

        with pytest.raises(InvalidStatusTransition):
            KitchenService.bump(pending_order.id)

        burger.refresh_from_db()
        assert burger.stock == 20

    def test_bump_is_all_or_nothing(self, pending_order):
        real_update = OrderService.update_status

        def fail_on_completion(order_id, new_status, user=None):
            if new_status == "COMPLETED":
                raise InvalidStatusTransition("READY", "COMPLETED")
            return real_update(order_id, new_status, user=user)

        with patch.object(OrderService, "update_status", side_effect=fail_on_completion):
            with pytest.raises(InvalidStatusTransition):
                KitchenService.bump(pending_order.id)

        pending_order.refresh_from_db()
        assert pending_order.status == "PENDING"

    def test_bump_does_not_touch_stock(self, pending_order):
        before = StockMovement.objects.count()
        KitchenService.bump(pending_order.id)
        assert StockMovement.objects.count() == before


@pytest.mark.django_db
class TestKitchenAPI:
    def test_board_endpoint(self, authenticated_client, pending_order):
        response = authenticated_client.get("/api/kitchen/board/", {"vip": str(pending_order.id)})

        assert response.status_code == status.HTTP_200_OK
        assert set(response.data) == {"NEW", "IN_PROGRESS", "READY", "COMPLETED"}
        card = response.data["NEW"][0]
        assert card["orderNumber"] == pending_order.order_number
        assert card["priority"] == "VIP"
        assert card["status"] == "NEW"
        assert [i["status"] for i in card["items"]] == ["PENDING", "PENDING"]

    def test_toggle_item_endpoint_is_stateless(self, authenticated_client, pending_order):
        kitchen_order = project_order(OrderService.get_order(pending_order.id))
        payload = KitchenOrderSerializer(kitchen_order).data
        item_id = payload["items"][0]["id"]

        response = authenticated_client.post(
            "/api/kitchen/toggle-item/", {"order": payload, "itemId": item_id}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == KitchenOrderStatus.IN_PROGRESS.value
        assert response.data["items"][0]["status"] == "PREPARING"
        pending_order.refresh_from_db()
        assert pending_order.status == "PENDING"

    def test_toggle_item_rejects_bad_payload(self, authenticated_client, db):
        response = authenticated_client.post(
            "/api/kitchen/toggle-item/", {"order": {"id": "x"}, "itemId": 1}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "VALIDATION_ERROR"
        assert "order" in response.data["meta"]["errors"]

    def test_bump_endpoint(self, authenticated_client, pending_order):
        response = authenticated_client.post(f"/api/kitchen/orders/{pending_order.id}/bump/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "COMPLETED"

    def test_bump_cancelled_order_is_422(self, authenticated_client, pending_order):
        OrderService.cancel_order(pending_order.id)

        response = authenticated_client.post(f"/api/kitchen/orders/{pending_order.id}/bump/")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.data["code"] == "INVALID_STATUS_TRANSITION"

    def test_kitchen_requires_authentication(self, api_client, db):
        assert api_client.get("/api/kitchen/board/").status_code == status.HTTP_401_UNAUTHORIZED
