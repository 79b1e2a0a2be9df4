"""
Product catalog tests.

Covers cached catalog reads, cache invalidation on stock changes and the
product API (list, detail, low-stock, adjust-stock).
"""
import pytest
from decimal import Decimal
from django.core.cache import cache
from django.db import IntegrityError, transaction
from rest_framework import status

from core_backend.exceptions import NotFound
from inventory.models import StockMovement
from inventory.services import InventoryService
from products.models import Product
from products.services import ProductService, product_cache_key


@pytest.mark.django_db
class TestProductModel:
    def test_low_stock_flag(self, product_factory):
        assert product_factory(stock=2, min_stock=2).is_low_stock is True
        assert product_factory(stock=3, min_stock=2).is_low_stock is False

    def test_low_stock_queryset_excludes_inactive_and_sorts_by_stock(self, product_factory):
        a = product_factory(name="A", stock=1, min_stock=5)
        b = product_factory(name="B", stock=0, min_stock=5)
        product_factory(name="C", stock=1, min_stock=5, is_active=False)
        product_factory(name="D", stock=10, min_stock=5)

        assert list(Product.objects.low_stock()) == [b, a]

    def test_stock_cannot_be_negative_in_database(self, product_factory):
        product = product_factory(stock=1)
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Product.objects.filter(pk=product.pk).update(stock=-1)


@pytest.mark.django_db
class TestProductService:
    def test_get_product_is_cached(self, burger, django_assert_num_queries):
        ProductService.get_product(burger.id)
        with django_assert_num_queries(0):
            cached = ProductService.get_product(burger.id)
        assert cached.name == "Burger"

    def test_missing_product_raises_not_found(self, db):
        with pytest.raises(NotFound):
            ProductService.get_product(999999)

    def test_stock_change_invalidates_cached_product(self, burger):
        assert ProductService.get_product(burger.id).stock == 20

        InventoryService.reserve(burger.id, 3)

        assert cache.get(product_cache_key(burger.id)) is None
        assert ProductService.get_product(burger.id).stock == 17

    def test_active_catalog_skips_inactive_products(self, product_factory):
        product_factory(name="Visible")
        product_factory(name="Hidden", is_active=False)

        names = [p.name for p in ProductService.get_active_catalog()]
        assert names == ["Visible"]

    def test_saving_a_product_refreshes_catalog(self, product_factory):
        product = product_factory(name="Old name")
        ProductService.get_product(product.id)

        product.name = "New name"
        product.save()

        assert ProductService.get_product(product.id).name == "New name"


@pytest.mark.django_db
class TestProductAPI:
    def test_requires_authentication(self, api_client, burger):
        response = api_client.get("/api/products/")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["code"] == "NOT_AUTHENTICATED"

    def test_list_is_paginated_with_has_more(self, authenticated_client, product_factory):
        for i in range(3):
            product_factory(name=f"Item {i}")

        response = authenticated_client.get("/api/products/", {"limit": 2})

        assert response.status_code == status.HTTP_200_OK
        assert response.data["total"] == 3
        assert response.data["hasMore"] is True
        assert len(response.data["results"]) == 2

    def test_detail_uses_camel_case(self, authenticated_client, burger):
        response = authenticated_client.get(f"/api/products/{burger.id}/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Burger"
        assert response.data["price"] == "8.50"
        assert response.data["minStock"] == 2
        assert response.data["isLowStock"] is False

    def test_unknown_product_returns_not_found_envelope(self, authenticated_client, db):
        response = authenticated_client.get("/api/products/424242/")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["code"] == "NOT_FOUND"
        assert "correlation_id" in response.data

    def test_low_stock_endpoint(self, authenticated_client, product_factory):
        product_factory(name="Plenty", stock=50, min_stock=5)
        low = product_factory(name="Scarce", stock=1, min_stock=5)

        response = authenticated_client.get("/api/products/low-stock/")

        assert response.status_code == status.HTTP_200_OK
        assert [p["id"] for p in response.data] == [low.id]

    def test_low_stock_filter(self, authenticated_client, product_factory):
        product_factory(name="Plenty", stock=50, min_stock=5)
        product_factory(name="Scarce", stock=1, min_stock=5)

        response = authenticated_client.get("/api/products/", {"low_stock": "true"})

        assert [p["name"] for p in response.data["results"]] == ["Scarce"]

    def test_adjust_stock_records_movement(self, authenticated_client, cashier_user, burger):
        response = authenticated_client.post(
            f"/api/products/{burger.id}/adjust-stock/",
            {"quantity": 5, "mode": "add", "reason": "Delivery"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["stock"] == 25

        movement = StockMovement.objects.get(product=burger)
        assert movement.movement_type == StockMovement.MovementType.MANUAL_ADD
        assert movement.quantity == 5
        assert movement.reason == "Delivery"
        assert movement.user == cashier_user

    def test_adjust_stock_rejects_unknown_mode(self, authenticated_client, burger):
        response = authenticated_client.post(
            f"/api/products/{burger.id}/adjust-stock/",
            {"quantity": 5, "mode": "double"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["code"] == "VALIDATION_ERROR"
        assert "mode" in response.data["errors"]
        burger.refresh_from_db()
        assert burger.stock == 20

    def test_products_are_read_only(self, authenticated_client, burger):
        response = authenticated_client.patch(
            f"/api/products/{burger.id}/", {"stock": 999}, format="json"
        )
        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        burger.refresh_from_db()
        assert burger.stock == 20
        assert burger.price == Decimal("8.50")
