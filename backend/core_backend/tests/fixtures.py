"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users, API clients, products and orders.
"""
import pytest
from decimal import Decimal

from django.contrib.auth import get_user_model

from products.models import Product


User = get_user_model()


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def cashier_user(db):
    """Create a regular POS user"""
    return User.objects.create_user(
        username="cashier",
        email="cashier@example.com",
        password="password123",
    )


@pytest.fixture
def staff_user(db):
    """Create a staff user (receives low stock alerts)"""
    return User.objects.create_user(
        username="manager",
        email="manager@example.com",
        password="password123",
        is_staff=True,
    )


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/health/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, cashier_user):
    """
    API client authenticated as ``cashier_user``.

    Usage:
        def test_list_orders(authenticated_client):
            response = authenticated_client.get('/api/orders/')
    """
    api_client.force_authenticate(user=cashier_user)
    return api_client


@pytest.fixture
def jwt_client(api_client, cashier_user):
    """API client sending a real SimpleJWT bearer token."""
    from rest_framework_simplejwt.tokens import RefreshToken

    refresh = RefreshToken.for_user(cashier_user)
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return api_client


# ============================================================================
# PRODUCT FIXTURES
# ============================================================================

@pytest.fixture
def product_factory(db):
    """
    Factory for catalog products.

    Usage:
        def test_something(product_factory):
            burger = product_factory(name="Burger", price="8.50", stock=5)
    """
    counter = {"n": 0}

    def create(name=None, price="10.00", stock=10, min_stock=0, is_active=True, barcode=None):
        counter["n"] += 1
        return Product.objects.create(
            name=name or f"Product {counter['n']}",
            price=Decimal(str(price)),
            stock=stock,
            min_stock=min_stock,
            is_active=is_active,
            barcode=barcode,
        )

    return create


@pytest.fixture
def burger(product_factory):
    return product_factory(name="Burger", price="8.50", stock=20, min_stock=2)


@pytest.fixture
def fries(product_factory):
    return product_factory(name="Fries", price="3.25", stock=50, min_stock=5)


@pytest.fixture
def soda(product_factory):
    return product_factory(name="Soda", price="2.00", stock=3, min_stock=1)


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def order_factory(cashier_user):
    """
    Factory that places orders through OrderService, so stock and the
    ledger are updated exactly as in production.
    """
    from orders.services import OrderService

    def create(*lines, payment_method="CASH", user=cashier_user, **details):
        items = [
            {"product_id": product.id, "quantity": quantity}
            for product, quantity in lines
        ]
        return OrderService.create_order(items, payment_method, user=user, **details)

    return create


@pytest.fixture
def pending_order(order_factory, burger, fries):
    return order_factory((burger, 2), (fries, 1), table_number="4")


# ============================================================================
# CELERY FIXTURES
# ============================================================================


@pytest.fixture
def celery_eager():
    """Run tasks in-process on .delay(), propagating their exceptions."""
    from core_backend.celery import app

    # The app loads settings with namespace="CELERY", so its keys carry the prefix.
    previous = (app.conf.CELERY_TASK_ALWAYS_EAGER, app.conf.CELERY_TASK_EAGER_PROPAGATES)
    app.conf.CELERY_TASK_ALWAYS_EAGER = True
    app.conf.CELERY_TASK_EAGER_PROPAGATES = True
    yield app
    app.conf.CELERY_TASK_ALWAYS_EAGER, app.conf.CELERY_TASK_EAGER_PROPAGATES = previous
