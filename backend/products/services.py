import logging

from core_backend.config import app_settings
from core_backend.exceptions import NotFound
from core_backend.infrastructure.cache_utils import (
    cache_key,
    simple_cache,
    invalidate_cache_keys,
    invalidate_on_commit,
)
from .models import Product

logger = logging.getLogger(__name__)


def product_cache_key(product_id):
    return cache_key("products", "product", product_id)


def active_catalog_cache_key():
    return cache_key("products", "catalog", "active")


def _catalog_timeout():
    return app_settings.catalog_cache_timeout


class ProductService:
    """
    Cached, read-only catalog lookups. Stock changes go through
    ``inventory.services.InventoryService``, which invalidates these keys.
    """

    @staticmethod
    @simple_cache(key_func=product_cache_key, timeout=_catalog_timeout)
    def get_cached_product(product_id):
        """
        Product by id through the cache. Returns None if it does not exist.
        """
        return Product.objects.filter(pk=product_id).first()

    @staticmethod
    @simple_cache(key_func=active_catalog_cache_key, timeout=_catalog_timeout)
    def get_active_catalog():
        return list(Product.objects.active().order_by("name"))

    @staticmethod
    def get_product(product_id):
        product = ProductService.get_cached_product(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    @staticmethod
    def invalidate_product_cache(*product_ids, on_commit=True):
        """
        Drop cached entries for the given products and the active catalog.
        With ``on_commit`` the keys are deleted again once the transaction commits.
        """
        keys = [product_cache_key(pid) for pid in product_ids]
        keys.append(active_catalog_cache_key())
        if on_commit:
            invalidate_on_commit(*keys)
        else:
            invalidate_cache_keys(*keys)
        logger.info(f"Invalidated catalog cache for products {list(product_ids)}")
