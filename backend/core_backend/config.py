"""
Centralized access to point-of-sale configuration using the Singleton pattern.

Business logic reads tax rate, order number format, page sizes and cache
timeouts through ``app_settings`` instead of touching ``django.conf.settings``
directly, so tests can override a value and call ``reload()``.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Any
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


DEFAULTS = {
    "POS_TAX_RATE": Decimal("0.10"),
    "POS_ORDER_NUMBER_PREFIX": "ORD",
    "POS_ORDER_NUMBER_WIDTH": 4,
    "POS_DEFAULT_PAGE_SIZE": 20,
    "POS_MAX_PAGE_SIZE": 100,
    "POS_CATALOG_CACHE_TIMEOUT": 300,
    "POS_KITCHEN_GROUP": "kitchen",
}


class AppSettings:
    """
    A LAZY singleton that exposes the POS_* settings as typed attributes.
    Loading is deferred until the first attribute access so importing this
    module never requires configured settings.
    """

    _instance: Optional["AppSettings"] = None
    _initialized: bool = False

    def __new__(cls) -> "AppSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        pass

    def _setup(self):
        if not self._initialized:
            self.load_settings()
            self._initialized = True

    def __getattr__(self, name: str) -> Any:
        """
        Lazily loads settings on first access, then retrieves the attribute.
        """
        if not self._initialized:
            self._setup()

        try:
            return self.__dict__[name]
        except KeyError:
            raise AttributeError(f"'AppSettings' object has no attribute '{name}'")

    def _get(self, key: str) -> Any:
        return getattr(settings, key, DEFAULTS[key])

    def load_settings(self) -> None:
        """
        Read and validate the POS_* values from Django settings.
        """
        try:
            tax_rate = Decimal(str(self._get("POS_TAX_RATE")))
        except (InvalidOperation, TypeError, ValueError):
            raise ImproperlyConfigured("POS_TAX_RATE must be a decimal value")

        if tax_rate < 0 or tax_rate > 1:
            raise ImproperlyConfigured(
                f"POS_TAX_RATE must be between 0 and 1, got {tax_rate}"
            )

        width = int(self._get("POS_ORDER_NUMBER_WIDTH"))
        if width < 1:
            raise ImproperlyConfigured("POS_ORDER_NUMBER_WIDTH must be at least 1")

        default_page_size = int(self._get("POS_DEFAULT_PAGE_SIZE"))
        max_page_size = int(self._get("POS_MAX_PAGE_SIZE"))
        if default_page_size < 1 or max_page_size < default_page_size:
            raise ImproperlyConfigured(
                "POS_DEFAULT_PAGE_SIZE must be positive and not exceed POS_MAX_PAGE_SIZE"
            )

        # === ORDER TOTALS ===
        self.tax_rate: Decimal = tax_rate

        # === ORDER NUMBERING ===
        self.order_number_prefix: str = str(self._get("POS_ORDER_NUMBER_PREFIX"))
        self.order_number_width: int = width

        # === LISTING ===
        self.default_page_size: int = default_page_size
        self.max_page_size: int = max_page_size

        # === CATALOG CACHE ===
        self.catalog_cache_timeout: int = int(self._get("POS_CATALOG_CACHE_TIMEOUT"))

        # === KITCHEN DISPLAY ===
        self.kitchen_group: str = str(self._get("POS_KITCHEN_GROUP"))

    def reload(self) -> None:
        """
        Re-read settings, e.g. after a test overrides a POS_* value.
        """
        self.load_settings()
        self._initialized = True
        logger.info("AppSettings reloaded")

    def get_numbering_config(self) -> dict:
        return {
            "prefix": self.order_number_prefix,
            "width": self.order_number_width,
        }


app_settings = AppSettings()
