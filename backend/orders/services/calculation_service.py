from decimal import Decimal, ROUND_HALF_UP
import logging

from core_backend.config import app_settings

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def quantize(amount) -> Decimal:
    """Round a money amount to cents, half up."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


class OrderCalculationService:
    """Service for calculating line totals, subtotal, tax and grand total."""

    @staticmethod
    def calculate_item_total(price, quantity, discount=Decimal("0")) -> Decimal:
        """
        price * quantity * (1 - discount / 100), rounded to cents.
        """
        price = Decimal(price)
        discount = Decimal(discount)
        gross = price * quantity
        return quantize(gross * (HUNDRED - discount) / HUNDRED)

    @staticmethod
    def calculate_totals(item_totals, tax_rate=None) -> dict:
        """
        Sum rounded line totals and apply the configured tax rate.

        The subtotal is the exact sum of the already rounded lines, and the
        total is computed from the rounded subtotal and tax, so
        ``total == subtotal + tax`` and ``subtotal == sum(items)`` hold exactly.
        """
        if tax_rate is None:
            tax_rate = app_settings.tax_rate
        subtotal = sum((Decimal(t) for t in item_totals), Decimal("0.00"))
        subtotal = quantize(subtotal)
        tax = quantize(subtotal * Decimal(tax_rate))
        return {
            "subtotal": subtotal,
            "tax": tax,
            "total": subtotal + tax,
        }
