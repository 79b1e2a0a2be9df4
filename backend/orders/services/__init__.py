"""
Orders services package.

- OrderService: order lifecycle (create, status transitions, reads, statistics)
- OrderCalculationService: line totals, subtotal, tax and grand total
- OrderNumberService: day-scoped order numbers
"""

# Core order operations
from .order_service import OrderService

# Calculation operations
from .calculation_service import OrderCalculationService

# Order numbering
from .numbering_service import OrderNumberService

__all__ = [
    'OrderService',
    'OrderCalculationService',
    'OrderNumberService',
]
