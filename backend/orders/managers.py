from django.db import models
from django.db.models import Q

from core_backend.base.filters import normalize_datetime_value
from core_backend.config import app_settings
from core_backend.exceptions import NotFound, ValidationError


class OrderQuerySet(models.QuerySet):
    def with_details(self):
        """Items with their products and the creating user, for serialization."""
        return self.select_related("created_by").prefetch_related("items__product")

    def open(self):
        return self.filter(status__in=["PENDING", "PREPARING", "READY"])

    def by_status(self, status):
        if not status:
            return self
        valid = {choice for choice, _label in self.model.OrderStatus.choices}
        if status not in valid:
            raise ValidationError(
                f"'{status}' is not a valid order status. Expected one of: {', '.join(sorted(valid))}"
            )
        return self.filter(status=status)

    def created_between(self, date_from=None, date_to=None):
        """
        Date-only bounds cover the whole day: ``date_to="2024-05-01"`` includes
        orders created at 23:59 that day.
        """
        queryset = self
        if date_from:
            start = normalize_datetime_value(date_from, is_end=False)
            if isinstance(start, str):
                raise ValidationError(f"Invalid date_from: {date_from}")
            queryset = queryset.filter(created_at__gte=start)
        if date_to:
            end = normalize_datetime_value(date_to, is_end=True)
            if isinstance(end, str):
                raise ValidationError(f"Invalid date_to: {date_to}")
            queryset = queryset.filter(created_at__lte=end)
        return queryset

    def search(self, term):
        """Case-insensitive match on order number, customer name, phone or table."""
        term = (term or "").strip()
        if not term:
            return self
        return self.filter(
            Q(order_number__icontains=term)
            | Q(customer_name__icontains=term)
            | Q(customer_phone__icontains=term)
            | Q(table_number__iexact=term)
        )

    def apply_filters(self, filters=None):
        filters = filters or {}
        return (
            self.by_status(filters.get("status"))
            .created_between(filters.get("date_from"), filters.get("date_to"))
            .search(filters.get("search"))
        )


class OrderManager(models.Manager.from_queryset(OrderQuerySet)):
    def get_by_number(self, order_number):
        try:
            return self.get_queryset().with_details().get(order_number=order_number)
        except self.model.DoesNotExist:
            raise NotFound(f"Order {order_number} not found")

    def list_orders(self, filters=None, limit=None, offset=0):
        """
        Filtered, newest-first page of orders.

        Returns ``{"orders": [...], "total": int, "has_more": bool}`` where
        ``has_more`` is ``offset + len(orders) < total``.
        """
        if limit is None:
            limit = app_settings.default_page_size
        try:
            limit = int(limit)
            offset = int(offset or 0)
        except (TypeError, ValueError):
            raise ValidationError("limit and offset must be integers")
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset must not be negative")
        limit = min(limit, app_settings.max_page_size)

        queryset = self.get_queryset().apply_filters(filters).order_by("-created_at", "-order_number")
        total = queryset.count()
        orders = list(queryset.with_details()[offset:offset + limit])

        return {
            "orders": orders,
            "total": total,
            "has_more": offset + len(orders) < total,
        }
