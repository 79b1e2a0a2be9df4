import django_filters
from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_date
from datetime import datetime, time
import logging

logger = logging.getLogger(__name__)


def normalize_datetime_value(value, *, is_end=False):
    """
    Turn a date, datetime or ISO string into an aware datetime.

    A bare date stands for the whole day: its first instant, or its last one
    when ``is_end`` is set. Unparseable values are returned unchanged so the
    caller can reject them.
    """
    if not value:
        return value

    if isinstance(value, str):
        try:
            parsed = parse_date(value) or parse_datetime(value)
        except ValueError:
            # Well formed but impossible, e.g. 2024-02-30
            parsed = None
        if parsed is None:
            return value
        value = parsed

    if not isinstance(value, datetime) and hasattr(value, "year"):
        value = datetime.combine(value, time.max if is_end else time.min)

    if isinstance(value, datetime) and timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


class FlexibleDateTimeFilter(django_filters.DateTimeFilter):
    """
    A DateTimeFilter that treats a date-only value as a whole day.

    "2025-11-11" means 00:00:00 for gte/gt lookups and 23:59:59.999999 for
    lte/lt lookups. A full datetime is used exactly as given.
    """

    def filter(self, qs, value):
        if isinstance(value, datetime) and value.time() == time(0, 0, 0):
            if self.lookup_expr in ["lte", "lt"]:
                value = datetime.combine(value.date(), time.max)
                if timezone.is_naive(value):
                    value = timezone.make_aware(value)
                logger.debug(f"FlexibleDateTimeFilter: Adjusted {self.field_name}__{self.lookup_expr} to end of day: {value}")

        return super().filter(qs, value)


class BaseFilterSet(django_filters.FilterSet):
    """
    Base filter set for the project.

    DateTimeFields use FlexibleDateTimeFilter so date-only inputs work as
    full-day ranges.
    """

    @classmethod
    def filter_for_field(cls, field, field_name, lookup_expr="exact"):
        if isinstance(field, models.DateTimeField):
            return FlexibleDateTimeFilter(field_name=field_name, lookup_expr=lookup_expr)
        return super().filter_for_field(field, field_name, lookup_expr)

    class Meta:
        abstract = True
