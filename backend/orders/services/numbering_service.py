import logging
import re
from datetime import datetime

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from core_backend.config import app_settings
from core_backend.exceptions import ValidationError

logger = logging.getLogger(__name__)


class OrderNumberService:
    """
    Day-scoped order numbers of the form ``ORD-YYYYMMDD-NNNN``.

    Each day has one OrderNumberSequence row. ``next()`` increments it under a
    row lock inside the caller's transaction, so concurrent callers never see
    the same value and a rolled-back order gives its number back.
    """

    @staticmethod
    def format(on_date, sequence) -> str:
        prefix = app_settings.order_number_prefix
        width = app_settings.order_number_width
        # Past 10**width - 1 the sequence simply gets wider.
        return f"{prefix}-{on_date:%Y%m%d}-{sequence:0{width}d}"

    @staticmethod
    def parse(order_number):
        """
        Split an order number into ``(date, sequence)``.
        Raises ValidationError if it is not in the configured format.
        """
        prefix = re.escape(app_settings.order_number_prefix)
        width = app_settings.order_number_width
        match = re.fullmatch(rf"{prefix}-(\d{{8}})-(\d{{{width},}})", order_number or "")
        if not match:
            raise ValidationError(f"Invalid order number: {order_number!r}")
        try:
            on_date = datetime.strptime(match.group(1), "%Y%m%d").date()
        except ValueError:
            raise ValidationError(f"Invalid date in order number: {order_number!r}")
        return on_date, int(match.group(2))

    @staticmethod
    def _ensure_sequence(on_date):
        from orders.models import OrderNumberSequence

        if OrderNumberSequence.objects.filter(date=on_date).exists():
            return
        try:
            with transaction.atomic():
                OrderNumberSequence.objects.get_or_create(date=on_date)
        except IntegrityError:
            # Another caller created today's row first; it is there now.
            logger.debug(f"Order number sequence for {on_date} created concurrently")

    @staticmethod
    @transaction.atomic
    def next(on_date=None) -> str:
        from orders.models import OrderNumberSequence

        on_date = on_date or timezone.localdate()
        OrderNumberService._ensure_sequence(on_date)

        sequence = OrderNumberSequence.objects.select_for_update().get(date=on_date)
        OrderNumberSequence.objects.filter(pk=sequence.pk).update(last_value=F("last_value") + 1)
        sequence.refresh_from_db(fields=["last_value"])

        order_number = OrderNumberService.format(on_date, sequence.last_value)
        logger.debug(f"Issued order number {order_number}")
        return order_number
