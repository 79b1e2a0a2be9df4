from django.dispatch import receiver
import logging

from orders.models import Order
from orders.signals import order_created, order_status_changed
from .publishers import KitchenEventPublisher

logger = logging.getLogger(__name__)


@receiver(order_created)
def handle_order_created(sender, order, **kwargs):
    """Tell the kitchen about a new order."""
    # Re-read with items and products; the sender's instance has no prefetch
    order = Order.objects.with_details().get(pk=order.pk)
    KitchenEventPublisher.order_created(order)


@receiver(order_status_changed)
def handle_order_status_changed(sender, order, previous_status, **kwargs):
    order = Order.objects.with_details().get(pk=order.pk)
    KitchenEventPublisher.order_status_changed(order, previous_status)
