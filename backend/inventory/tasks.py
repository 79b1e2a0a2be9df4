from celery import shared_task
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_low_stock_alert(self, product_id):
    """
    Email staff users that a product dropped to or below its minimum stock.

    Queued by InventoryService after the stock change commits. Re-reads the
    product so the alert carries the committed level, and skips products that
    were restocked before the task ran.

    Args:
        product_id: id of the product that crossed its threshold

    Returns:
        dict: Status and details of the alert
    """
    from products.models import Product

    try:
        product = Product.objects.get(pk=product_id)
    except Product.DoesNotExist:
        logger.error(f"Product {product_id} not found for low stock alert")
        return {"status": "failed", "error": "Product not found", "product_id": product_id}

    if not product.is_low_stock:
        logger.info(f"Skipping low stock alert for {product.name}: restocked to {product.stock}")
        return {"status": "skipped", "reason": "restocked", "product_id": product_id}

    recipients = list(
        get_user_model()
        .objects.filter(is_staff=True, is_active=True)
        .exclude(email="")
        .values_list("email", flat=True)
    )
    if not recipients:
        logger.warning("No staff users with valid emails found for low stock notification")
        return {"status": "skipped", "reason": "no_recipients", "product_id": product_id}

    try:
        send_mail(
            subject=f"Low Stock Alert: {product.name}",
            message=(
                f"{product.name} is low on stock.\n"
                f"Current stock: {product.stock}\n"
                f"Minimum stock: {product.min_stock}\n"
            ),
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list=recipients,
            fail_silently=False,
        )
    except Exception as exc:
        logger.error(f"Failed to send low stock alert for product_id {product_id}: {type(exc).__name__}")
        raise self.retry(exc=exc)

    logger.info(f"Low stock alert sent to {len(recipients)} recipients for {product.name}")
    return {
        "status": "sent",
        "product_id": product_id,
        "stock": product.stock,
        "recipients": len(recipients),
    }
