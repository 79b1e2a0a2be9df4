from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from products.models import Product
from products.services import ProductService


@receiver(post_save, sender=Product)
@receiver(post_delete, sender=Product)
def invalidate_product_cache(sender, instance, **kwargs):
    """Catalog edits made outside InventoryService still refresh cached reads."""
    ProductService.invalidate_product_cache(instance.pk)
