from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """
        Validate the POS_* settings at startup so a bad tax rate or page size
        fails the deploy instead of the first order.
        """
        from .config import app_settings

        app_settings.reload()
        logger.debug(f"Order numbering: {app_settings.get_numbering_config()}")
