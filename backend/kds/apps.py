from django.apps import AppConfig


class KdsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "kds"
    verbose_name = "Kitchen Display"

    def ready(self):
        # Connect the order signal receivers that feed the kitchen group
        import kds.events.handlers  # noqa: F401
