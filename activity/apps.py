from django.apps import AppConfig


class ActivityConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "activity"
    verbose_name = "Member activity"

    def ready(self):
        # Reconcile members as their payments and check-ins arrive
        from . import signals  # noqa: F401
