from django.apps import AppConfig


class BillingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'billing'

    def ready(self):
        # Default plans are seeded by migration 0002; signals start trials
        from billing import signals  # noqa: F401
