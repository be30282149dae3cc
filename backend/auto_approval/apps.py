from django.apps import AppConfig


class AutoApprovalConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'auto_approval'
    verbose_name = 'Auto-approval rules'
