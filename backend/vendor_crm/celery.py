import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for 'celery'
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'vendor_crm.settings')

app = Celery('vendor_crm')

# Load settings from Django config, using the CELERY_ prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "expire-subscriptions-daily": {
        "task": "billing.tasks.expire_subscriptions_task",
        "schedule": crontab(hour=0, minute=5),
    },
    "notify-expiring-subscriptions-daily": {
        "task": "billing.tasks.notify_expiring_subscriptions_task",
        "schedule": crontab(hour=8, minute=0),
    },
}
