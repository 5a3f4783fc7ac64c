"""
Celery application.
Notification delivery and the periodic reminder sweep run here.
In dev, tasks run synchronously via CELERY_TASK_ALWAYS_EAGER.
"""

import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "freightlink.settings_dev")

app = Celery("freightlink")
app.config_from_object("django.conf:settings", namespace="CELERY")

app.conf.beat_schedule = {
    "scheduled-reminders-hourly": {
        "task": "apps.notifications.tasks.send_scheduled_reminders",
        "schedule": crontab(minute=0),
    },
}

app.autodiscover_tasks()
