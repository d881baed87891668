"""Celery setup for EventHub."""

import os

from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("eventhub")

# namespace='CELERY' means all celery-related configuration keys
# should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules (events.tasks) from all registered Django apps.
app.autodiscover_tasks()

# run:
# celery -A config worker -l INFO
