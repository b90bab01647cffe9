"""
Celery configuration for the Django application.

Celery runs the settlement work that should not block web requests:
- Settling a single payment (payments.tasks.settle_payment)
- Scheduled bulk settlement via celery-beat (payments.tasks.run_scheduled_settlement)
- Escalation e-mails for payment failures (notifications.tasks)

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps; periodic tasks
live in the database (django-celery-beat DatabaseScheduler).

Usage:
    from payments.tasks import settle_payment

    settle_payment.delay(str(payment.id))

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Create Celery application instance
# The name should match the Django project name
app = Celery("config")

# Load configuration from Django settings
# All Celery settings should be prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all registered Django apps
# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
