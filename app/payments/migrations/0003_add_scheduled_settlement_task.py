"""
Add celery-beat schedule for scheduled settlement.

The task runs daily at 06:00 UTC and decides itself whether today is a
settlement day from the settlement_schedule platform setting.
"""

from django.db import migrations

TASK_NAME = "Run Scheduled Settlement"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for scheduled settlement."""
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = CrontabSchedule.objects.get_or_create(
        minute="0",
        hour="6",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
        timezone="UTC",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payments.tasks.run_scheduled_settlement",
            "crontab": schedule,
            "enabled": True,
            "description": (
                "Settles processing payments when payment_auto_disburse is on "
                "and today matches settlement_schedule."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0002_seed_platform_settings"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
