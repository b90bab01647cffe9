"""
Seed the platform settings rows with their defaults.

platform_fee_percentage is left unset so it keeps following the
PLATFORM_FEE_PERCENT setting until an admin overrides it.
"""

from django.db import migrations

DEFAULT_SETTINGS = [
    ("settlement_schedule", "weekly", "How often scheduled settlement runs", "payments"),
    (
        "payout_reserve_percentage",
        "10",
        "Percentage of funds held back as a payout reserve",
        "payments",
    ),
    (
        "minimum_operating_balance",
        "0.00",
        "Balance the funding account must keep after payouts",
        "payments",
    ),
    (
        "minimum_payout_threshold",
        "50.00",
        "Earnings a creator must accumulate before payout",
        "payments",
    ),
    (
        "payment_auto_disburse",
        "true",
        "Settle processing payments automatically on schedule",
        "payments",
    ),
    (
        "payment_notification_email",
        "",
        "Escalation contact for payment failures and disputes",
        "payments",
    ),
]


def seed_settings(apps, schema_editor):
    PlatformSetting = apps.get_model("payments", "PlatformSetting")
    for key, value, description, category in DEFAULT_SETTINGS:
        PlatformSetting.objects.get_or_create(
            key=key,
            defaults={"value": value, "description": description, "category": category},
        )


def remove_settings(apps, schema_editor):
    PlatformSetting = apps.get_model("payments", "PlatformSetting")
    PlatformSetting.objects.filter(key__in=[row[0] for row in DEFAULT_SETTINGS]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_settings, remove_settings),
    ]
