"""
Seed the notification types used by the payment settlement notifier.

Templates receive the context built by
payments.services.notifier.SettlementNotifier: payment_id, amount,
company_name, creator_email and reason are always present.
"""

from django.db import migrations

PAYMENT_NOTIFICATION_TYPES = [
    {
        "key": "payment_disputed",
        "display_name": "Payment disputed",
        "title_template": "Payment of ${amount} was disputed",
        "body_template": (
            "{company_name} disputed payment {payment_id} for ${amount}. "
            "Reason: {reason}"
        ),
        "category": "payments",
        "supports_email": True,
    },
    {
        "key": "payment_failed_insufficient_funds",
        "display_name": "Payout failed: insufficient funds",
        "title_template": "Payout of ${amount} failed: insufficient funds",
        "body_template": (
            "The payout for payment {payment_id} to {creator_email} could not be "
            "sent because the funding balance is too low. {reason}"
        ),
        "category": "escalation",
        "supports_email": True,
    },
    {
        "key": "payment_below_minimum",
        "display_name": "Payout below minimum amount",
        "title_template": "Payout of ${amount} is below the method minimum",
        "body_template": (
            "Payment {payment_id} for {creator_email} is below the minimum "
            "amount for the selected payout method. {reason}"
        ),
        "category": "escalation",
        "supports_email": True,
    },
    {
        "key": "payment_settlement_failed",
        "display_name": "Payout failed",
        "title_template": "Payout of ${amount} failed",
        "body_template": (
            "Settlement of payment {payment_id} for {creator_email} failed. "
            "{reason}"
        ),
        "category": "escalation",
        "supports_email": True,
    },
    {
        "key": "payment_approved",
        "display_name": "Payment approved",
        "title_template": "Payment of ${amount} approved",
        "body_template": "{company_name} approved payment {payment_id} for ${amount}.",
        "category": "payments",
        "supports_email": False,
    },
    {
        "key": "payment_received",
        "display_name": "Payment received",
        "title_template": "You received ${amount}",
        "body_template": "Your payout of ${amount} from {company_name} has been sent.",
        "category": "payments",
        "supports_email": False,
    },
    {
        "key": "payment_completed",
        "display_name": "Payout sent",
        "title_template": "Payout of ${amount} sent to {creator_email}",
        "body_template": "Payment {payment_id} has been paid out to {creator_email}.",
        "category": "payments",
        "supports_email": False,
    },
]


def seed_notification_types(apps, schema_editor):
    """Create or refresh the payment notification types."""
    NotificationType = apps.get_model("notifications", "NotificationType")

    for definition in PAYMENT_NOTIFICATION_TYPES:
        defaults = {k: v for k, v in definition.items() if k != "key"}
        NotificationType.objects.update_or_create(
            key=definition["key"], defaults=defaults
        )


def remove_notification_types(apps, schema_editor):
    """Remove the seeded types on rollback."""
    NotificationType = apps.get_model("notifications", "NotificationType")

    NotificationType.objects.filter(
        key__in=[d["key"] for d in PAYMENT_NOTIFICATION_TYPES],
        notifications__isnull=True,
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_notification_types, remove_notification_types),
    ]
