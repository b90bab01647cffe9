import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Flexible key-value metadata storage",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "offer_id",
                    models.UUIDField(
                        blank=True,
                        db_index=True,
                        help_text="Offer that generated this payment (opaque reference)",
                        null=True,
                    ),
                ),
                (
                    "gross_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount paid by the company",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "platform_fee_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Platform fee withheld",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "processing_fee_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Processing fee withheld",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "net_amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount the creator receives",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "platform_fee_rate",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0.0400"),
                        help_text="Platform fee rate applied when the payment was created",
                        max_digits=5,
                    ),
                ),
                (
                    "needs_review",
                    models.BooleanField(
                        default=False,
                        help_text="Net amount was clamped to zero when fees were computed",
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current status of the payment (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "failure_kind",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("disputed", "Disputed"),
                            ("insufficient_funds", "Insufficient Funds"),
                            ("below_minimum_amount", "Below Minimum Amount"),
                            ("other", "Other"),
                        ],
                        db_index=True,
                        default="",
                        help_text="Why the payment failed; empty unless status is failed",
                        max_length=32,
                    ),
                ),
                (
                    "failure_reason",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Dispute reason or rail failure message",
                    ),
                ),
                (
                    "description",
                    models.TextField(
                        blank=True, default="", help_text="Display text for this payment"
                    ),
                ),
                (
                    "payout_method",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Payout method used for settlement",
                        max_length=20,
                    ),
                ),
                (
                    "provider_transaction_id",
                    models.CharField(
                        blank=True,
                        help_text="Payment rail transaction reference",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "provider_response",
                    models.JSONField(
                        blank=True, default=dict, help_text="Raw payment rail response"
                    ),
                ),
                (
                    "settlement_attempt",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Settlement generation used in the rail idempotency key",
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1, help_text="Incremented on each save"
                    ),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "company",
                    models.ForeignKey(
                        help_text="Company that owes this payment",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="authentication.companyprofile",
                    ),
                ),
                (
                    "creator",
                    models.ForeignKey(
                        help_text="Creator receiving this payment",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["creator", "status"], name="payment_creator_status_idx"
                    ),
                    models.Index(
                        fields=["company", "status"], name="payment_company_status_idx"
                    ),
                    models.Index(
                        fields=["status", "failure_kind"],
                        name="payment_status_failure_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("gross_amount__gte", 0),
                            ("platform_fee_amount__gte", 0),
                            ("processing_fee_amount__gte", 0),
                            ("net_amount__gte", 0),
                        ),
                        name="payment_amounts_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentEvent",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("approved", "Approved"),
                            ("disputed", "Disputed"),
                            ("failed", "Failed"),
                            ("completed", "Completed"),
                            ("retried", "Retried"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "from_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "to_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "failure_kind",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("disputed", "Disputed"),
                            ("insufficient_funds", "Insufficient Funds"),
                            ("below_minimum_amount", "Below Minimum Amount"),
                            ("other", "Other"),
                        ],
                        default="",
                        max_length=32,
                    ),
                ),
                ("message", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who caused the change; empty for system jobs",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "payment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="events",
                        to="payments.payment",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment event",
                "verbose_name_plural": "Payment events",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="PaymentMethod",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "payout_method",
                    models.CharField(
                        choices=[
                            ("etransfer", "E-Transfer"),
                            ("wire", "Wire Transfer"),
                            ("paypal", "PayPal"),
                            ("crypto", "Crypto"),
                        ],
                        help_text="Payout rail for this destination",
                        max_length=20,
                    ),
                ),
                ("payout_email", models.EmailField(blank=True, default="", max_length=254)),
                ("bank_routing_number", models.CharField(blank=True, default="", max_length=50)),
                ("bank_account_number", models.CharField(blank=True, default="", max_length=50)),
                ("paypal_email", models.EmailField(blank=True, default="", max_length=254)),
                (
                    "crypto_wallet_address",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("crypto_network", models.CharField(blank=True, default="", max_length=50)),
                (
                    "external_account_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Connected account id at the payment provider (acct_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "is_default",
                    models.BooleanField(
                        default=False, help_text="Used for settlement when true"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_methods",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment method",
                "verbose_name_plural": "Payment methods",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_default", True)),
                        fields=("user",),
                        name="payment_method_one_default_per_user",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="FundingAccount",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=200)),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("bank", "Bank Account"),
                            ("wallet", "Wallet"),
                            ("card", "Card"),
                        ],
                        max_length=20,
                    ),
                ),
                ("last4", models.CharField(blank=True, default="", max_length=4)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("pending", "Pending"),
                            ("disabled", "Disabled"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("is_primary", models.BooleanField(default=False)),
                ("bank_name", models.CharField(blank=True, default="", max_length=200)),
                (
                    "account_holder_name",
                    models.CharField(blank=True, default="", max_length=200),
                ),
                ("wallet_network", models.CharField(blank=True, default="", max_length=50)),
                ("card_brand", models.CharField(blank=True, default="", max_length=50)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="funding_accounts_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Funding account",
                "verbose_name_plural": "Funding accounts",
                "ordering": ["-is_primary", "-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_primary", True)),
                        fields=("is_primary",),
                        name="funding_account_single_primary",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("is_primary", False), ("status", "active"), _connector="OR"
                        ),
                        name="funding_account_primary_is_active",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PlatformSetting",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("key", models.CharField(max_length=100, unique=True)),
                ("value", models.TextField(blank=True, default="")),
                ("description", models.TextField(blank=True, default="")),
                (
                    "category",
                    models.CharField(blank=True, default="payments", max_length=50),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="platform_settings_updated",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Platform setting",
                "verbose_name_plural": "Platform settings",
                "ordering": ["category", "key"],
            },
        ),
    ]
