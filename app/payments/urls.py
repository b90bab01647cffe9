"""
URL configuration for the payments app.

Routes:
    - payments/ - Payment list, summary and lifecycle actions
    - payment-methods/ - Creator payout methods
    - settings/ - Platform settings
    - funding-accounts/ - Platform funding accounts

All routes are prefixed with /api/v1/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views

app_name = "payments"

urlpatterns = [
    # Payments
    path("payments/", views.PaymentListView.as_view(), name="payment_list"),
    path("payments/summary/", views.EarningsSummaryView.as_view(), name="payment_summary"),
    path("payments/settle-all/", views.SettleAllPaymentsView.as_view(), name="payment_settle_all"),
    path(
        "payments/<uuid:payment_id>/approve/",
        views.ApprovePaymentView.as_view(),
        name="payment_approve",
    ),
    path(
        "payments/<uuid:payment_id>/dispute/",
        views.DisputePaymentView.as_view(),
        name="payment_dispute",
    ),
    path(
        "payments/<uuid:payment_id>/settle/",
        views.SettlePaymentView.as_view(),
        name="payment_settle",
    ),
    path(
        "payments/<uuid:payment_id>/retry/",
        views.RetryPaymentView.as_view(),
        name="payment_retry",
    ),
    # Payment methods
    path(
        "payment-methods/",
        views.PaymentMethodListView.as_view(),
        name="payment_method_list",
    ),
    path(
        "payment-methods/<int:method_id>/",
        views.PaymentMethodDetailView.as_view(),
        name="payment_method_detail",
    ),
    path(
        "payment-methods/<int:method_id>/set-default/",
        views.SetDefaultPaymentMethodView.as_view(),
        name="payment_method_set_default",
    ),
    # Platform configuration
    path("settings/", views.PlatformSettingsView.as_view(), name="platform_settings"),
    path(
        "funding-accounts/",
        views.FundingAccountListView.as_view(),
        name="funding_account_list",
    ),
    path(
        "funding-accounts/<uuid:account_id>/set-primary/",
        views.SetPrimaryFundingAccountView.as_view(),
        name="funding_account_set_primary",
    ),
]
