"""
DRF views for payments app.

This module provides API views for:
- Payment listing and earnings summaries (every role, scoped)
- Company approval and disputes
- Admin settlement, bulk settlement and retry
- Creator payout methods
- Platform settings and funding accounts (admin)

Related files:
    - services/: Role services, SettlementService, PaymentMethodService
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Endpoints:
    GET  /api/v1/payments/ - List payments visible to the user
    GET  /api/v1/payments/summary/ - Earnings summary
    POST /api/v1/payments/<id>/approve/ - Approve (company, admin)
    POST /api/v1/payments/<id>/dispute/ - Dispute (company)
    POST /api/v1/payments/<id>/settle/ - Settle (admin)
    POST /api/v1/payments/settle-all/ - Bulk settle (admin)
    POST /api/v1/payments/<id>/retry/ - Retry a failed payment (admin)
    GET|POST /api/v1/payment-methods/ - Creator payout methods
    DELETE /api/v1/payment-methods/<id>/ - Remove a payout method
    POST /api/v1/payment-methods/<id>/set-default/ - Change default
    GET|PATCH /api/v1/settings/ - Platform settings (admin)
    GET|POST /api/v1/funding-accounts/ - Funding accounts (admin)
    POST /api/v1/funding-accounts/<id>/set-primary/ - Primary account (admin)

Security:
    - All endpoints require authentication
    - Role checks happen in the role services (403 on mismatch)
"""

from __future__ import annotations

import logging
from decimal import Decimal

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from payments.exceptions import (
    BelowMinimumAmountError,
    GenericSettlementError,
    InsufficientFundsError,
)
from payments.services import (
    AdminPaymentService,
    CompanyPaymentService,
    CreatorPaymentService,
    FundingAccountService,
    PlatformSettingsService,
    for_user,
)
from payments.serializers import (
    BulkSettlementResultSerializer,
    DisputeRequestSerializer,
    EarningsSummarySerializer,
    FundingAccountSerializer,
    PaymentListQuerySerializer,
    PaymentMethodSerializer,
    PaymentSerializer,
    PlatformSettingsUpdateSerializer,
    SettleAllRequestSerializer,
    SettlementOutcomeSerializer,
)

logger = logging.getLogger(__name__)


# Checked in order: the first matching class wins.
ERROR_STATUS_CODES = (
    (InsufficientFundsError, status.HTTP_402_PAYMENT_REQUIRED),
    (BelowMinimumAmountError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (GenericSettlementError, status.HTTP_502_BAD_GATEWAY),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def status_code_for(exc: BaseApplicationError) -> int:
    for error_class, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST


class PaymentAPIView(APIView):
    """
    Base view translating domain exceptions into JSON error responses.

    Body is BaseApplicationError.to_dict():
        {"error": "...", "error_code": "...", "details": {...}}
    """

    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, BaseApplicationError):
            code = status_code_for(exc)
            log = logger.warning if code >= 500 else logger.info
            log(
                f"Payment request failed: {exc.error_code}",
                extra={
                    "path": self.request.path,
                    "error_code": exc.error_code,
                    "status_code": code,
                },
            )
            return Response(exc.to_dict(), status=code)
        return super().handle_exception(exc)


ERROR_RESPONSES = {
    400: OpenApiResponse(description="Validation error"),
    403: OpenApiResponse(description="Role or ownership check failed"),
    404: OpenApiResponse(description="Payment not found"),
    409: OpenApiResponse(description="Illegal transition or concurrent change"),
}


# =============================================================================
# Payments
# =============================================================================


class PaymentListView(PaymentAPIView):
    """
    List payments visible to the current user.

    GET /api/v1/payments/

    Creators see their own payments, companies the payments they owe,
    admins every payment.
    """

    @extend_schema(
        operation_id="list_payments",
        summary="List payments",
        parameters=[
            OpenApiParameter("status", str, many=True, description="Filter by status"),
            OpenApiParameter("search", str, description="Description, creator or company"),
            OpenApiParameter("company_id", str, description="Company (admin only)"),
            OpenApiParameter("creator_id", int, description="Creator (admin, company)"),
        ],
        responses={200: PaymentSerializer(many=True), 403: ERROR_RESPONSES[403]},
        tags=["Payments"],
    )
    def get(self, request):
        query = PaymentListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        payments = for_user(request.user).list_payments(dict(query.validated_data))
        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(payments, request, view=self)
        serializer = PaymentSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)


class EarningsSummaryView(PaymentAPIView):
    """
    Earnings summary for the current user's scope.

    GET /api/v1/payments/summary/

    Returns:
        {"total", "pending", "processing", "completed", "disputed"}
    """

    @extend_schema(
        operation_id="payments_summary",
        summary="Earnings summary",
        responses={200: EarningsSummarySerializer},
        tags=["Payments"],
    )
    def get(self, request):
        summary = for_user(request.user).get_earnings_summary()
        return Response(EarningsSummarySerializer(summary).data)


class ApprovePaymentView(PaymentAPIView):
    """
    Approve a pending payment for settlement.

    POST /api/v1/payments/<id>/approve/
    """

    @extend_schema(
        operation_id="approve_payment",
        summary="Approve payment",
        request=None,
        responses={200: PaymentSerializer, **ERROR_RESPONSES},
        tags=["Payments"],
    )
    def post(self, request, payment_id):
        service = for_user(request.user)
        if not isinstance(service, (CompanyPaymentService, AdminPaymentService)):
            raise PermissionDeniedError("Only companies and admins can approve payments")
        payment = service.approve(payment_id)
        return Response(PaymentSerializer(payment).data)


class DisputePaymentView(PaymentAPIView):
    """
    Dispute a payment owed by the current company.

    POST /api/v1/payments/<id>/dispute/

    Request body:
        {"reason": "Deliverables not received"}
    """

    @extend_schema(
        operation_id="dispute_payment",
        summary="Dispute payment",
        request=DisputeRequestSerializer,
        responses={200: PaymentSerializer, **ERROR_RESPONSES},
        tags=["Payments"],
    )
    def post(self, request, payment_id):
        service = CompanyPaymentService(request.user)
        serializer = DisputeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = service.dispute(payment_id, serializer.validated_data["reason"])
        return Response(PaymentSerializer(payment).data)


class SettlePaymentView(PaymentAPIView):
    """
    Settle one payment.

    POST /api/v1/payments/<id>/settle/

    Settlement failures are returned with 402 (insufficient funds), 422
    (below minimum) or 502 (other); the payment is already marked failed.
    """

    @extend_schema(
        operation_id="settle_payment",
        summary="Settle payment",
        request=None,
        responses={
            200: SettlementOutcomeSerializer,
            402: OpenApiResponse(description="Insufficient funds"),
            422: OpenApiResponse(description="Below payout method minimum"),
            502: OpenApiResponse(description="Payment rail failure"),
            **ERROR_RESPONSES,
        },
        tags=["Payments - Settlement"],
    )
    def post(self, request, payment_id):
        outcome = AdminPaymentService(request.user).settle(payment_id)
        return Response(SettlementOutcomeSerializer(outcome.to_dict()).data)


class SettleAllPaymentsView(PaymentAPIView):
    """
    Settle every processing payment matching the filters.

    POST /api/v1/payments/settle-all/

    Each payment is settled independently; the response lists every
    outcome with succeeded/failed counts.
    """

    @extend_schema(
        operation_id="settle_all_payments",
        summary="Bulk settle payments",
        request=SettleAllRequestSerializer,
        responses={200: BulkSettlementResultSerializer, 403: ERROR_RESPONSES[403]},
        tags=["Payments - Settlement"],
    )
    def post(self, request):
        service = AdminPaymentService(request.user)
        serializer = SettleAllRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = service.settle_all(dict(serializer.validated_data))
        return Response(BulkSettlementResultSerializer(result.to_dict()).data)


class RetryPaymentView(PaymentAPIView):
    """
    Put a failed, non-disputed payment back to processing.

    POST /api/v1/payments/<id>/retry/
    """

    @extend_schema(
        operation_id="retry_payment",
        summary="Retry failed payment",
        request=None,
        responses={200: PaymentSerializer, **ERROR_RESPONSES},
        tags=["Payments - Settlement"],
    )
    def post(self, request, payment_id):
        payment = AdminPaymentService(request.user).retry(payment_id)
        return Response(PaymentSerializer(payment).data)


# =============================================================================
# Payment Methods
# =============================================================================


class PaymentMethodListView(PaymentAPIView):
    """
    List or register the current creator's payout methods.

    GET  /api/v1/payment-methods/
    POST /api/v1/payment-methods/
    """

    @extend_schema(
        operation_id="list_payment_methods",
        summary="List payout methods",
        responses={200: PaymentMethodSerializer(many=True)},
        tags=["Payment Methods"],
    )
    def get(self, request):
        methods = CreatorPaymentService(request.user).list_payment_methods()
        return Response(PaymentMethodSerializer(methods, many=True).data)

    @extend_schema(
        operation_id="create_payment_method",
        summary="Register payout method",
        request=PaymentMethodSerializer,
        responses={201: PaymentMethodSerializer, 400: ERROR_RESPONSES[400]},
        tags=["Payment Methods"],
    )
    def post(self, request):
        service = CreatorPaymentService(request.user)
        serializer = PaymentMethodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        payout_method = fields.pop("payout_method")
        method = service.add_payment_method(payout_method, **fields)
        return Response(
            PaymentMethodSerializer(method).data, status=status.HTTP_201_CREATED
        )


class PaymentMethodDetailView(PaymentAPIView):
    """
    Remove a payout method.

    DELETE /api/v1/payment-methods/<id>/

    Returns:
        {"new_default_id": <id or null>}
    """

    @extend_schema(
        operation_id="delete_payment_method",
        summary="Remove payout method",
        responses={200: OpenApiResponse(description="Method removed")},
        tags=["Payment Methods"],
    )
    def delete(self, request, method_id):
        new_default = CreatorPaymentService(request.user).remove_payment_method(
            method_id
        )
        return Response({"new_default_id": getattr(new_default, "pk", None)})


class SetDefaultPaymentMethodView(PaymentAPIView):
    """
    Make a payout method the default.

    POST /api/v1/payment-methods/<id>/set-default/
    """

    @extend_schema(
        operation_id="set_default_payment_method",
        summary="Set default payout method",
        request=None,
        responses={200: PaymentMethodSerializer, 400: ERROR_RESPONSES[400]},
        tags=["Payment Methods"],
    )
    def post(self, request, method_id):
        method = CreatorPaymentService(request.user).set_default_payment_method(
            method_id
        )
        return Response(PaymentMethodSerializer(method).data)


# =============================================================================
# Platform Configuration
# =============================================================================


def _render_settings(values: dict) -> dict:
    # Decimals as exact strings
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in values.items()
    }


class PlatformSettingsView(PaymentAPIView):
    """
    Read or update platform settings.

    GET   /api/v1/settings/
    PATCH /api/v1/settings/

    Request body:
        {"settings": {"settlement_schedule": "daily"}}
    """

    @extend_schema(
        operation_id="get_platform_settings",
        summary="Platform settings",
        responses={200: OpenApiResponse(description="Typed settings map")},
        tags=["Platform"],
    )
    def get(self, request):
        AdminPaymentService(request.user)
        values = PlatformSettingsService.get_all()
        return Response(_render_settings(values))

    @extend_schema(
        operation_id="update_platform_settings",
        summary="Update platform settings",
        request=PlatformSettingsUpdateSerializer,
        responses={200: OpenApiResponse(description="Typed settings map"), 400: ERROR_RESPONSES[400]},
        tags=["Platform"],
    )
    def patch(self, request):
        service = AdminPaymentService(request.user)
        serializer = PlatformSettingsUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        values = service.configure(serializer.validated_data["settings"])
        return Response(_render_settings(values))


class FundingAccountListView(PaymentAPIView):
    """
    List or create platform funding accounts.

    GET  /api/v1/funding-accounts/
    POST /api/v1/funding-accounts/
    """

    @extend_schema(
        operation_id="list_funding_accounts",
        summary="List funding accounts",
        responses={200: FundingAccountSerializer(many=True)},
        tags=["Platform"],
    )
    def get(self, request):
        AdminPaymentService(request.user)
        accounts = FundingAccountService.list_accounts()
        return Response(FundingAccountSerializer(accounts, many=True).data)

    @extend_schema(
        operation_id="create_funding_account",
        summary="Create funding account",
        request=FundingAccountSerializer,
        responses={201: FundingAccountSerializer, 400: ERROR_RESPONSES[400]},
        tags=["Platform"],
    )
    def post(self, request):
        service = AdminPaymentService(request.user)
        serializer = FundingAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = service.create_funding_account(**serializer.validated_data)
        return Response(
            FundingAccountSerializer(account).data, status=status.HTTP_201_CREATED
        )


class SetPrimaryFundingAccountView(PaymentAPIView):
    """
    Make an active funding account the primary.

    POST /api/v1/funding-accounts/<id>/set-primary/
    """

    @extend_schema(
        operation_id="set_primary_funding_account",
        summary="Set primary funding account",
        request=None,
        responses={200: FundingAccountSerializer, **ERROR_RESPONSES},
        tags=["Platform"],
    )
    def post(self, request, account_id):
        account = AdminPaymentService(request.user).set_primary_funding_account(
            account_id
        )
        return Response(FundingAccountSerializer(account).data)
