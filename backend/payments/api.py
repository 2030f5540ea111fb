import logging

from django.conf import settings
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.principal import Principal
from bookings.serializers import BookingSerializer
from core.exceptions import IllegalTransition
from payments.models import Payment
from payments.serializers import (
    InvoiceSerializer,
    PaymentCreateSerializer,
    PaymentDecisionSerializer,
    PaymentProofSerializer,
    PaymentSerializer,
)
from payments.services.payments import (
    create_payment,
    load_payment,
    pending_verifications,
    refund_payment,
    submit_payment_proof,
    visible_payments,
)
from payments.services.verification import decide

logger = logging.getLogger(__name__)


class PaymentViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "booking"]
    ordering_fields = ["created_at", "amount"]

    def get_queryset(self):
        return visible_payments(Principal.from_user(self.request.user))

    def create(self, request, *args, **kwargs):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = create_payment(
            principal=Principal.from_user(request.user),
            booking_id=serializer.validated_data["booking_id"],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="pending")
    def pending(self, request):
        payments = pending_verifications(Principal.from_user(request.user))
        return Response(
            {
                "payments": PaymentSerializer(payments, many=True).data,
                "poll_interval_seconds": settings.CLIENT_POLL_INTERVAL_SECONDS,
            }
        )

    @action(detail=True, methods=["post"], url_path="confirm")
    def confirm(self, request, pk=None):
        serializer = PaymentProofSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = submit_payment_proof(
            principal=Principal.from_user(request.user),
            payment_id=pk,
            upi_reference=serializer.validated_data.get("upi_reference"),
        )
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=["post"], url_path="verify")
    def verify(self, request, pk=None):
        serializer = PaymentDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        principal = Principal.from_user(request.user)
        try:
            decision = decide(
                principal=principal,
                payment_id=pk,
                verified=serializer.validated_data["verified"],
                note=serializer.validated_data.get("note"),
            )
        except IllegalTransition as exc:
            if exc.current_status not in Payment.FINAL_STATUSES:
                raise
            # Double submits from the owner's dashboard land here.
            payment = load_payment(pk)
            logger.info("Payment %s already %s; reporting current state", payment.pk, payment.status)
            return Response(
                {
                    "already_decided": True,
                    "detail": exc.detail,
                    "payment": PaymentSerializer(payment).data,
                }
            )

        return Response(
            {
                "already_decided": False,
                "payment": PaymentSerializer(decision.payment).data,
                "booking": BookingSerializer(decision.booking).data,
                "invoice": InvoiceSerializer(decision.invoice).data if decision.invoice else None,
            }
        )

    @action(detail=True, methods=["post"], url_path="refund")
    def refund(self, request, pk=None):
        payment = refund_payment(principal=Principal.from_user(request.user), payment_id=pk)
        return Response(PaymentSerializer(payment).data)
