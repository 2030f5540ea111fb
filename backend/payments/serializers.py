from django.conf import settings
from rest_framework import serializers

from bookings.pricing import format_amount
from payments.models import Invoice, Payment
from payments.services.upi import build_payment_reference


class InvoiceSerializer(serializers.ModelSerializer):
    amount_display = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_no",
            "amount",
            "amount_display",
            "currency",
            "status",
            "line_items",
            "created_at",
        ]
        read_only_fields = fields

    def get_amount_display(self, obj: Invoice) -> str:
        return format_amount(obj.amount)


class PaymentSerializer(serializers.ModelSerializer):
    amount_display = serializers.SerializerMethodField()
    qr_code = serializers.SerializerMethodField()
    property_title = serializers.CharField(source="booking.property.title", read_only=True)
    check_in = serializers.DateField(source="booking.check_in", read_only=True)
    check_out = serializers.DateField(source="booking.check_out", read_only=True)
    invoice = serializers.SerializerMethodField()
    poll_interval_seconds = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "tenant",
            "owner",
            "property_title",
            "check_in",
            "check_out",
            "amount",
            "amount_display",
            "currency",
            "status",
            "upi_uri",
            "qr_code",
            "upi_reference",
            "verified_by",
            "verified_at",
            "rejection_note",
            "refunded_by",
            "refunded_at",
            "invoice",
            "created_at",
            "updated_at",
            "poll_interval_seconds",
        ]
        read_only_fields = fields

    def get_amount_display(self, obj: Payment) -> str:
        return format_amount(obj.amount)

    def get_qr_code(self, obj: Payment):
        # Only unpaid payments need something to scan.
        if obj.status != Payment.AWAITING_PAYMENT or not obj.upi_uri:
            return None
        return build_payment_reference(obj.upi_uri).qr_data_url

    def get_invoice(self, obj: Payment):
        invoice = Invoice.objects.filter(payment=obj).first()
        return InvoiceSerializer(invoice).data if invoice else None

    def get_poll_interval_seconds(self, obj: Payment) -> int:
        return settings.CLIENT_POLL_INTERVAL_SECONDS


class PaymentCreateSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(min_value=1)


class PaymentProofSerializer(serializers.Serializer):
    upi_reference = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=True)


class PaymentDecisionSerializer(serializers.Serializer):
    verified = serializers.BooleanField()
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
