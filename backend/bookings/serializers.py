from rest_framework import serializers

from bookings.models import Booking
from bookings.pricing import format_amount, quote_stay


class BookingPaymentSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    status = serializers.CharField()
    amount = serializers.IntegerField()
    rejection_note = serializers.CharField()


class BookingSerializer(serializers.ModelSerializer):
    property_title = serializers.CharField(source="property.title", read_only=True)
    effective_status = serializers.SerializerMethodField()
    nights = serializers.SerializerMethodField()
    price_per_night = serializers.IntegerField(source="property.price_per_night", read_only=True)
    total_amount = serializers.SerializerMethodField()
    total_amount_display = serializers.SerializerMethodField()
    currency = serializers.CharField(source="property.currency", read_only=True)
    latest_payment = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "tenant",
            "property",
            "property_title",
            "check_in",
            "check_out",
            "status",
            "effective_status",
            "nights",
            "price_per_night",
            "total_amount",
            "total_amount_display",
            "currency",
            "latest_payment",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _quote(self, obj: Booking):
        return quote_stay(obj.check_in, obj.check_out, obj.property.price_per_night)

    def get_effective_status(self, obj: Booking) -> str:
        return obj.effective_status()

    def get_nights(self, obj: Booking) -> int:
        return self._quote(obj).nights

    def get_total_amount(self, obj: Booking) -> int:
        return self._quote(obj).amount

    def get_total_amount_display(self, obj: Booking) -> str:
        return format_amount(self.get_total_amount(obj))

    def get_latest_payment(self, obj: Booking):
        payments = sorted(obj.payments.all(), key=lambda payment: (payment.created_at, payment.pk))
        if not payments:
            return None
        return BookingPaymentSummarySerializer(payments[-1]).data


class BookingCreateSerializer(serializers.Serializer):
    property_id = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    check_out = serializers.DateField()


class BookingDatesSerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
