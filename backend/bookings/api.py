from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.principal import Principal
from bookings.serializers import BookingCreateSerializer, BookingDatesSerializer, BookingSerializer
from bookings.services.bookings import (
    cancel_booking,
    create_booking,
    update_booking_dates,
    visible_bookings,
)
from payments.services.consistency import reconcile_booking


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "property"]
    ordering_fields = ["check_in", "created_at"]

    def get_queryset(self):
        return visible_bookings(Principal.from_user(self.request.user)).order_by("check_in", "id")

    def retrieve(self, request, *args, **kwargs):
        booking = self.get_object()
        # A decision that failed half way shows up here as a pending booking
        # with a verified payment; settle it before answering.
        if reconcile_booking(booking, actor_id=None):
            booking = self.get_object()
        return Response(self.get_serializer(booking).data)

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = create_booking(
            principal=Principal.from_user(request.user),
            **serializer.validated_data,
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["patch"], url_path="dates")
    def dates(self, request, pk=None):
        serializer = BookingDatesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = update_booking_dates(
            principal=Principal.from_user(request.user),
            booking_id=pk,
            **serializer.validated_data,
        )
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        booking = cancel_booking(principal=Principal.from_user(request.user), booking_id=pk)
        return Response(BookingSerializer(booking).data)
