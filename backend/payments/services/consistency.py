"""
Keeps bookings and payments telling the same story: a verified payment
implies its booking is confirmed.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import QuerySet

from bookings.models import Booking
from bookings.services.bookings import set_booking_status
from payments.models import Payment

logger = logging.getLogger(__name__)


def confirm_booking_for_payment(payment: Payment, *, actor_id: int | None) -> Booking:
    """
    Apply a verified payment to its booking. Only PENDING bookings advance;
    a booking that is already confirmed or was cancelled is left as it is.
    """
    booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
    if payment.status != Payment.VERIFIED:
        return booking
    if booking.status != Booking.PENDING:
        logger.warning(
            "Payment %s verified while booking %s is %s; booking left unchanged",
            payment.pk,
            booking.pk,
            booking.status,
        )
        return booking
    set_booking_status(
        booking,
        expected=Booking.PENDING,
        status=Booking.CONFIRMED,
        actor_id=actor_id,
        reason=f"payment {payment.pk} verified",
    )
    return booking


def reconcile_booking(booking: Booking, *, actor_id: int | None = None) -> bool:
    """Confirm a pending booking that already has a verified payment. Returns True if it changed."""
    if booking.status != Booking.PENDING:
        return False
    payment = booking.payments.filter(status=Payment.VERIFIED).order_by("-verified_at").first()
    if payment is None:
        return False
    with transaction.atomic():
        current = confirm_booking_for_payment(payment, actor_id=actor_id)
    if current.status != Booking.CONFIRMED:
        return False
    booking.refresh_from_db()
    logger.warning("Reconciled booking %s to CONFIRMED from payment %s", booking.pk, payment.pk)
    return True


def find_inconsistencies() -> QuerySet[Booking]:
    return Booking.objects.filter(status=Booking.PENDING, payments__status=Payment.VERIFIED).distinct()


def reconcile_all() -> int:
    return sum(1 for booking in find_inconsistencies() if reconcile_booking(booking))
