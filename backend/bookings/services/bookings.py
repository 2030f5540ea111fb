from __future__ import annotations

import logging
from datetime import date

from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from accounts.principal import Principal
from bookings.models import Booking
from bookings.pricing import count_nights
from core import audit
from core.exceptions import DatesUnavailable, Forbidden, IllegalTransition, InvalidRange, NotFound
from core.models import AuditLog
from payments.models import Payment
from payments.services.payments import open_payment_for, reprice_payment
from properties.services import get_property, lock_property

logger = logging.getLogger(__name__)


def _validate_dates(check_in: date, check_out: date, today: date) -> None:
    count_nights(check_in, check_out)
    if check_in < today:
        raise InvalidRange("Check-in date cannot be in the past.")


def _ensure_available(property_id, check_in: date, check_out: date, *, exclude_id=None) -> None:
    # Stays are half-open: a check-out day can be someone else's check-in day.
    overlapping = Booking.objects.filter(
        property_id=property_id,
        status__in=Booking.ACTIVE_STATUSES,
        check_in__lt=check_out,
        check_out__gt=check_in,
    )
    if exclude_id is not None:
        overlapping = overlapping.exclude(pk=exclude_id)
    if overlapping.exists():
        raise DatesUnavailable()


def _load_booking(booking_id, *, for_update: bool = False) -> Booking:
    queryset = Booking.objects.select_related("property")
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFound("Booking not found.")


def set_booking_status(booking: Booking, *, expected: str, status: str, actor_id: int | None, reason: str = "") -> bool:
    """
    Conditionally move ``booking`` from ``expected`` to ``status``.

    Returns False, leaving the row alone, if the stored status is no longer
    ``expected``.
    """
    if status not in Booking.TRANSITIONS[expected]:
        raise IllegalTransition(f"Booking cannot move from {expected} to {status}.", current_status=expected)
    updated = Booking.objects.filter(pk=booking.pk, status=expected).update(
        status=status,
        updated_at=timezone.now(),
    )
    booking.refresh_from_db()
    if updated:
        details = f"{expected} -> {status}"
        if reason:
            details = f"{details} ({reason})"
        audit.record(AuditLog.BOOKING_STATUS_CHANGED, actor_id=actor_id, booking=booking, details=details)
    return bool(updated)


def create_booking(*, principal: Principal, property_id, check_in: date, check_out: date, today: date | None = None) -> Booking:
    today = today or timezone.localdate()
    prop = get_property(property_id)
    _validate_dates(check_in, check_out, today)

    with transaction.atomic():
        lock_property(prop.pk)
        _ensure_available(prop.pk, check_in, check_out)
        booking = Booking.objects.create(
            tenant_id=principal.id,
            property=prop,
            check_in=check_in,
            check_out=check_out,
            status=Booking.PENDING,
        )
        audit.record(
            AuditLog.BOOKING_CREATED,
            actor_id=principal.id,
            booking=booking,
            details=f"{check_in:%Y-%m-%d} to {check_out:%Y-%m-%d}",
        )
    return booking


def update_booking_dates(
    *,
    principal: Principal,
    booking_id,
    check_in: date,
    check_out: date,
    today: date | None = None,
) -> Booking:
    """
    Replace the dates of a pending booking.

    An unpaid payment is repriced to the new stay. Once the tenant has
    submitted a transfer for verification the dates are locked, since the
    amount paid would no longer match.
    """
    today = today or timezone.localdate()

    with transaction.atomic():
        booking = _load_booking(booking_id, for_update=True)
        if booking.tenant_id != principal.id and not principal.is_admin:
            raise Forbidden("Only the tenant can change booking dates.")
        if booking.status != Booking.PENDING:
            raise IllegalTransition(
                "Dates can only be changed while the booking is pending.",
                current_status=booking.status,
            )
        _validate_dates(check_in, check_out, today)
        lock_property(booking.property_id)
        _ensure_available(booking.property_id, check_in, check_out, exclude_id=booking.pk)

        payment = open_payment_for(booking)
        if payment is not None and payment.status == Payment.AWAITING_OWNER_VERIFICATION:
            raise IllegalTransition(
                "Dates are locked while a payment is awaiting owner verification.",
                current_status=payment.status,
            )

        previous = (booking.check_in, booking.check_out)
        booking.check_in = check_in
        booking.check_out = check_out
        booking.save(update_fields=["check_in", "check_out", "updated_at"])
        audit.record(
            AuditLog.BOOKING_DATES_CHANGED,
            actor_id=principal.id,
            booking=booking,
            details=(
                f"{previous[0]:%Y-%m-%d}/{previous[1]:%Y-%m-%d} -> "
                f"{check_in:%Y-%m-%d}/{check_out:%Y-%m-%d}"
            ),
        )

        if payment is not None:
            reprice_payment(payment, booking, actor_id=principal.id)
    return booking


def cancel_booking(*, principal: Principal, booking_id) -> Booking:
    with transaction.atomic():
        booking = _load_booking(booking_id, for_update=True)
        allowed = (
            principal.is_admin
            or booking.tenant_id == principal.id
            or booking.property.owner_id == principal.id
        )
        if not allowed:
            raise Forbidden("Only the tenant or the property owner can cancel this booking.")
        if booking.status not in Booking.ACTIVE_STATUSES:
            raise IllegalTransition(
                f"A {booking.status.lower()} booking cannot be cancelled.",
                current_status=booking.status,
            )
        if not set_booking_status(
            booking,
            expected=booking.status,
            status=Booking.CANCELLED,
            actor_id=principal.id,
        ):
            raise IllegalTransition("Booking changed while cancelling.", current_status=booking.status)
    return booking


def complete_past_bookings(today: date | None = None) -> int:
    """Persist COMPLETED for confirmed stays whose check-out date has passed."""
    today = today or timezone.localdate()
    completed = 0
    for booking in Booking.objects.filter(status=Booking.CONFIRMED, check_out__lt=today):
        if set_booking_status(
            booking,
            expected=Booking.CONFIRMED,
            status=Booking.COMPLETED,
            actor_id=None,
            reason="stay ended",
        ):
            completed += 1
    if completed:
        logger.info("Marked %s booking(s) as completed", completed)
    return completed


def visible_bookings(principal: Principal) -> QuerySet[Booking]:
    queryset = Booking.objects.select_related("property", "tenant").prefetch_related("payments")
    if principal.is_admin:
        return queryset
    return queryset.filter(Q(tenant_id=principal.id) | Q(property__owner_id=principal.id))
