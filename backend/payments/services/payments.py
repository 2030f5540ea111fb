from __future__ import annotations

import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from accounts.principal import Principal
from bookings.models import Booking
from bookings.pricing import format_amount, quote_stay
from core import audit
from core.exceptions import Forbidden, IllegalTransition, NotFound, ValidationError
from core.models import AuditLog
from payments.models import Invoice, Payment
from payments.services.upi import build_upi_uri, default_note

logger = logging.getLogger(__name__)

UPI_REFERENCE_MAX_LENGTH = 50


def load_payment(payment_id, *, for_update: bool = False) -> Payment:
    queryset = Payment.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=payment_id)
    except (Payment.DoesNotExist, ValueError, TypeError):
        raise NotFound("Payment not found.")


def transition_payment(payment: Payment, *, expected: str, status: str, **fields) -> Payment:
    """
    Move ``payment`` from ``expected`` to ``status`` with a conditional update.

    The row only changes if it is still in ``expected``; otherwise nothing is
    written and ``IllegalTransition`` reports the status it actually has.
    """
    updated = Payment.objects.filter(pk=payment.pk, status=expected).update(
        status=status,
        updated_at=timezone.now(),
        **fields,
    )
    if not updated:
        current = Payment.objects.filter(pk=payment.pk).values_list("status", flat=True).first()
        raise IllegalTransition(
            f"Payment is {current}; expected {expected}.",
            current_status=current,
        )
    payment.refresh_from_db()
    return payment


def open_payment_for(booking: Booking) -> Payment | None:
    return booking.payments.filter(status__in=Payment.OPEN_STATUSES).order_by("-created_at").first()


def _payee_for(owner) -> str:
    return owner.upi_id or owner.email


def _build_uri(booking: Booking, amount: int, currency: str) -> str:
    owner = booking.property.owner
    return build_upi_uri(
        payee=_payee_for(owner),
        payee_name=owner.display_name or owner.get_full_name(),
        amount_paise=amount,
        currency=currency,
        note=default_note(booking.pk),
    )


def create_payment(*, principal: Principal, booking_id) -> Payment:
    """
    Open a payment for a pending booking, priced from its current dates.

    Calling this again while the previous payment is still awaiting the
    tenant's transfer returns that same payment.
    """
    with transaction.atomic():
        try:
            booking = (
                Booking.objects.select_for_update()
                .select_related("property", "property__owner")
                .get(pk=booking_id)
            )
        except (Booking.DoesNotExist, ValueError, TypeError):
            raise NotFound("Booking not found.")

        if booking.tenant_id != principal.id:
            raise Forbidden("Only the tenant who made the booking can pay for it.")
        if booking.status != Booking.PENDING:
            raise IllegalTransition(
                "Booking is not awaiting payment.",
                current_status=booking.status,
            )

        existing = open_payment_for(booking)
        if existing is not None:
            if existing.status == Payment.AWAITING_PAYMENT:
                return existing
            raise IllegalTransition(
                "A payment for this booking is already awaiting owner verification.",
                current_status=existing.status,
            )

        quote = quote_stay(booking.check_in, booking.check_out, booking.property.price_per_night)
        currency = booking.property.currency or settings.PAYMENT_CURRENCY
        try:
            with transaction.atomic():
                payment = Payment.objects.create(
                    booking=booking,
                    tenant_id=booking.tenant_id,
                    owner_id=booking.property.owner_id,
                    amount=quote.amount,
                    currency=currency,
                    upi_uri=_build_uri(booking, quote.amount, currency),
                )
        except IntegrityError:
            raise IllegalTransition("A payment for this booking is already in progress.")

        audit.record(
            AuditLog.PAYMENT_CREATED,
            actor_id=principal.id,
            payment=payment,
            details=f"{quote.nights} night(s), {format_amount(quote.amount)} {currency}",
        )
    return payment


def reprice_payment(payment: Payment, booking: Booking, *, actor_id: int) -> Payment:
    """Recompute an unpaid payment's amount and UPI link after the booking dates changed."""
    quote = quote_stay(booking.check_in, booking.check_out, booking.property.price_per_night)
    uri = _build_uri(booking, quote.amount, payment.currency)
    if payment.amount == quote.amount and payment.upi_uri == uri:
        return payment
    previous = payment.amount
    transition_payment(
        payment,
        expected=Payment.AWAITING_PAYMENT,
        status=Payment.AWAITING_PAYMENT,
        amount=quote.amount,
        upi_uri=uri,
    )
    audit.record(
        AuditLog.PAYMENT_REPRICED,
        actor_id=actor_id,
        payment=payment,
        details=f"{format_amount(previous)} -> {format_amount(quote.amount)} {payment.currency}",
    )
    return payment


def submit_payment_proof(*, principal: Principal, payment_id, upi_reference: str | None = None) -> Payment:
    """
    Tenant declares the transfer was made. Repeating the call once the payment
    is already awaiting verification changes nothing.
    """
    reference = (upi_reference or "").strip() or None
    if reference and len(reference) > UPI_REFERENCE_MAX_LENGTH:
        raise ValidationError(f"UPI reference must be at most {UPI_REFERENCE_MAX_LENGTH} characters.")

    with transaction.atomic():
        payment = load_payment(payment_id, for_update=True)
        if payment.tenant_id != principal.id:
            raise Forbidden("Only the paying tenant can submit proof of payment.")
        if payment.status == Payment.AWAITING_OWNER_VERIFICATION:
            logger.info("Payment %s already submitted for verification; ignoring repeat", payment.pk)
            return payment
        if payment.status != Payment.AWAITING_PAYMENT:
            raise IllegalTransition(
                "Payment is not awaiting a transfer.",
                current_status=payment.status,
            )
        booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
        if booking.status not in Booking.ACTIVE_STATUSES:
            raise IllegalTransition(
                f"The booking is {booking.status.lower()}; no transfer can be submitted for it.",
                current_status=booking.status,
            )

        transition_payment(
            payment,
            expected=Payment.AWAITING_PAYMENT,
            status=Payment.AWAITING_OWNER_VERIFICATION,
            upi_reference=reference,
        )
        audit.record(
            AuditLog.PAYMENT_SUBMITTED,
            actor_id=principal.id,
            payment=payment,
            details=f"UPI reference {reference}" if reference else "No UPI reference supplied",
        )
    return payment


def refund_payment(*, principal: Principal, payment_id) -> Payment:
    with transaction.atomic():
        payment = load_payment(payment_id, for_update=True)
        if not (principal.is_admin or payment.owner_id == principal.id):
            raise Forbidden("Only the property owner or an administrator can refund a payment.")
        if payment.status != Payment.VERIFIED:
            raise IllegalTransition(
                "Only verified payments can be refunded.",
                current_status=payment.status,
            )

        verified_by_id, verified_at = payment.verified_by_id, payment.verified_at
        transition_payment(
            payment,
            expected=Payment.VERIFIED,
            status=Payment.REFUNDED,
            verified_by_id=None,
            verified_at=None,
            refunded_by_id=principal.id,
            refunded_at=timezone.now(),
        )
        Invoice.objects.filter(payment=payment).update(status=Invoice.VOID)
        audit.record(
            AuditLog.PAYMENT_REFUNDED,
            actor_id=principal.id,
            payment=payment,
            details=f"Previously verified by user {verified_by_id} at {verified_at:%Y-%m-%d %H:%M}",
        )
    return payment


def visible_payments(principal: Principal) -> QuerySet[Payment]:
    queryset = Payment.objects.select_related("booking", "booking__property", "tenant", "owner")
    if principal.is_admin:
        return queryset
    return queryset.filter(Q(tenant_id=principal.id) | Q(owner_id=principal.id))


def pending_verifications(principal: Principal) -> QuerySet[Payment]:
    """The owner's verification queue, oldest first."""
    return (
        visible_payments(principal)
        .filter(owner_id=principal.id, status=Payment.AWAITING_OWNER_VERIFICATION)
        .order_by("created_at", "id")
    )
