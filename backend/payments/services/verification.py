from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from accounts.principal import Principal
from bookings.models import Booking
from core import audit
from core.exceptions import Forbidden, IllegalTransition, PartialFailure, ValidationError
from core.models import AuditLog
from payments.models import Invoice, Payment
from payments.services.consistency import confirm_booking_for_payment
from payments.services.emails import send_payment_decision_email
from payments.services.invoices import issue_invoice
from payments.services.payments import load_payment, transition_payment

logger = logging.getLogger(__name__)


@dataclass
class Decision:
    payment: Payment
    booking: Booking
    invoice: Optional[Invoice] = None


def decide(*, principal: Principal, payment_id, verified: bool, note: str | None = None) -> Decision:
    """
    Record the owner's verdict on a submitted payment.

    Verifying also confirms a pending booking and issues the invoice, all in
    one transaction. Rejecting needs a note and leaves the booking open for
    another payment attempt. If the payment and booking updates cannot be
    applied together, nothing is kept and ``PartialFailure`` carries the
    last-known state of both records.
    """
    note = (note or "").strip()
    try:
        with transaction.atomic():
            payment = load_payment(payment_id, for_update=True)
            if payment.owner_id != principal.id:
                raise Forbidden("Only the property owner can verify this payment.")
            if payment.status != Payment.AWAITING_OWNER_VERIFICATION:
                if payment.status in Payment.FINAL_STATUSES:
                    detail = f"Payment was already {payment.status.lower()}."
                else:
                    detail = "Payment has not been submitted for verification."
                raise IllegalTransition(detail, current_status=payment.status)
            if not verified and not note:
                raise ValidationError("A note is required when rejecting a payment.")

            now = timezone.now()
            invoice = None
            if verified:
                transition_payment(
                    payment,
                    expected=Payment.AWAITING_OWNER_VERIFICATION,
                    status=Payment.VERIFIED,
                    verified_by_id=principal.id,
                    verified_at=now,
                )
                audit.record(AuditLog.PAYMENT_VERIFIED, actor_id=principal.id, payment=payment)
                booking = confirm_booking_for_payment(payment, actor_id=principal.id)
                invoice = issue_invoice(payment, actor_id=principal.id)
            else:
                transition_payment(
                    payment,
                    expected=Payment.AWAITING_OWNER_VERIFICATION,
                    status=Payment.REJECTED,
                    verified_by_id=principal.id,
                    verified_at=now,
                    rejection_note=note,
                )
                audit.record(
                    AuditLog.PAYMENT_REJECTED,
                    actor_id=principal.id,
                    payment=payment,
                    details=f"Reason: {note}",
                )
                booking = Booking.objects.get(pk=payment.booking_id)
    except DatabaseError as exc:
        logger.exception("Decision on payment %s was not applied", payment_id)
        raise PartialFailure(
            payment=Payment.objects.filter(pk=payment_id).first(),
            booking=Booking.objects.filter(payments__pk=payment_id).first(),
        ) from exc

    send_payment_decision_email(payment)
    return Decision(payment=payment, booking=booking, invoice=invoice)
