from __future__ import annotations

from datetime import datetime

from django.utils import timezone

from bookings.pricing import count_nights, format_amount
from core import audit
from core.models import AuditLog
from payments.models import Invoice, Payment


def generate_invoice_no(payment: Payment, now: datetime | None = None) -> str:
    now = now or timezone.now()
    return f"INV-{now:%Y%m%d%H%M%S}-{str(payment.pk)[-6:].zfill(6)}"


def issue_invoice(payment: Payment, *, actor_id: int | None) -> Invoice:
    """Issue the paid invoice for a verified payment; one per payment."""
    existing = Invoice.objects.filter(payment=payment).first()
    if existing is not None:
        return existing

    booking = payment.booking
    nights = count_nights(booking.check_in, booking.check_out)
    invoice = Invoice.objects.create(
        invoice_no=generate_invoice_no(payment),
        payment=payment,
        booking=booking,
        tenant_id=payment.tenant_id,
        owner_id=payment.owner_id,
        amount=payment.amount,
        currency=payment.currency,
        status=Invoice.PAID,
        line_items=[
            {
                "description": f"Accommodation for booking {booking.pk}",
                "nights": nights,
                "amount": payment.amount,
            }
        ],
        details=f"Payment verified for booking {booking.pk}",
    )
    audit.record(
        AuditLog.INVOICE_GENERATED,
        actor_id=actor_id,
        payment=payment,
        details=f"Invoice {invoice.invoice_no} for {format_amount(invoice.amount)} {invoice.currency}",
    )
    return invoice
