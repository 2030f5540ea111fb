from __future__ import annotations

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail

from bookings.pricing import format_amount
from payments.models import Payment

logger = logging.getLogger(__name__)


def _format_from_email(owner_name: str) -> str:
    default_from = settings.DEFAULT_FROM_EMAIL
    email_addr = default_from
    if '<' in default_from and default_from.endswith('>'):
        email_addr = default_from.split('<', 1)[1].rstrip('>')
    return f"{owner_name} via StayWell <{email_addr}>"


def send_payment_decision_email(payment: Payment) -> bool:
    """
    Tell the tenant how the owner decided. Returns False if the mail could not
    be sent; the decision itself stands either way.
    """
    tenant = payment.tenant
    if not tenant.email:
        return False

    booking = payment.booking
    prop = booking.property
    owner_name = payment.owner.display_name or payment.owner.get_full_name() or "Your host"
    amount = f"{format_amount(payment.amount)} {payment.currency}"

    if payment.status == Payment.VERIFIED:
        subject = f"{prop.title}: payment verified, booking confirmed"
        outcome = [
            f"{owner_name} verified your payment of {amount}.",
            f"Your stay from {booking.check_in:%B %d, %Y} to {booking.check_out:%B %d, %Y} is confirmed.",
        ]
    elif payment.status == Payment.REJECTED:
        subject = f"{prop.title}: payment could not be verified"
        outcome = [
            f"{owner_name} could not verify your payment of {amount}.",
            f"Note from the owner: {payment.rejection_note}",
            "",
            "Your booking is still held. You can start a new payment from your dashboard.",
        ]
    else:
        return False

    body_lines = [
        f"Hi {tenant.display_name or tenant.get_full_name() or tenant.email},",
        "",
        *outcome,
        "",
        f"View your booking: {settings.FRONTEND_URL.rstrip('/')}/bookings/{booking.pk}",
        "",
        "— The StayWell Team",
    ]
    try:
        send_mail(
            subject,
            "\n".join(body_lines),
            _format_from_email(owner_name),
            [tenant.email],
            fail_silently=False,
        )
    except (SMTPException, OSError) as exc:
        logger.exception("Failed to send decision email for payment %s: %s", payment.pk, exc)
        return False
    return True
