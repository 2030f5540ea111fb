from __future__ import annotations

import logging

from core.models import AuditLog

logger = logging.getLogger(__name__)


def record(
    action: str,
    *,
    actor_id: int | None,
    booking=None,
    payment=None,
    details: str = "",
) -> AuditLog:
    """Persist an audit entry and mirror it to the application log."""

    if booking is None and payment is not None:
        booking_id = payment.booking_id
    else:
        booking_id = getattr(booking, "pk", None)

    entry = AuditLog.objects.create(
        actor_id=actor_id,
        action=action,
        booking_id=booking_id,
        payment=payment,
        details=details[:500],
    )
    logger.info(
        "%s actor=%s booking=%s payment=%s %s",
        action,
        actor_id,
        booking_id,
        getattr(payment, "pk", None),
        details,
    )
    return entry
