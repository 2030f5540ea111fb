from __future__ import annotations

import logging
from typing import Any

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class StayError(Exception):
    """Base class for booking and payment lifecycle failures."""

    code = "STAY_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be completed."

    def __init__(self, detail: str | None = None, **context: Any):
        self.detail = detail or self.default_detail
        self.context = context
        super().__init__(self.detail)

    def as_payload(self) -> dict[str, Any]:
        return {"code": self.code, "detail": self.detail}


class InvalidRange(StayError):
    code = "INVALID_RANGE"
    default_detail = "Check-out date must be after check-in date."


class ValidationError(StayError):
    code = "VALIDATION_ERROR"
    default_detail = "A required field is missing or invalid."


class Forbidden(StayError):
    code = "FORBIDDEN"
    http_status = status.HTTP_403_FORBIDDEN
    default_detail = "You are not permitted to perform this action."


class NotFound(StayError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


class IllegalTransition(StayError):
    code = "ILLEGAL_TRANSITION"
    http_status = status.HTTP_409_CONFLICT
    default_detail = "That status change is not allowed."

    def __init__(self, detail: str | None = None, *, current_status: str | None = None, **context: Any):
        super().__init__(detail, **context)
        self.current_status = current_status

    def as_payload(self) -> dict[str, Any]:
        payload = super().as_payload()
        if self.current_status:
            payload["current_status"] = self.current_status
        return payload


class DatesUnavailable(StayError):
    code = "DATES_UNAVAILABLE"
    http_status = status.HTTP_409_CONFLICT
    default_detail = "Property is not available for the selected dates."


class PartialFailure(StayError):
    """
    Raised when the payment and booking updates of a decision could not be
    applied together. Carries the last-known state of both records so the
    caller can re-sync.
    """

    code = "PARTIAL_FAILURE"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "The decision was not fully applied. Reload both records."

    def __init__(self, detail: str | None = None, *, payment=None, booking=None):
        super().__init__(detail)
        self.payment = payment
        self.booking = booking


def stay_exception_handler(exc, context):
    """DRF exception handler that understands the lifecycle error taxonomy."""

    if not isinstance(exc, StayError):
        return exception_handler(exc, context)

    payload = exc.as_payload()
    if isinstance(exc, PartialFailure):
        # Imported lazily; serializers import models which import this module.
        from bookings.serializers import BookingSerializer
        from payments.serializers import PaymentSerializer

        payload["payment"] = PaymentSerializer(exc.payment).data if exc.payment else None
        payload["booking"] = BookingSerializer(exc.booking).data if exc.booking else None
        logger.error("Partial failure surfaced to client: %s", exc.detail)

    return Response(payload, status=exc.http_status)
