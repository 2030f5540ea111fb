from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import qrcode
import qrcode.image.svg
from django.conf import settings
from qrcode.exceptions import DataOverflowError

from bookings.pricing import format_amount

logger = logging.getLogger(__name__)


@dataclass
class PaymentReference:
    """
    What a tenant needs to pay: the deep link, and a QR rendering of it when
    one could be produced. ``text`` is always present so the link stays
    visible even if the QR code is missing.
    """

    uri: str
    qr_data_url: Optional[str]

    @property
    def text(self) -> str:
        return self.uri


def build_upi_uri(
    *,
    payee: str,
    amount_paise: int,
    note: str,
    payee_name: str = "",
    currency: str | None = None,
) -> str:
    """
    Build a ``upi://pay`` deep link. Amounts are passed in paise and written
    in rupees with two decimals, which is what UPI apps expect in ``am``.
    """
    scheme = getattr(settings, "UPI_URI_SCHEME", "upi")
    currency = currency or getattr(settings, "PAYMENT_CURRENCY", "INR")
    params = [
        ("pa", quote(payee.strip(), safe="@.-_")),
    ]
    if payee_name:
        params.append(("pn", quote(payee_name, safe="")))
    params += [
        ("am", format_amount(amount_paise)),
        ("cu", currency),
        ("tn", quote(note, safe="")),
    ]
    query = "&".join(f"{key}={value}" for key, value in params)
    return f"{scheme}://pay?{query}"


def render_qr_data_url(uri: str) -> str | None:
    """Render ``uri`` as an SVG QR code data URL, or ``None`` if it cannot be encoded."""
    if not getattr(settings, "UPI_QR_ENABLED", True):
        return None
    try:
        image = qrcode.make(uri, image_factory=qrcode.image.svg.SvgPathImage, border=2)
        buffer = io.BytesIO()
        image.save(buffer)
    except (DataOverflowError, ValueError, TypeError, LookupError, OSError):
        logger.exception("QR rendering failed, falling back to raw UPI link")
        return None
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def build_payment_reference(uri: str) -> PaymentReference:
    return PaymentReference(uri=uri, qr_data_url=render_qr_data_url(uri))


def default_note(booking_id) -> str:
    prefix = getattr(settings, "UPI_DEFAULT_NOTE_PREFIX", "StayWell booking")
    return f"{prefix} #{booking_id}"
