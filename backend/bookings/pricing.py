from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime

from core.exceptions import InvalidRange, ValidationError

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class StayQuote:
    nights: int
    price_per_night: int
    amount: int


def count_nights(check_in: date | datetime, check_out: date | datetime) -> int:
    """
    Whole nights between check-in and check-out, rounding partial days up.

    Raises ``InvalidRange`` when check-out is not after check-in.
    """
    delta = check_out - check_in
    nights = math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
    if nights <= 0:
        raise InvalidRange("Check-out date must be after check-in date.")
    return nights


def quote_stay(
    check_in: date | datetime,
    check_out: date | datetime,
    price_per_night: int,
) -> StayQuote:
    """
    Price a stay in minor units (paise). Never cache the result: it must be
    recomputed from the current dates every time they change.
    """
    if isinstance(price_per_night, bool) or not isinstance(price_per_night, int) or price_per_night <= 0:
        raise ValidationError("Nightly rate must be a positive amount in paise.")
    nights = count_nights(check_in, check_out)
    return StayQuote(nights=nights, price_per_night=price_per_night, amount=nights * price_per_night)


def calculate_amount(check_in, check_out, price_per_night: int) -> int:
    return quote_stay(check_in, check_out, price_per_night).amount


def format_amount(paise: int) -> str:
    """Render paise as a major-unit string, e.g. 10500000 -> "105000.00"."""
    sign = "-" if paise < 0 else ""
    paise = abs(paise)
    return f"{sign}{paise // 100}.{paise % 100:02d}"
