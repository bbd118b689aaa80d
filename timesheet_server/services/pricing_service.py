import math
from enum import Enum
from typing import Optional

from timesheet_server.core.errors import PricingError
from timesheet_server.models.wage import ShiftSplit, WageWindowConfig
from timesheet_server.services.split_service import round_half_up

class PricingMode(str, Enum):
    SPLIT = "split"   # morning/night rates
    FLAT = "flat"     # one rate for the whole shift

def _require(value: Optional[float], name: str) -> float:
    """Reject missing, non-finite or negative inputs instead of defaulting them"""
    if value is None:
        raise PricingError(f"{name} is not configured")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise PricingError(f"{name} is not a number: {value!r}")
    if not math.isfinite(number):
        raise PricingError(f"{name} is not finite: {value!r}")
    if number < 0:
        raise PricingError(f"{name} is negative: {value!r}")
    return number

def price_shift(split: ShiftSplit, config: WageWindowConfig, mode: PricingMode = PricingMode.SPLIT) -> float:
    """Monetary amount for a split shift, rounded to cents"""
    if mode == PricingMode.SPLIT:
        amount = (_require(split.morning_hours, "morning_hours") * _require(config.morning_rate, "morning_rate")
                  + _require(split.night_hours, "night_hours") * _require(config.night_rate, "night_rate"))
    elif mode == PricingMode.FLAT:
        amount = _require(split.total_hours, "total_hours") * _require(config.flat_rate, "flat_rate")
    else:
        raise PricingError(f"Unknown pricing mode: {mode!r}")

    return max(0.0, round_half_up(amount))
