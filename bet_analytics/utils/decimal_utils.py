"""Decimal arithmetic helpers for money, percentages and averages"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

HUNDRED = Decimal("100")
MONEY_PLACES = Decimal("0.01")
RATE_PLACES = Decimal("0.01")
ROI_PLACES = Decimal("0.0001")
ODD_PLACES = Decimal("0.0001")


def roi_percent(profit: Decimal, stake: Decimal) -> Decimal:
    """profit / stake * 100, 4dp half-up; zero stake yields 0"""
    if stake == 0:
        return Decimal("0.0000")
    return (profit * HUNDRED / stake).quantize(ROI_PLACES, rounding=ROUND_HALF_UP)


def rate_percent(part: int, total: int) -> Decimal:
    """part / total * 100, 2dp half-up; empty total yields 0"""
    if total == 0:
        return Decimal("0.00")
    return (Decimal(part) * HUNDRED / Decimal(total)).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def average(total: Decimal, count: int, places: Decimal = MONEY_PLACES) -> Optional[Decimal]:
    """Mean of a running total, or None before anything was counted"""
    if count == 0:
        return None
    return (total / Decimal(count)).quantize(places, rounding=ROUND_HALF_UP)
