"""Rounding helpers for clinical figures"""
import math
from decimal import ROUND_FLOOR, Decimal
from typing import Optional


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero

    Built-in round() sends halves to the even neighbour (round(86.5) == 86);
    sleep efficiency is reported the conventional way (87).
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def round_tenth(value: Optional[float]) -> Optional[float]:
    """One decimal place, for week-over-week differences"""
    if value is None:
        return None
    return round_half_up(value * 10) / 10


def floor_tenth(value: float) -> float:
    """
    Truncate toward negative infinity at one decimal place

    Used where a displayed figure is compared against a threshold: 89.96
    shows as 89.9, never as a value that reads as having reached 90.
    """
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_FLOOR))
