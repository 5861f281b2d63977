"""
Unit conversion to the common base unit (ounces).

Volumes are converted with fixed kitchen ratios (1 cup = 8 oz), so the result
is exact for water-like liquids and an approximation for everything else.
Unknown units degrade to a multiplier of 1 and are reported as unrecognized.
"""

import logging
from typing import NamedTuple

logger = logging.getLogger(__name__)

OUNCES_PER_UNIT = {
    "oz": 1,
    "lb": 16,
    "cup": 8,
    "tbsp": 0.5,
    "tsp": 0.167,
    "g": 0.035274,
    "kg": 35.274,
}

SUPPORTED_UNITS = tuple(OUNCES_PER_UNIT)


class BaseQuantity(NamedTuple):
    ounces: float
    unit_recognized: bool


def normalize_unit(unit) -> str:
    return (unit or "").strip().lower()


def is_known_unit(unit) -> bool:
    return normalize_unit(unit) in OUNCES_PER_UNIT


def convert_to_ounces(quantity: float, unit: str) -> BaseQuantity:
    """
    Convert a quantity to ounces, flagging whether the unit was recognized.

    An unrecognized unit is treated as already being ounces.
    """
    ratio = OUNCES_PER_UNIT.get(normalize_unit(unit))
    if ratio is None:
        logger.warning("Unrecognized unit %r, treating %s as ounces", unit, quantity)
        return BaseQuantity(float(quantity), False)
    return BaseQuantity(float(quantity) * ratio, True)


def to_base_unit(quantity: float, unit: str) -> float:
    return convert_to_ounces(quantity, unit).ounces
