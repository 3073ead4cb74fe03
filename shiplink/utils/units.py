"""
Unit and currency conversions.

Weights are normalized to the provider's four units (ounce, pound, gram,
kilogram). Dimensions accept a wider input vocabulary and are normalized to
inch or centimeter. Money crosses the provider boundary in major units;
internally it is integer minor units (cents).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple, Union

Number = Union[int, float]

# Kilograms per unit
KG_PER_UNIT = {
    "kilogram": 1.0,
    "gram": 0.001,
    "pound": 0.45359237,
    "ounce": 0.0283495231,
}

WEIGHT_UNIT_ALIASES = {
    "kg": "kilogram",
    "kgs": "kilogram",
    "kilogram": "kilogram",
    "kilograms": "kilogram",
    "g": "gram",
    "gram": "gram",
    "grams": "gram",
    "lb": "pound",
    "lbs": "pound",
    "pound": "pound",
    "pounds": "pound",
    "oz": "ounce",
    "ounce": "ounce",
    "ounces": "ounce",
}

# (canonical unit, factor to reach it)
DIMENSION_UNIT_ALIASES = {
    "in": ("inch", 1.0),
    "inch": ("inch", 1.0),
    "inches": ("inch", 1.0),
    "ft": ("inch", 12.0),
    "feet": ("inch", 12.0),
    "cm": ("centimeter", 1.0),
    "centimeter": ("centimeter", 1.0),
    "centimeters": ("centimeter", 1.0),
    "mm": ("centimeter", 0.1),
    "millimeter": ("centimeter", 0.1),
    "millimeters": ("centimeter", 0.1),
    "m": ("centimeter", 100.0),
    "meter": ("centimeter", 100.0),
    "meters": ("centimeter", 100.0),
}

CM_PER_INCH = 2.54


def normalize_weight_unit(unit: Optional[str]) -> str:
    """Map an input weight unit to ounce/pound/gram/kilogram.

    Raises ValueError for anything unrecognized.
    """
    key = (unit or "").strip().lower()
    if key not in WEIGHT_UNIT_ALIASES:
        raise ValueError(f"Unsupported weight unit: {unit!r}")
    return WEIGHT_UNIT_ALIASES[key]


def to_kilograms(value: Number, unit: Optional[str]) -> float:
    return float(value) * KG_PER_UNIT[normalize_weight_unit(unit)]


def from_kilograms(value: Number, unit: str) -> float:
    return float(value) / KG_PER_UNIT[normalize_weight_unit(unit)]


def normalize_dimensions(
    length: Number,
    width: Number,
    height: Number,
    unit: Optional[str],
) -> Tuple[float, float, float, str]:
    """
    Convert dimensions to inch or centimeter.

    Metres and millimetres become centimetres, feet become inches.

    Returns:
        (length, width, height, canonical_unit)
    """
    key = (unit or "").strip().lower()
    if key not in DIMENSION_UNIT_ALIASES:
        raise ValueError(f"Unsupported dimension unit: {unit!r}")
    canonical, factor = DIMENSION_UNIT_ALIASES[key]
    return (
        round(float(length) * factor, 3),
        round(float(width) * factor, 3),
        round(float(height) * factor, 3),
        canonical,
    )


def to_centimeters(value: Number, unit: str) -> float:
    length, _, _, canonical = normalize_dimensions(value, 0, 0, unit)
    return length * CM_PER_INCH if canonical == "inch" else length


def round_weight(value: Number) -> float:
    """Round to 3 decimals, half away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP))


def to_major_units(minor: Optional[Number]) -> Optional[float]:
    """Cents to dollars. None stays None."""
    if minor is None:
        return None
    return float(Decimal(str(minor)) / Decimal(100))


def to_minor_units(major: Optional[Number]) -> Optional[int]:
    """Dollars to cents, rounded half up. None stays None."""
    if major is None:
        return None
    return int((Decimal(str(major)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_number(value: Number) -> str:
    """Render a number without trailing zeros (2.0 -> "2", 2.50 -> "2.5")."""
    d = Decimal(str(round(float(value), 6))).normalize()
    text = format(d, "f")
    return "0" if text in ("-0", "") else text
