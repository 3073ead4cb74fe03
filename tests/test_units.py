import pytest

from shiplink.utils.units import (
    format_number,
    from_kilograms,
    normalize_dimensions,
    normalize_weight_unit,
    round_weight,
    to_kilograms,
    to_major_units,
    to_minor_units,
)


@pytest.mark.parametrize("unit", ["gram", "ounce", "pound", "kilogram"])
@pytest.mark.parametrize("value", [0.001, 0.5, 1, 2.75, 13.3, 1000])
def test_weight_round_trip(unit, value):
    assert from_kilograms(to_kilograms(value, unit), unit) == pytest.approx(value)


@pytest.mark.parametrize("unit,expected", [
    ("kg", 1.0),
    ("g", 0.001),
    ("lb", 0.45359237),
    ("oz", 0.0283495231),
])
def test_fixed_conversion_factors(unit, expected):
    assert to_kilograms(1, unit) == pytest.approx(expected)


@pytest.mark.parametrize("alias,canonical", [
    ("KG", "kilogram"),
    ("lbs", "pound"),
    ("Ounces", "ounce"),
    (" g ", "gram"),
])
def test_weight_aliases(alias, canonical):
    assert normalize_weight_unit(alias) == canonical


def test_unknown_weight_unit_rejected():
    with pytest.raises(ValueError):
        normalize_weight_unit("stone")


def test_dimensions_metres_and_feet():
    assert normalize_dimensions(1, 0.5, 0.25, "m") == (100.0, 50.0, 25.0, "centimeter")
    assert normalize_dimensions(50, 20, 10, "mm") == (5.0, 2.0, 1.0, "centimeter")
    assert normalize_dimensions(1, 2, 0.5, "ft") == (12.0, 24.0, 6.0, "inch")


def test_cents_to_dollars():
    assert to_major_units(1234) == 12.34
    assert to_major_units(5) == 0.05
    assert to_major_units(0) == 0.0
    assert to_major_units(None) is None


def test_dollars_to_cents():
    assert to_minor_units(12.34) == 1234
    assert to_minor_units(0.005) == 1
    assert to_minor_units(None) is None


def test_round_weight_three_places():
    assert round_weight(3.5000000001) == 3.5
    assert round_weight(0.45359237 * 3) == 1.361


@pytest.mark.parametrize("value,text", [(2, "2"), (2.0, "2"), (2.50, "2.5"), (0.125, "0.125"), (10, "10")])
def test_format_number(value, text):
    assert format_number(value) == text
