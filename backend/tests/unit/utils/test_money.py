"""Unit tests for Decimal money helpers."""

from decimal import Decimal

from mentora.utils.money import percent_of, quantize_money, to_decimal


def test_quantize_rounds_half_up():
    assert quantize_money("2.345") == Decimal("2.35")
    assert quantize_money("2.344") == Decimal("2.34")
    assert quantize_money(10) == Decimal("10.00")


def test_float_goes_through_str():
    assert to_decimal(0.1) == Decimal("0.1")


def test_percent_of():
    assert percent_of(Decimal("200"), 25) == Decimal("50.00")
    assert percent_of("99.99", "3") == Decimal("3.00")
    assert percent_of(100, 0) == Decimal("0.00")
