"""Tests for Decimal coercion of quantities and money."""

from decimal import Decimal

import pytest

from recon_kernel.domain.values import parse_decimal, to_decimal


class TestToDecimal:
    def test_decimal_passthrough(self):
        assert to_decimal(Decimal("1.50")) == Decimal("1.50")

    def test_int(self):
        assert to_decimal(3) == Decimal("3")

    def test_float_uses_shortest_repr(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_string(self):
        assert to_decimal("12.5") == Decimal("12.5")

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            to_decimal(True)

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("Infinity"), float("inf")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)


class TestParseDecimal:
    def test_plain_convention(self):
        assert parse_decimal("1234.56") == Decimal("1234.56")

    def test_comma_decimal_separator(self):
        assert parse_decimal("1.234,56") == Decimal("1234.56")

    def test_comma_only(self):
        assert parse_decimal("2,5") == Decimal("2.5")

    def test_currency_symbol_and_spaces(self):
        assert parse_decimal(" R$ 1.000,00 ") == Decimal("1000.00")

    def test_negative(self):
        assert parse_decimal("-3,25") == Decimal("-3.25")

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1.500", Decimal("1500")),
            ("12.345.678", Decimal("12345678")),
            ("-2.000", Decimal("-2000")),
        ],
    )
    def test_thousands_groups_without_comma(self, text, expected):
        """Dotted thousands with no decimal part are not fractions."""
        assert parse_decimal(text) == expected

    def test_to_decimal_reads_thousands_groups(self):
        assert to_decimal("1.500") == Decimal("1500")

    @pytest.mark.parametrize("text", ["1.5", "12.50", "1234.567"])
    def test_plain_fractions_kept(self, text):
        assert parse_decimal(text) == Decimal(text)

    @pytest.mark.parametrize("text", ["", "   ", "abc", "1,2,3x"])
    def test_invalid_rejected(self, text):
        with pytest.raises(ValueError):
            parse_decimal(text)

    def test_nan_rejected(self):
        with pytest.raises(ValueError):
            parse_decimal("NaN")
