"""Tests for quantity parsing and formatting."""
from fractions import Fraction

import pytest

from recipe_importer.quantity import (
    coerce_factor,
    format_quantity,
    multiply,
    normalize_unicode_fractions,
    parse_quantity,
    simplify,
    to_mixed_fraction,
)


class TestNormalizeUnicodeFractions:

    @pytest.mark.parametrize("text, expected", [
        ("1½ cups", "1 1/2 cups"),
        ("¾ tsp salt", "3/4 tsp salt"),
        ("2⅓ cups flour", "2 1/3 cups flour"),
        ("1 ½ cups", "1 1/2 cups"),
        ("⅛ tsp and ⅞ cup", "1/8 tsp and 7/8 cup"),
        ("1⁄2 cup", "1/2 cup"),
        ("no fractions here", "no fractions here"),
        ("", ""),
    ])
    def test_rewrites_glyphs(self, text, expected):
        assert normalize_unicode_fractions(text) == expected

    def test_only_ascii_digits_and_slashes_remain(self):
        result = normalize_unicode_fractions("¼½¾⅐⅑⅒⅓⅔⅕⅖⅗⅘⅙⅚⅛⅜⅝⅞")
        assert all(char.isdigit() or char == "/" for char in result)


class TestParseQuantity:

    @pytest.mark.parametrize("text, expected", [
        ("2", Fraction(2)),
        ("1/4", Fraction(1, 4)),
        ("1 1/2", Fraction(3, 2)),
        ("0.5", Fraction(1, 2)),
        ("1½", Fraction(3, 2)),
        ("½", Fraction(1, 2)),
        (" 3 ", Fraction(3)),
    ])
    def test_parses_positive_quantities(self, text, expected):
        assert parse_quantity(text) == expected

    @pytest.mark.parametrize("text", [
        "0", "-1", "abc", "1/0", "2 3/0", "", "   ", None, "1 2", "nan", True,
    ])
    def test_rejects_invalid_quantities(self, text):
        assert parse_quantity(text) is None

    def test_mixed_number_value(self):
        assert float(parse_quantity("1 1/2")) == 1.5


class TestFormatQuantity:

    @pytest.mark.parametrize("fraction, expected", [
        (Fraction(2), "2"),
        (Fraction(3, 2), "1 1/2"),
        (Fraction(2, 3), "2/3"),
        (Fraction(29, 2), "14 1/2"),
        (Fraction(333, 1000), "1/3"),
        (Fraction(101, 50), "2"),
        (Fraction(0), "0"),
        (Fraction(1, 40), "1/40"),
        (Fraction(1, 100), "1/100"),
    ])
    def test_formats(self, fraction, expected):
        assert format_quantity(fraction) == expected

    def test_round_trips_canonical_text(self):
        assert format_quantity(parse_quantity("1 1/2")) == "1 1/2"
        assert format_quantity(parse_quantity("2")) == "2"


class TestFractionHelpers:

    def test_simplify_keeps_fraction_without_closer_convergent(self):
        assert simplify(Fraction(3, 2)) == Fraction(3, 2)

    def test_simplify_rounds_to_simple_fraction(self):
        assert simplify(Fraction(7, 20)) == Fraction(1, 3)

    def test_to_mixed_fraction(self):
        assert to_mixed_fraction(Fraction(7, 4)) == "1 3/4"
        assert to_mixed_fraction(Fraction(3, 4)) == "3/4"
        assert to_mixed_fraction(Fraction(4)) == "4"

    @pytest.mark.parametrize("factor, expected", [
        (2, Fraction(2)),
        (1.5, Fraction(3, 2)),
        ("3/4", Fraction(3, 4)),
        (Fraction(1, 3), Fraction(1, 3)),
    ])
    def test_coerce_factor(self, factor, expected):
        assert coerce_factor(factor) == expected

    @pytest.mark.parametrize("factor", [0, -2, float("nan"), float("inf"), True, None, "x"])
    def test_coerce_factor_rejects_invalid(self, factor):
        assert coerce_factor(factor) is None

    def test_multiply_is_exact(self):
        result = Fraction(1, 3)
        for _ in range(3):
            result = multiply(result, 3)
        assert result == Fraction(9)

    def test_multiply_rejects_invalid_factor(self):
        with pytest.raises(ValueError):
            multiply(Fraction(1), 0)
