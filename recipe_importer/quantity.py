"""Quantity parsing and formatting utilities for recipe ingredients.

All arithmetic is done on exact fractions; floats are only converted at the
edges so repeated scaling never accumulates rounding error.
"""
from __future__ import annotations

import logging
import math
import re
from decimal import Decimal
from fractions import Fraction

from .const import SIMPLIFY_TOLERANCE

_LOGGER = logging.getLogger(__name__)

# Unicode vulgar fractions to their ASCII form
VULGAR_FRACTIONS = {
    "¼": "1/4",
    "½": "1/2",
    "¾": "3/4",
    "⅐": "1/7",
    "⅑": "1/9",
    "⅒": "1/10",
    "⅓": "1/3",
    "⅔": "2/3",
    "⅕": "1/5",
    "⅖": "2/5",
    "⅗": "3/5",
    "⅘": "4/5",
    "⅙": "1/6",
    "⅚": "5/6",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}

FRACTION_SLASH = "⁄"

_VULGAR_RE = re.compile(r"(\d?)([%s])" % "".join(VULGAR_FRACTIONS))
_MIXED_RE = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")


def normalize_unicode_fractions(text: str) -> str:
    """Rewrite vulgar fraction glyphs as ASCII 'n/d'.

    A glyph directly after a digit is treated as the fractional part of a
    mixed number and separated by a space.

    Examples:
        >>> normalize_unicode_fractions('1½ cups')
        '1 1/2 cups'
        >>> normalize_unicode_fractions('¾ tsp salt')
        '3/4 tsp salt'
    """
    if not text:
        return text

    def replace(match: re.Match[str]) -> str:
        digit, glyph = match.groups()
        fraction = VULGAR_FRACTIONS[glyph]
        return f"{digit} {fraction}" if digit else fraction

    return _VULGAR_RE.sub(replace, text.replace(FRACTION_SLASH, "/"))


def coerce_factor(factor: object) -> Fraction | None:
    """Convert a scale factor into an exact positive fraction.

    Floats go through their shortest decimal repr so that 1.5 becomes 3/2
    rather than its binary expansion.

    Returns:
        The factor as a Fraction, or None if it is not a positive finite number
    """
    if isinstance(factor, bool):
        return None
    try:
        if isinstance(factor, Fraction):
            value = factor
        elif isinstance(factor, int):
            value = Fraction(factor)
        elif isinstance(factor, float):
            if not math.isfinite(factor):
                return None
            value = Fraction(str(factor))
        elif isinstance(factor, Decimal):
            if not factor.is_finite():
                return None
            value = Fraction(factor)
        elif isinstance(factor, str):
            value = parse_quantity(factor)
            if value is None:
                return None
        else:
            return None
    except (ValueError, ZeroDivisionError, OverflowError):
        return None

    return value if value > 0 else None


def multiply(quantity: Fraction, factor: object) -> Fraction:
    """Multiply a quantity by a scale factor exactly.

    Raises:
        ValueError: If the factor is not a positive finite number
    """
    exact_factor = coerce_factor(factor)
    if exact_factor is None:
        raise ValueError(f"Invalid scale factor: {factor!r}")
    return quantity * exact_factor


def _continued_fraction(value: Fraction) -> list[int]:
    terms = []
    numerator, denominator = value.numerator, value.denominator
    while denominator:
        whole = numerator // denominator
        terms.append(whole)
        numerator, denominator = denominator, numerator - whole * denominator
    return terms


def simplify(fraction: Fraction, tolerance: float = SIMPLIFY_TOLERANCE) -> Fraction:
    """Round to the simplest nearby fraction.

    Walks the continued-fraction convergents of the value and returns the
    first one within ``tolerance``. If none of the shorter convergents is
    close enough the fraction is returned unchanged.

    Examples:
        >>> simplify(Fraction(333, 1000))
        Fraction(1, 3)
        >>> simplify(Fraction(3, 2))
        Fraction(3, 2)
    """
    value = abs(fraction)
    terms = _continued_fraction(value)

    for length in range(1, len(terms)):
        convergent = Fraction(terms[length - 1])
        for term in reversed(terms[:length - 1]):
            convergent = 1 / convergent + term
        if abs(convergent - value) < tolerance:
            return convergent if fraction >= 0 else -convergent

    return fraction


def to_mixed_fraction(fraction: Fraction) -> str:
    """Render a fraction as 'w', 'n/d' or 'w n/d'."""
    sign = "-" if fraction < 0 else ""
    whole, remainder = divmod(abs(fraction.numerator), fraction.denominator)
    if not remainder:
        return f"{sign}{whole}"
    if not whole:
        return f"{sign}{remainder}/{fraction.denominator}"
    return f"{sign}{whole} {remainder}/{fraction.denominator}"


def parse_quantity(text: object) -> Fraction | None:
    """Parse a quantity like '2', '1/2', '1 1/2', '0.5' or '1½'.

    Args:
        text: The quantity text (numbers and Fractions are accepted as-is)

    Returns:
        The quantity as an exact Fraction, or None if it is missing,
        unparseable, or not positive
    """
    if text is None or isinstance(text, bool):
        return None

    if isinstance(text, (int, float, Fraction, Decimal)):
        return coerce_factor(text)

    if not isinstance(text, str):
        return None

    cleaned = normalize_unicode_fractions(text).strip()
    if not cleaned:
        return None

    match = _MIXED_RE.match(cleaned)
    if match:
        whole, numerator, denominator = (int(group) for group in match.groups())
        if denominator == 0:
            return None
        value = Fraction(whole * denominator + numerator, denominator)
    else:
        try:
            value = Fraction(cleaned)
        except (ValueError, ZeroDivisionError) as e:
            _LOGGER.debug("Failed to parse quantity '%s': %s", text, e)
            return None

    return value if value > 0 else None


def format_quantity(fraction: Fraction) -> str:
    """Format a quantity for display.

    Whole numbers come back as integers, anything else as a mixed fraction
    rounded to the nearest simple fraction. Amounts too small to round to a
    nonzero simple fraction are shown exactly.

    Examples:
        >>> format_quantity(Fraction(2))
        '2'
        >>> format_quantity(Fraction(3, 2))
        '1 1/2'
        >>> format_quantity(Fraction(2, 3))
        '2/3'
    """
    if fraction <= 0:
        return "0"
    if fraction.denominator == 1:
        return str(fraction.numerator)
    simplified = simplify(fraction)
    if simplified <= 0:
        return to_mixed_fraction(fraction)
    return to_mixed_fraction(simplified)
