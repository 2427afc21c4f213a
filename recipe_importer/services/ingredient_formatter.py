"""
Ingredient Formatter and Scaler.

This module rescales ingredient quantities for display. Quantities are
multiplied as exact fractions and re-emitted in canonical form ('2', '1/2',
'1 1/2'); units and all other text are left untouched.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from fractions import Fraction
from typing import Any, Union

from ..models.recipe import Ingredient
from ..quantity import (
    coerce_factor,
    format_quantity,
    normalize_unicode_fractions,
    parse_quantity,
)

_LOGGER = logging.getLogger(__name__)

IngredientLike = Union[Ingredient, Mapping[str, Any]]

# Mixed number first so a plain number does not eat the whole part
QUANTITY_PATTERN = r"\d+\s+\d+/\d+|\d+/\d+|\d+\.?\d*"

_LEADING_QUANTITY_RE = re.compile(rf"^({QUANTITY_PATTERN})(.*)$", re.DOTALL)
_QUANTITY_RE = re.compile(QUANTITY_PATTERN)
_PARENTHETICAL_RE = re.compile(r"\(([^)]+)\)")
_TEMPERATURE_RE = re.compile(r"\s*°\s*[FCK]", re.IGNORECASE)


def _field(ingredient: IngredientLike, key: str) -> str | None:
    if isinstance(ingredient, Ingredient):
        value = getattr(ingredient, key)
    elif isinstance(ingredient, Mapping):
        value = ingredient.get(key)
    else:
        return None
    if isinstance(value, str) and value.strip():
        return value
    return None


def _scale_value(quantity: Fraction, factor: Fraction) -> str:
    return format_quantity(quantity * factor)


def scale_parentheticals(text: str, factor: Fraction) -> str:
    """Scale every quantity inside '(...)' groups of ``text``.

    Groups mentioning a percentage are left alone (fat content, ratios), as
    are numbers directly followed by a degree sign (temperatures).

    Example at 2x:
        'white sugar (1 cup; 205g)' -> 'white sugar (2 cup; 410g)'
    """

    def scale_group(group: re.Match[str]) -> str:
        inner = group.group(1)
        if "%" in inner or "percent" in inner.lower():
            return group.group(0)

        inner = normalize_unicode_fractions(inner)

        def scale_token(token: re.Match[str]) -> str:
            number = token.group(0)
            if _TEMPERATURE_RE.match(inner, token.end()):
                return number
            quantity = parse_quantity(number.strip())
            if quantity is None:
                return number
            return _scale_value(quantity, factor)

        return f"({_QUANTITY_RE.sub(scale_token, inner)})"

    return _PARENTHETICAL_RE.sub(scale_group, text)


def _scale_structured(ingredient: IngredientLike, factor: Fraction) -> str | None:
    amount = _field(ingredient, "amount")
    if amount is None:
        return None

    quantity = parse_quantity(amount.strip())
    if quantity is None:
        _LOGGER.debug("Ignoring unparseable amount '%s'", amount)
        return None

    parts = [
        part.strip() for part in (
            _field(ingredient, "unit"), _field(ingredient, "name"))
        if part
    ]
    tail = " ".join(parts)
    notes = _field(ingredient, "notes")
    if notes:
        tail += f", {notes.strip()}"

    scaled = _scale_value(quantity, factor)
    if not tail:
        return scaled
    return f"{scaled} {scale_parentheticals(tail, factor)}"


def _scale_raw(raw: str, factor: Fraction) -> str | None:
    text = normalize_unicode_fractions(raw.strip())
    match = _LEADING_QUANTITY_RE.match(text)
    if not match:
        return None

    amount, rest = match.groups()
    quantity = parse_quantity(amount.strip())
    if quantity is None:
        return None

    return _scale_value(quantity, factor) + scale_parentheticals(rest, factor)


def scale_ingredient(ingredient: IngredientLike, factor: object) -> str | None:
    """Build the display string for an ingredient scaled by ``factor``.

    Uses the parsed amount/unit/name/notes fields when the amount is valid,
    otherwise rewrites the leading quantity of the raw text.

    Args:
        ingredient: An Ingredient, or a mapping with the same keys
        factor: Positive scale factor (int, float, Fraction or numeric string)

    Returns:
        The scaled text, or None if the ingredient has no scalable quantity;
        callers then display ``ingredient.raw`` unchanged

    Examples at 2x:
        '1 1/2 cups flour' -> '3 cups flour'
        '1/4 cup butter'   -> '1/2 cup butter'
        'salt to taste'    -> None
    """
    exact_factor = coerce_factor(factor)
    if exact_factor is None:
        _LOGGER.warning("Cannot scale ingredient: invalid factor %r", factor)
        return None

    if not isinstance(ingredient, (Ingredient, Mapping)):
        _LOGGER.warning("Cannot scale ingredient of type %s",
                        type(ingredient).__name__)
        return None

    scaled = _scale_structured(ingredient, exact_factor)
    if scaled is not None:
        return scaled

    raw = _field(ingredient, "raw")
    if raw is None:
        return None
    return _scale_raw(raw, exact_factor)


def scale_ingredients(
    ingredients: Iterable[IngredientLike],
    factor: object
) -> list[str]:
    """Scale a list of ingredients for display.

    Ingredients that cannot be scaled are shown with their raw text.

    Args:
        ingredients: Ingredients in display order
        factor: Positive scale factor

    Returns:
        One display string per ingredient
    """
    lines = []
    for idx, ingredient in enumerate(ingredients):
        scaled = scale_ingredient(ingredient, factor)
        if scaled is None:
            scaled = _field(ingredient, "raw") or ""
            _LOGGER.debug("Ingredient %d not scalable, showing raw text: '%s'",
                          idx + 1, scaled)
        lines.append(scaled)
    return lines


def scale_factor_for_servings(
    original_servings: int | None,
    target_servings: int | float | None
) -> Fraction | None:
    """Compute the scale factor to go from one serving count to another.

    Returns:
        target / original as an exact fraction, or None when either value is
        missing or not positive
    """
    original = coerce_factor(original_servings)
    target = coerce_factor(target_servings)
    if original is None or target is None:
        _LOGGER.warning(
            "Cannot scale recipe: servings %r -> %r", original_servings, target_servings)
        return None

    factor = target / original
    _LOGGER.info("Scaling from %s to %s servings (factor: %s)",
                 original_servings, target_servings, factor)
    return factor
