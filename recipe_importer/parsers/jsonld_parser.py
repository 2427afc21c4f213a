"""
JSON-LD Recipe Parser.

This module locates a Schema.org Recipe inside parsed JSON-LD data and maps
it into a ScrapedRecipe. Every field read tolerates absence or the wrong
type; a missing field is omitted rather than failing the extraction.
"""
from __future__ import annotations

import html
import logging
import math
import re
from typing import Any

from ..const import RECIPE_TYPES
from ..models.recipe import Ingredient, InstructionStep, PageMeta, ScrapedRecipe
from ..quantity import parse_quantity
from .base_parser import BaseRecipeParser

_LOGGER = logging.getLogger(__name__)

# Common unit abbreviations and full names
UNITS = (
    r"(?:cups?|c|tablespoons?|tbsps?|tbs|tbl|tb|teaspoons?|tsps?|t|"
    r"fluid ounces?|fl\.? oz|ounces?|oz|pounds?|lbs?|grams?|g|kilograms?|kg|"
    r"milliliters?|millilitres?|ml|liters?|litres?|l|dl|pints?|pt|quarts?|qt|"
    r"gallons?|gal|pinch(?:es)?|dash(?:es)?|cloves?|pieces?|slices?|cans?|"
    r"packages?|sticks?|sprigs?|bunch(?:es)?|heads?|stalks?|handfuls?)"
)

_INGREDIENT_RE = re.compile(
    rf"^(?P<amount>[\d¼-¾⅐-⅞][\d/.\s¼-¾⅐-⅞]*)\s+"
    rf"(?:(?P<unit>{UNITS}\.?)\s+)?"
    rf"(?P<name>.+)$",
    re.IGNORECASE,
)
_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?")
_LEADING_INTEGER_RE = re.compile(r"\s*(\d+)")
_WHITESPACE_RE = re.compile(r"\s+")


def decode_html_entities(text: str) -> str:
    """Decode HTML entities and collapse runs of whitespace."""
    return _WHITESPACE_RE.sub(" ", html.unescape(text)).strip()


def _text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return decode_html_entities(value) or None


def _has_type(node: Any, type_name: str) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return type_name in node_type
    return node_type == type_name


def is_recipe_type(node_type: Any) -> bool:
    """Check whether an '@type' value names a Schema.org Recipe."""
    if isinstance(node_type, str):
        return node_type in RECIPE_TYPES
    if isinstance(node_type, list):
        return any(isinstance(t, str) and t in RECIPE_TYPES for t in node_type)
    return False


def find_recipe_node(node: Any) -> dict[str, Any] | None:
    """Search JSON-LD data depth-first for the first Recipe node.

    Handles top-level arrays, a Recipe object itself, '@graph' wrappers and
    'mainEntity' wrappers (a WebPage around the Recipe), nested arbitrarily.

    Args:
        node: Parsed JSON-LD (object, array, or anything else)

    Returns:
        The raw Recipe node, or None if there is none
    """
    if isinstance(node, list):
        for item in node:
            found = find_recipe_node(item)
            if found is not None:
                return found
        return None

    if not isinstance(node, dict):
        return None

    if is_recipe_type(node.get("@type")):
        return node

    for wrapper_key in ("@graph", "mainEntity"):
        if wrapper_key in node:
            found = find_recipe_node(node[wrapper_key])
            if found is not None:
                return found

    return None


def parse_duration(value: Any) -> int | None:
    """Convert an ISO-8601 duration like 'PT1H30M' to minutes.

    Returns:
        Total minutes, or None when the value is missing or adds up to zero
    """
    if not isinstance(value, str):
        return None
    match = _DURATION_RE.search(value)
    if not match:
        return None
    hours, minutes = (int(group) if group else 0 for group in match.groups())
    total = hours * 60 + minutes
    return total if total > 0 else None


def parse_servings(recipe_yield: Any) -> int | None:
    """Read a serving count from recipeYield.

    Accepts a number, a string like '8-10 servings' (leading integer wins) or
    an array of either (first element wins).
    """
    if isinstance(recipe_yield, list):
        recipe_yield = recipe_yield[0] if recipe_yield else None

    if isinstance(recipe_yield, bool):
        return None
    if isinstance(recipe_yield, (int, float)):
        if not math.isfinite(recipe_yield):
            return None
        servings = int(recipe_yield)
    elif isinstance(recipe_yield, str):
        match = _LEADING_INTEGER_RE.match(recipe_yield)
        if not match:
            return None
        servings = int(match.group(1))
    else:
        return None

    return servings if servings > 0 else None


def _positive_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 and math.isfinite(number) else 0.0


def pick_best_image(images: list[Any]) -> str | None:
    """Choose one URL from a list of image crops.

    Sites often list several crops, e.g. [1:1, 4:3, 16:9]. The widest aspect
    ratio wins since the recipe page shows a wide banner. Without any
    dimension metadata the last entry is used (widest by convention).
    """
    best_url = None
    best_ratio = -1.0
    has_any_dimensions = False

    for image in images:
        url = image if isinstance(image, str) else (
            image.get("url") if isinstance(image, dict) else None)
        if not isinstance(url, str) or not url:
            continue

        width = height = 0.0
        if isinstance(image, dict):
            width = _positive_number(image.get("width"))
            height = _positive_number(image.get("height"))

        if width and height:
            has_any_dimensions = True
            ratio = width / height
            if ratio > best_ratio:
                best_ratio = ratio
                best_url = url
        elif not has_any_dimensions:
            best_url = url

    return best_url


def parse_image(image: Any) -> str | None:
    """Read an image URL from a string, an ImageObject or an array of either."""
    if isinstance(image, str):
        return image or None
    if isinstance(image, list):
        return pick_best_image(image) if image else None
    if isinstance(image, dict):
        url = image.get("url")
        if isinstance(url, str) and url:
            return url
        if isinstance(url, list):
            return pick_best_image(url)
    return None


def parse_keywords(keywords: Any) -> list[str]:
    """Split keywords into a flat, de-duplicated tag list."""
    if isinstance(keywords, str):
        entries = [keywords]
    elif isinstance(keywords, list):
        entries = [entry for entry in keywords if isinstance(entry, str)]
    else:
        return []

    tags = []
    seen = set()
    for entry in entries:
        for tag in html.unescape(entry).split(","):
            tag = tag.strip()
            if tag and tag.lower() not in seen:
                seen.add(tag.lower())
                tags.append(tag)
    return tags


def _instruction_texts(instructions: Any) -> list[str]:
    if isinstance(instructions, str):
        return instructions.splitlines()
    if isinstance(instructions, dict):
        instructions = [instructions]
    if not isinstance(instructions, list):
        return []

    texts = []
    for step in instructions:
        if isinstance(step, str):
            texts.append(step)
        elif _has_type(step, "HowToSection"):
            sub_steps = step.get("itemListElement")
            if isinstance(sub_steps, dict):
                sub_steps = [sub_steps]
            if not isinstance(sub_steps, list):
                continue
            for sub_step in sub_steps:
                if isinstance(sub_step, str):
                    texts.append(sub_step)
                elif isinstance(sub_step, dict) and isinstance(sub_step.get("text"), str):
                    texts.append(sub_step["text"])
        elif isinstance(step, dict) and isinstance(step.get("text"), str):
            texts.append(step["text"])
    return texts


def parse_instructions(instructions: Any) -> list[InstructionStep]:
    """Flatten recipeInstructions into numbered steps.

    Handles plain strings, HowToStep objects and HowToSection objects
    (one level of itemListElement). Blank steps are dropped and the rest are
    numbered from 1 in traversal order.
    """
    steps = []
    for text in _instruction_texts(instructions):
        cleaned = decode_html_entities(text)
        if cleaned:
            steps.append(InstructionStep(step=len(steps) + 1, text=cleaned))
    return steps


def _split_notes(name: str) -> tuple[str, str | None]:
    depth = 0
    for idx, char in enumerate(name):
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            head, tail = name[:idx].strip(), name[idx + 1:].strip()
            if head and tail:
                return head, tail
            break
    return name, None


def parse_ingredient(text: str) -> Ingredient:
    """Split an ingredient line into amount, unit, name and notes.

    This is a best-effort split used for scaling. Lines without a valid
    leading quantity keep only their raw text.

    Examples:
        '1 cup butter, softened' -> amount '1', unit 'cup', name 'butter',
                                    notes 'softened'
        '2 large eggs'           -> amount '2', name 'large eggs'
        'salt to taste'          -> name 'salt to taste'
    """
    cleaned = decode_html_entities(text)
    match = _INGREDIENT_RE.match(cleaned)
    if match:
        amount = match.group("amount").strip()
        if parse_quantity(amount) is not None:
            name, notes = _split_notes(match.group("name").strip())
            return Ingredient(
                raw=cleaned,
                amount=amount,
                unit=match.group("unit"),
                name=name,
                notes=notes,
            )
        _LOGGER.debug("Leading amount '%s' is not a quantity: %s", amount, cleaned)

    return Ingredient(raw=cleaned, name=cleaned)


def parse_ingredients(ingredients: Any) -> list[Ingredient]:
    """Parse recipeIngredient, dropping blank and non-string entries."""
    if isinstance(ingredients, str):
        ingredients = [ingredients]
    if not isinstance(ingredients, list):
        return []
    return [
        parse_ingredient(entry) for entry in ingredients
        if isinstance(entry, str) and decode_html_entities(entry)
    ]


def extract_recipe(node: Any, meta: PageMeta | None = None) -> ScrapedRecipe | None:
    """Map a Schema.org Recipe node into a ScrapedRecipe.

    Args:
        node: A raw JSON-LD object
        meta: Page hints used when the node has no image (and for sourceName)

    Returns:
        The recipe, or None if the node is not Recipe-typed
    """
    if not isinstance(node, dict) or not is_recipe_type(node.get("@type")):
        return None

    meta = meta or PageMeta()

    prep_time = parse_duration(node.get("prepTime"))
    cook_time = parse_duration(node.get("cookTime"))
    total_time = parse_duration(node.get("totalTime"))
    # Pages that only state totalTime still get a time field
    if cook_time is None and prep_time is None:
        cook_time = total_time

    recipe = ScrapedRecipe(
        title=_text(node.get("name")),
        description=_text(node.get("description")),
        ingredients=parse_ingredients(node.get("recipeIngredient")),
        instructions=parse_instructions(node.get("recipeInstructions")),
        prep_time=prep_time,
        cook_time=cook_time,
        servings=parse_servings(node.get("recipeYield")),
        image_url=parse_image(node.get("image")) or meta.og_image,
        source_name=meta.site_name,
        tags=parse_keywords(node.get("keywords")),
    )

    _LOGGER.debug(
        "Extracted recipe '%s': %d ingredients, %d steps",
        recipe.title, len(recipe.ingredients), len(recipe.instructions))
    return recipe


def extract_from_jsonld_array(jsonld: Any, meta: PageMeta | None = None) -> ScrapedRecipe | None:
    """Find the first Recipe in a list of JSON-LD blocks and extract it."""
    node = find_recipe_node(jsonld)
    if node is None:
        _LOGGER.debug("No Recipe node found in JSON-LD data")
        return None
    return extract_recipe(node, meta)


class JSONLDRecipeParser(BaseRecipeParser):
    """Parses recipe data from structured JSON-LD.

    The source is the list of parsed JSON-LD blocks found on a page; no
    inference is needed.
    """

    def __init__(self) -> None:
        """Initialize the JSON-LD recipe parser."""
        _LOGGER.debug("Initialized JSONLDRecipeParser")

    def parse_recipe(self, source: Any, meta: PageMeta | None = None) -> ScrapedRecipe | None:
        """Parse a recipe from parsed JSON-LD blocks.

        Args:
            source: Parsed JSON-LD (usually a list of script contents)
            meta: Optional page metadata

        Returns:
            ScrapedRecipe, or None if no Recipe node exists
        """
        return extract_from_jsonld_array(source, meta)
