"""
Microdata Recipe Parser.

Some sites (WordPress/Jetpack recipe blocks, for example) mark recipes up
with itemprop attributes instead of JSON-LD script tags. This module turns
such markup into a synthetic JSON-LD node and hands it to the JSON-LD
extractor, so both formats share one set of field rules.
"""
from __future__ import annotations

import logging
import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from ..models.recipe import PageMeta, ScrapedRecipe
from .base_parser import BaseRecipeParser
from .jsonld_parser import extract_recipe

_LOGGER = logging.getLogger(__name__)

RECIPE_SELECTOR = '[itemtype*="schema.org/Recipe"]'
DIRECTIONS_SELECTOR = ".e-instructions, .jetpack-recipe-directions"
TIME_PROPERTIES = ("totalTime", "cookTime", "prepTime")

_SERVINGS_PREFIX_RE = re.compile(r"^servings:\s*", re.IGNORECASE)


def _text(element: Tag) -> str:
    return element.get_text(separator=" ", strip=True)


def _how_to_step(text: str) -> dict[str, str]:
    return {"@type": "HowToStep", "text": text}


def _instructions(root: Tag) -> list[dict[str, str]]:
    steps = [
        _how_to_step(_text(element))
        for element in root.select('[itemprop="recipeInstructions"]')
        if _text(element)
    ]
    if steps:
        return steps

    directions = root.select_one(DIRECTIONS_SELECTOR)
    if directions is None:
        return []

    paragraphs = directions.find_all("p")
    if paragraphs:
        return [_how_to_step(_text(p)) for p in paragraphs if _text(p)]
    text = _text(directions)
    return [_how_to_step(text)] if text else []


def build_microdata_node(soup: BeautifulSoup) -> dict[str, Any] | None:
    """Build a JSON-LD style Recipe node from microdata markup.

    Args:
        soup: The parsed page

    Returns:
        A node with '@type': 'Recipe', or None when the page has no microdata
        recipe with at least a name or one ingredient
    """
    root = soup.select_one(RECIPE_SELECTOR)
    if root is None:
        return None

    node: dict[str, Any] = {"@type": "Recipe"}

    name = root.select_one('[itemprop="name"]')
    if name is not None and _text(name):
        node["name"] = _text(name)

    description = root.select_one('[itemprop="description"]')
    if description is not None:
        node["description"] = description.get("content") or _text(description)

    image = root.select_one('[itemprop="image"]')
    if image is not None:
        node["image"] = image.get("src") or image.get("content") or image.get("href")

    node["recipeIngredient"] = [
        _text(element)
        for element in root.select('[itemprop="recipeIngredient"], [itemprop="ingredients"]')
        if _text(element)
    ]

    recipe_yield = root.select_one('[itemprop="recipeYield"]')
    if recipe_yield is not None:
        node["recipeYield"] = _SERVINGS_PREFIX_RE.sub(
            "", recipe_yield.get("content") or _text(recipe_yield))

    for prop in TIME_PROPERTIES:
        element = root.select_one(f'[itemprop="{prop}"]')
        if element is not None:
            node[prop] = element.get("datetime") or element.get("content") or _text(element)

    node["recipeInstructions"] = _instructions(root)

    if not node.get("name") and not node["recipeIngredient"]:
        _LOGGER.debug("Microdata recipe block has no name or ingredients")
        return None
    return node


class MicrodataRecipeParser(BaseRecipeParser):
    """Parses recipe data from schema.org microdata attributes."""

    def parse_recipe(self, source: Any, meta: PageMeta | None = None) -> ScrapedRecipe | None:
        """Parse a recipe from a BeautifulSoup document.

        Args:
            source: The parsed page (BeautifulSoup)
            meta: Optional page metadata

        Returns:
            ScrapedRecipe, or None if the page has no microdata recipe
        """
        if not isinstance(source, BeautifulSoup):
            return None
        node = build_microdata_node(source)
        if node is None:
            return None
        _LOGGER.debug("Using microdata recipe '%s'", node.get("name"))
        return extract_recipe(node, meta)
