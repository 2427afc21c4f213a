"""
Recipe Importer for the Aleppo cooking diary.

This package extracts structured recipes from web pages (fetched
server-side or captured in the browser by the bookmarklet) and rescales
ingredient quantities for display.
"""
from __future__ import annotations

from .bookmarklet import build_bookmarklet_code, build_post_bookmarklet_code
from .extractors import scrape_recipe_from_html, scrape_recipe_from_url
from .models.recipe import Ingredient, InstructionStep, ScrapedRecipe, ScrapeResult
from .parsers.jsonld_parser import extract_from_jsonld_array, extract_recipe, find_recipe_node
from .quantity import format_quantity, normalize_unicode_fractions, parse_quantity
from .services.ingredient_formatter import scale_ingredient

__all__ = [
    "Ingredient",
    "InstructionStep",
    "ScrapeResult",
    "ScrapedRecipe",
    "build_bookmarklet_code",
    "build_post_bookmarklet_code",
    "extract_from_jsonld_array",
    "extract_recipe",
    "find_recipe_node",
    "format_quantity",
    "normalize_unicode_fractions",
    "parse_quantity",
    "scale_ingredient",
    "scrape_recipe_from_html",
    "scrape_recipe_from_url",
]

__version__ = "0.1.0"
