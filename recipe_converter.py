#!/usr/bin/env python3
"""
Recipe Converter - Import recipes from websites

Fetches a recipe page, extracts its structured recipe data and prints it as
JSON, optionally with the ingredients rescaled. Also scales single
ingredient lines and prints the bookmarklet for a given app URL.
"""
import argparse
import json
import logging
import sys
from fractions import Fraction
from pathlib import Path

import voluptuous as vol
from dotenv import load_dotenv
from pydantic import ValidationError

from recipe_importer.bookmarklet import build_bookmarklet_code, build_post_bookmarklet_code
from recipe_importer.config import ImporterConfig, load_config
from recipe_importer.extractors.scraper import scrape_recipe_from_url
from recipe_importer.models.recipe import Ingredient
from recipe_importer.quantity import coerce_factor
from recipe_importer.services.ingredient_formatter import (
    scale_factor_for_servings,
    scale_ingredient,
    scale_ingredients,
)

logger = logging.getLogger(__name__)


def positive_number(value: str) -> Fraction:
    """argparse type for a positive scale factor or serving count."""
    number = coerce_factor(value)
    if number is None:
        raise argparse.ArgumentTypeError(f"must be a positive number: {value}")
    return number


def import_recipe(args: argparse.Namespace, config: ImporterConfig) -> int:
    """Import a recipe from a URL and print or save it.

    Returns:
        Process exit code
    """
    result = scrape_recipe_from_url(args.url, config)

    if result.blocked:
        logger.error("The site blocked the request. Use the bookmarklet instead:")
        print(build_bookmarklet_code(config.app_url, config.bookmarklet_timeout_ms))
        return 1

    if result.recipe is None:
        logger.error("Import failed: %s", result.error)
        return 1

    if result.error:
        logger.warning(result.error)

    output = result.to_payload()

    factor = args.scale
    if args.servings:
        factor = scale_factor_for_servings(result.recipe.servings, args.servings)
        if factor is None:
            logger.error("Recipe does not state its servings, cannot scale to %s", args.servings)
            return 1
    if factor:
        output["scaledIngredients"] = scale_ingredients(result.recipe.ingredients, factor)

    text = json.dumps(output, indent=2, ensure_ascii=False)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info("Saved recipe to %s", args.output)
    else:
        print(text)

    return 0


def scale(args: argparse.Namespace, config: ImporterConfig) -> int:
    """Scale one ingredient line and print the result."""
    try:
        ingredient = Ingredient(raw=args.ingredient)
    except ValidationError as e:
        logger.error("Invalid ingredient %r: %s", args.ingredient, e)
        return 1
    scaled = scale_ingredient(ingredient, args.factor)
    if scaled is None:
        logger.warning("No quantity to scale, showing the original text")
        print(args.ingredient)
        return 0
    print(scaled)
    return 0


def bookmarklet(args: argparse.Namespace, config: ImporterConfig) -> int:
    """Print the bookmarklet for the configured app URL."""
    app_url = args.app_url or config.app_url
    if args.transport == "post":
        print(build_post_bookmarklet_code(app_url))
    else:
        print(build_bookmarklet_code(app_url, config.bookmarklet_timeout_ms))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import recipes from websites into structured JSON"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import a recipe from a URL")
    import_parser.add_argument("url", help="URL of the recipe website")
    group = import_parser.add_mutually_exclusive_group()
    group.add_argument(
        "--scale",
        type=positive_number,
        help="Also print the ingredients scaled by this factor"
    )
    group.add_argument(
        "--servings",
        type=positive_number,
        help="Also print the ingredients scaled to this many servings"
    )
    import_parser.add_argument(
        "--output",
        type=Path,
        help="Write the JSON to this file instead of stdout"
    )
    import_parser.set_defaults(handler=import_recipe)

    scale_parser = subparsers.add_parser("scale", help="Scale one ingredient line")
    scale_parser.add_argument("ingredient", help="Ingredient text, e.g. '1 1/2 cups flour'")
    scale_parser.add_argument("factor", type=positive_number, help="Scale factor")
    scale_parser.set_defaults(handler=scale)

    bookmarklet_parser = subparsers.add_parser("bookmarklet", help="Print the bookmarklet")
    bookmarklet_parser.add_argument(
        "--app-url",
        help="Base URL of the app (default: RECIPE_IMPORTER_APP_URL)"
    )
    bookmarklet_parser.add_argument(
        "--transport",
        choices=("message", "post"),
        default="message",
        help="How the bookmarklet hands data to the app (default: message)"
    )
    bookmarklet_parser.set_defaults(handler=bookmarklet)

    return parser


def main(argv=None):
    """Main entry point for the recipe converter."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except vol.Invalid as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid configuration: %s", e)
        return 1

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    return args.handler(args, config)


if __name__ == "__main__":
    sys.exit(main())
