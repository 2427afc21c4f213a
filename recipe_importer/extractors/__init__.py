"""Extractors package."""
from .scraper import fetch_page, scrape_recipe_from_html, scrape_recipe_from_url

__all__ = ["fetch_page", "scrape_recipe_from_html", "scrape_recipe_from_url"]
