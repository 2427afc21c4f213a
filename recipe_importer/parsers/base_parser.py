"""
Base Recipe Parser.

Every structured-data source (JSON-LD blocks, microdata markup) gets a parser
with the same entry point so the scraper can try them in order.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..models.recipe import PageMeta, ScrapedRecipe


class BaseRecipeParser(ABC):
    """Interface shared by the structured-data recipe parsers."""

    @abstractmethod
    def parse_recipe(self, source: Any, meta: PageMeta | None = None) -> ScrapedRecipe | None:
        """Extract a recipe from one kind of page data.

        Args:
            source: Parsed JSON-LD or a BeautifulSoup document, per parser
            meta: Page hints for fields the structured data leaves out

        Returns:
            A ScrapedRecipe, or None when the source holds no Recipe
        """
