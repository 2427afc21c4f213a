"""
Web scraper for importing recipes from a URL.

This module fetches a recipe page with browser-like headers, collects its
JSON-LD blocks and Open Graph metadata, and runs the structured-data
extraction. Every outcome is returned as a ScrapeResult; nothing raises.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any

import cloudscraper
import requests
from bs4 import BeautifulSoup

from ..config import ImporterConfig
from ..const import (
    BROWSER_HEADERS,
    ERROR_BLOCKED,
    ERROR_FETCH_FAILED,
    ERROR_NO_STRUCTURED_DATA,
)
from ..models.recipe import PageMeta, ScrapedRecipe, ScrapeResult
from ..parsers.jsonld_parser import JSONLDRecipeParser, decode_html_entities
from ..parsers.microdata_parser import MicrodataRecipeParser

_LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a page responds with a non-2xx status."""

    def __init__(self, status: int, reason: str, cloudflare: bool) -> None:
        super().__init__(f"HTTP {status}: {reason}")
        self.status = status
        self.reason = reason
        self.cloudflare = cloudflare

    @property
    def message(self) -> str:
        """The caller-facing error; 403 is reported as the 'blocked' sentinel."""
        if self.status == 403:
            return ERROR_BLOCKED
        return f"HTTP {self.status}: {self.reason}"


def _is_cloudflare(response: requests.Response) -> bool:
    server = response.headers.get("server", "").lower()
    return "cloudflare" in server or response.headers.get("cf-ray") is not None


def _create_session(config: ImporterConfig) -> requests.Session:
    session = cloudscraper.create_scraper(
        browser={
            'browser': 'chrome',
            'platform': 'darwin',
            'desktop': True
        }
    )
    session.headers.update(BROWSER_HEADERS)
    session.max_redirects = config.max_redirects
    return session


def fetch_page(url: str, config: ImporterConfig | None = None) -> bytes:
    """Fetch a page in a single request.

    Args:
        url: URL to fetch
        config: Importer configuration (timeout, size and redirect limits)

    Returns:
        Response content as bytes

    Raises:
        FetchError: If the response status is not 2xx
        requests.exceptions.RequestException: On network errors and timeouts
        ValueError: If the response is too large
    """
    config = config or ImporterConfig()
    session = _create_session(config)

    _LOGGER.debug("Fetching %s (timeout %ss)", url, config.fetch_timeout)
    deadline = time.monotonic() + config.fetch_timeout
    with session:
        response = session.get(
            url,
            timeout=config.fetch_timeout,
            allow_redirects=True,
            stream=True
        )
        try:
            if not response.ok:
                raise FetchError(
                    response.status_code, response.reason or "", _is_cloudflare(response))

            content_length = response.headers.get('content-length')
            if content_length and content_length.isdigit() \
                    and int(content_length) > config.max_response_size:
                raise ValueError(
                    f"Response size ({content_length} bytes) exceeds maximum allowed size ({config.max_response_size} bytes)")

            # Download content with size limit enforcement
            content = b''
            for chunk in response.iter_content(chunk_size=8192):
                if time.monotonic() > deadline:
                    raise requests.exceptions.Timeout(
                        f"Fetching {url} took longer than {config.fetch_timeout}s")
                content += chunk
                if len(content) > config.max_response_size:
                    raise ValueError(
                        f"Response size exceeds maximum allowed size ({config.max_response_size} bytes)")
        finally:
            response.close()

    _LOGGER.debug("Successfully fetched %d bytes from %s", len(content), url)
    return content


def _meta_content(soup: BeautifulSoup, prop: str) -> str | None:
    tag = soup.find("meta", attrs={"property": prop})
    if tag is None:
        return None
    content = tag.get("content")
    if not isinstance(content, str) or not content.strip():
        return None
    return content.strip()


def _page_title(soup: BeautifulSoup) -> str | None:
    title = soup.title.get_text() if soup.title else ""
    title = title.strip() or _meta_content(soup, "og:title")
    return decode_html_entities(title) if title else None


def collect_jsonld(soup: BeautifulSoup) -> list[Any]:
    """Parse every JSON-LD script on the page, skipping malformed ones."""
    blocks = []
    scripts = soup.find_all('script', type='application/ld+json')
    _LOGGER.debug("Found %d JSON-LD scripts", len(scripts))

    for idx, script in enumerate(scripts):
        text = script.string or script.get_text()
        if not text or not text.strip():
            continue
        try:
            blocks.append(json.loads(text))
        except (json.JSONDecodeError, RecursionError) as e:
            _LOGGER.debug("Failed to parse JSON-LD script %d: %s", idx, e)
            continue
    return blocks


def scrape_recipe_from_html(html: str | bytes, url: str | None = None) -> ScrapeResult:
    """Extract a recipe from an HTML document.

    Tries JSON-LD first, then schema.org microdata. If neither holds a
    recipe, returns a minimal recipe built from the page title and Open
    Graph tags along with an error asking the user to fill in the rest.

    Args:
        html: The page HTML
        url: The page URL, recorded in the raw payload

    Returns:
        ScrapeResult with a recipe (possibly minimal) and the raw payload
    """
    soup = BeautifulSoup(html, features="html.parser")

    jsonld = collect_jsonld(soup)
    page_title = _page_title(soup)
    site_name = _meta_content(soup, "og:site_name")
    og_image = _meta_content(soup, "og:image")
    description = _meta_content(soup, "og:description")

    raw_payload = {
        "url": url,
        "jsonLd": jsonld,
        "pageTitle": page_title,
        "siteName": site_name,
    }
    meta = PageMeta(title=page_title, og_image=og_image, site_name=site_name)

    recipe = None
    for parser, source in ((JSONLDRecipeParser(), jsonld), (MicrodataRecipeParser(), soup)):
        try:
            recipe = parser.parse_recipe(source, meta)
        except Exception as e:
            _LOGGER.error("%s failed on %s: %s", type(parser).__name__, url, e, exc_info=True)
            continue
        if recipe is not None:
            break

    if recipe is not None:
        _LOGGER.info("Extracted recipe '%s' with %d ingredients from %s",
                     recipe.title, len(recipe.ingredients), url)
        return ScrapeResult(recipe=recipe, raw_payload=raw_payload)

    _LOGGER.warning("No recipe structured data found at %s", url)
    fallback = ScrapedRecipe(
        title=page_title,
        description=decode_html_entities(description) if description else None,
        image_url=og_image,
        source_name=site_name,
    )
    return ScrapeResult(
        recipe=fallback,
        raw_payload=raw_payload,
        error=ERROR_NO_STRUCTURED_DATA,
    )


def scrape_recipe_from_url(url: str, config: ImporterConfig | None = None) -> ScrapeResult:
    """Fetch a URL and extract its recipe.

    Args:
        url: The URL of the recipe page
        config: Importer configuration

    Returns:
        ScrapeResult. A 403 response sets error to 'blocked' so the caller
        can offer the bookmarklet instead; other HTTP errors carry
        'HTTP <status>: <reason>'; network failures and timeouts carry
        'Failed to fetch URL'.
    """
    _LOGGER.info("Fetching recipe from %s", url)

    try:
        html = fetch_page(url, config)
    except FetchError as e:
        if e.cloudflare:
            _LOGGER.debug("%s is served through Cloudflare", url)
        _LOGGER.warning("Fetching %s failed with %s", url, e)
        return ScrapeResult(
            raw_payload={"status": e.status, "url": url, "cloudflare": e.cloudflare},
            error=e.message,
        )
    except (requests.exceptions.RequestException, ValueError) as e:
        _LOGGER.error("Failed to fetch %s: %s", url, e)
        return ScrapeResult(
            raw_payload={"url": url, "error": str(e)},
            error=ERROR_FETCH_FAILED,
        )
    except Exception as e:
        _LOGGER.error("Unexpected error fetching %s: %s", url, e, exc_info=True)
        return ScrapeResult(
            raw_payload={"url": url, "error": str(e)},
            error=ERROR_FETCH_FAILED,
        )

    try:
        return scrape_recipe_from_html(html, url)
    except Exception as e:
        _LOGGER.error("Unexpected error parsing %s: %s", url, e, exc_info=True)
        return ScrapeResult(
            raw_payload={"url": url, "error": str(e)},
            error=ERROR_NO_STRUCTURED_DATA,
        )
