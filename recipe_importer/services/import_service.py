"""
Recipe Import Service.

This module is the server side of both import front doors: a URL typed by
the user (fetched and scraped here) and a payload captured in the browser
by the bookmarklet. It validates the request, runs extraction and returns
the response body the import endpoint sends back. Persisting the import
record is left to the caller.
"""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from pydantic import ValidationError

from ..bookmarklet import extract_bookmarklet_payload
from ..config import ImporterConfig, http_url
from ..const import (
    DATA_ERROR,
    DATA_JSONLD,
    DATA_OG_IMAGE,
    DATA_PARSE_ERROR,
    DATA_RAW_PAYLOAD,
    DATA_RECIPE,
    DATA_SITE_NAME,
    DATA_STATUS,
    DATA_TITLE,
    DATA_URL,
    ERROR_INVALID_REQUEST,
    ERROR_INVALID_URL,
    ERROR_NO_RECIPE_SCHEMA,
    STATUS_FAILED,
    STATUS_PARSED,
)
from ..extractors.scraper import scrape_recipe_from_url
from ..models.recipe import BookmarkletPayload

_LOGGER = logging.getLogger(__name__)

IMPORT_URL_SCHEMA = vol.Schema(
    {
        vol.Required(DATA_URL): http_url,
    },
    extra=vol.REMOVE_EXTRA,
)

IMPORT_BOOKMARKLET_SCHEMA = vol.Schema(
    {
        vol.Required(DATA_JSONLD): list,
        vol.Optional(DATA_URL): vol.Any(None, http_url),
        vol.Optional(DATA_TITLE): vol.Any(None, str),
        vol.Optional(DATA_OG_IMAGE): vol.Any(None, str),
        vol.Optional(DATA_SITE_NAME): vol.Any(None, str),
    },
    extra=vol.REMOVE_EXTRA,
)


def import_from_url(data: dict[str, Any], config: ImporterConfig | None = None) -> dict[str, Any]:
    """Import a recipe from a URL.

    Args:
        data: Request body, {'url': ...}
        config: Importer configuration

    Returns:
        {'recipe', 'parseError', 'rawPayload', 'status'} on a valid request,
        or {'error': 'Invalid URL'}
    """
    try:
        request = IMPORT_URL_SCHEMA(data)
    except vol.Invalid as e:
        _LOGGER.warning("Rejected URL import request: %s", e)
        return {DATA_ERROR: ERROR_INVALID_URL}

    url = request[DATA_URL]
    _LOGGER.debug("Starting URL import from %s", url)
    result = scrape_recipe_from_url(url, config)

    has_title = result.recipe is not None and bool(result.recipe.title)
    status = STATUS_FAILED if result.error and not has_title else STATUS_PARSED

    if result.blocked:
        _LOGGER.info("Import from %s was blocked; offer the bookmarklet", url)

    return {
        DATA_RECIPE: result.recipe.to_payload() if result.recipe else None,
        DATA_PARSE_ERROR: result.error,
        DATA_RAW_PAYLOAD: result.raw_payload,
        DATA_STATUS: status,
    }


def import_from_bookmarklet(data: dict[str, Any]) -> dict[str, Any]:
    """Import a recipe from a bookmarklet payload.

    Args:
        data: Request body, {'jsonld': [...], 'url', 'title', 'ogImage', 'siteName'}

    Returns:
        {'recipe', 'parseError', 'rawPayload', 'status'} on a valid request,
        or {'error': 'Invalid request'}
    """
    try:
        payload = BookmarkletPayload(**IMPORT_BOOKMARKLET_SCHEMA(data))
    except (vol.Invalid, ValidationError) as e:
        _LOGGER.warning("Rejected bookmarklet import request: %s", e)
        return {DATA_ERROR: ERROR_INVALID_REQUEST}

    _LOGGER.debug("Starting bookmarklet import of %d JSON-LD blocks from %s",
                  len(payload.jsonld), payload.url)

    try:
        recipe = extract_bookmarklet_payload(payload)
    except Exception as e:
        _LOGGER.error("Error extracting bookmarklet payload from %s: %s",
                      payload.url, e, exc_info=True)
        recipe = None

    if recipe is None:
        _LOGGER.warning("No Recipe schema in bookmarklet payload from %s", payload.url)
    else:
        _LOGGER.info("Imported recipe '%s' with %d ingredients via bookmarklet",
                     recipe.title, len(recipe.ingredients))

    return {
        DATA_RECIPE: recipe.to_payload() if recipe else None,
        DATA_PARSE_ERROR: None if recipe else ERROR_NO_RECIPE_SCHEMA,
        DATA_RAW_PAYLOAD: payload.to_payload(),
        DATA_STATUS: STATUS_PARSED if recipe else STATUS_FAILED,
    }
