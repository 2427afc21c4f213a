"""Runtime configuration for the Recipe Importer.

Values come from environment variables (the CLI loads a .env file first)
and are validated with a voluptuous schema.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlparse

import voluptuous as vol

from .const import (
    DEFAULT_APP_URL,
    DEFAULT_BOOKMARKLET_TIMEOUT_MS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RESPONSE_SIZE,
    DEFAULT_TIMEOUT,
    ENV_APP_URL,
    ENV_BOOKMARKLET_TIMEOUT_MS,
    ENV_FETCH_TIMEOUT,
    ENV_LOG_LEVEL,
    ENV_MAX_REDIRECTS,
    ENV_MAX_RESPONSE_SIZE,
)

_LOGGER = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def http_url(value: object) -> str:
    """Validate an absolute http(s) URL."""
    if not isinstance(value, str):
        raise vol.Invalid("expected a URL string")
    url = value.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise vol.Invalid(f"invalid http(s) URL: {value}")
    return url


CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional("app_url", default=DEFAULT_APP_URL): vol.All(
            http_url, lambda url: url.rstrip("/")),
        vol.Optional("fetch_timeout", default=DEFAULT_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)),
        vol.Optional("max_response_size", default=DEFAULT_MAX_RESPONSE_SIZE): vol.All(
            vol.Coerce(int), vol.Range(min=1)),
        vol.Optional("max_redirects", default=DEFAULT_MAX_REDIRECTS): vol.All(
            vol.Coerce(int), vol.Range(min=0)),
        vol.Optional("bookmarklet_timeout_ms", default=DEFAULT_BOOKMARKLET_TIMEOUT_MS): vol.All(
            vol.Coerce(int), vol.Range(min=1)),
        vol.Optional("log_level", default=DEFAULT_LOG_LEVEL): vol.All(
            vol.Upper, vol.In(LOG_LEVELS)),
    }
)

ENV_KEYS = {
    "app_url": ENV_APP_URL,
    "fetch_timeout": ENV_FETCH_TIMEOUT,
    "max_response_size": ENV_MAX_RESPONSE_SIZE,
    "max_redirects": ENV_MAX_REDIRECTS,
    "bookmarklet_timeout_ms": ENV_BOOKMARKLET_TIMEOUT_MS,
    "log_level": ENV_LOG_LEVEL,
}


@dataclass(frozen=True)
class ImporterConfig:
    """Validated importer settings."""

    app_url: str = DEFAULT_APP_URL
    fetch_timeout: float = DEFAULT_TIMEOUT
    max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    bookmarklet_timeout_ms: int = DEFAULT_BOOKMARKLET_TIMEOUT_MS
    log_level: str = DEFAULT_LOG_LEVEL


def load_config(environ: Mapping[str, str] | None = None) -> ImporterConfig:
    """Build the configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        The validated configuration

    Raises:
        vol.Invalid: If a variable holds an invalid value
    """
    environ = os.environ if environ is None else environ
    raw = {
        key: environ[env_key]
        for key, env_key in ENV_KEYS.items()
        if environ.get(env_key, "").strip()
    }
    validated = CONFIG_SCHEMA(raw)
    _LOGGER.debug("Loaded configuration: %s", validated)
    return ImporterConfig(**validated)
