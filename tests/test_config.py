"""Tests for configuration loading."""
import pytest
import voluptuous as vol

from recipe_importer.config import ImporterConfig, http_url, load_config


def test_defaults():
    config = load_config({})
    assert config == ImporterConfig()
    assert config.app_url == "http://localhost:3000"
    assert config.fetch_timeout == 15
    assert config.max_response_size == 5 * 1024 * 1024
    assert config.max_redirects == 10
    assert config.bookmarklet_timeout_ms == 30000
    assert config.log_level == "INFO"


def test_values_from_environment():
    config = load_config({
        "RECIPE_IMPORTER_APP_URL": "https://aleppo.example.com/",
        "RECIPE_IMPORTER_FETCH_TIMEOUT": "7.5",
        "RECIPE_IMPORTER_MAX_RESPONSE_SIZE": "1024",
        "RECIPE_IMPORTER_MAX_REDIRECTS": "0",
        "RECIPE_IMPORTER_BOOKMARKLET_TIMEOUT_MS": "5000",
        "RECIPE_IMPORTER_LOG_LEVEL": "debug",
        "UNRELATED": "x",
    })
    assert config.app_url == "https://aleppo.example.com"
    assert config.fetch_timeout == 7.5
    assert config.max_response_size == 1024
    assert config.max_redirects == 0
    assert config.bookmarklet_timeout_ms == 5000
    assert config.log_level == "DEBUG"


def test_blank_values_use_defaults():
    assert load_config({"RECIPE_IMPORTER_FETCH_TIMEOUT": "  "}).fetch_timeout == 15


@pytest.mark.parametrize("key, value", [
    ("RECIPE_IMPORTER_APP_URL", "localhost:3000"),
    ("RECIPE_IMPORTER_FETCH_TIMEOUT", "0"),
    ("RECIPE_IMPORTER_FETCH_TIMEOUT", "soon"),
    ("RECIPE_IMPORTER_MAX_RESPONSE_SIZE", "0"),
    ("RECIPE_IMPORTER_MAX_REDIRECTS", "-1"),
    ("RECIPE_IMPORTER_LOG_LEVEL", "chatty"),
])
def test_invalid_values(key, value):
    with pytest.raises(vol.Invalid):
        load_config({key: value})


@pytest.mark.parametrize("value", ["https://example.com/a", " http://example.com "])
def test_http_url(value):
    assert http_url(value) == value.strip()


@pytest.mark.parametrize("value", ["ftp://example.com", "example.com", "https://", None])
def test_http_url_rejects(value):
    with pytest.raises(vol.Invalid):
        http_url(value)
