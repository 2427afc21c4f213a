"""Shared fixtures for the Recipe Importer tests."""
from __future__ import annotations

import json

import pytest
import requests

from recipe_importer.extractors import scraper


class FakeSession(requests.Session):
    """A requests session that returns a canned response."""

    def __init__(self, response=None, error=None):
        super().__init__()
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def make_response(status=200, body="", headers=None, reason="OK"):
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response._content_consumed = True
    response.headers.update({"content-type": "text/html; charset=utf-8"})
    response.headers.update(headers or {})
    return response


def jsonld_script(data) -> str:
    text = data if isinstance(data, str) else json.dumps(data)
    return f'<script type="application/ld+json">{text}</script>'


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_session(monkeypatch):
    """Install a FakeSession in place of cloudscraper's session factory."""
    session = FakeSession(response=make_response())

    def create_scraper(**kwargs):
        return session

    monkeypatch.setattr(scraper.cloudscraper, "create_scraper", create_scraper)
    return session


@pytest.fixture
def soup_recipe():
    return {
        "@context": "https://schema.org",
        "@type": "Recipe",
        "name": "Soup",
        "recipeIngredient": ["2 cups broth"],
        "recipeInstructions": [{"@type": "HowToStep", "text": "Boil"}],
        "prepTime": "PT10M",
    }
