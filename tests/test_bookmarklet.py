"""Tests for the bookmarklet scripts and handshake."""
from urllib.parse import unquote

import pytest

from recipe_importer.bookmarklet import (
    BookmarkletReceiver,
    BookmarkletSender,
    HandshakeState,
    build_bookmarklet_code,
    build_post_bookmarklet_code,
    build_receiver_script,
    extract_bookmarklet_payload,
)
from recipe_importer.const import (
    BOOKMARKLET_IMPORT_ENDPOINT,
    MESSAGE_DATA,
    MESSAGE_READY,
    POPUP_BLOCKED_MESSAGE,
)
from recipe_importer.models.recipe import BookmarkletPayload

APP_URL = "https://aleppo.example.com/"


@pytest.fixture
def payload(soup_recipe):
    return BookmarkletPayload(
        jsonld=[soup_recipe],
        url="https://example.com/soup",
        title="Soup",
        ogImage="https://example.com/og.jpg",
        siteName="Example Kitchen",
    )


class TestBuildBookmarklet:

    def test_is_a_single_encoded_javascript_url(self):
        code = build_bookmarklet_code(APP_URL)
        assert code.startswith("javascript:")
        assert " " not in code
        assert "\n" not in code

    def test_message_transport(self):
        code = unquote(build_bookmarklet_code(APP_URL, timeout_ms=12000))
        assert '"https://aleppo.example.com"' in code
        assert '"/recipes/import?mode=bookmarklet"' in code
        assert 'application/ld+json' in code
        assert 'schema.org/Recipe' in code
        assert f'"{MESSAGE_READY}"' in code
        assert f'"{MESSAGE_DATA}"' in code
        assert POPUP_BLOCKED_MESSAGE in code
        assert "12000" in code
        assert "ogImage" in code and "siteName" in code

    def test_post_transport(self):
        code = unquote(build_post_bookmarklet_code(APP_URL))
        assert f'"{BOOKMARKLET_IMPORT_ENDPOINT}"' in code
        assert "credentials:'include'" in code
        assert "importId" in code
        assert "postMessage" not in code

    @pytest.mark.parametrize("build", [build_bookmarklet_code, build_post_bookmarklet_code])
    def test_microdata_collects_description_and_image(self, build):
        code = unquote(build(APP_URL))
        assert '[itemprop="description"]' in code
        assert "md.description=" in code
        assert '[itemprop="image"]' in code
        assert "md.image=" in code

    def test_receiver_script(self):
        script = build_receiver_script(5000)
        assert f'"{MESSAGE_READY}"' in script
        assert f'"{MESSAGE_DATA}"' in script
        assert "5000" in script
        assert script.startswith("(function(){")


class TestBookmarkletSender:

    def test_sends_payload_once(self, payload, clock):
        sender = BookmarkletSender(payload, clock=clock)
        reply = sender.receive({"type": MESSAGE_READY})
        assert reply == {"type": MESSAGE_DATA, "payload": payload.to_payload()}
        assert reply["payload"]["ogImage"] == "https://example.com/og.jpg"
        assert sender.state is HandshakeState.DONE
        assert sender.receive({"type": MESSAGE_READY}) is None

    @pytest.mark.parametrize("message", [
        {"type": "other"}, {"kind": MESSAGE_READY}, MESSAGE_READY, None, {"type": MESSAGE_DATA},
    ])
    def test_ignores_other_messages(self, payload, clock, message):
        sender = BookmarkletSender(payload, clock=clock)
        assert sender.receive(message) is None
        assert sender.state is HandshakeState.WAITING_FOR_READY

    def test_popup_blocked(self, payload, clock):
        sender = BookmarkletSender(payload, popup_opened=False, clock=clock)
        assert sender.state is HandshakeState.POPUP_BLOCKED
        assert sender.alert == POPUP_BLOCKED_MESSAGE
        assert sender.receive({"type": MESSAGE_READY}) is None

    def test_times_out(self, payload, clock):
        sender = BookmarkletSender(payload, timeout_ms=30000, clock=clock)
        clock.advance(29)
        assert not sender.expire()
        clock.advance(1)
        assert sender.expire()
        assert sender.alert is None
        assert sender.receive({"type": MESSAGE_READY}) is None


class TestBookmarkletReceiver:

    def test_ready_sent_once_across_remounts(self, clock):
        receiver = BookmarkletReceiver(clock=clock)
        assert receiver.mount() == [{"type": MESSAGE_READY}]
        receiver.unmount()
        assert receiver.mount() == []
        assert receiver.listening

    def test_accepts_first_payload_only(self, payload, clock):
        receiver = BookmarkletReceiver(clock=clock)
        receiver.mount()
        message = {"type": MESSAGE_DATA, "payload": payload.to_payload()}

        received = receiver.receive(message)
        assert received == payload
        assert receiver.state is HandshakeState.DONE
        assert receiver.receive(message) is None
        assert receiver.mount() == []

    def test_ignores_messages_before_mount(self, payload, clock):
        receiver = BookmarkletReceiver(clock=clock)
        assert receiver.receive({"type": MESSAGE_DATA, "payload": payload.to_payload()}) is None

    def test_ignores_messages_while_unmounted(self, payload, clock):
        receiver = BookmarkletReceiver(clock=clock)
        receiver.mount()
        receiver.unmount()
        assert receiver.receive({"type": MESSAGE_DATA, "payload": payload.to_payload()}) is None
        assert receiver.state is HandshakeState.WAITING_FOR_DATA

    @pytest.mark.parametrize("message", [
        {"type": MESSAGE_DATA},
        {"type": MESSAGE_DATA, "payload": "text"},
        {"type": MESSAGE_DATA, "payload": {"jsonld": "not a list"}},
        {"type": MESSAGE_READY, "payload": {}},
    ])
    def test_malformed_messages_keep_waiting(self, clock, message):
        receiver = BookmarkletReceiver(clock=clock)
        receiver.mount()
        assert receiver.receive(message) is None
        assert receiver.state is HandshakeState.WAITING_FOR_DATA

    def test_times_out(self, payload, clock):
        receiver = BookmarkletReceiver(timeout_ms=1000, clock=clock)
        receiver.mount()
        clock.advance(1)
        assert receiver.expire()
        assert not receiver.listening
        assert receiver.receive({"type": MESSAGE_DATA, "payload": payload.to_payload()}) is None
        assert receiver.mount() == []

    def test_expire_before_mount_does_nothing(self, clock):
        receiver = BookmarkletReceiver(timeout_ms=1000, clock=clock)
        clock.advance(10)
        assert not receiver.expire()
        assert receiver.mount() == [{"type": MESSAGE_READY}]


class TestExtractBookmarkletPayload:

    def test_extracts_recipe_with_page_meta(self, soup_recipe):
        payload = BookmarkletPayload(jsonld=[soup_recipe], ogImage="https://example.com/og.jpg",
                                     siteName="Example Kitchen")
        recipe = extract_bookmarklet_payload(payload)
        assert recipe.title == "Soup"
        assert recipe.image_url == "https://example.com/og.jpg"
        assert recipe.source_name == "Example Kitchen"

    def test_synthetic_microdata_node(self):
        node = {
            "@type": "Recipe",
            "name": "Rice",
            "recipeIngredient": ["1 cup rice"],
            "recipeInstructions": [{"@type": "HowToStep", "text": "Cook"}],
            "recipeYield": "2",
            "description": "Fluffy rice",
            "image": "https://example.com/rice.jpg",
        }
        recipe = extract_bookmarklet_payload(BookmarkletPayload(jsonld=[node]))
        assert recipe.title == "Rice"
        assert recipe.servings == 2
        assert recipe.description == "Fluffy rice"
        assert recipe.image_url == "https://example.com/rice.jpg"

    def test_no_recipe(self):
        payload = BookmarkletPayload(jsonld=[{"@type": "WebSite"}])
        assert extract_bookmarklet_payload(payload) is None
