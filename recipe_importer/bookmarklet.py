"""
Bookmarklet import transport.

The bookmarklet runs on the recipe page the user is already viewing, so it
sees the rendered DOM and is not subject to bot blocking. It collects the
page's JSON-LD (plus a microdata fallback) and hands it to the app in one of
two ways:

- postMessage: open the import page in a popup, wait for its
  'aleppo:ready' signal and reply once with 'aleppo:data'.
- POST: send the payload to the bookmarklet import endpoint with the
  session cookie and redirect to the review page for the returned import.

This module generates both scripts and the review page's receiver script.
BookmarkletSender and BookmarkletReceiver model the handshake the scripts
implement; every transition is guarded so duplicate messages and remounted
listeners cannot send or accept twice.
"""
from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from enum import Enum
from string import Template
from typing import Any
from urllib.parse import quote, urlparse

from pydantic import ValidationError

from .const import (
    BOOKMARKLET_IMPORT_ENDPOINT,
    DEFAULT_BOOKMARKLET_TIMEOUT_MS,
    IMPORT_PAGE_PATH,
    MESSAGE_DATA,
    MESSAGE_READY,
    POPUP_BLOCKED_MESSAGE,
    POPUP_FEATURES,
    POPUP_WINDOW_NAME,
)
from .models.recipe import BookmarkletPayload, ScrapedRecipe
from .parsers.jsonld_parser import JSONLDRecipeParser

_LOGGER = logging.getLogger(__name__)

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"

_COLLECT_SCRIPT = Template("""
var base=$base;
var scripts=document.querySelectorAll('script[type="application/ld+json"]');
var jsonld=[];
for(var i=0;i<scripts.length;i++){try{jsonld.push(JSON.parse(scripts[i].textContent));}catch(e){}}
var re=document.querySelector('[itemtype*="schema.org/Recipe"]');
if(re){
  var md={'@type':'Recipe','recipeIngredient':[],'recipeInstructions':[]};
  var n=re.querySelector('[itemprop="name"]');
  if(n&&n.textContent.trim())md.name=n.textContent.trim();
  var ds=re.querySelector('[itemprop="description"]');
  if(ds){var dt=ds.getAttribute('content')||ds.textContent.trim();if(dt)md.description=dt;}
  var im=re.querySelector('[itemprop="image"]');
  if(im){var iu=im.getAttribute('src')||im.getAttribute('content')||im.getAttribute('href');if(iu)md.image=iu;}
  var ings=re.querySelectorAll('[itemprop="recipeIngredient"],[itemprop="ingredients"]');
  for(var j=0;j<ings.length;j++){var s=ings[j].textContent.trim();if(s)md.recipeIngredient.push(s);}
  var yr=re.querySelector('[itemprop="recipeYield"]');
  if(yr)md.recipeYield=(yr.getAttribute('content')||yr.textContent.trim()).replace(/^servings:\\s*/i,'');
  var tf=['totalTime','cookTime','prepTime'];
  for(var j=0;j<tf.length;j++){var tel=re.querySelector('[itemprop="'+tf[j]+'"]');if(tel)md[tf[j]]=tel.getAttribute('datetime')||tel.getAttribute('content')||tel.textContent.trim();}
  var iels=re.querySelectorAll('[itemprop="recipeInstructions"]');
  if(iels.length){
    for(var j=0;j<iels.length;j++){var s=iels[j].textContent.trim();if(s)md.recipeInstructions.push({'@type':'HowToStep','text':s});}
  }else{
    var de=re.querySelector('.e-instructions,.jetpack-recipe-directions');
    if(de){
      var ps=de.querySelectorAll('p');
      if(ps.length){for(var j=0;j<ps.length;j++){var s=ps[j].textContent.trim();if(s)md.recipeInstructions.push({'@type':'HowToStep','text':s});}}
      else{var s=de.textContent.trim();if(s)md.recipeInstructions.push({'@type':'HowToStep','text':s});}
    }
  }
  if(md.name||md.recipeIngredient.length)jsonld.push(md);
}
var payload={
  jsonld:jsonld,
  url:location.href,
  title:document.title,
  ogImage:((document.querySelector('meta[property="og:image"]')||{}).content)||'',
  siteName:((document.querySelector('meta[property="og:site_name"]')||{}).content)||''
};
""")

_MESSAGE_SCRIPT = Template("""
var w=window.open(base+$import_path,$window_name,$features);
if(!w){alert($popup_blocked);return;}
var sent=false;
function onMsg(e){
  if(e.source!==w||!e.data||e.data.type!==$ready||sent)return;
  sent=true;
  window.removeEventListener('message',onMsg);
  w.postMessage({type:$data,payload:payload},$origin);
}
window.addEventListener('message',onMsg);
setTimeout(function(){window.removeEventListener('message',onMsg);},$timeout);
""")

_POST_SCRIPT = Template("""
var box=document.createElement('div');
box.style.cssText='position:fixed;top:16px;right:16px;z-index:999999;background:#1c1917;color:#fff;padding:12px 18px;border-radius:12px;font:14px/1.5 system-ui,sans-serif;box-shadow:0 4px 24px rgba(0,0,0,.3)';
box.textContent='Importing to Aleppo\\u2026';
document.body.appendChild(box);
fetch(base+$endpoint,{method:'POST',headers:{'Content-Type':'application/json'},credentials:'include',body:JSON.stringify(payload)})
.then(function(r){return r.json();})
.then(function(d){if(d.importId){location.href=base+$review_path+encodeURIComponent(d.importId);}else{box.textContent='Import failed \\u2014 are you signed in to Aleppo?';box.style.background='#dc2626';}})
.catch(function(){box.textContent='Could not connect to Aleppo';box.style.background='#dc2626';});
""")

_RECEIVER_SCRIPT = Template("""
(function(){
  var g=window.__aleppoImport=window.__aleppoImport||{readySent:false,received:false,timedOut:false};
  if(g.received||g.timedOut)return;
  if(g.cleanup)g.cleanup();
  function onMsg(e){
    if(e.source!==window.opener||!e.data||e.data.type!==$data||g.received||g.timedOut)return;
    g.received=true;
    g.cleanup();
    window.dispatchEvent(new CustomEvent('aleppo:payload',{detail:e.data.payload}));
  }
  window.addEventListener('message',onMsg);
  if(!g.timer){
    g.timer=setTimeout(function(){
      if(g.received)return;
      g.timedOut=true;
      g.cleanup();
      window.dispatchEvent(new CustomEvent('aleppo:timeout'));
    },$timeout);
  }
  g.cleanup=function(){window.removeEventListener('message',onMsg);if(g.received||g.timedOut)clearTimeout(g.timer);};
  if(!g.readySent&&window.opener){g.readySent=true;window.opener.postMessage({type:$ready},'*');}
})();
""")


def _origin(app_url: str) -> str:
    parsed = urlparse(app_url)
    return f"{parsed.scheme}://{parsed.netloc}"


def _base(app_url: str) -> str:
    return app_url.strip().rstrip("/")


def _as_bookmarklet(code: str) -> str:
    return "javascript:" + quote(code.strip(), safe=_URI_COMPONENT_SAFE)


def build_bookmarklet_code(
    app_url: str,
    timeout_ms: int = DEFAULT_BOOKMARKLET_TIMEOUT_MS
) -> str:
    """Build the postMessage bookmarklet.

    Args:
        app_url: Base URL of the app, e.g. 'https://aleppo.example.com'
        timeout_ms: How long the page keeps waiting for the ready signal

    Returns:
        A 'javascript:' URL to use as the bookmark target
    """
    base = _base(app_url)
    collect = _COLLECT_SCRIPT.substitute(base=json.dumps(base))
    handshake = _MESSAGE_SCRIPT.substitute(
        import_path=json.dumps(f"{IMPORT_PAGE_PATH}?mode=bookmarklet"),
        window_name=json.dumps(POPUP_WINDOW_NAME),
        features=json.dumps(POPUP_FEATURES),
        popup_blocked=json.dumps(POPUP_BLOCKED_MESSAGE),
        ready=json.dumps(MESSAGE_READY),
        data=json.dumps(MESSAGE_DATA),
        origin=json.dumps(_origin(base)),
        timeout=int(timeout_ms),
    )
    return _as_bookmarklet(f"(function(){{{collect}{handshake}}})();")


def build_post_bookmarklet_code(app_url: str) -> str:
    """Build the bookmarklet that POSTs the payload to the import endpoint.

    Args:
        app_url: Base URL of the app

    Returns:
        A 'javascript:' URL to use as the bookmark target
    """
    base = _base(app_url)
    collect = _COLLECT_SCRIPT.substitute(base=json.dumps(base))
    post = _POST_SCRIPT.substitute(
        endpoint=json.dumps(BOOKMARKLET_IMPORT_ENDPOINT),
        review_path=json.dumps(f"{IMPORT_PAGE_PATH}?importId="),
    )
    return _as_bookmarklet(f"(function(){{{collect}{post}}})();")


def build_receiver_script(timeout_ms: int = DEFAULT_BOOKMARKLET_TIMEOUT_MS) -> str:
    """Build the import page's listener for the postMessage transport.

    The script signals 'aleppo:ready' to the opener once, accepts one
    'aleppo:data' message and dispatches it as an 'aleppo:payload' event, or
    dispatches 'aleppo:timeout' so the page can show the manual form. It is
    safe to run again when the page re-mounts.
    """
    return _RECEIVER_SCRIPT.substitute(
        ready=json.dumps(MESSAGE_READY),
        data=json.dumps(MESSAGE_DATA),
        timeout=int(timeout_ms),
    ).strip()


class HandshakeState(Enum):
    """States of the bookmarklet handshake."""

    WAITING_FOR_READY = "waiting-for-ready"
    WAITING_FOR_DATA = "waiting-for-data"
    DONE = "done"
    TIMED_OUT = "timed-out"
    POPUP_BLOCKED = "popup-blocked"


def _message_type(message: Any) -> str | None:
    if isinstance(message, dict):
        message_type = message.get("type")
        if isinstance(message_type, str):
            return message_type
    return None


class BookmarkletSender:
    """Recipe page side of the postMessage handshake."""

    def __init__(
        self,
        payload: BookmarkletPayload,
        popup_opened: bool = True,
        timeout_ms: int = DEFAULT_BOOKMARKLET_TIMEOUT_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.payload = payload
        self.timeout = timeout_ms / 1000
        self._clock = clock
        self._started = clock()
        if popup_opened:
            self.state = HandshakeState.WAITING_FOR_READY
        else:
            _LOGGER.warning("Import popup was blocked")
            self.state = HandshakeState.POPUP_BLOCKED

    @property
    def alert(self) -> str | None:
        """Message shown to the user when the popup could not be opened."""
        if self.state is HandshakeState.POPUP_BLOCKED:
            return POPUP_BLOCKED_MESSAGE
        return None

    def receive(self, message: Any) -> dict[str, Any] | None:
        """Handle a message from the popup.

        Returns:
            The data message to post back, only for the first ready signal
        """
        if self.state is not HandshakeState.WAITING_FOR_READY:
            return None
        if _message_type(message) != MESSAGE_READY:
            return None
        if self.expire():
            return None

        self.state = HandshakeState.DONE
        _LOGGER.debug("Ready signal received, sending payload")
        return {"type": MESSAGE_DATA, "payload": self.payload.to_payload()}

    def expire(self) -> bool:
        """Stop listening once the timeout has passed.

        Returns:
            True if the handshake is (now) timed out
        """
        if self.state is HandshakeState.WAITING_FOR_READY \
                and self._clock() - self._started >= self.timeout:
            self.state = HandshakeState.TIMED_OUT
        return self.state is HandshakeState.TIMED_OUT


class BookmarkletReceiver:
    """Import page side of the postMessage handshake.

    The page may mount and unmount its listener several times (re-renders);
    the ready signal still goes out at most once and at most one payload is
    accepted.
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_BOOKMARKLET_TIMEOUT_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.state = HandshakeState.WAITING_FOR_READY
        self.timeout = timeout_ms / 1000
        self.listening = False
        self.payload: BookmarkletPayload | None = None
        self._clock = clock
        self._started: float | None = None

    def mount(self) -> list[dict[str, Any]]:
        """Register the listener.

        Returns:
            Messages to post to the opener (the ready signal on first mount)
        """
        if self.state in (HandshakeState.DONE, HandshakeState.TIMED_OUT):
            return []

        self.listening = True
        if self.state is HandshakeState.WAITING_FOR_READY:
            self.state = HandshakeState.WAITING_FOR_DATA
            self._started = self._clock()
            _LOGGER.debug("Listener mounted, sending ready signal")
            return [{"type": MESSAGE_READY}]
        return []

    def unmount(self) -> None:
        """Remove the listener; the handshake state is kept."""
        self.listening = False

    def receive(self, message: Any) -> BookmarkletPayload | None:
        """Accept the first valid data message.

        Returns:
            The payload, or None if the message is ignored
        """
        if not self.listening or self.state is not HandshakeState.WAITING_FOR_DATA:
            return None
        if _message_type(message) != MESSAGE_DATA:
            return None
        if self.expire():
            return None

        raw = message.get("payload")
        if not isinstance(raw, dict):
            _LOGGER.warning("Ignoring data message without a payload object")
            return None
        try:
            payload = BookmarkletPayload(**raw)
        except (TypeError, ValidationError) as e:
            _LOGGER.warning("Ignoring malformed bookmarklet payload: %s", e)
            return None

        self.payload = payload
        self.state = HandshakeState.DONE
        self.listening = False
        _LOGGER.info("Received bookmarklet payload from %s", payload.url)
        return payload

    def expire(self) -> bool:
        """Give up waiting once the timeout has passed.

        Returns:
            True if the handshake is (now) timed out and the page should fall
            back to manual entry
        """
        if self.state is HandshakeState.WAITING_FOR_DATA and self._started is not None \
                and self._clock() - self._started >= self.timeout:
            _LOGGER.warning("No bookmarklet data within %ss", self.timeout)
            self.state = HandshakeState.TIMED_OUT
            self.listening = False
        return self.state is HandshakeState.TIMED_OUT


def extract_bookmarklet_payload(payload: BookmarkletPayload) -> ScrapedRecipe | None:
    """Run the JSON-LD extraction on a captured payload."""
    return JSONLDRecipeParser().parse_recipe(payload.jsonld, payload.page_meta())
