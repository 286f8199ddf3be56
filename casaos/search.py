"""Search suggestions from several web search engines."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import quote_plus

import requests

log = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class SearchEngine:
    """A search engine and the suggestions it returned."""

    name: str
    icon: str
    search_url: str
    reco_url: str
    data: list[str] = field(default_factory=list)


def default_engines() -> list[SearchEngine]:
    """The engines queried for suggestions, in display order."""
    return [
        SearchEngine(
            name="bing",
            icon="https://files.codelife.cc/itab/search/bing.svg",
            search_url="https://www.bing.com/search?q=",
            reco_url="https://www.bing.com/osjson.aspx?query=",
        ),
        SearchEngine(
            name="google",
            icon="https://files.codelife.cc/itab/search/google.svg",
            search_url="https://www.google.com/search?q=",
            reco_url="https://www.google.com/complete/search?client=gws-wiz&xssi=t&hl=en-US&authuser=0&dpr=1&q=",
        ),
        SearchEngine(
            name="baidu",
            icon="https://files.codelife.cc/itab/search/baidu.svg",
            search_url="https://www.baidu.com/s?wd=",
            reco_url="https://www.baidu.com/sugrec?json=1&prod=pc&wd=",
        ),
        SearchEngine(
            name="duckduckgo",
            icon="https://files.codelife.cc/itab/search/duckduckgo.svg",
            search_url="https://duckduckgo.com/?q=",
            reco_url="https://duckduckgo.com/ac/?type=list&q=",
        ),
        SearchEngine(
            name="startpage",
            icon="https://www.startpage.com/sp/cdn/favicons/apple-touch-icon-60x60--default.png",
            search_url="https://www.startpage.com/do/search?q=",
            reco_url="https://www.startpage.com/suggestions?segment=startpage.udog&lui=english&q=",
        ),
    ]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _index(value: Any, position: int) -> Any:
    if isinstance(value, list) and 0 <= position < len(value):
        return value[position]
    return _MISSING


def _key(value: Any, name: str) -> Any:
    if isinstance(value, dict) and name in value:
        return value[name]
    return _MISSING


def _as_array(value: Any) -> list[Any]:
    if value is _MISSING or value is None:
        return []
    return value if isinstance(value, list) else [value]


def _each(value: Any, pick) -> list[Any]:
    if not isinstance(value, list):
        return []
    picked = (pick(element) for element in value)
    return [element for element in picked if element is not _MISSING]


def parse_suggestions(name: str, body: str) -> list[str]:
    """Extract suggestion strings from an engine's response body."""
    if name == "google":
        body = body.replace(")]}'", "", 1)
    try:
        doc = json.loads(body)
    except ValueError:
        return []
    if name in ("bing", "duckduckgo"):
        values = _as_array(_index(doc, 1))
    elif name == "google":
        values = _each(_index(doc, 0), lambda e: _index(e, 0))
    elif name == "baidu":
        values = _each(_key(doc, "g"), lambda e: _key(e, "q"))
    elif name == "startpage":
        values = _each(_key(doc, "suggestions"), lambda e: _key(e, "text"))
    else:
        return []
    texts = [_text(v) for v in values]
    if name == "google":
        texts = [t.replace("<b>", " ").replace("</b>", "") for t in texts]
    return texts


class SearchService:
    """Query every engine for suggestions in parallel."""

    def __init__(self, timeout: float = 3.0, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _fetch(self, engine: SearchEngine, key: str) -> SearchEngine:
        url = engine.reco_url + quote_plus(key)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as err:
            log.error("get search result error from %s (%s): %s", engine.name, url, err)
            return engine
        return replace(engine, data=parse_suggestions(engine.name, response.text))

    def search(self, key: str) -> list[SearchEngine]:
        """Every engine with the suggestions it gave for key.

        An engine that cannot be reached is returned without suggestions.
        """
        engines = default_engines()
        with ThreadPoolExecutor(max_workers=len(engines)) as pool:
            return list(pool.map(lambda engine: self._fetch(engine, key), engines))

    def agent_search(self, url: str) -> bytes:
        """Fetch a URL and return its body; network errors are raised."""
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as err:
            log.error("get search result error (%s): %s", url, err)
            raise
        return response.content