"""
Google quick-answer panel scraping.

Fetches a Google results page and reads the first "quick answer" block
(calculator, featured answer, featured snippet, knowledge panel, weather, time,
dictionary, unit converter). Google changes these class names often; the
selector chain lives in QUICK_ANSWER_SELECTORS so it can be updated in one place.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from pydantic import BaseModel

from . import _http

logger = logging.getLogger(__name__)

SERVICE = "google"
SEARCH_URL = "https://www.google.com/search"

# (kind, css selector), most specific first
QUICK_ANSWER_SELECTORS: List[Tuple[str, str]] = [
    ("calculator", "#cwos"),
    ("answer", "div[data-attrid] .Z0LcW"),
    ("answer", ".Z0LcW"),
    ("snippet", ".hgKElc"),
    ("snippet", "[data-attrid='wa:/description'] span"),
    ("knowledge", ".kno-rdesc span"),
    ("weather", "#wob_tm"),
    ("time", ".gsrt.vk_bk"),
    ("dictionary", "div[data-dobid='dfn']"),
    ("conversion", "#NotFQb input[value]"),
    ("list", ".IZ6rdc"),
]


class QuickAnswer(BaseModel):
    kind: str
    text: str


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def parse_quick_answer(html: str) -> Optional[QuickAnswer]:
    soup = BeautifulSoup(html, "html.parser")
    for kind, selector in QUICK_ANSWER_SELECTORS:
        el = soup.select_one(selector)
        if el is None:
            continue
        if el.name == "input":
            text = _clean(str(el.get("value") or ""))
        else:
            text = _clean(el.get_text(" ", strip=True))
        if text:
            if kind == "weather":
                unit = soup.select_one("#wob_tm ~ .wob_t, .wob-unit .wob_t")
                if unit is not None and unit.get_text(strip=True):
                    text = f"{text}{_clean(unit.get_text(strip=True))}"
            return QuickAnswer(kind=kind, text=text)
    return None


def google_answer(query: str, *, hl: str = "en") -> Optional[QuickAnswer]:
    """Return Google's quick answer for `query`, or None when the page shows none."""
    if not query.strip():
        raise ValueError("query must not be empty")
    resp = _http.request("GET", SEARCH_URL, service=SERVICE, params={"q": query, "hl": hl})
    answer = parse_quick_answer(resp.text)
    if answer is None:
        logger.info("[google] No quick answer for %r", query)
    return answer
