"""
Quizlet flashcards through the web app's internal API.

Endpoint: /webapi/3.4/studiable-item-documents
  ?filters[studiableContainerId]=<set id>&filters[studiableContainerType]=1&perPage=N&page=P

Each studiable item has cardSides; sideId 0 is the term ("word"), sideId 1 the
definition. Later pages need the pagingToken returned with the first page.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from . import _http
from ._schema import parse_as
from .errors import ParseError

logger = logging.getLogger(__name__)

SERVICE = "quizlet"
ITEMS_URL = "https://quizlet.com/webapi/3.4/studiable-item-documents"


class Flashcard(BaseModel):
    id: Optional[int] = None
    term: str
    definition: str
    image_url: Optional[str] = None
    rank: Optional[int] = None


# ---- response shape ----

class _Media(BaseModel):
    type: Optional[int] = None
    plainText: Optional[str] = None
    url: Optional[str] = None


class _CardSide(BaseModel):
    sideId: int
    label: Optional[str] = None
    media: List[_Media] = Field(default_factory=list)


class _StudiableItem(BaseModel):
    id: Optional[int] = None
    rank: Optional[int] = None
    cardSides: List[_CardSide] = Field(default_factory=list)


class _Models(BaseModel):
    studiableItem: List[_StudiableItem] = Field(default_factory=list)


class _Paging(BaseModel):
    total: Optional[int] = None
    page: Optional[int] = None
    perPage: Optional[int] = None
    token: Optional[str] = None


class _Response(BaseModel):
    models: _Models = Field(default_factory=_Models)
    paging: _Paging = Field(default_factory=_Paging)


class _Envelope(BaseModel):
    responses: List[_Response]


def set_id_from_url(value: str) -> str:
    """Accept a numeric set id or a set URL like https://quizlet.com/123456789/title-flash-cards/."""
    value = str(value).strip()
    if value.isdigit():
        return value
    m = re.search(r"quizlet\.com/(?:[a-z]{2}(?:-[a-z]{2})?/)?(\d+)", value, re.I)
    if not m:
        raise ValueError(f"not a Quizlet set id or URL: {value}")
    return m.group(1)


def _side_text(side: _CardSide) -> str:
    return " ".join(m.plainText for m in side.media if m.plainText).strip()


def _side_image(side: _CardSide) -> Optional[str]:
    for m in side.media:
        if m.url and not m.plainText:
            return m.url
    return None


def parse_cards(items: List[_StudiableItem]) -> List[Flashcard]:
    cards: List[Flashcard] = []
    for item in items:
        sides: Dict[int, _CardSide] = {s.sideId: s for s in item.cardSides}
        term_side = sides.get(0)
        def_side = sides.get(1)
        if term_side is None and def_side is None:
            continue
        image = None
        for side in (def_side, term_side):
            if side is not None and image is None:
                image = _side_image(side)
        cards.append(
            Flashcard(
                id=item.id,
                term=_side_text(term_side) if term_side else "",
                definition=_side_text(def_side) if def_side else "",
                image_url=image,
                rank=item.rank,
            )
        )
    return cards


def quizlet_cards(set_id: str, *, per_page: int = 500, max_pages: int = 50) -> List[Flashcard]:
    """Return every card of a Quizlet set, in the set's order."""
    sid = set_id_from_url(set_id)
    params: Dict[str, Any] = {
        "filters[studiableContainerId]": sid,
        "filters[studiableContainerType]": 1,
        "perPage": per_page,
        "page": 1,
    }
    cards: List[Flashcard] = []
    for page in range(1, max_pages + 1):
        params["page"] = page
        data = _http.get_json(ITEMS_URL, service=SERVICE, params=dict(params))
        envelope = parse_as(_Envelope, data, SERVICE)
        if not envelope.responses:
            raise ParseError(SERVICE, "empty responses list")
        resp = envelope.responses[0]
        batch = resp.models.studiableItem
        cards.extend(parse_cards(batch))
        logger.debug("[quizlet] set %s page %d: %d items", sid, page, len(batch))
        if len(batch) < per_page or not resp.paging.token:
            break
        params["pagingToken"] = resp.paging.token
    cards.sort(key=lambda c: (c.rank is None, c.rank or 0))
    return cards
