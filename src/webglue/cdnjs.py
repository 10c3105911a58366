"""
CDNJS library search, through the Algolia index behind cdnjs.com.

The application id and search-only key are the public ones the cdnjs website ships.
"""
from __future__ import annotations

from typing import List, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from . import _http
from ._schema import parse_as

SERVICE = "cdnjs"
ALGOLIA_APP_ID = "2QWLVLXZB6"
ALGOLIA_SEARCH_KEY = "2663c73014d2e4d6d1778cc8ad9fd010"
ALGOLIA_URL = f"https://{ALGOLIA_APP_ID}-dsn.algolia.net/1/indexes/libraries/query"
CDN_BASE = "https://cdnjs.cloudflare.com/ajax/libs"


class CdnjsLibrary(BaseModel):
    name: str
    version: Optional[str] = None
    description: Optional[str] = None
    filename: Optional[str] = None
    homepage: Optional[str] = None
    license: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)

    @property
    def url(self) -> Optional[str]:
        if not self.version or not self.filename:
            return None
        return f"{CDN_BASE}/{self.name}/{self.version}/{self.filename}"


class _Hit(BaseModel):
    name: str
    latest: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    filename: Optional[str] = None
    homepage: Optional[str] = None
    license: Optional[str] = None
    keywords: Optional[List[str]] = None


class _SearchResponse(BaseModel):
    hits: List[_Hit] = Field(default_factory=list)


def parse_hits(payload: object) -> List[CdnjsLibrary]:
    data = parse_as(_SearchResponse, payload, SERVICE)
    libs: List[CdnjsLibrary] = []
    for h in data.hits:
        filename = h.filename
        # some records only carry the full latest URL
        if not filename and h.latest and h.version and f"/{h.version}/" in h.latest:
            filename = h.latest.split(f"/{h.version}/", 1)[1]
        libs.append(
            CdnjsLibrary(
                name=h.name,
                version=h.version,
                description=h.description,
                filename=filename,
                homepage=h.homepage,
                license=h.license,
                keywords=[k for k in (h.keywords or []) if isinstance(k, str)],
            )
        )
    return libs


def search_cdnjs(query: str, *, limit: int = 10) -> List[CdnjsLibrary]:
    if not query.strip():
        return []
    payload = _http.post_json(
        ALGOLIA_URL,
        service=SERVICE,
        headers={
            "x-algolia-application-id": ALGOLIA_APP_ID,
            "x-algolia-api-key": ALGOLIA_SEARCH_KEY,
        },
        json={"params": urlencode({"query": query, "hitsPerPage": int(limit)})},
    )
    return parse_hits(payload)
