"""
Sci-Hub PDF discovery and download.

- find_scihub_pdf: fetch <mirror>/<doi> for each mirror until a PDF link is found
- parse_pdf_url: read the PDF link out of the article page (embed/iframe#pdf, or a
  download button's onclick="location.href='...'")
- download_scihub_pdf: save the PDF for a DOI as <doi with / -> _>.pdf
- save_scihub_pdfs: batch download for a list of DOIs or a JSONL file of records
  with a DOI field; DOIs without a PDF are written to not_found.jsonl
"""
from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin, urlsplit, urlunsplit

import requests
from bs4 import BeautifulSoup

from . import _http
from .errors import RequestFailed, ServiceError, WebglueError

logger = logging.getLogger(__name__)

SERVICE = "scihub"
SCIHUB_MIRRORS: Tuple[str, ...] = (
    "https://sci-hub.se",
    "https://sci-hub.st",
    "https://sci-hub.ru",
)

_ONCLICK_RE = re.compile(r"""location\.href\s*=\s*['"]([^'"]+)['"]""")
_DOI_PREFIX_RE = re.compile(r"^(?:doi:\s*|https?://(?:dx\.)?doi\.org/)", re.I)


def normalize_doi(value: str) -> str:
    return _DOI_PREFIX_RE.sub("", value.strip()).strip()


def _sanitize_name(s: str) -> str:
    return s.replace("/", "_")


def _absolute(url: str, base_url: str) -> str:
    url = url.strip()
    if url.startswith("//"):
        url = "https:" + url
    url = urljoin(base_url.rstrip("/") + "/", url)
    # "#view=FitH" and friends only matter to the embedded viewer
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


def parse_pdf_url(html: str, base_url: str) -> Optional[str]:
    soup = BeautifulSoup(html, "html.parser")
    for selector in ("embed#pdf", "iframe#pdf", "#article embed", "#article iframe", "object[type='application/pdf']"):
        el = soup.select_one(selector)
        if el is None:
            continue
        src = el.get("src") or el.get("data")
        if src:
            return _absolute(str(src), base_url)
    for el in soup.select("[onclick]"):
        m = _ONCLICK_RE.search(str(el.get("onclick") or ""))
        if m and ".pdf" in m.group(1):
            return _absolute(m.group(1), base_url)
    # citation meta tag is present on newer page layouts
    meta = soup.select_one("meta[name='citation_pdf_url']")
    if meta is not None and meta.get("content"):
        return _absolute(str(meta["content"]), base_url)
    return None


def find_scihub_pdf(doi: str, *, mirrors: Sequence[str] = SCIHUB_MIRRORS) -> Optional[str]:
    """Return a direct PDF URL for `doi` from the first mirror that has one, else None."""
    doi = normalize_doi(doi)
    if not doi:
        raise ValueError("doi must not be empty")
    for mirror in mirrors:
        page_url = f"{mirror.rstrip('/')}/{doi}"
        try:
            resp = _http.request("GET", page_url, service=SERVICE)
        except (RequestFailed, ServiceError) as e:
            logger.warning("[scihub] %s unavailable: %s", mirror, e)
            continue
        pdf_url = parse_pdf_url(resp.text, mirror)
        if pdf_url:
            logger.info("[scihub] Found PDF for %s on %s", doi, mirror)
            return pdf_url
        logger.info("[scihub] No PDF for %s on %s", doi, mirror)
    return None


def download_scihub_pdf(
    doi: str,
    outdir: Path,
    *,
    mirrors: Sequence[str] = SCIHUB_MIRRORS,
) -> Tuple[Optional[Path], Optional[str]]:
    """Download the PDF for a DOI. Returns (path, source) on success, else (None, None)."""
    doi = normalize_doi(doi)
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    filename = outdir / f"{_sanitize_name(doi)}.pdf"
    if filename.exists():
        return filename, "Sci-Hub (already exists)"
    pdf_url = find_scihub_pdf(doi, mirrors=mirrors)
    if not pdf_url:
        return None, None
    try:
        with _http.request("GET", pdf_url, service=SERVICE, stream=True) as r:
            content_type = r.headers.get("Content-Type", "")
            if content_type.startswith("application/pdf"):
                _http.save_stream(r, filename)
                return filename, "Sci-Hub"
    except (RequestFailed, ServiceError, requests.RequestException) as e:
        logger.warning("[scihub] PDF download failed for %s: %s", doi, e)
        return None, None
    logger.warning("[scihub] %s did not return a PDF (Content-Type: %s)", pdf_url, content_type)
    return None, None


def _iter_dois(source: Union[Path, Iterable[str]], key: str) -> Iterable[Tuple[str, dict]]:
    if isinstance(source, (str, Path)) and Path(source).is_file():
        with Path(source).open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                entry = json.loads(line)
                doi = entry.get(key) or entry.get("DOI") or entry.get("doi")
                if doi:
                    yield str(doi), entry
        return
    if isinstance(source, (str, Path)):
        raise ValueError(f"Path must be a .jsonl file: {source}")
    for doi in source:
        yield doi, {"doi": doi}


def save_scihub_pdfs(
    source: Union[Path, Iterable[str]],
    pdf_out_dir: Path,
    *,
    key: str = "doi",
    mirrors: Sequence[str] = SCIHUB_MIRRORS,
    not_downloaded_out: Optional[Path] = None,
    sleep_seconds: float = 1.0,
) -> dict:
    """Download PDFs for many DOIs. Returns stats; entries without a PDF go to not_downloaded_out."""
    pdf_out_dir = Path(pdf_out_dir)
    pdf_out_dir.mkdir(parents=True, exist_ok=True)
    if not_downloaded_out is None:
        not_downloaded_out = pdf_out_dir / "not_found.jsonl"
    not_downloaded: List[dict] = []
    saved = 0
    existing = 0
    for doi, entry in _iter_dois(source, key):
        try:
            path, src = download_scihub_pdf(doi, pdf_out_dir, mirrors=mirrors)
        except (WebglueError, requests.RequestException) as e:
            logger.warning("[scihub] Download failed for %s: %s", doi, e)
            path, src = None, None
        if path is None:
            logger.info("[scihub] No PDF found for %s", doi)
            not_downloaded.append(entry)
        elif src and "already exists" in src:
            existing += 1
        else:
            saved += 1
            logger.info("[scihub] Downloaded PDF for %s: %s", doi, path)
        if sleep_seconds and sleep_seconds > 0:
            time.sleep(sleep_seconds)

    if not_downloaded:
        not_path = Path(not_downloaded_out)
        not_path.parent.mkdir(parents=True, exist_ok=True)
        with open(not_path, "w", encoding="utf-8") as out_f:
            for e in not_downloaded:
                out_f.write(json.dumps(e) + "\n")
        logger.info("[scihub] Wrote %d entries to %s", len(not_downloaded), not_path)
    return {"saved": saved, "existing": existing, "missing": len(not_downloaded)}
