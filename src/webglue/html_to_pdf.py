"""Render HTML (or a page URL) to PDF with the html2pdf.app API."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from . import _http
from .config import get_api_keys
from .errors import ServiceError

logger = logging.getLogger(__name__)

SERVICE = "html2pdf"
GENERATE_URL = "https://api.html2pdf.app/v1/generate"

# passed through as-is when given
OPTIONS = ("format", "landscape", "width", "height", "marginTop", "marginBottom", "marginLeft", "marginRight", "media", "waitFor")


def html_to_pdf(
    *,
    html: Optional[str] = None,
    url: Optional[str] = None,
    api_key: Optional[str] = None,
    out_path: Optional[Path] = None,
    **options: Any,
) -> bytes:
    if (html is None) == (url is None):
        raise ValueError("pass exactly one of html= or url=")
    unknown = set(options) - set(OPTIONS)
    if unknown:
        raise ValueError(f"unknown options: {', '.join(sorted(unknown))}")
    body: Dict[str, Any] = {"apiKey": api_key or get_api_keys().require("html2pdf_api_key")}
    if html is not None:
        body["html"] = html
    else:
        body["url"] = url
    body.update({k: v for k, v in options.items() if v is not None})

    resp = _http.request("POST", GENERATE_URL, service=SERVICE, json=body)
    content_type = resp.headers.get("Content-Type", "")
    if not content_type.startswith("application/pdf"):
        raise ServiceError(SERVICE, f"expected a PDF, got {content_type or 'no content type'}", status_code=resp.status_code)
    pdf = resp.content
    if out_path is not None:
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(pdf)
        logger.info("[html2pdf] Saved %s (%d bytes)", out_path, len(pdf))
    return pdf
